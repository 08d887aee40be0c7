"""In-process key-value store for tests and single-process development."""

from __future__ import annotations

import asyncio
import time
import typing as typ

__all__ = ["InMemoryStore"]


class InMemoryStore:
    """Dictionary-backed :class:`~depwatch.cache.protocol.KeyValueStore`.

    Entries expire lazily on access. An asyncio lock serialises mutations so
    ``set_if_absent`` keeps its check-and-set semantics across tasks in the
    same event loop. State is not shared between processes.

    Parameters
    ----------
    clock
        Monotonic clock returning seconds. Tests inject a fake to step time.

    """

    def __init__(self, clock: typ.Callable[[], float] = time.monotonic) -> None:
        """Create an empty store driven by *clock*."""
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}
        self._lock = asyncio.Lock()

    def _expires_at(self, ttl_s: int | None) -> float | None:
        return None if ttl_s is None else self._clock() + ttl_s

    def _live(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        """Return the live value for *key*."""
        async with self._lock:
            return self._live(key)

    async def set(self, key: str, value: str, *, ttl_s: int | None = None) -> None:
        """Store *value* under *key* with an optional expiry."""
        async with self._lock:
            self._entries[key] = (value, self._expires_at(ttl_s))

    async def set_if_absent(
        self, key: str, value: str, *, ttl_s: int | None = None
    ) -> bool:
        """Store *value* only when *key* has no live entry."""
        async with self._lock:
            if self._live(key) is not None:
                return False
            self._entries[key] = (value, self._expires_at(ttl_s))
            return True

    async def increment(self, key: str, *, ttl_s: int) -> int:
        """Increment a counter; the expiry is set when the counter is created."""
        async with self._lock:
            current = self._live(key)
            if current is None:
                self._entries[key] = ("1", self._expires_at(ttl_s))
                return 1
            count = int(current) + 1
            _, expires_at = self._entries[key]
            self._entries[key] = (str(count), expires_at)
            return count

    async def delete(self, key: str) -> None:
        """Drop *key*."""
        async with self._lock:
            self._entries.pop(key, None)

    async def ping(self) -> bool:
        """Always reachable."""
        return True
