"""Key-value store interface shared by the sync tracker and rate limiter."""

from __future__ import annotations

import typing as typ


class KeyValueStore(typ.Protocol):
    """Minimal string key-value store with per-key expiry.

    Implementations must be safe to share between API workers: every
    operation is a single round trip against a store that all processes see.
    """

    async def get(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None``."""
        ...

    async def set(self, key: str, value: str, *, ttl_s: int | None = None) -> None:
        """Store *value* under *key*, replacing any existing value."""
        ...

    async def set_if_absent(
        self, key: str, value: str, *, ttl_s: int | None = None
    ) -> bool:
        """Atomically store *value* only when *key* is unset.

        Returns ``True`` when this call created the entry.
        """
        ...

    async def increment(self, key: str, *, ttl_s: int) -> int:
        """Increment the counter at *key*, starting its expiry on creation."""
        ...

    async def delete(self, key: str) -> None:
        """Remove *key* if present."""
        ...

    async def ping(self) -> bool:
        """Return ``True`` when the store is reachable."""
        ...


__all__ = ["KeyValueStore"]
