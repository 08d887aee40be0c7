"""Fixed-window request rate limiting over the shared key-value store."""

from __future__ import annotations

import time
import typing as typ

from depwatch.access.errors import RateLimitExceededError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from depwatch.cache.protocol import KeyValueStore


class FixedWindowRateLimiter:
    """Count requests per identity in fixed windows.

    The counter key embeds the window index, so each window starts from
    zero and old counters expire with the window.

    Parameters
    ----------
    store:
        Shared key-value store.
    limit:
        Requests allowed per identity per window.
    window_s:
        Window length in seconds.
    clock:
        Wall clock returning epoch seconds.

    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        limit: int,
        window_s: int,
        clock: cabc.Callable[[], float] = time.time,
    ) -> None:
        """Configure the limiter."""
        if limit < 1 or window_s < 1:
            msg = "limit and window_s must be positive"
            raise ValueError(msg)
        self._store = store
        self._limit = limit
        self._window_s = window_s
        self._clock = clock

    async def check(self, identity: str) -> int:
        """Count one request for *identity* and return the remaining allowance.

        Raises
        ------
        RateLimitExceededError
            If the identity has used its allowance for the current window.

        """
        now = self._clock()
        window = int(now // self._window_s)
        count = await self._store.increment(
            f"ratelimit:{identity}:{window}", ttl_s=self._window_s
        )
        if count > self._limit:
            retry_after = (window + 1) * self._window_s - int(now)
            raise RateLimitExceededError(self._limit, max(retry_after, 1))
        return self._limit - count
