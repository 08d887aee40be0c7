"""Per-user repository sync status tracking.

The tracker records whether a background repository sync is ``running`` or
``done`` for a user. Entries live in the shared key-value store under
``"{username}-{github_id}"`` so every API process sees the same state.

Only the caller that atomically creates the ``running`` entry triggers the
background sync; concurrent callers observe the existing status instead.

Usage
-----
::

    tracker = SyncStatusTracker(store)
    key = sync_task_key(user.username, user.github_id)
    status = await tracker.start_sync(key, lambda: dispatcher.enqueue(...))

"""

from __future__ import annotations

import enum
import typing as typ

from depwatch.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from depwatch.cache.protocol import KeyValueStore

__all__ = ["SyncStatusTracker", "SyncTaskStatus", "sync_task_key"]

logger = get_logger(__name__)

_DEFAULT_RUNNING_TTL_S = 600
_DEFAULT_DONE_TTL_S = 30


class SyncTaskStatus(enum.StrEnum):
    """Observable state of a user's repository sync."""

    RUNNING = "running"
    DONE = "done"
    ABSENT = "absent"


def sync_task_key(username: str, github_id: str | int | None) -> str:
    """Return the tracker key for a user and GitHub account."""
    return f"{username}-{github_id}"


class SyncStatusTracker:
    """Track sync status in an injected key-value store.

    Parameters
    ----------
    store
        Shared key-value store.
    running_ttl_s
        Expiry for ``running`` entries. A worker that dies mid-sync blocks
        new syncs for at most this long.
    done_ttl_s
        Expiry for ``done`` entries. Once it lapses the next request starts
        a fresh sync.

    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        running_ttl_s: int = _DEFAULT_RUNNING_TTL_S,
        done_ttl_s: int = _DEFAULT_DONE_TTL_S,
    ) -> None:
        """Configure the tracker around *store*."""
        self._store = store
        self._running_ttl_s = running_ttl_s
        self._done_ttl_s = done_ttl_s

    async def get_status(self, key: str) -> SyncTaskStatus:
        """Return the current status for *key*.

        Unknown stored values are reported as ``ABSENT``.
        """
        raw = await self._store.get(key)
        if raw is None:
            return SyncTaskStatus.ABSENT
        try:
            return SyncTaskStatus(raw)
        except ValueError:
            return SyncTaskStatus.ABSENT

    async def start_sync(
        self,
        key: str,
        trigger: cabc.Callable[[], cabc.Awaitable[None]],
    ) -> SyncTaskStatus:
        """Mark *key* as running and call *trigger* on a fresh start.

        Parameters
        ----------
        key
            Tracker key from :func:`sync_task_key`.
        trigger
            Coroutine factory that enqueues the background sync. It is
            awaited only by the caller whose atomic set created the entry.

        Returns
        -------
        SyncTaskStatus
            ``RUNNING`` after a fresh start, otherwise the existing status.

        Raises
        ------
        Exception
            Whatever *trigger* raises. The running entry is removed first so
            a later request can retry.

        """
        created = await self._store.set_if_absent(
            key, SyncTaskStatus.RUNNING.value, ttl_s=self._running_ttl_s
        )
        if not created:
            return await self.get_status(key)

        try:
            await trigger()
        except Exception:
            await self._store.delete(key)
            raise
        log_info(logger, "Started repository sync %s", key)
        return SyncTaskStatus.RUNNING

    async def mark_done(self, key: str) -> None:
        """Record that the sync for *key* completed."""
        await self._store.set(key, SyncTaskStatus.DONE.value, ttl_s=self._done_ttl_s)

    async def clear(self, key: str) -> None:
        """Forget any status for *key* so the next request starts afresh."""
        await self._store.delete(key)
