"""Hand-off from request handlers to background actors."""

from __future__ import annotations

import asyncio
import typing as typ

from depwatch.logging import get_logger, log_info

__all__ = ["DramatiqTaskDispatcher", "TaskDispatcher"]

logger = get_logger(__name__)


class TaskDispatcher(typ.Protocol):
    """Queue background work. Delivery is at least once, unordered."""

    async def enqueue_repository_sync(self, user_id: str) -> None:
        """Queue a full repository refresh for *user_id*."""
        ...

    async def enqueue_project_reimport(self, project_id: str) -> None:
        """Queue a manifest re-import for *project_id*."""
        ...


class DramatiqTaskDispatcher:
    """Send depwatch actors through the configured Dramatiq broker.

    Parameters
    ----------
    database_url
        SQLAlchemy URL the workers connect to.

    """

    def __init__(self, database_url: str) -> None:
        """Bind the dispatcher to the worker database URL."""
        self._database_url = database_url

    async def enqueue_repository_sync(self, user_id: str) -> None:
        """Send ``sync_repositories_job`` for *user_id*."""
        from depwatch.tasks.actors import sync_repositories_job

        await asyncio.to_thread(
            sync_repositories_job.send, self._database_url, user_id
        )
        log_info(logger, "Enqueued repository sync for user %s", user_id)

    async def enqueue_project_reimport(self, project_id: str) -> None:
        """Send ``reimport_project_job`` for *project_id*."""
        from depwatch.tasks.actors import reimport_project_job

        await asyncio.to_thread(
            reimport_project_job.send, self._database_url, project_id
        )
        log_info(logger, "Enqueued re-import for project %s", project_id)
