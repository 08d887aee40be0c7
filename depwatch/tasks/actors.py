"""Dramatiq actors for background repository sync and project re-import.

Both actors take the database URL plus a record id, build the services for
one run and execute the coroutine with ``asyncio.run``. Failures are logged
and re-raised so Dramatiq records them; the HTTP caller has already been
answered by then. Neither actor is retried.

Usage
-----
Queue a full repository refresh:

>>> sync_repositories_job.send("postgresql+asyncpg://...", "user-id")

Queue a project re-import after a push:

>>> reimport_project_job.send("postgresql+asyncpg://...", "project-id")

Run workers with ``dramatiq depwatch.tasks.actors``.
"""

from __future__ import annotations

import asyncio
import threading
import typing as typ

import dramatiq
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from depwatch.cache.valkey import ValkeyStore
from depwatch.config import ServiceConfig
from depwatch.factory import ServiceInfrastructure, Services, build_services
from depwatch.github.client import GitHubRestClient, GitHubRestConfig
from depwatch.logging import get_logger, log_exception
from depwatch.tasks._broker import broker_url_from_env, ensure_broker_configured
from depwatch.tasks.dispatch import DramatiqTaskDispatcher

if typ.TYPE_CHECKING:
    from depwatch.cache.protocol import KeyValueStore

type SessionFactory = async_sessionmaker[AsyncSession]

logger = get_logger(__name__)

ensure_broker_configured(broker_url_from_env())

# Module-level caches for reusing engines across actor invocations
_ENGINE_CACHE: dict[str, AsyncEngine] = {}
_SESSION_FACTORY_CACHE: dict[str, SessionFactory] = {}
_CACHE_LOCK = threading.Lock()


def _get_or_create_session_factory(database_url: str) -> SessionFactory:
    """Return the cached session factory for *database_url*.

    Thread-safe: uses a lock to prevent race conditions in Dramatiq workers.
    """
    with _CACHE_LOCK:
        if database_url not in _SESSION_FACTORY_CACHE:
            engine = _ENGINE_CACHE.get(database_url)
            if engine is None:
                # Each run owns its event loop, so connections are not pooled.
                engine = create_async_engine(database_url, poolclass=NullPool)
                _ENGINE_CACHE[database_url] = engine
            _SESSION_FACTORY_CACHE[database_url] = async_sessionmaker(
                engine, expire_on_commit=False
            )
        return _SESSION_FACTORY_CACHE[database_url]


def _build_store(config: ServiceConfig) -> KeyValueStore:
    """Connect to the key-value store the API process also uses."""
    return ValkeyStore.from_url(config.require_store_url())


async def _with_services[T](
    database_url: str,
    operation: typ.Callable[[Services], typ.Awaitable[T]],
) -> T:
    """Build per-run clients, run *operation*, then close the clients."""
    config = ServiceConfig.from_env()
    store = _build_store(config)
    github_client = GitHubRestClient(GitHubRestConfig.from_env())
    services = build_services(
        _get_or_create_session_factory(database_url),
        ServiceInfrastructure(
            store=store,
            github_client=github_client,
            dispatcher=DramatiqTaskDispatcher(database_url),
        ),
        config=config,
    )
    try:
        return await operation(services)
    finally:
        await github_client.aclose()
        if isinstance(store, ValkeyStore):
            await store.aclose()


async def _sync_repositories(services: Services, user_id: str) -> dict[str, int]:
    user = await services.accounts.get_user(user_id)
    result = await services.repositories.run_background_sync(user)
    return {
        "seen": result.repositories_seen,
        "created": result.repositories_created,
        "updated": result.repositories_updated,
    }


@dramatiq.actor(max_retries=0)
def sync_repositories_job(database_url: str, user_id: str) -> dict[str, int]:
    """Refresh a user's GitHub repositories and mark the sync done.

    Parameters
    ----------
    database_url
        SQLAlchemy URL for the database.
    user_id
        Id of the user whose repositories are refreshed.

    Returns
    -------
    dict[str, int]
        Counts of repositories seen, created and updated.

    """

    async def run(services: Services) -> dict[str, int]:
        return await _sync_repositories(services, user_id)

    try:
        return asyncio.run(_with_services(database_url, run))
    except Exception as exc:
        log_exception(logger, f"sync_repositories_job failed for user {user_id}", exc)
        raise


@dramatiq.actor(max_retries=0)
def reimport_project_job(database_url: str, project_id: str) -> str:
    """Re-import a project's manifest after a relevant push.

    Parameters
    ----------
    database_url
        SQLAlchemy URL for the database.
    project_id
        Id of the project to refresh.

    Returns
    -------
    str
        The project id.

    """

    async def run(services: Services) -> str:
        project = await services.projects.reimport_project(project_id)
        return project.id

    try:
        return asyncio.run(_with_services(database_url, run))
    except Exception as exc:
        log_exception(
            logger, f"reimport_project_job failed for project {project_id}", exc
        )
        raise
