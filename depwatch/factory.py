"""Assemble depwatch services from shared infrastructure.

The API runtime and the Dramatiq actors build the same service graph; this
module keeps that wiring in one place.

Usage
-----
::

    services = build_services(
        session_factory,
        ServiceInfrastructure(store=store, github_client=client, dispatcher=d),
        config=ServiceConfig.from_env(),
    )
    page = await services.repositories.list_repositories(user)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from depwatch.access.auth import ApiKeyAuthenticator
from depwatch.access.rate_limit import FixedWindowRateLimiter
from depwatch.accounts.service import AccountService
from depwatch.config import ServiceConfig
from depwatch.projects.service import ProjectImportDependencies, ProjectImportService
from depwatch.projects.webhook import PushWebhookDependencies, PushWebhookService
from depwatch.repositories.service import (
    RepositorySyncDependencies,
    RepositorySyncService,
)
from depwatch.sync.status import SyncStatusTracker

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from depwatch.cache.protocol import KeyValueStore
    from depwatch.github.client import GitHubRepositoryClient
    from depwatch.tasks.dispatch import TaskDispatcher

__all__ = ["ServiceInfrastructure", "Services", "build_services"]


@dc.dataclass(frozen=True, slots=True)
class ServiceInfrastructure:
    """External resources the services run against.

    Attributes
    ----------
    store
        Shared key-value store for sync status and rate limits.
    github_client
        GitHub REST client.
    dispatcher
        Background task dispatcher.

    """

    store: KeyValueStore
    github_client: GitHubRepositoryClient
    dispatcher: TaskDispatcher


@dc.dataclass(frozen=True, slots=True)
class Services:
    """Fully wired depwatch services."""

    accounts: AccountService
    authenticator: ApiKeyAuthenticator
    rate_limiter: FixedWindowRateLimiter
    repositories: RepositorySyncService
    projects: ProjectImportService
    webhooks: PushWebhookService
    store: KeyValueStore


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    infrastructure: ServiceInfrastructure,
    *,
    config: ServiceConfig | None = None,
) -> Services:
    """Build every service around *session_factory* and *infrastructure*.

    Parameters
    ----------
    session_factory
        Async session factory for the depwatch database.
    infrastructure
        Key-value store, GitHub client and task dispatcher.
    config
        Tunables; defaults to :class:`ServiceConfig` defaults.

    Returns
    -------
    Services
        Services sharing one tracker, client and dispatcher.

    """
    config = config or ServiceConfig()
    tracker = SyncStatusTracker(
        infrastructure.store,
        running_ttl_s=config.sync_running_ttl_s,
        done_ttl_s=config.sync_done_ttl_s,
    )
    repositories = RepositorySyncService(
        RepositorySyncDependencies(
            session_factory=session_factory,
            github_client=infrastructure.github_client,
            tracker=tracker,
            dispatcher=infrastructure.dispatcher,
        ),
        per_page=config.page_size,
    )
    projects = ProjectImportService(
        ProjectImportDependencies(
            session_factory=session_factory,
            github_client=infrastructure.github_client,
            repository_service=repositories,
        )
    )
    return Services(
        accounts=AccountService(session_factory, per_page=config.page_size),
        authenticator=ApiKeyAuthenticator(session_factory),
        rate_limiter=FixedWindowRateLimiter(
            infrastructure.store,
            limit=config.rate_limit_requests,
            window_s=config.rate_limit_window_s,
        ),
        repositories=repositories,
        projects=projects,
        webhooks=PushWebhookService(
            PushWebhookDependencies(
                project_service=projects,
                dispatcher=infrastructure.dispatcher,
            )
        ),
        store=infrastructure.store,
    )
