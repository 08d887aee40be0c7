"""Application factory for the depwatch Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with health endpoints and, when services are supplied, the
GitHub and user endpoints behind API key authentication.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with domain endpoints::

    from depwatch.api.app import AppDependencies, create_app

    app = create_app(AppDependencies(services=build_services(...)))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from depwatch.api.errors import register_error_handlers
from depwatch.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from depwatch.factory import Services

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    services
        Wired depwatch services. When ``None`` only health endpoints are
        registered.

    """

    services: Services | None = None


def _add_github_routes(app: falcon.asgi.App, services: Services) -> None:
    from depwatch.api.github.resources import (
        GitHubHookResource,
        GitHubRepositoriesResource,
        GitHubRepositoryResource,
        GitHubResourceDependencies,
        GitHubSyncResource,
    )

    deps = GitHubResourceDependencies(
        repository_service=services.repositories,
        project_service=services.projects,
        webhook_service=services.webhooks,
    )
    app.add_route("/github", GitHubRepositoriesResource(deps))
    # Static segments win over the {repo_key} field in Falcon's router.
    app.add_route("/github/sync", GitHubSyncResource(deps))
    app.add_route("/github/hook/{project_id}", GitHubHookResource(deps))
    app.add_route("/github/{repo_key}", GitHubRepositoryResource(deps))


def _add_user_routes(app: falcon.asgi.App, services: Services) -> None:
    from depwatch.api.users.resources import (
        CommentsResource,
        FavoritesResource,
        NotificationsResource,
        ProfileResource,
        UserResource,
    )

    accounts = services.accounts
    app.add_route("/me", ProfileResource(accounts))
    app.add_route("/me/favorites", FavoritesResource(accounts))
    app.add_route("/me/comments", CommentsResource(accounts))
    app.add_route("/me/notifications", NotificationsResource(accounts))
    app.add_route("/users/{username}", UserResource(accounts, rate_limited=False))
    app.add_route(
        "/users/{username}/favorites",
        FavoritesResource(accounts, rate_limited=False),
    )
    app.add_route(
        "/users/{username}/comments",
        CommentsResource(accounts, rate_limited=False),
    )


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or without
        services, only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    services = dependencies.services if dependencies is not None else None
    middleware: list[object] = []

    if services is not None:
        from depwatch.api.middleware import AccessControlMiddleware

        middleware.append(
            AccessControlMiddleware(services.authenticator, services.rate_limiter)
        )

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    # Health endpoints are always available
    app.add_route("/health", HealthResource())
    app.add_route(
        "/ready", ReadyResource(services.store if services is not None else None)
    )

    if services is not None:
        _add_github_routes(app, services)
        _add_user_routes(app, services)

    register_error_handlers(app)
    return app
