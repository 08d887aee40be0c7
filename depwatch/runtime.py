"""depwatch runtime entrypoint for container deployments.

This module provides the ASGI application factory used by Granian. It
delegates to :func:`depwatch.api.app.create_app` for application
construction while keeping the ``depwatch.runtime:create_app`` entrypoint
stable.

When ``DEPWATCH_DATABASE_URL`` is set, the runtime builds the full service
graph (session factory, key-value store, GitHub client, task dispatcher) so
the app serves the GitHub and user endpoints. That mode also needs
``DEPWATCH_VALKEY_URL`` (or ``DEPWATCH_BROKER_URL``) so API processes and
workers share sync status. Otherwise it starts in health-only mode.

Configuration is driven by environment variables:

- ``DEPWATCH_HOST``: Bind address (default ``0.0.0.0``)
- ``DEPWATCH_PORT``: Listen port (default ``8080``)
- ``DEPWATCH_LOG_LEVEL``: Log level (default ``INFO``)
- everything read by :meth:`depwatch.config.ServiceConfig.from_env` and
  :meth:`depwatch.github.client.GitHubRestConfig.from_env`

Run the service directly with ``python -m depwatch.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from depwatch.config import ServiceConfig
from depwatch.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi
    from sqlalchemy.ext.asyncio import AsyncEngine

    from depwatch.cache.protocol import KeyValueStore

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid DEPWATCH_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def _build_store(config: ServiceConfig) -> KeyValueStore:
    from depwatch.cache import ValkeyStore

    return ValkeyStore.from_url(config.require_store_url())


def _create_schema(engine: AsyncEngine) -> None:
    """Create missing tables before the server starts its event loop.

    The engine's pool is disposed afterwards so no connection bound to the
    temporary loop survives into request handling.
    """
    import asyncio

    from depwatch.storage import init_storage

    async def run() -> None:
        try:
            await init_storage(engine)
        finally:
            await engine.dispose()

    asyncio.run(run())


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application; health-only when
        ``DEPWATCH_DATABASE_URL`` is unset.

    Raises
    ------
    ValueError
        If the database URL is set but no shared key-value store URL is.

    """
    from depwatch.api.app import AppDependencies
    from depwatch.api.app import create_app as _create_api_app

    config = ServiceConfig.from_env()
    if config.database_url is None:
        log_warning(logger, "DEPWATCH_DATABASE_URL not set; serving health only")
        return _create_api_app()

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from depwatch.factory import ServiceInfrastructure, build_services
    from depwatch.github.client import GitHubRestClient, GitHubRestConfig
    from depwatch.tasks.dispatch import DramatiqTaskDispatcher

    store = _build_store(config)
    engine = create_async_engine(config.database_url)
    if config.auto_create_schema:
        _create_schema(engine)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    services = build_services(
        session_factory,
        ServiceInfrastructure(
            store=store,
            github_client=GitHubRestClient(GitHubRestConfig.from_env()),
            dispatcher=DramatiqTaskDispatcher(config.database_url),
        ),
        config=config,
    )
    return _create_api_app(AppDependencies(services=services))


def main() -> None:
    """Start the depwatch runtime server using Granian.

    Reads ``DEPWATCH_HOST``, ``DEPWATCH_PORT``, and ``DEPWATCH_LOG_LEVEL``
    from the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("DEPWATCH_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("DEPWATCH_PORT", "8080"))
    log_level_str = os.environ.get("DEPWATCH_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid DEPWATCH_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting depwatch runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "depwatch.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
