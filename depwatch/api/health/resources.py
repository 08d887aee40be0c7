"""Health probe resources for liveness and readiness checks.

These resources skip authentication and are always registered regardless of
whether database dependencies are available.

Usage
-----
Register health endpoints on the Falcon app::

    from depwatch.api.health.resources import HealthResource, ReadyResource

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(store))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from depwatch.cache.protocol import KeyValueStore

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    auth_required = False
    rate_limited = False

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource.

    Responds 200 with ``{"status": "ready"}`` when the shared key-value store
    answers a ping (or when none is configured), otherwise 503 with
    ``{"status": "unavailable"}``.

    Parameters
    ----------
    store
        Store pinged on every probe, or ``None`` in health-only mode.

    """

    auth_required = False
    rate_limited = False

    def __init__(self, store: KeyValueStore | None = None) -> None:
        """Configure the probe with an optional store to ping."""
        self._store = store

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        if self._store is not None and not await self._store.ping():
            resp.media = {"status": "unavailable"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
            return
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
