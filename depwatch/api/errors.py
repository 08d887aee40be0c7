"""Request validation errors and Falcon error handlers for the API layer.

Domain packages raise their own exceptions; this module maps each of them
to an HTTP status and a ``{"title": ..., "description": ...}`` body. Client
errors are logged at WARNING, server errors at ERROR.

Usage
-----
Register every handler on the Falcon app::

    from depwatch.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon

from depwatch.access.errors import AuthenticationError, RateLimitExceededError
from depwatch.accounts.errors import GitHubNotConnectedError, UserNotFoundError
from depwatch.logging import get_logger, log_error, log_warning
from depwatch.projects.errors import (
    InvalidPushEventError,
    NoRelevantChangesError,
    NotCollaboratorError,
    ProjectImportError,
    ProjectNotFoundError,
)
from depwatch.repositories.errors import InvalidFilterError, RepositoryNotFoundError

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "ERROR_MAPPINGS",
    "ErrorMapping",
    "InvalidInputError",
    "handle_domain_error",
    "handle_invalid_input",
    "handle_rate_limited",
    "register_error_handlers",
]

logger = get_logger(__name__)

_SERVER_ERROR_PREFIX = "5"


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


@dc.dataclass(frozen=True, slots=True)
class ErrorMapping:
    """HTTP rendering for one domain exception type."""

    status: str
    title: str


ERROR_MAPPINGS: dict[type[Exception], ErrorMapping] = {
    AuthenticationError: ErrorMapping(falcon.HTTP_401, "Unauthorized"),
    GitHubNotConnectedError: ErrorMapping(falcon.HTTP_400, "GitHub not connected"),
    InvalidFilterError: ErrorMapping(falcon.HTTP_400, "Invalid filter"),
    InvalidPushEventError: ErrorMapping(falcon.HTTP_400, "Invalid payload"),
    RepositoryNotFoundError: ErrorMapping(falcon.HTTP_400, "Repository not found"),
    ProjectNotFoundError: ErrorMapping(falcon.HTTP_400, "Project not found"),
    UserNotFoundError: ErrorMapping(falcon.HTTP_400, "User not found"),
    NotCollaboratorError: ErrorMapping(falcon.HTTP_400, "Not a collaborator"),
    NoRelevantChangesError: ErrorMapping(falcon.HTTP_400, "No relevant changes"),
    ProjectImportError: ErrorMapping(falcon.HTTP_500, "Import failed"),
}


def _log_failure(req: Request, status: str, ex: Exception) -> None:
    log = log_error if status.startswith(_SERVER_ERROR_PREFIX) else log_warning
    log(logger, "%s %s -> %s: %s", req.method, req.path, status, ex)


async def handle_domain_error(
    req: Request,
    resp: Response,
    ex: Exception,
    _params: dict[str, typ.Any],
) -> None:
    """Render a domain exception using :data:`ERROR_MAPPINGS`.

    Parameters
    ----------
    req
        Falcon request, used for logging.
    resp
        Falcon response whose status and media are set.
    ex
        The domain exception.
    _params
        URI template parameters (unused).

    """
    mapping = next(
        (
            ERROR_MAPPINGS[cls]
            for cls in type(ex).__mro__
            if cls in ERROR_MAPPINGS
        ),
        ErrorMapping(falcon.HTTP_500, "Internal error"),
    )
    _log_failure(req, mapping.status, ex)
    resp.status = mapping.status
    resp.media = {"title": mapping.title, "description": str(ex)}


async def handle_invalid_input(
    req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response."""
    _log_failure(req, falcon.HTTP_400, ex)
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


async def handle_rate_limited(
    req: Request,
    resp: Response,
    ex: RateLimitExceededError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``RateLimitExceededError`` to HTTP 429 with ``Retry-After``."""
    _log_failure(req, falcon.HTTP_429, ex)
    resp.status = falcon.HTTP_429
    resp.set_header("Retry-After", str(ex.retry_after_s))
    resp.media = {"title": "Too many requests", "description": str(ex)}


def register_error_handlers(app: App) -> None:
    """Attach every depwatch error handler to *app*."""
    for error_type in ERROR_MAPPINGS:
        app.add_error_handler(error_type, handle_domain_error)
    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(RateLimitExceededError, handle_rate_limited)
