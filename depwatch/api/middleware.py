"""API key authentication and rate limiting middleware.

Resources opt out through class or instance attributes:

- ``auth_required = False`` skips authentication (health probes).
- ``rate_limited = False`` skips the rate limiter (webhooks, public user
  lookups).

The authenticated :class:`~depwatch.accounts.models.UserInfo` is attached to
``req.context.user``.

Usage
-----
::

    app = falcon.asgi.App(
        middleware=[AccessControlMiddleware(authenticator, rate_limiter)]
    )

"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from depwatch.access.auth import ApiKeyAuthenticator
    from depwatch.access.rate_limit import FixedWindowRateLimiter

__all__ = ["API_KEY_HEADER", "API_KEY_PARAM", "AccessControlMiddleware"]

API_KEY_HEADER = "X-Api-Key"
API_KEY_PARAM = "api_key"


class AccessControlMiddleware:
    """Authenticate callers and apply the per-user rate limit.

    Parameters
    ----------
    authenticator
        Resolves API keys to users.
    rate_limiter
        Fixed-window limiter keyed by user id.

    """

    def __init__(
        self,
        authenticator: ApiKeyAuthenticator,
        rate_limiter: FixedWindowRateLimiter,
    ) -> None:
        """Initialize the middleware with its collaborators."""
        self._authenticator = authenticator
        self._rate_limiter = rate_limiter

    async def process_resource(
        self,
        req: Request,
        resp: Response,
        resource: object,
        _params: dict[str, typ.Any],
    ) -> None:
        """Authenticate and rate limit requests routed to *resource*.

        Raises
        ------
        AuthenticationError
            If the request carries no valid, active API key.
        RateLimitExceededError
            If the caller exhausted the current window.

        """
        if resource is None or not getattr(resource, "auth_required", True):
            return

        api_key = req.get_header(API_KEY_HEADER) or req.get_param(API_KEY_PARAM)
        user = await self._authenticator.authenticate(api_key)
        req.context.user = user

        if getattr(resource, "rate_limited", True):
            remaining = await self._rate_limiter.check(user.id)
            resp.set_header("X-RateLimit-Remaining", str(remaining))
