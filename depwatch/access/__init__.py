"""Authentication and rate limiting for the HTTP API."""

from __future__ import annotations

from .auth import ApiKeyAuthenticator
from .errors import AccessError, AuthenticationError, RateLimitExceededError
from .rate_limit import FixedWindowRateLimiter

__all__ = [
    "AccessError",
    "ApiKeyAuthenticator",
    "AuthenticationError",
    "FixedWindowRateLimiter",
    "RateLimitExceededError",
]
