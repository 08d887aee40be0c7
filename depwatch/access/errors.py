"""Errors raised by authentication and rate limiting."""

from __future__ import annotations


class AccessError(Exception):
    """Base class for access control errors."""


class AuthenticationError(AccessError):
    """Raised when a request carries no usable API key."""

    @classmethod
    def missing_key(cls) -> AuthenticationError:
        """Return an error for requests without an API key."""
        return cls("Request not authorized. Provide an API key.")

    @classmethod
    def unknown_key(cls) -> AuthenticationError:
        """Return an error for API keys that match no user."""
        return cls("API key is not valid.")

    @classmethod
    def inactive_key(cls) -> AuthenticationError:
        """Return an error for deactivated API keys."""
        return cls("API key is not active.")


class RateLimitExceededError(AccessError):
    """Raised when an identity exceeds its request allowance."""

    def __init__(self, limit: int, retry_after_s: int) -> None:
        """Record the limit and the seconds until the window resets."""
        self.limit = limit
        self.retry_after_s = retry_after_s
        super().__init__(
            f"API rate limit of {limit} requests exceeded. "
            f"Retry in {retry_after_s} seconds."
        )
