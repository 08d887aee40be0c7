"""Errors specific to GitHub repository listing and sync."""

from __future__ import annotations


class RepositoryError(Exception):
    """Base class for repository errors."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when a repository is not among the user's known repositories."""

    def __init__(self, fullname: str) -> None:
        """Initialise with the missing repository full name."""
        self.fullname = fullname
        super().__init__(
            f"We couldn't find the repository `{fullname}` in your account."
        )


class InvalidFilterError(RepositoryError):
    """Raised when a repository listing filter is malformed."""

    def __init__(self, field: str, reason: str) -> None:
        """Initialise with the offending filter and the failure reason."""
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")
