"""Errors raised by account lookups."""

from __future__ import annotations


class AccountsError(Exception):
    """Base class for account errors."""


class UserNotFoundError(AccountsError):
    """Raised when no user matches a username or id."""

    def __init__(self, username: str) -> None:
        """Initialise with the missing username."""
        self.username = username
        super().__init__(f"User {username} doesn't exist")


class GitHubNotConnectedError(AccountsError):
    """Raised when an operation needs a GitHub credential the user lacks."""

    def __init__(self, username: str) -> None:
        """Initialise with the user lacking a GitHub token."""
        self.username = username
        super().__init__(
            f"User {username} has no connected GitHub account. "
            "Connect a GitHub account before using GitHub operations."
        )
