"""GitHub REST client used for repository sync and manifest import."""

from __future__ import annotations

from .client import GitHubRepositoryClient, GitHubRestClient, GitHubRestConfig
from .errors import GitHubAPIError, GitHubConfigError, GitHubFileNotFoundError
from .models import RemoteOwner, RemoteRepository

__all__ = [
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubFileNotFoundError",
    "GitHubRepositoryClient",
    "GitHubRestClient",
    "GitHubRestConfig",
    "RemoteOwner",
    "RemoteRepository",
]
