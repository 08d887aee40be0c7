"""Per-user GitHub repository listing and sync."""

from __future__ import annotations

from .errors import InvalidFilterError, RepositoryError, RepositoryNotFoundError
from .filters import OWNER_TYPES, RepositoryFilters
from .models import RepositoryInfo, SyncResult
from .service import RepositorySyncDependencies, RepositorySyncService
from .storage import GitHubRepository

__all__ = [
    "OWNER_TYPES",
    "GitHubRepository",
    "InvalidFilterError",
    "RepositoryError",
    "RepositoryFilters",
    "RepositoryInfo",
    "RepositoryNotFoundError",
    "RepositorySyncDependencies",
    "RepositorySyncService",
    "SyncResult",
]
