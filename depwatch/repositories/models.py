"""Data transfer objects for GitHub repositories."""

from __future__ import annotations

import dataclasses
import typing as typ

from depwatch.common.repo_key import encode_repo_key

if typ.TYPE_CHECKING:
    import datetime as dt


@dataclasses.dataclass(slots=True, frozen=True)
class RepositoryInfo:
    """Repository as known locally for a user.

    ``imported_project_ids`` lists the ids of the user's GitHub projects
    imported from this repository.
    """

    id: str
    fullname: str
    name: str
    owner_login: str
    owner_type: str
    language: str | None
    private: bool
    default_branch: str
    description: str | None
    html_url: str | None
    pushed_at: str | None
    last_synced_at: dt.datetime | None
    imported_project_ids: tuple[str, ...] = ()

    @property
    def repo_key(self) -> str:
        """Return the URL-safe key for this repository."""
        return encode_repo_key(self.fullname)


@dataclasses.dataclass(slots=True)
class SyncResult:
    """Summary of one repository refresh from GitHub for a user."""

    username: str
    repositories_seen: int = 0
    repositories_created: int = 0
    repositories_updated: int = 0
