"""Mapping helpers for repository DTOs."""

from __future__ import annotations

import typing as typ

from depwatch.repositories.models import RepositoryInfo

if typ.TYPE_CHECKING:
    from depwatch.repositories.storage import GitHubRepository


def to_repository_info(
    repo: GitHubRepository, imported_project_ids: typ.Iterable[str] = ()
) -> RepositoryInfo:
    """Convert a ``GitHubRepository`` row to a :class:`RepositoryInfo`.

    Parameters
    ----------
    repo
        Repository row.
    imported_project_ids
        Ids of projects the user imported from the repository.

    Returns
    -------
    RepositoryInfo
        Repository information suitable for API callers.

    """
    return RepositoryInfo(
        id=repo.id,
        fullname=repo.fullname,
        name=repo.name,
        owner_login=repo.owner_login,
        owner_type=repo.owner_type,
        language=repo.language,
        private=repo.private,
        default_branch=repo.default_branch,
        description=repo.description,
        html_url=repo.html_url,
        pushed_at=repo.pushed_at,
        last_synced_at=repo.last_synced_at,
        imported_project_ids=tuple(imported_project_ids),
    )
