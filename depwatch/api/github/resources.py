"""GitHub repository resources.

Routes
------
``GET /github``
    List the caller's repositories, bootstrapping from GitHub on first use.
``GET /github/sync``
    Start or poll a background repository refresh.
``GET | POST | DELETE /github/{repo_key}``
    Show a repository, import a manifest from it, or delete its projects
    for a branch.
``POST /github/hook/{project_id}``
    GitHub push webhook.

Repo keys encode ``owner/name`` as ``owner:name`` with every ``.`` replaced
by ``~``.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon

from depwatch.api.params import page_param
from depwatch.common.repo_key import decode_repo_key
from depwatch.common.time import isoformat_or_none
from depwatch.projects.webhook import decode_push_event
from depwatch.repositories.filters import RepositoryFilters

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from depwatch.accounts.models import UserInfo
    from depwatch.projects.models import ProjectInfo
    from depwatch.projects.service import ProjectImportService
    from depwatch.projects.webhook import PushWebhookService
    from depwatch.repositories.models import RepositoryInfo
    from depwatch.repositories.service import RepositorySyncService

__all__ = [
    "GitHubHookResource",
    "GitHubRepositoriesResource",
    "GitHubRepositoryResource",
    "GitHubResourceDependencies",
    "GitHubSyncResource",
]


@dc.dataclass(frozen=True, slots=True)
class GitHubResourceDependencies:
    """Services used by the GitHub resources.

    Attributes
    ----------
    repository_service
        Lists, shows and syncs repositories.
    project_service
        Imports and deletes projects.
    webhook_service
        Handles push webhooks.

    """

    repository_service: RepositorySyncService
    project_service: ProjectImportService
    webhook_service: PushWebhookService


def _serialize_repository(repo: RepositoryInfo) -> dict[str, typ.Any]:
    """Serialize a repository for listings."""
    return {
        "repo_key": repo.repo_key,
        "fullname": repo.fullname,
        "name": repo.name,
        "owner_login": repo.owner_login,
        "owner_type": repo.owner_type,
        "language": repo.language,
        "private": repo.private,
        "imported_projects": list(repo.imported_project_ids),
    }


def _serialize_repository_detail(repo: RepositoryInfo) -> dict[str, typ.Any]:
    """Serialize a repository with its descriptive fields."""
    return {
        **_serialize_repository(repo),
        "default_branch": repo.default_branch,
        "description": repo.description,
        "html_url": repo.html_url,
        "pushed_at": repo.pushed_at,
        "last_synced_at": isoformat_or_none(repo.last_synced_at),
    }


def _serialize_project(project: ProjectInfo) -> dict[str, typ.Any]:
    """Serialize an imported project."""
    return {
        "id": project.id,
        "source": project.source,
        "scm_fullname": project.scm_fullname,
        "scm_branch": project.scm_branch,
        "filename": project.filename,
        "project_type": project.project_type,
        "created_at": project.created_at.isoformat(),
        "updated_at": project.updated_at.isoformat(),
        "last_imported_at": project.last_imported_at.isoformat(),
    }


def _current_user(req: Request) -> UserInfo:
    return req.context.user


class GitHubRepositoriesResource:
    """``GET /github``: one page of the caller's repositories.

    The first call for a user without stored repositories blocks while the
    list is fetched from GitHub.
    """

    def __init__(self, dependencies: GitHubResourceDependencies) -> None:
        """Configure the resource with its dependencies."""
        self._repositories = dependencies.repository_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """List repositories filtered by ``lang``, ``private``, ``org_name``,
        ``org_type`` and ``only_imported``.
        """
        filters = RepositoryFilters(
            language=req.get_param("lang"),
            private=req.get_param_as_bool("private"),
            owner_login=req.get_param("org_name"),
            owner_type=req.get_param("org_type"),
            only_imported=req.get_param_as_bool("only_imported", default=False),
        )
        page = await self._repositories.list_repositories(
            _current_user(req), filters, page_param(req)
        )
        resp.media = {
            "repos": [_serialize_repository(repo) for repo in page.items],
            "paging": page.paging(),
        }
        resp.status = falcon.HTTP_200


class GitHubSyncResource:
    """``GET /github/sync``: start or poll a background refresh."""

    def __init__(self, dependencies: GitHubResourceDependencies) -> None:
        """Configure the resource with its dependencies."""
        self._repositories = dependencies.repository_service

    async def on_get(self, req: Request, resp: Response) -> None:
        """Return ``{"status": "running" | "done"}``."""
        status = await self._repositories.trigger_async_sync(_current_user(req))
        resp.media = {"status": status.value}
        resp.status = falcon.HTTP_200


class GitHubRepositoryResource:
    """``/github/{repo_key}``: show, import from, or delete projects of a repo."""

    def __init__(self, dependencies: GitHubResourceDependencies) -> None:
        """Configure the resource with its dependencies."""
        self._repositories = dependencies.repository_service
        self._projects = dependencies.project_service

    async def _render(
        self, resp: Response, user: UserInfo, fullname: str
    ) -> None:
        repo = await self._repositories.get_repository(user, fullname)
        projects = await self._projects.list_repository_projects(user, fullname)
        resp.media = {
            "repo": _serialize_repository_detail(repo),
            "imported_projects": [_serialize_project(p) for p in projects],
        }
        resp.status = falcon.HTTP_200

    async def on_get(self, req: Request, resp: Response, *, repo_key: str) -> None:
        """Show the repository and the projects imported from it."""
        await self._render(resp, _current_user(req), decode_repo_key(repo_key))

    async def on_post(self, req: Request, resp: Response, *, repo_key: str) -> None:
        """Import ``file`` (default ``Gemfile``) from ``branch`` (default
        ``master``).
        """
        user = _current_user(req)
        fullname = decode_repo_key(repo_key)
        await self._projects.import_from_github(
            user,
            fullname,
            branch=req.get_param("branch"),
            filename=req.get_param("file"),
        )
        await self._render(resp, user, fullname)

    async def on_delete(self, req: Request, resp: Response, *, repo_key: str) -> None:
        """Delete the projects imported from ``branch`` (default ``master``)."""
        deleted = await self._projects.delete_projects(
            _current_user(req),
            decode_repo_key(repo_key),
            branch=req.get_param("branch"),
        )
        resp.media = {"success": True, "deleted": deleted}
        resp.status = falcon.HTTP_200


class GitHubHookResource:
    """``POST /github/hook/{project_id}``: GitHub push webhook.

    Not rate limited; GitHub controls the delivery rate.
    """

    rate_limited = False

    def __init__(self, dependencies: GitHubResourceDependencies) -> None:
        """Configure the resource with its dependencies."""
        self._webhooks = dependencies.webhook_service

    async def on_post(self, req: Request, resp: Response, *, project_id: str) -> None:
        """Queue a re-import when the push changed a dependency manifest."""
        event = decode_push_event(await req.stream.read())
        message = await self._webhooks.handle(_current_user(req), project_id, event)
        resp.media = {"success": message}
        resp.status = falcon.HTTP_200
