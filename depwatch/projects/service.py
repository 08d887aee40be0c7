"""Import dependency manifests from GitHub into tracked projects.

A project is identified by (user, repository full name, branch, file). An
import for an existing key overwrites its content in place, so the key never
maps to more than one row. The fetch and the write are not locked together:
two concurrent imports of the same key finish with whichever fetch completed
last.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from depwatch.accounts.mapping import to_user_info
from depwatch.accounts.storage import User
from depwatch.common.time import utcnow
from depwatch.github.errors import GitHubAPIError, GitHubFileNotFoundError
from depwatch.logging import get_logger, log_info, log_warning
from depwatch.projects.errors import (
    ManifestParseError,
    ProjectImportError,
    ProjectNotFoundError,
)
from depwatch.projects.manifests import DEFAULT_REGISTRY, parse_manifest
from depwatch.projects.mapping import to_project_info
from depwatch.projects.storage import GITHUB_SOURCE, Project, ProjectCollaborator

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from depwatch.accounts.models import UserInfo
    from depwatch.github.client import GitHubRepositoryClient
    from depwatch.projects.manifests import ManifestRegistry
    from depwatch.projects.models import ProjectInfo
    from depwatch.repositories.service import RepositorySyncService

type SessionFactory = async_sessionmaker[AsyncSession]

logger = get_logger(__name__)

DEFAULT_BRANCH = "master"
DEFAULT_MANIFEST = "Gemfile"


@dc.dataclass(frozen=True, slots=True)
class ProjectImportDependencies:
    """Collaborators for :class:`ProjectImportService`.

    Attributes
    ----------
    session_factory
        Async session factory for the depwatch database.
    github_client
        GitHub client used to fetch manifest files.
    repository_service
        Resolves repository full names against the user's stored repositories.
    registry
        Manifest registry mapping file names to project types.

    """

    session_factory: SessionFactory
    github_client: GitHubRepositoryClient
    repository_service: RepositorySyncService
    registry: ManifestRegistry = DEFAULT_REGISTRY


@dc.dataclass(frozen=True, slots=True)
class _ImportTarget:
    user_id: str
    fullname: str
    branch: str
    filename: str
    project_type: str


def _key_clause(target: _ImportTarget) -> tuple[typ.Any, ...]:
    return (
        Project.user_id == target.user_id,
        Project.source == GITHUB_SOURCE,
        Project.scm_fullname == target.fullname,
        Project.scm_branch == target.branch,
        Project.filename == target.filename,
    )


class ProjectImportService:
    """Create, replace, list and delete projects imported from GitHub."""

    def __init__(self, dependencies: ProjectImportDependencies) -> None:
        """Configure the service with its collaborators."""
        self._session_factory = dependencies.session_factory
        self._github = dependencies.github_client
        self._repositories = dependencies.repository_service
        self._registry = dependencies.registry

    async def import_from_github(
        self,
        user: UserInfo,
        fullname: str,
        branch: str | None = DEFAULT_BRANCH,
        filename: str | None = DEFAULT_MANIFEST,
    ) -> ProjectInfo:
        """Import *filename* from *fullname* at *branch* for *user*.

        Blank ``branch`` and ``filename`` fall back to ``master`` and
        ``Gemfile``. The repository is looked up in the database on every
        call, never in a cached listing.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub credential.
        RepositoryNotFoundError
            If the repository is not among the user's repositories. GitHub
            is not contacted in this case.
        ProjectImportError
            If the manifest type is unsupported, or the file cannot be
            fetched or parsed.

        """
        branch = (branch or "").strip() or DEFAULT_BRANCH
        filename = (filename or "").strip() or DEFAULT_MANIFEST
        token = user.github_credential()
        await self._repositories.get_repository(user, fullname)

        project_type = self._registry.type_by_filename(filename)
        if project_type is None:
            raise ProjectImportError(
                fullname, branch, filename, "unsupported manifest file"
            )

        target = _ImportTarget(
            user_id=user.id,
            fullname=fullname,
            branch=branch,
            filename=filename,
            project_type=project_type,
        )
        log_info(
            logger,
            "Importing %s:%s:%s for %s",
            fullname,
            branch,
            filename,
            user.username,
        )
        content = await self._fetch_manifest(token, target)
        return await self._store(target, content)

    async def reimport_project(self, project_id: str) -> ProjectInfo:
        """Re-fetch a project's manifest with its owner's credential.

        Raises
        ------
        ProjectNotFoundError
            If the project no longer exists.
        GitHubNotConnectedError
            If the owner has disconnected GitHub.
        ProjectImportError
            If the manifest cannot be fetched or parsed.

        """
        async with self._session_factory() as session:
            project = await session.get(Project, project_id)
            if project is None:
                raise ProjectNotFoundError.for_id(project_id)
            owner = await session.get(User, project.user_id)
            target = _ImportTarget(
                user_id=project.user_id,
                fullname=project.scm_fullname,
                branch=project.scm_branch,
                filename=project.filename,
                project_type=project.project_type,
            )
        if owner is None:
            raise ProjectNotFoundError.for_id(project_id)

        token = to_user_info(owner).github_credential()
        content = await self._fetch_manifest(token, target)
        return await self._store(target, content)

    async def delete_projects(
        self, user: UserInfo, fullname: str, branch: str | None = DEFAULT_BRANCH
    ) -> int:
        """Delete every project imported from *fullname* at *branch*.

        Returns
        -------
        int
            Number of projects removed.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub credential.
        ProjectNotFoundError
            If no project matches.

        """
        user.github_credential()
        branch = (branch or "").strip() or DEFAULT_BRANCH
        async with self._session_factory() as session, session.begin():
            project_ids = list(
                await session.scalars(
                    select(Project.id).where(
                        Project.user_id == user.id,
                        Project.source == GITHUB_SOURCE,
                        Project.scm_fullname == fullname,
                        Project.scm_branch == branch,
                    )
                )
            )
            if not project_ids:
                raise ProjectNotFoundError.for_branch(fullname, branch)
            await session.execute(
                delete(ProjectCollaborator).where(
                    ProjectCollaborator.project_id.in_(project_ids)
                )
            )
            await session.execute(delete(Project).where(Project.id.in_(project_ids)))

        log_info(
            logger,
            "Deleted %d project(s) for %s:%s owned by %s",
            len(project_ids),
            fullname,
            branch,
            user.username,
        )
        return len(project_ids)

    async def list_repository_projects(
        self, user: UserInfo, fullname: str
    ) -> list[ProjectInfo]:
        """Return the user's projects imported from *fullname*."""
        async with self._session_factory() as session:
            projects = await session.scalars(
                select(Project)
                .where(
                    Project.user_id == user.id,
                    Project.source == GITHUB_SOURCE,
                    Project.scm_fullname == fullname,
                )
                .order_by(Project.scm_branch, Project.filename)
            )
            return [to_project_info(project) for project in projects]

    async def get_project(self, project_id: str) -> ProjectInfo:
        """Return the project with id *project_id*.

        Raises
        ------
        ProjectNotFoundError
            If no such project exists.

        """
        async with self._session_factory() as session:
            project = await session.get(Project, project_id)
        if project is None:
            raise ProjectNotFoundError.for_id(project_id)
        return to_project_info(project)

    async def is_collaborator(self, project: ProjectInfo, user: UserInfo) -> bool:
        """Return True when *user* owns or collaborates on *project*."""
        if project.user_id == user.id:
            return True
        async with self._session_factory() as session:
            match = await session.scalar(
                select(ProjectCollaborator.id).where(
                    ProjectCollaborator.project_id == project.id,
                    ProjectCollaborator.user_id == user.id,
                )
            )
        return match is not None

    async def _fetch_manifest(self, token: str, target: _ImportTarget) -> str:
        try:
            raw = await self._github.fetch_file(
                token, target.fullname, target.branch, target.filename
            )
            return parse_manifest(target.filename, raw)
        except GitHubFileNotFoundError as exc:
            raise ProjectImportError(
                target.fullname, target.branch, target.filename, "file not found"
            ) from exc
        except (GitHubAPIError, ManifestParseError) as exc:
            raise ProjectImportError(
                target.fullname, target.branch, target.filename, str(exc)
            ) from exc

    async def _store(self, target: _ImportTarget, content: str) -> ProjectInfo:
        try:
            return await self._upsert(target, content)
        except IntegrityError:
            # A concurrent import inserted the same key first; overwrite it.
            log_warning(
                logger,
                "Concurrent import of %s:%s:%s, retrying as update",
                target.fullname,
                target.branch,
                target.filename,
            )
            return await self._upsert(target, content)

    async def _upsert(self, target: _ImportTarget, content: str) -> ProjectInfo:
        now = utcnow()
        async with self._session_factory() as session, session.begin():
            project = await session.scalar(select(Project).where(*_key_clause(target)))
            if project is None:
                project = Project(
                    user_id=target.user_id,
                    source=GITHUB_SOURCE,
                    scm_fullname=target.fullname,
                    scm_branch=target.branch,
                    filename=target.filename,
                    project_type=target.project_type,
                    content=content,
                    last_imported_at=now,
                )
                session.add(project)
            else:
                project.project_type = target.project_type
                project.content = content
                project.last_imported_at = now
            await session.flush()
            await session.refresh(project)
            return to_project_info(project)
