"""GitHub repository listing and sync coordination.

The service keeps each user's local copy of their GitHub repository list.
Listing is split into two explicit steps: :meth:`ensure_bootstrapped`
performs a blocking fetch from GitHub the first time a user with no
repositories lists them, then :meth:`query_repositories` runs the pure
database query. Later refreshes run in the background through
:meth:`trigger_async_sync`, deduplicated per user by the sync status tracker.
"""

from __future__ import annotations

import collections
import dataclasses as dc
import typing as typ

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from depwatch.accounts.errors import GitHubNotConnectedError
from depwatch.common.paging import DEFAULT_PER_PAGE, Page, PageRequest
from depwatch.common.time import utcnow
from depwatch.github.errors import GitHubAPIError
from depwatch.logging import get_logger, log_exception, log_info, log_warning
from depwatch.projects.storage import GITHUB_SOURCE, Project
from depwatch.repositories.errors import RepositoryNotFoundError
from depwatch.repositories.filters import RepositoryFilters
from depwatch.repositories.mapping import to_repository_info
from depwatch.repositories.models import RepositoryInfo, SyncResult
from depwatch.repositories.storage import GitHubRepository
from depwatch.sync.status import SyncTaskStatus, sync_task_key

if typ.TYPE_CHECKING:
    import datetime as dt

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from depwatch.accounts.models import UserInfo
    from depwatch.github.client import GitHubRepositoryClient
    from depwatch.github.models import RemoteRepository
    from depwatch.sync.status import SyncStatusTracker
    from depwatch.tasks.dispatch import TaskDispatcher

type SessionFactory = async_sessionmaker[AsyncSession]

logger = get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class RepositorySyncDependencies:
    """Collaborators for :class:`RepositorySyncService`.

    Attributes
    ----------
    session_factory
        Async session factory for the depwatch database.
    github_client
        GitHub client used to fetch repository lists.
    tracker
        Shared sync status tracker.
    dispatcher
        Background task dispatcher for full re-syncs.

    """

    session_factory: SessionFactory
    github_client: GitHubRepositoryClient
    tracker: SyncStatusTracker
    dispatcher: TaskDispatcher


def _apply_filters(
    query: Select, user_id: str, filters: RepositoryFilters
) -> Select:
    query = query.where(GitHubRepository.user_id == user_id)
    if filters.language is not None:
        query = query.where(GitHubRepository.language == filters.language)
    if filters.private is not None:
        query = query.where(GitHubRepository.private == filters.private)
    if filters.owner_login is not None:
        query = query.where(GitHubRepository.owner_login == filters.owner_login)
    if filters.owner_type is not None:
        query = query.where(GitHubRepository.owner_type == filters.owner_type)
    if filters.only_imported:
        imported = select(Project.scm_fullname).where(
            Project.user_id == user_id, Project.source == GITHUB_SOURCE
        )
        query = query.where(GitHubRepository.fullname.in_(imported))
    return query


def _create_repository(
    user_id: str, remote: RemoteRepository, now: dt.datetime
) -> GitHubRepository:
    return GitHubRepository(
        user_id=user_id,
        github_id=remote.id,
        fullname=remote.full_name,
        name=remote.name,
        owner_login=remote.owner.login,
        owner_type=remote.owner_type,
        language=remote.language,
        private=remote.private,
        default_branch=remote.default_branch,
        description=remote.description,
        html_url=remote.html_url,
        pushed_at=remote.pushed_at,
        last_synced_at=now,
    )


def _update_repository(
    repo: GitHubRepository, remote: RemoteRepository, now: dt.datetime
) -> bool:
    """Copy remote fields onto *repo*; return True if anything changed."""
    changes = {
        "github_id": remote.id,
        "name": remote.name,
        "owner_login": remote.owner.login,
        "owner_type": remote.owner_type,
        "language": remote.language,
        "private": remote.private,
        "default_branch": remote.default_branch,
        "description": remote.description,
        "html_url": remote.html_url,
        "pushed_at": remote.pushed_at,
    }
    changed = False
    for attribute, value in changes.items():
        if getattr(repo, attribute) != value:
            setattr(repo, attribute, value)
            changed = True
    repo.last_synced_at = now
    return changed


class RepositorySyncService:
    """List, show and refresh a user's GitHub repositories."""

    def __init__(
        self,
        dependencies: RepositorySyncDependencies,
        *,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> None:
        """Configure the service with its collaborators."""
        self._session_factory = dependencies.session_factory
        self._github = dependencies.github_client
        self._tracker = dependencies.tracker
        self._dispatcher = dependencies.dispatcher
        self._per_page = per_page

    async def count_repositories(self, user: UserInfo) -> int:
        """Return how many repositories are stored for *user*."""
        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count())
                .select_from(GitHubRepository)
                .where(GitHubRepository.user_id == user.id)
            )
        return int(total or 0)

    async def ensure_bootstrapped(self, user: UserInfo) -> bool:
        """Fetch repositories from GitHub when the user has none stored.

        This step blocks on GitHub, so the first listing for a new user can
        be slow. Fetch failures are logged and the listing continues with
        whatever is stored, except when GitHub rejects the token.

        Returns
        -------
        bool
            ``True`` when a bootstrap fetch completed.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub credential, or GitHub rejects it.

        """
        user.github_credential()
        if await self.count_repositories(user) > 0:
            return False

        try:
            result = await self.refresh_repositories(user)
        except GitHubAPIError as exc:
            if exc.is_credential_failure:
                raise GitHubNotConnectedError(user.username) from exc
            log_warning(
                logger,
                "Initial repository fetch failed for %s: %s",
                user.username,
                exc,
            )
            return False
        log_info(
            logger,
            "Bootstrapped %d repositories for %s",
            result.repositories_created,
            user.username,
        )
        return True

    async def list_repositories(
        self,
        user: UserInfo,
        filters: RepositoryFilters | None = None,
        page: int | None = None,
    ) -> Page[RepositoryInfo]:
        """Bootstrap if needed, then return one page of repositories.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub credential.
        InvalidFilterError
            If a filter is malformed.

        """
        filters = filters or RepositoryFilters()
        filters.validate()
        await self.ensure_bootstrapped(user)
        return await self.query_repositories(user, filters, page)

    async def query_repositories(
        self,
        user: UserInfo,
        filters: RepositoryFilters,
        page: int | None = None,
    ) -> Page[RepositoryInfo]:
        """Return one page of stored repositories matching *filters*."""
        window = PageRequest.from_number(page, per_page=self._per_page)
        query = _apply_filters(select(GitHubRepository), user.id, filters)

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(query.subquery())
            )
            repos = list(
                await session.scalars(
                    query.order_by(GitHubRepository.fullname)
                    .offset(window.offset)
                    .limit(window.limit)
                )
            )
            imported = await self._imported_project_ids(
                session, user.id, [repo.fullname for repo in repos]
            )

        items = tuple(
            to_repository_info(repo, imported.get(repo.fullname, ()))
            for repo in repos
        )
        return Page(
            items=items,
            number=window.number,
            per_page=window.per_page,
            total=int(total or 0),
        )

    async def get_repository(self, user: UserInfo, fullname: str) -> RepositoryInfo:
        """Return the stored repository called *fullname*.

        The lookup always reads the database, so a repository added by a
        concurrent sync is visible as soon as that sync commits.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub credential.
        RepositoryNotFoundError
            If the user has no such repository.

        """
        user.github_credential()
        async with self._session_factory() as session:
            repo = await session.scalar(
                select(GitHubRepository).where(
                    GitHubRepository.user_id == user.id,
                    GitHubRepository.fullname == fullname,
                )
            )
            if repo is None:
                raise RepositoryNotFoundError(fullname)
            imported = await self._imported_project_ids(session, user.id, [fullname])
        return to_repository_info(repo, imported.get(fullname, ()))

    async def trigger_async_sync(self, user: UserInfo) -> SyncTaskStatus:
        """Start a background re-sync unless one is running or just finished.

        Returns
        -------
        SyncTaskStatus
            ``RUNNING`` or ``DONE``.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub credential.

        """
        user.github_credential()
        key = sync_task_key(user.username, user.github_id)
        status = await self._tracker.get_status(key)
        if status is not SyncTaskStatus.ABSENT:
            return status

        async def enqueue() -> None:
            await self._dispatcher.enqueue_repository_sync(user.id)

        return await self._tracker.start_sync(key, enqueue)

    async def refresh_repositories(self, user: UserInfo) -> SyncResult:
        """Fetch the user's repositories from GitHub and upsert them.

        Repositories are matched by full name. Stored repositories that
        GitHub no longer reports are kept.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub credential.
        GitHubAPIError
            If GitHub cannot be queried.

        """
        token = user.github_credential()
        remotes = await self._github.fetch_repositories(token)
        result = SyncResult(username=user.username, repositories_seen=len(remotes))
        now = utcnow()

        async with self._session_factory() as session, session.begin():
            existing = await session.scalars(
                select(GitHubRepository).where(GitHubRepository.user_id == user.id)
            )
            by_fullname = {repo.fullname: repo for repo in existing}
            for remote in remotes:
                repo = by_fullname.get(remote.full_name)
                if repo is None:
                    repo = _create_repository(user.id, remote, now)
                    session.add(repo)
                    by_fullname[remote.full_name] = repo
                    result.repositories_created += 1
                elif _update_repository(repo, remote, now):
                    result.repositories_updated += 1

        return result

    async def run_background_sync(self, user: UserInfo) -> SyncResult:
        """Refresh repositories and mark the user's sync as done.

        On failure the tracker entry is cleared so the next request can
        start a new sync, and the error is re-raised for the task runner.
        """
        key = sync_task_key(user.username, user.github_id)
        try:
            result = await self.refresh_repositories(user)
        except (GitHubAPIError, GitHubNotConnectedError, SQLAlchemyError) as exc:
            log_exception(logger, f"Repository sync failed for {user.username}", exc)
            await self._tracker.clear(key)
            raise
        await self._tracker.mark_done(key)
        log_info(
            logger,
            "Repository sync for %s finished: %d seen, %d created, %d updated",
            user.username,
            result.repositories_seen,
            result.repositories_created,
            result.repositories_updated,
        )
        return result

    async def _imported_project_ids(
        self,
        session: AsyncSession,
        user_id: str,
        fullnames: list[str],
    ) -> dict[str, tuple[str, ...]]:
        if not fullnames:
            return {}
        rows = await session.execute(
            select(Project.scm_fullname, Project.id)
            .where(
                Project.user_id == user_id,
                Project.source == GITHUB_SOURCE,
                Project.scm_fullname.in_(fullnames),
            )
            .order_by(Project.created_at, Project.id)
        )
        grouped: dict[str, list[str]] = collections.defaultdict(list)
        for fullname, project_id in rows:
            grouped[fullname].append(project_id)
        return {fullname: tuple(ids) for fullname, ids in grouped.items()}
