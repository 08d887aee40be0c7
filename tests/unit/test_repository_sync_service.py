"""Unit tests for RepositorySyncService listing, bootstrap and sync."""

from __future__ import annotations

import typing as typ

import pytest
from sqlalchemy import func, select

from depwatch.accounts import GitHubNotConnectedError
from depwatch.github import GitHubAPIError
from depwatch.repositories import (
    GitHubRepository,
    InvalidFilterError,
    RepositoryFilters,
    RepositoryNotFoundError,
)
from depwatch.sync import SyncTaskStatus, sync_task_key
from tests.helpers import (
    FakeGitHubClient,
    build_harness,
    create_project,
    create_user,
    remote_repo,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


async def _count_rows(session_factory: async_sessionmaker[AsyncSession]) -> int:
    async with session_factory() as session:
        return int(
            await session.scalar(select(func.count()).select_from(GitHubRepository))
            or 0
        )


def _github_with(*names: str) -> FakeGitHubClient:
    return FakeGitHubClient(
        repositories=[
            remote_repo(name, repo_id=index) for index, name in enumerate(names, 1)
        ]
    )


class TestBootstrap:
    """Tests for the lazy first fetch."""

    @pytest.mark.asyncio
    async def test_first_listing_fetches_from_github_once(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """An empty store triggers one fetch; later listings read the DB."""
        user = await create_user(session_factory, "reiz")
        harness = build_harness(session_factory, _github_with("reiz/a", "reiz/b"))
        service = harness.services.repositories

        first = await service.list_repositories(user)
        second = await service.list_repositories(user)

        assert harness.github.repository_calls == 1
        assert [repo.fullname for repo in first.items] == ["reiz/a", "reiz/b"]
        assert second.total == 2

    @pytest.mark.asyncio
    async def test_no_fetch_when_repositories_exist(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Stored repositories suppress the bootstrap."""
        user = await create_user(session_factory, "reiz")
        harness = build_harness(session_factory, _github_with("reiz/a"))
        await harness.services.repositories.refresh_repositories(user)
        harness.github.repository_calls = 0

        bootstrapped = await harness.services.repositories.ensure_bootstrapped(user)

        assert bootstrapped is False
        assert harness.github.repository_calls == 0

    @pytest.mark.asyncio
    async def test_github_failure_returns_empty_listing(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A failed bootstrap is logged and the listing is empty."""
        user = await create_user(session_factory, "reiz")
        github = FakeGitHubClient(error=GitHubAPIError("boom", status_code=502))
        harness = build_harness(session_factory, github)

        page = await harness.services.repositories.list_repositories(user)

        assert page.items == ()
        assert page.paging()["total_entries"] == 0

    @pytest.mark.asyncio
    async def test_rejected_token_is_reported(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A 401 from GitHub means the account link is no longer valid."""
        user = await create_user(session_factory, "reiz")
        github = FakeGitHubClient(error=GitHubAPIError("bad creds", status_code=401))
        harness = build_harness(session_factory, github)

        with pytest.raises(GitHubNotConnectedError):
            await harness.services.repositories.list_repositories(user)
        assert await _count_rows(session_factory) == 0

    @pytest.mark.asyncio
    async def test_listing_requires_github_credential(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Users without a GitHub token cannot list repositories."""
        user = await create_user(session_factory, "reiz", github_token=None)
        harness = build_harness(session_factory)

        with pytest.raises(GitHubNotConnectedError):
            await harness.services.repositories.list_repositories(user)
        assert harness.github.repository_calls == 0


class TestFilters:
    """Tests for filtered listings."""

    @pytest.mark.asyncio
    async def test_filters_are_combined(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Language, visibility and owner filters narrow together."""
        user = await create_user(session_factory, "reiz")
        github = FakeGitHubClient(
            repositories=[
                remote_repo("reiz/ruby-public", repo_id=1, language="Ruby"),
                remote_repo(
                    "reiz/ruby-private", repo_id=2, language="Ruby", private=True
                ),
                remote_repo("reiz/js", repo_id=3, language="JavaScript"),
                remote_repo(
                    "acme/ruby", repo_id=4, language="Ruby", owner_type="Organization"
                ),
            ]
        )
        service = build_harness(session_factory, github).services.repositories

        page = await service.list_repositories(
            user, RepositoryFilters(language="Ruby", private=False, owner_login="reiz")
        )
        orgs = await service.list_repositories(
            user, RepositoryFilters(owner_type="organization")
        )

        assert [repo.fullname for repo in page.items] == ["reiz/ruby-public"]
        assert [repo.fullname for repo in orgs.items] == ["acme/ruby"]

    @pytest.mark.asyncio
    async def test_only_imported_lists_repositories_with_projects(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """only_imported keeps repositories with at least one project."""
        user = await create_user(session_factory, "reiz")
        service = build_harness(
            session_factory, _github_with("reiz/a", "reiz/b")
        ).services.repositories
        await service.refresh_repositories(user)
        project_id = await create_project(session_factory, user, "reiz/b")

        page = await service.list_repositories(
            user, RepositoryFilters(only_imported=True)
        )

        assert [repo.fullname for repo in page.items] == ["reiz/b"]
        assert page.items[0].imported_project_ids == (project_id,)

    @pytest.mark.asyncio
    async def test_unknown_owner_type_is_rejected(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """org_type must be user or organization."""
        user = await create_user(session_factory, "reiz")
        harness = build_harness(session_factory)

        with pytest.raises(InvalidFilterError, match="org_type"):
            await harness.services.repositories.list_repositories(
                user, RepositoryFilters(owner_type="team")
            )
        assert harness.github.repository_calls == 0

    @pytest.mark.asyncio
    async def test_paging_splits_results(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Pages hold per_page rows and report totals."""
        user = await create_user(session_factory, "reiz")
        names = [f"reiz/repo-{index:02d}" for index in range(35)]
        service = build_harness(
            session_factory, _github_with(*names)
        ).services.repositories

        second = await service.list_repositories(user, page=2)

        assert len(second.items) == 5
        assert second.paging() == {
            "current_page": 2,
            "per_page": 30,
            "total_entries": 35,
            "total_pages": 2,
        }


class TestRefresh:
    """Tests for refresh_repositories and get_repository."""

    @pytest.mark.asyncio
    async def test_refresh_upserts_without_deleting(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Known repositories update in place; vanished ones are kept."""
        user = await create_user(session_factory, "reiz")
        github = _github_with("reiz/a", "reiz/b")
        service = build_harness(session_factory, github).services.repositories
        await service.refresh_repositories(user)

        github.repositories = [
            remote_repo("reiz/a", repo_id=1, language="Python"),
            remote_repo("reiz/c", repo_id=3),
        ]
        result = await service.refresh_repositories(user)

        assert (result.repositories_seen, result.repositories_created) == (2, 1)
        assert result.repositories_updated == 1
        assert await _count_rows(session_factory) == 3
        updated = await service.get_repository(user, "reiz/a")
        assert updated.language == "Python"

    @pytest.mark.asyncio
    async def test_get_repository_unknown_name(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Unknown full names raise RepositoryNotFoundError."""
        user = await create_user(session_factory, "reiz")
        service = build_harness(session_factory).services.repositories

        with pytest.raises(RepositoryNotFoundError, match="reiz/missing"):
            await service.get_repository(user, "reiz/missing")

    @pytest.mark.asyncio
    async def test_get_repository_requires_github_credential(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Showing a repository needs a linked GitHub account."""
        user = await create_user(session_factory, "reiz", github_token=None)
        service = build_harness(session_factory).services.repositories

        with pytest.raises(GitHubNotConnectedError):
            await service.get_repository(user, "reiz/a")

    @pytest.mark.asyncio
    async def test_repositories_are_scoped_per_user(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """One user's repositories are invisible to another."""
        owner = await create_user(session_factory, "reiz")
        other = await create_user(session_factory, "timgluz")
        service = build_harness(
            session_factory, _github_with("reiz/a")
        ).services.repositories
        await service.refresh_repositories(owner)

        with pytest.raises(RepositoryNotFoundError):
            await service.get_repository(other, "reiz/a")


class TestAsyncSync:
    """Tests for trigger_async_sync and run_background_sync."""

    @pytest.mark.asyncio
    async def test_repeated_triggers_enqueue_once(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Only the first trigger enqueues; later calls see RUNNING."""
        user = await create_user(session_factory, "reiz")
        harness = build_harness(session_factory)
        service = harness.services.repositories

        first = await service.trigger_async_sync(user)
        second = await service.trigger_async_sync(user)

        assert (first, second) == (SyncTaskStatus.RUNNING, SyncTaskStatus.RUNNING)
        assert harness.dispatcher.repository_syncs == [user.id]

    @pytest.mark.asyncio
    async def test_background_sync_marks_done(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """After the worker finishes, polling reports DONE."""
        user = await create_user(session_factory, "reiz")
        harness = build_harness(session_factory, _github_with("reiz/a"))
        service = harness.services.repositories
        await service.trigger_async_sync(user)

        result = await service.run_background_sync(user)
        status = await service.trigger_async_sync(user)

        assert result.repositories_created == 1
        assert status is SyncTaskStatus.DONE
        assert len(harness.dispatcher.repository_syncs) == 1

    @pytest.mark.asyncio
    async def test_background_failure_clears_status(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A failed worker run lets the next request start a new sync."""
        user = await create_user(session_factory, "reiz")
        github = FakeGitHubClient(error=GitHubAPIError("boom", status_code=500))
        harness = build_harness(session_factory, github)
        service = harness.services.repositories
        await service.trigger_async_sync(user)

        with pytest.raises(GitHubAPIError):
            await service.run_background_sync(user)

        key = sync_task_key(user.username, user.github_id)
        assert await harness.store.get(key) is None
        await service.trigger_async_sync(user)
        assert len(harness.dispatcher.repository_syncs) == 2
