"""Shared test utilities: fakes for external collaborators and row builders."""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from depwatch.accounts.mapping import to_user_info
from depwatch.accounts.storage import ApiKey, User
from depwatch.cache import InMemoryStore
from depwatch.factory import ServiceInfrastructure, Services, build_services
from depwatch.github.errors import GitHubFileNotFoundError
from depwatch.github.models import RemoteOwner, RemoteRepository
from depwatch.projects.storage import Project, ProjectCollaborator

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from depwatch.accounts.models import UserInfo


def run_async[T](coro_func: typ.Callable[[], typ.Coroutine[typ.Any, typ.Any, T]]) -> T:
    """Execute an async callable within the test context."""
    return asyncio.run(coro_func())


def remote_repo(
    full_name: str,
    *,
    repo_id: int = 1,
    language: str | None = "Ruby",
    private: bool = False,
    owner_type: str = "User",
) -> RemoteRepository:
    """Build a GitHub repository payload for *full_name*."""
    owner, name = full_name.split("/", 1)
    return RemoteRepository(
        id=repo_id,
        name=name,
        full_name=full_name,
        owner=RemoteOwner(login=owner, type=owner_type),
        private=private,
        language=language,
        html_url=f"https://github.com/{full_name}",
    )


@dataclasses.dataclass
class FakeGitHubClient:
    """In-memory GitHub client recording every call."""

    repositories: list[RemoteRepository] = dataclasses.field(default_factory=list)
    files: dict[tuple[str, str, str], bytes] = dataclasses.field(default_factory=dict)
    repository_calls: int = 0
    file_calls: list[tuple[str, str, str]] = dataclasses.field(default_factory=list)
    error: Exception | None = None
    closed: bool = False

    async def fetch_repositories(self, token: str) -> list[RemoteRepository]:
        """Return the configured repositories, or raise the configured error."""
        self.repository_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.repositories)

    async def fetch_file(
        self, token: str, fullname: str, branch: str, path: str
    ) -> bytes:
        """Return configured file content or raise a not-found error."""
        self.file_calls.append((fullname, branch, path))
        try:
            return self.files[(fullname, branch, path)]
        except KeyError:
            raise GitHubFileNotFoundError(fullname, branch, path) from None

    async def aclose(self) -> None:
        """Match the real client's close hook."""
        self.closed = True


@dataclasses.dataclass
class RecordingDispatcher:
    """Task dispatcher that records enqueued jobs instead of sending them."""

    repository_syncs: list[str] = dataclasses.field(default_factory=list)
    project_reimports: list[str] = dataclasses.field(default_factory=list)

    async def enqueue_repository_sync(self, user_id: str) -> None:
        """Record a repository sync request."""
        self.repository_syncs.append(user_id)

    async def enqueue_project_reimport(self, project_id: str) -> None:
        """Record a project re-import request."""
        self.project_reimports.append(project_id)


@dataclasses.dataclass
class ServiceHarness:
    """Services wired to fakes, with the fakes exposed for assertions."""

    services: Services
    github: FakeGitHubClient
    dispatcher: RecordingDispatcher
    store: InMemoryStore


def build_harness(
    session_factory: async_sessionmaker[AsyncSession],
    github: FakeGitHubClient | None = None,
) -> ServiceHarness:
    """Build every service around fakes for GitHub and the task queue."""
    github = github or FakeGitHubClient()
    dispatcher = RecordingDispatcher()
    store = InMemoryStore()
    services = build_services(
        session_factory,
        ServiceInfrastructure(store=store, github_client=github, dispatcher=dispatcher),
    )
    return ServiceHarness(
        services=services, github=github, dispatcher=dispatcher, store=store
    )


async def create_user(
    session_factory: async_sessionmaker[AsyncSession],
    username: str,
    *,
    github_token: str | None = "gh-token",
    api_key: str | None = None,
    api_key_active: bool = True,
) -> UserInfo:
    """Insert a user (and optionally an API key) and return its snapshot."""
    async with session_factory() as session, session.begin():
        user = User(
            username=username,
            fullname=username.title(),
            email=f"{username}@example.com",
            github_id=f"{username}-gh",
            github_login=username,
            github_token=github_token,
        )
        session.add(user)
        await session.flush()
        if api_key is not None:
            session.add(ApiKey(user_id=user.id, key=api_key, active=api_key_active))
        return to_user_info(user)


async def create_project(
    session_factory: async_sessionmaker[AsyncSession],
    owner: UserInfo,
    fullname: str,
    *,
    branch: str = "master",
    filename: str = "Gemfile",
    collaborators: tuple[UserInfo, ...] = (),
) -> str:
    """Insert a GitHub project for *owner* and return its id."""
    async with session_factory() as session, session.begin():
        project = Project(
            user_id=owner.id,
            scm_fullname=fullname,
            scm_branch=branch,
            filename=filename,
            project_type="RubyGem",
            content="source 'https://rubygems.org'\n",
        )
        session.add(project)
        await session.flush()
        for collaborator in collaborators:
            session.add(
                ProjectCollaborator(project_id=project.id, user_id=collaborator.id)
            )
        return project.id
