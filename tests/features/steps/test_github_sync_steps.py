"""Behavioural coverage for GitHub listing, sync, import and push webhooks.

Usage
-----
Run with pytest::

    pytest tests/features/steps/test_github_sync_steps.py

Each scenario runs the real services against a sqlite database under
``tmp_path`` with GitHub and the task queue replaced by in-memory fakes.
"""

from __future__ import annotations

import json
import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from depwatch.api.app import AppDependencies, create_app
from depwatch.common.repo_key import encode_repo_key
from depwatch.storage import init_storage
from tests.helpers import (
    FakeGitHubClient,
    ServiceHarness,
    build_harness,
    create_user,
    remote_repo,
    run_async,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from falcon.testing.client import Result
    from sqlalchemy.ext.asyncio import AsyncEngine

_API_KEY = "reiz-key"


class GitHubSyncContext(typ.TypedDict, total=False):
    """Mutable context shared between steps."""

    harness: ServiceHarness
    client: falcon.testing.TestClient
    response: Result
    sync_responses: list[Result]
    project_id: str


@pytest.fixture
def engine(tmp_path: Path) -> typ.Iterator[AsyncEngine]:
    """Provide a sqlite engine with every table created.

    ``NullPool`` keeps connections from outliving the event loop of the
    request that opened them.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'github_sync.db'}", poolclass=NullPool
    )
    run_async(lambda: init_storage(engine))
    yield engine
    run_async(engine.dispose)


@scenario(
    "../github_sync.feature", "First listing bootstraps repositories from GitHub"
)
def test_first_listing_bootstraps() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario("../github_sync.feature", "Requesting a sync queues one background refresh")
def test_sync_queues_once() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario("../github_sync.feature", "Importing a Gemfile creates a project")
def test_import_gemfile() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario(
    "../github_sync.feature", "A push that changes the Gemfile queues a re-import"
)
def test_push_queues_reimport() -> None:
    """Wrapper for pytest-bdd scenario."""


@scenario("../github_sync.feature", "A push without manifest changes queues nothing")
def test_irrelevant_push() -> None:
    """Wrapper for pytest-bdd scenario."""


def _headers() -> dict[str, str]:
    return {"X-Api-Key": _API_KEY}


@given(
    parsers.parse(
        'a connected user "{username}" with GitHub repositories '
        '"{first}" and "{second}"'
    ),
    target_fixture="github_sync_context",
)
def given_connected_user(
    engine: AsyncEngine, username: str, first: str, second: str
) -> GitHubSyncContext:
    """Create the user and an app whose GitHub fake reports two repos."""
    github = FakeGitHubClient(
        repositories=[
            remote_repo(first, repo_id=1),
            remote_repo(second, repo_id=2, language="Python"),
        ],
        files={(first, "master", "Gemfile"): b"gem 'rails', '~> 7.1'\n"},
    )
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    harness = build_harness(session_factory, github)
    run_async(lambda: create_user(session_factory, username, api_key=_API_KEY))
    client = falcon.testing.TestClient(
        create_app(AppDependencies(services=harness.services))
    )
    return {"harness": harness, "client": client}


@given("the user has listed their GitHub repositories")
def given_listed(github_sync_context: GitHubSyncContext) -> None:
    """Bootstrap the stored repositories."""
    when_list(github_sync_context)
    assert github_sync_context["response"].status_code == 200


@given(parsers.parse('the user has imported "{filename}" from "{fullname}"'))
def given_imported(
    github_sync_context: GitHubSyncContext, filename: str, fullname: str
) -> None:
    """Bootstrap the repositories and import one manifest."""
    given_listed(github_sync_context)
    when_import(github_sync_context, filename, fullname)
    response = github_sync_context["response"]
    assert response.status_code == 200
    github_sync_context["project_id"] = response.json["imported_projects"][0]["id"]


@when("the user lists their GitHub repositories")
def when_list(github_sync_context: GitHubSyncContext) -> None:
    """GET /github."""
    client = github_sync_context["client"]
    github_sync_context["response"] = client.simulate_get(
        "/github", headers=_headers()
    )


@when("the user requests a repository sync twice")
def when_sync_twice(github_sync_context: GitHubSyncContext) -> None:
    """GET /github/sync two times in a row."""
    client = github_sync_context["client"]
    github_sync_context["sync_responses"] = [
        client.simulate_get("/github/sync", headers=_headers()) for _ in range(2)
    ]


@when(parsers.parse('the user imports "{filename}" from "{fullname}"'))
def when_import(
    github_sync_context: GitHubSyncContext, filename: str, fullname: str
) -> None:
    """POST /github/{repo_key}."""
    client = github_sync_context["client"]
    github_sync_context["response"] = client.simulate_post(
        f"/github/{encode_repo_key(fullname)}",
        params={"file": filename},
        headers=_headers(),
    )


@when(parsers.parse('GitHub delivers a push modifying "{path}"'))
def when_push(github_sync_context: GitHubSyncContext, path: str) -> None:
    """POST a push event to the project's webhook."""
    client = github_sync_context["client"]
    payload = {"ref": "refs/heads/master", "commits": [{"modified": [path]}]}
    github_sync_context["response"] = client.simulate_post(
        f"/github/hook/{github_sync_context['project_id']}",
        body=json.dumps(payload),
        headers={**_headers(), "Content-Type": "application/json"},
    )


@then(parsers.parse("the response status is {status:d}"))
def then_status(github_sync_context: GitHubSyncContext, status: int) -> None:
    """Assert the HTTP status of the last response."""
    response = github_sync_context["response"]
    assert response.status_code == status, (
        f"expected status {status}, got {response.status_code}: {response.text}"
    )


@then(parsers.parse('the listing contains "{first}" and "{second}"'))
def then_listing(
    github_sync_context: GitHubSyncContext, first: str, second: str
) -> None:
    """Assert both repositories are listed."""
    body = github_sync_context["response"].json
    assert sorted(repo["fullname"] for repo in body["repos"]) == [first, second]
    assert body["paging"]["total_entries"] == 2


@then("GitHub was asked for repositories once")
def then_fetched_once(github_sync_context: GitHubSyncContext) -> None:
    """Assert the bootstrap fetch happened exactly once."""
    assert github_sync_context["harness"].github.repository_calls == 1


@then(parsers.parse('both sync responses report "{status}"'))
def then_sync_status(github_sync_context: GitHubSyncContext, status: str) -> None:
    """Assert every sync poll returned *status*."""
    bodies = [r.json for r in github_sync_context["sync_responses"]]
    assert bodies == [{"status": status}, {"status": status}]


@then("one repository sync was queued")
def then_one_sync(github_sync_context: GitHubSyncContext) -> None:
    """Assert a single background sync was enqueued."""
    assert len(github_sync_context["harness"].dispatcher.repository_syncs) == 1


@then(parsers.parse('the repository shows {count:d} imported "{project_type}" project'))
def then_imported(
    github_sync_context: GitHubSyncContext, count: int, project_type: str
) -> None:
    """Assert the repository detail lists the imported project."""
    body = github_sync_context["response"].json
    projects = body["imported_projects"]
    assert len(projects) == count
    assert {p["project_type"] for p in projects} == {project_type}
    assert body["repo"]["imported_projects"] == [p["id"] for p in projects]


@then("a re-import of the imported project was queued")
def then_reimport_queued(github_sync_context: GitHubSyncContext) -> None:
    """Assert the webhook queued the project."""
    dispatcher = github_sync_context["harness"].dispatcher
    assert dispatcher.project_reimports == [github_sync_context["project_id"]]


@then("no re-import was queued")
def then_nothing_queued(github_sync_context: GitHubSyncContext) -> None:
    """Assert the webhook queued nothing."""
    assert github_sync_context["harness"].dispatcher.project_reimports == []
