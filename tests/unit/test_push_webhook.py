"""Unit tests for manifest recognition and push webhook handling."""

from __future__ import annotations

import typing as typ

import pytest

from depwatch.projects import (
    DEFAULT_REGISTRY,
    InvalidPushEventError,
    ManifestParseError,
    NoRelevantChangesError,
    NotCollaboratorError,
    ProjectNotFoundError,
    PushCommit,
    PushEvent,
    decode_push_event,
    parse_manifest,
    should_reimport,
)
from depwatch.projects.webhook import REIMPORT_QUEUED_MESSAGE
from tests.helpers import build_harness, create_project, create_user

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def _push(*paths: str) -> PushEvent:
    return PushEvent(
        ref="refs/heads/master", commits=[PushCommit(modified=list(paths))]
    )


class TestManifestRegistry:
    """Tests for ManifestRegistry."""

    @pytest.mark.parametrize(
        ("path", "project_type"),
        [
            ("Gemfile", "RubyGem"),
            ("app/Gemfile.lock", "RubyGem"),
            ("veye.gemspec", "RubyGem"),
            ("web/package.json", "npm"),
            ("pom.xml", "Maven2"),
            ("src/App/App.csproj", "Nuget"),
            ("README.md", None),
            ("lib/foo.rb", None),
            ("", None),
        ],
    )
    def test_type_by_filename(self, path: str, project_type: str | None) -> None:
        """Only the file name decides the project type."""
        assert DEFAULT_REGISTRY.type_by_filename(path) == project_type

    def test_with_pattern_extends_registry(self) -> None:
        """Extra patterns are recognised without touching the default."""
        registry = DEFAULT_REGISTRY.with_pattern("mix.exs", "Hex")
        assert registry.type_by_filename("mix.exs") == "Hex"
        assert DEFAULT_REGISTRY.type_by_filename("mix.exs") is None


class TestParseManifest:
    """Tests for parse_manifest."""

    def test_returns_text(self) -> None:
        """Valid UTF-8 content is returned as text."""
        assert parse_manifest("Gemfile", b"gem 'rails'\n") == "gem 'rails'\n"

    @pytest.mark.parametrize(
        ("filename", "raw", "reason"),
        [
            ("Gemfile", b"\xff\xfe", "UTF-8"),
            ("Gemfile", b"\n\n", "empty"),
            ("package.json", b"[1, 2]", "object"),
            ("package.json", b"{nope", "JSON"),
        ],
    )
    def test_rejects_bad_content(self, filename: str, raw: bytes, reason: str) -> None:
        """Malformed manifests raise ManifestParseError."""
        with pytest.raises(ManifestParseError, match=reason):
            parse_manifest(filename, raw)


class TestShouldReimport:
    """Tests for should_reimport."""

    def test_gemfile_change_is_relevant(self) -> None:
        """Modifying a Gemfile triggers a re-import."""
        assert should_reimport(_push("Gemfile")) is True

    def test_readme_change_is_not_relevant(self) -> None:
        """Documentation changes are ignored."""
        assert should_reimport(_push("README.md")) is False

    def test_any_commit_may_carry_the_change(self) -> None:
        """A manifest modified in a later commit still counts."""
        event = PushEvent(
            commits=[
                PushCommit(id="a", modified=["lib/foo.rb"]),
                PushCommit(id="b", modified=["api/package.json"]),
            ]
        )
        assert should_reimport(event) is True

    def test_push_without_commits(self) -> None:
        """An empty push is not relevant."""
        assert should_reimport(PushEvent()) is False


class TestDecodePushEvent:
    """Tests for decode_push_event."""

    def test_null_lists_are_empty(self) -> None:
        """Null commits and modified lists decode as empty lists."""
        event = decode_push_event(
            b'{"ref": "refs/heads/master", "commits": [{"id": "a", "modified": null}]}'
        )
        assert event.commits == [PushCommit(id="a", modified=[])]
        assert decode_push_event(b'{"commits": null}').commits == []

    def test_unknown_keys_are_ignored(self) -> None:
        """Extra GitHub fields do not break decoding."""
        event = decode_push_event(
            b'{"commits": [{"modified": ["Gemfile"], "added": []}], "pusher": {}}'
        )
        assert should_reimport(event) is True

    @pytest.mark.parametrize("raw", [b"{not json", b"[1]", b'{"commits": "x"}'])
    def test_invalid_payloads(self, raw: bytes) -> None:
        """Bodies that are not push events are rejected."""
        with pytest.raises(InvalidPushEventError):
            decode_push_event(raw)


class TestPushWebhookService:
    """Tests for PushWebhookService.handle."""

    @pytest.mark.asyncio
    async def test_relevant_push_queues_reimport(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A Gemfile change by the owner enqueues one re-import."""
        owner = await create_user(session_factory, "reiz")
        project_id = await create_project(session_factory, owner, "reiz/app")
        harness = build_harness(session_factory)

        message = await harness.services.webhooks.handle(
            owner, project_id, _push("Gemfile")
        )

        assert message == REIMPORT_QUEUED_MESSAGE
        assert harness.dispatcher.project_reimports == [project_id]

    @pytest.mark.asyncio
    async def test_collaborator_may_trigger(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Listed collaborators are allowed to trigger re-imports."""
        owner = await create_user(session_factory, "reiz")
        friend = await create_user(session_factory, "timgluz")
        project_id = await create_project(
            session_factory, owner, "reiz/app", collaborators=(friend,)
        )
        harness = build_harness(session_factory)

        await harness.services.webhooks.handle(friend, project_id, _push("Gemfile"))

        assert harness.dispatcher.project_reimports == [project_id]

    @pytest.mark.asyncio
    async def test_irrelevant_push_enqueues_nothing(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Source-only pushes raise NoRelevantChangesError."""
        owner = await create_user(session_factory, "reiz")
        project_id = await create_project(session_factory, owner, "reiz/app")
        harness = build_harness(session_factory)

        with pytest.raises(NoRelevantChangesError, match="did not change"):
            await harness.services.webhooks.handle(
                owner, project_id, _push("lib/foo.rb")
            )
        assert harness.dispatcher.project_reimports == []

    @pytest.mark.asyncio
    async def test_stranger_is_rejected(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Users unrelated to the project may not trigger re-imports."""
        owner = await create_user(session_factory, "reiz")
        stranger = await create_user(session_factory, "mallory")
        project_id = await create_project(session_factory, owner, "reiz/app")
        harness = build_harness(session_factory)

        with pytest.raises(NotCollaboratorError):
            await harness.services.webhooks.handle(
                stranger, project_id, _push("Gemfile")
            )
        assert harness.dispatcher.project_reimports == []

    @pytest.mark.asyncio
    async def test_unknown_project(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Pushes for missing projects raise ProjectNotFoundError."""
        owner = await create_user(session_factory, "reiz")
        harness = build_harness(session_factory)

        with pytest.raises(ProjectNotFoundError):
            await harness.services.webhooks.handle(owner, "missing", _push("Gemfile"))
