"""GitHub push webhook handling.

A push triggers a background re-import only when one of its commits
modified a recognised dependency manifest. Pushes that touch nothing
relevant are rejected with :class:`NoRelevantChangesError` so GitHub's
delivery log shows the no-op.

Usage
-----
::

    event = decode_push_event(raw_body)
    message = await webhook_service.handle(user, project_id, event)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import msgspec

from depwatch.logging import get_logger, log_info
from depwatch.projects.errors import (
    InvalidPushEventError,
    NoRelevantChangesError,
    NotCollaboratorError,
)
from depwatch.projects.manifests import DEFAULT_REGISTRY

if typ.TYPE_CHECKING:
    from depwatch.accounts.models import UserInfo
    from depwatch.projects.manifests import ManifestRegistry
    from depwatch.projects.service import ProjectImportService
    from depwatch.tasks.dispatch import TaskDispatcher

logger = get_logger(__name__)

REIMPORT_QUEUED_MESSAGE = "A background job was triggered to update the project."


class PushCommit(msgspec.Struct, kw_only=True):
    """Commit entry of a push event.

    Attributes
    ----------
    id : str | None
        Commit SHA.
    modified : list[str]
        Paths modified by the commit.

    """

    id: str | None = None
    modified: list[str] = msgspec.field(default_factory=list)


class PushEvent(msgspec.Struct, kw_only=True):
    """Subset of GitHub's push event payload used for change detection."""

    ref: str | None = None
    commits: list[PushCommit] = msgspec.field(default_factory=list)


def decode_push_event(raw: bytes) -> PushEvent:
    """Decode a push webhook body.

    ``null`` commit lists or modified lists are treated as empty.

    Raises
    ------
    InvalidPushEventError
        If the body is not a JSON object of the expected shape.

    """
    if not raw.strip():
        return PushEvent()
    try:
        document = msgspec.json.decode(raw)
    except msgspec.DecodeError as exc:
        raise InvalidPushEventError(str(exc)) from exc
    if not isinstance(document, dict):
        raise InvalidPushEventError("expected a JSON object")

    commits = document.get("commits") or []
    if isinstance(commits, list):
        document["commits"] = [
            {**commit, "modified": commit.get("modified") or []}
            if isinstance(commit, dict)
            else commit
            for commit in commits
        ]
    try:
        return msgspec.convert(document, type=PushEvent)
    except msgspec.ValidationError as exc:
        raise InvalidPushEventError(str(exc)) from exc


def should_reimport(
    event: PushEvent, registry: ManifestRegistry = DEFAULT_REGISTRY
) -> bool:
    """Return True once any commit modified a recognised manifest."""
    return any(
        registry.is_manifest(path)
        for commit in event.commits
        for path in commit.modified
    )


@dc.dataclass(frozen=True, slots=True)
class PushWebhookDependencies:
    """Collaborators for :class:`PushWebhookService`."""

    project_service: ProjectImportService
    dispatcher: TaskDispatcher
    registry: ManifestRegistry = DEFAULT_REGISTRY


class PushWebhookService:
    """Queue project re-imports for relevant pushes."""

    def __init__(self, dependencies: PushWebhookDependencies) -> None:
        """Configure the service with its collaborators."""
        self._projects = dependencies.project_service
        self._dispatcher = dependencies.dispatcher
        self._registry = dependencies.registry

    async def handle(self, user: UserInfo, project_id: str, event: PushEvent) -> str:
        """Queue a re-import of *project_id* if *event* changed a manifest.

        Returns
        -------
        str
            Confirmation message for the webhook response.

        Raises
        ------
        ProjectNotFoundError
            If the project does not exist.
        NotCollaboratorError
            If *user* neither owns nor collaborates on the project.
        NoRelevantChangesError
            If no commit modified a manifest. Nothing is queued.

        """
        project = await self._projects.get_project(project_id)
        if not await self._projects.is_collaborator(project, user):
            raise NotCollaboratorError(user.username, project_id)
        if not should_reimport(event, self._registry):
            raise NoRelevantChangesError

        await self._dispatcher.enqueue_project_reimport(project.id)
        log_info(
            logger,
            "Queued re-import of project %s (%s) after push to %s",
            project.id,
            project.scm_fullname,
            event.ref or "unknown ref",
        )
        return REIMPORT_QUEUED_MESSAGE
