"""Dependency manifest import, deletion and webhook-driven re-import."""

from __future__ import annotations

from .errors import (
    InvalidPushEventError,
    ManifestParseError,
    NoRelevantChangesError,
    NotCollaboratorError,
    ProjectError,
    ProjectImportError,
    ProjectNotFoundError,
)
from .manifests import DEFAULT_REGISTRY, ManifestRegistry, parse_manifest
from .models import ProjectInfo
from .service import ProjectImportDependencies, ProjectImportService
from .storage import Project, ProjectCollaborator
from .webhook import (
    PushCommit,
    PushEvent,
    PushWebhookDependencies,
    PushWebhookService,
    decode_push_event,
    should_reimport,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "InvalidPushEventError",
    "ManifestParseError",
    "ManifestRegistry",
    "NoRelevantChangesError",
    "NotCollaboratorError",
    "Project",
    "ProjectCollaborator",
    "ProjectError",
    "ProjectImportDependencies",
    "ProjectImportError",
    "ProjectImportService",
    "ProjectInfo",
    "ProjectNotFoundError",
    "PushCommit",
    "PushEvent",
    "PushWebhookDependencies",
    "PushWebhookService",
    "decode_push_event",
    "parse_manifest",
    "should_reimport",
]
