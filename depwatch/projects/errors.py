"""Errors raised while importing, deleting and re-importing projects."""

from __future__ import annotations


class ProjectError(Exception):
    """Base class for project errors."""


class ProjectNotFoundError(ProjectError):
    """Raised when no project matches an id or repository branch."""

    @classmethod
    def for_id(cls, project_id: str) -> ProjectNotFoundError:
        """Return an error for an unknown project id."""
        return cls(f"Project with id {project_id} doesn't exist.")

    @classmethod
    def for_branch(cls, fullname: str, branch: str) -> ProjectNotFoundError:
        """Return an error when a repository branch has no imported project."""
        return cls(f"Project doesn't exist for {fullname} on branch {branch}.")


class ProjectImportError(ProjectError):
    """Raised when a manifest cannot be fetched or parsed.

    The underlying failure is chained as ``__cause__``.
    """

    def __init__(self, fullname: str, branch: str, filename: str, reason: str) -> None:
        """Record the import target and a readable reason."""
        self.fullname = fullname
        self.branch = branch
        self.filename = filename
        self.reason = reason
        super().__init__(
            f"Importing {filename} from {fullname} ({branch}) failed: {reason}"
        )


class ManifestParseError(ProjectError):
    """Raised when manifest content is empty or malformed."""

    def __init__(self, filename: str, reason: str) -> None:
        """Record the manifest name and why it was rejected."""
        self.filename = filename
        self.reason = reason
        super().__init__(f"{filename}: {reason}")


class NotCollaboratorError(ProjectError):
    """Raised when a user may not act on a project."""

    def __init__(self, username: str, project_id: str) -> None:
        """Record the rejected user and project."""
        self.username = username
        self.project_id = project_id
        super().__init__(
            f"User {username} is not a collaborator of project {project_id}."
        )


class NoRelevantChangesError(ProjectError):
    """Raised when a push touched no dependency manifest."""

    def __init__(self) -> None:
        """Use a fixed message so GitHub delivery logs stay readable."""
        super().__init__("Dependencies did not change.")


class InvalidPushEventError(ProjectError):
    """Raised when a webhook body is not a push event payload."""

    def __init__(self, reason: str) -> None:
        """Record why the payload was rejected."""
        self.reason = reason
        super().__init__(f"Invalid push event payload: {reason}")
