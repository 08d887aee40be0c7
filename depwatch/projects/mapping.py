"""Mapping helpers for project DTOs."""

from __future__ import annotations

import typing as typ

from depwatch.projects.models import ProjectInfo

if typ.TYPE_CHECKING:
    from depwatch.projects.storage import Project


def to_project_info(project: Project) -> ProjectInfo:
    """Convert a ``Project`` row to a :class:`ProjectInfo`."""
    return ProjectInfo(
        id=project.id,
        user_id=project.user_id,
        source=project.source,
        scm_fullname=project.scm_fullname,
        scm_branch=project.scm_branch,
        filename=project.filename,
        project_type=project.project_type,
        notify_after_api_update=project.notify_after_api_update,
        created_at=project.created_at,
        updated_at=project.updated_at,
        last_imported_at=project.last_imported_at,
    )
