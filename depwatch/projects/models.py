"""Data transfer objects for imported projects."""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt


@dataclasses.dataclass(slots=True, frozen=True)
class ProjectInfo:
    """Imported manifest without its content."""

    id: str
    user_id: str
    source: str
    scm_fullname: str
    scm_branch: str
    filename: str
    project_type: str
    notify_after_api_update: bool
    created_at: dt.datetime
    updated_at: dt.datetime
    last_imported_at: dt.datetime
