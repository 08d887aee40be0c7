"""Persistence models for imported dependency manifests."""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import uuid

from sqlalchemy import (
    Boolean,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from depwatch.common.time import utcnow
from depwatch.storage import Base, UTCDateTime

GITHUB_SOURCE = "github"


class Project(Base):
    """Dependency manifest imported from a repository branch.

    A (user, repository, branch, file) combination has at most one row;
    re-importing overwrites ``content`` in place.
    """

    __tablename__ = "projects"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "source",
            "scm_fullname",
            "scm_branch",
            "filename",
            name="uq_projects_user_source_file",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    source: Mapped[str] = mapped_column(String(32), default=GITHUB_SOURCE)
    scm_fullname: Mapped[str] = mapped_column(String(512))
    scm_branch: Mapped[str] = mapped_column(String(255))
    filename: Mapped[str] = mapped_column(String(1024))
    project_type: Mapped[str] = mapped_column(String(64))
    content: Mapped[str] = mapped_column(Text)
    notify_after_api_update: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )
    last_imported_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow
    )

    collaborators: Mapped[list[ProjectCollaborator]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )


class ProjectCollaborator(Base):
    """User other than the owner who may act on a project."""

    __tablename__ = "project_collaborators"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_collaborator"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    project: Mapped[Project] = relationship(back_populates="collaborators")
