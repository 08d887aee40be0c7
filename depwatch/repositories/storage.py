"""Persistence model for GitHub repositories known per user."""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import uuid

from sqlalchemy import BigInteger, Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from depwatch.common.time import utcnow
from depwatch.storage import Base, UTCDateTime


class GitHubRepository(Base):
    """GitHub repository visible to a user, refreshed by repository sync.

    Rows are created and updated by sync but never deleted by it; a
    repository that disappears from GitHub keeps its row.
    """

    __tablename__ = "github_repos"
    __table_args__ = (
        UniqueConstraint("user_id", "fullname", name="uq_github_repos_user_fullname"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    github_id: Mapped[int | None] = mapped_column(BigInteger, default=None)
    fullname: Mapped[str] = mapped_column(String(512))
    name: Mapped[str] = mapped_column(String(255))
    owner_login: Mapped[str] = mapped_column(String(255))
    owner_type: Mapped[str] = mapped_column(String(32), default="user")
    language: Mapped[str | None] = mapped_column(String(64), default=None)
    private: Mapped[bool] = mapped_column(Boolean, default=False)
    default_branch: Mapped[str] = mapped_column(String(255), default="master")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    html_url: Mapped[str | None] = mapped_column(String(1024), default=None)
    pushed_at: Mapped[str | None] = mapped_column(String(64), default=None)
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )
    last_synced_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )
