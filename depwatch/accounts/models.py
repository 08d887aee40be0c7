"""Data transfer objects for users and their activity."""

from __future__ import annotations

import dataclasses
import typing as typ

from depwatch.accounts.errors import GitHubNotConnectedError

if typ.TYPE_CHECKING:
    import datetime as dt


@dataclasses.dataclass(slots=True, frozen=True)
class UserInfo:
    """Immutable snapshot of a user row.

    ``github_token`` is carried so coordinators can call GitHub on the
    user's behalf; it is never rendered into API responses.
    """

    id: str
    username: str
    fullname: str | None
    email: str | None
    github_id: str | None
    github_login: str | None
    github_token: str | None = dataclasses.field(default=None, repr=False)
    created_at: dt.datetime | None = None

    @property
    def github_connected(self) -> bool:
        """Return True when the user has a usable GitHub token."""
        return bool(self.github_token and self.github_token.strip())

    def github_credential(self) -> str:
        """Return the GitHub token or raise when the account is not linked.

        Raises
        ------
        GitHubNotConnectedError
            If the user has no GitHub token.

        """
        if not self.github_connected or self.github_token is None:
            raise GitHubNotConnectedError(self.username)
        return self.github_token


@dataclasses.dataclass(slots=True, frozen=True)
class UserProfile:
    """Profile of the calling user as rendered by ``GET /me``."""

    user: UserInfo
    api_key_active: bool
    enterprise_projects: int
    notifications_new: int
    notifications_total: int


@dataclasses.dataclass(slots=True, frozen=True)
class FavoriteInfo:
    """Package followed by a user."""

    language: str
    prod_key: str
    name: str
    version: str | None
    created_at: dt.datetime


@dataclasses.dataclass(slots=True, frozen=True)
class CommentInfo:
    """Comment left by a user on a package."""

    id: str
    language: str
    prod_key: str
    version: str | None
    body: str
    created_at: dt.datetime


@dataclasses.dataclass(slots=True, frozen=True)
class NotificationInfo:
    """Release notification for a followed package."""

    id: str
    language: str
    prod_key: str
    version: str
    read: bool
    sent_email: bool
    created_at: dt.datetime


@dataclasses.dataclass(slots=True, frozen=True)
class NotificationDigest:
    """Latest notifications together with the unread count."""

    notifications: tuple[NotificationInfo, ...]
    unread: int
