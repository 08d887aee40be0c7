"""User profile and activity resources.

The same resource classes serve ``/me/...`` (the caller, rate limited) and
``/users/{username}/...`` (any user, not rate limited). The ``rate_limited``
flag is set per instance when the route is registered.
"""

from __future__ import annotations

import typing as typ

import falcon

from depwatch.api.params import page_param
from depwatch.common.time import isoformat_or_none

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from depwatch.accounts.models import (
        CommentInfo,
        FavoriteInfo,
        NotificationInfo,
        UserInfo,
        UserProfile,
    )
    from depwatch.accounts.service import AccountService

__all__ = [
    "CommentsResource",
    "FavoritesResource",
    "NotificationsResource",
    "ProfileResource",
    "UserResource",
]


def _serialize_user(user: UserInfo) -> dict[str, typ.Any]:
    return {
        "username": user.username,
        "fullname": user.fullname,
        "github_connected": user.github_connected,
        "created_at": isoformat_or_none(user.created_at),
    }


def _serialize_profile(profile: UserProfile) -> dict[str, typ.Any]:
    return {
        **_serialize_user(profile.user),
        "email": profile.user.email,
        "api_key": {"active": profile.api_key_active},
        "enterprise_projects": profile.enterprise_projects,
        "notifications": {
            "new": profile.notifications_new,
            "total": profile.notifications_total,
        },
    }


def _serialize_favorite(favorite: FavoriteInfo) -> dict[str, typ.Any]:
    return {
        "language": favorite.language,
        "prod_key": favorite.prod_key,
        "name": favorite.name,
        "version": favorite.version,
        "created_at": favorite.created_at.isoformat(),
    }


def _serialize_comment(comment: CommentInfo) -> dict[str, typ.Any]:
    return {
        "id": comment.id,
        "language": comment.language,
        "prod_key": comment.prod_key,
        "version": comment.version,
        "body": comment.body,
        "created_at": comment.created_at.isoformat(),
    }


def _serialize_notification(notification: NotificationInfo) -> dict[str, typ.Any]:
    return {
        "id": notification.id,
        "language": notification.language,
        "prod_key": notification.prod_key,
        "version": notification.version,
        "read": notification.read,
        "sent_email": notification.sent_email,
        "created_at": notification.created_at.isoformat(),
    }


class _AccountResource:
    """Base for resources that act on the caller or on a named user."""

    def __init__(self, accounts: AccountService, *, rate_limited: bool = True) -> None:
        """Configure the resource.

        Parameters
        ----------
        accounts
            Account lookups.
        rate_limited
            Whether the access middleware applies the rate limiter.

        """
        self._accounts = accounts
        self.rate_limited = rate_limited

    async def _subject(self, req: Request, username: str | None) -> UserInfo:
        if username is None:
            return req.context.user
        return await self._accounts.find_user(username)


class ProfileResource(_AccountResource):
    """``GET /me``: the caller's own profile."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Render the caller's profile with API key and notification counts."""
        profile = await self._accounts.get_profile(req.context.user)
        resp.media = _serialize_profile(profile)
        resp.status = falcon.HTTP_200


class UserResource(_AccountResource):
    """``GET /users/{username}``: public view of any user."""

    async def on_get(self, _req: Request, resp: Response, *, username: str) -> None:
        """Render the named user; unknown names map to 400."""
        user = await self._accounts.find_user(username)
        resp.media = _serialize_user(user)
        resp.status = falcon.HTTP_200


class FavoritesResource(_AccountResource):
    """``GET /me/favorites`` and ``GET /users/{username}/favorites``."""

    async def on_get(
        self, req: Request, resp: Response, *, username: str | None = None
    ) -> None:
        """Render one page of followed packages, newest first."""
        subject = await self._subject(req, username)
        page = await self._accounts.list_favorites(subject.id, page_param(req))
        resp.media = {
            "favorites": [_serialize_favorite(item) for item in page.items],
            "paging": page.paging(),
        }
        resp.status = falcon.HTTP_200


class CommentsResource(_AccountResource):
    """``GET /me/comments`` and ``GET /users/{username}/comments``."""

    async def on_get(
        self, req: Request, resp: Response, *, username: str | None = None
    ) -> None:
        """Render one page of comments, newest first."""
        subject = await self._subject(req, username)
        page = await self._accounts.list_comments(subject.id, page_param(req))
        resp.media = {
            "comments": [_serialize_comment(item) for item in page.items],
            "paging": page.paging(),
        }
        resp.status = falcon.HTTP_200


class NotificationsResource(_AccountResource):
    """``GET /me/notifications``: the newest notifications and unread count."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Render the caller with their latest notifications."""
        user: UserInfo = req.context.user
        digest = await self._accounts.latest_notifications(user.id)
        resp.media = {
            "user": _serialize_user(user),
            "unread": digest.unread,
            "notifications": [
                _serialize_notification(item) for item in digest.notifications
            ],
        }
        resp.status = falcon.HTTP_200
