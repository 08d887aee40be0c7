"""Mapping helpers from account rows to DTOs."""

from __future__ import annotations

import typing as typ

from depwatch.accounts.models import (
    CommentInfo,
    FavoriteInfo,
    NotificationInfo,
    UserInfo,
)

if typ.TYPE_CHECKING:
    from depwatch.accounts.storage import Comment, Favorite, Notification, User


def to_user_info(user: User) -> UserInfo:
    """Convert a ``User`` row to a :class:`UserInfo`."""
    return UserInfo(
        id=user.id,
        username=user.username,
        fullname=user.fullname,
        email=user.email,
        github_id=user.github_id,
        github_login=user.github_login,
        github_token=user.github_token,
        created_at=user.created_at,
    )


def to_favorite_info(favorite: Favorite) -> FavoriteInfo:
    """Convert a ``Favorite`` row to a :class:`FavoriteInfo`."""
    return FavoriteInfo(
        language=favorite.language,
        prod_key=favorite.prod_key,
        name=favorite.name,
        version=favorite.version,
        created_at=favorite.created_at,
    )


def to_comment_info(comment: Comment) -> CommentInfo:
    """Convert a ``Comment`` row to a :class:`CommentInfo`."""
    return CommentInfo(
        id=comment.id,
        language=comment.language,
        prod_key=comment.prod_key,
        version=comment.version,
        body=comment.body,
        created_at=comment.created_at,
    )


def to_notification_info(notification: Notification) -> NotificationInfo:
    """Convert a ``Notification`` row to a :class:`NotificationInfo`."""
    return NotificationInfo(
        id=notification.id,
        language=notification.language,
        prod_key=notification.prod_key,
        version=notification.version,
        read=notification.read,
        sent_email=notification.sent_email,
        created_at=notification.created_at,
    )
