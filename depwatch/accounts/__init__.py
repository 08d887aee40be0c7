"""Users, API keys and per-user activity lookups."""

from __future__ import annotations

from .errors import AccountsError, GitHubNotConnectedError, UserNotFoundError
from .models import (
    CommentInfo,
    FavoriteInfo,
    NotificationDigest,
    NotificationInfo,
    UserInfo,
    UserProfile,
)
from .service import AccountService
from .storage import ApiKey, Comment, Favorite, Notification, User

__all__ = [
    "AccountService",
    "AccountsError",
    "ApiKey",
    "Comment",
    "CommentInfo",
    "Favorite",
    "FavoriteInfo",
    "GitHubNotConnectedError",
    "Notification",
    "NotificationDigest",
    "NotificationInfo",
    "User",
    "UserInfo",
    "UserNotFoundError",
    "UserProfile",
]
