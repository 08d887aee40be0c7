"""Account lookups backing the ``/me`` and ``/users`` endpoints."""

from __future__ import annotations

import typing as typ

from sqlalchemy import Select, func, select

from depwatch.accounts.errors import UserNotFoundError
from depwatch.accounts.mapping import (
    to_comment_info,
    to_favorite_info,
    to_notification_info,
    to_user_info,
)
from depwatch.accounts.models import NotificationDigest, UserInfo, UserProfile
from depwatch.accounts.storage import ApiKey, Comment, Favorite, Notification, User
from depwatch.common.paging import DEFAULT_PER_PAGE, Page, PageRequest

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from depwatch.accounts.models import CommentInfo, FavoriteInfo

type SessionFactory = async_sessionmaker[AsyncSession]

_LATEST_NOTIFICATIONS = 30


async def _count(session: AsyncSession, query: Select) -> int:
    total = await session.scalar(select(func.count()).select_from(query.subquery()))
    return int(total or 0)


class AccountService:
    """Read-only queries over users and their activity.

    Parameters
    ----------
    session_factory:
        Async session factory for the depwatch database.
    per_page:
        Page size for favourites and comments.

    """

    def __init__(
        self, session_factory: SessionFactory, *, per_page: int = DEFAULT_PER_PAGE
    ) -> None:
        """Configure the service with a session factory."""
        self._session_factory = session_factory
        self._per_page = per_page

    async def find_user(self, username: str) -> UserInfo:
        """Return the user called *username*.

        Raises
        ------
        UserNotFoundError
            If no such user exists.

        """
        async with self._session_factory() as session:
            user = await session.scalar(select(User).where(User.username == username))
        if user is None:
            raise UserNotFoundError(username)
        return to_user_info(user)

    async def get_user(self, user_id: str) -> UserInfo:
        """Return the user with primary key *user_id*.

        Raises
        ------
        UserNotFoundError
            If no such user exists.

        """
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return to_user_info(user)

    async def get_profile(self, user: UserInfo) -> UserProfile:
        """Build the profile for *user*.

        The API key block reflects the user's most recent key. ``new``
        notifications are those not yet delivered by e-mail.
        """
        async with self._session_factory() as session:
            api_key = await session.scalar(
                select(ApiKey)
                .where(ApiKey.user_id == user.id)
                .order_by(ApiKey.created_at.desc())
                .limit(1)
            )
            user_notifications = select(Notification.id).where(
                Notification.user_id == user.id
            )
            total = await _count(session, user_notifications)
            new = await _count(
                session, user_notifications.where(Notification.sent_email.is_(False))
            )

        return UserProfile(
            user=user,
            api_key_active=bool(api_key and api_key.active),
            enterprise_projects=api_key.enterprise_projects if api_key else 0,
            notifications_new=new,
            notifications_total=total,
        )

    async def list_favorites(
        self, user_id: str, page: int | None = None
    ) -> Page[FavoriteInfo]:
        """Return one page of the user's favourites, newest first."""
        window = PageRequest.from_number(page, per_page=self._per_page)
        query = select(Favorite).where(Favorite.user_id == user_id)
        async with self._session_factory() as session:
            total = await _count(session, query)
            rows = await session.scalars(
                query.order_by(Favorite.created_at.desc(), Favorite.id)
                .offset(window.offset)
                .limit(window.limit)
            )
            items = tuple(to_favorite_info(row) for row in rows)
        return Page(
            items=items, number=window.number, per_page=window.per_page, total=total
        )

    async def list_comments(
        self, user_id: str, page: int | None = None
    ) -> Page[CommentInfo]:
        """Return one page of the user's comments, newest first."""
        window = PageRequest.from_number(page, per_page=self._per_page)
        query = select(Comment).where(Comment.user_id == user_id)
        async with self._session_factory() as session:
            total = await _count(session, query)
            rows = await session.scalars(
                query.order_by(Comment.created_at.desc(), Comment.id)
                .offset(window.offset)
                .limit(window.limit)
            )
            items = tuple(to_comment_info(row) for row in rows)
        return Page(
            items=items, number=window.number, per_page=window.per_page, total=total
        )

    async def latest_notifications(
        self, user_id: str, *, limit: int = _LATEST_NOTIFICATIONS
    ) -> NotificationDigest:
        """Return the newest notifications and the unread count."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc(), Notification.id)
                .limit(limit)
            )
            notifications = tuple(to_notification_info(row) for row in rows)
            unread = await _count(
                session,
                select(Notification.id).where(
                    Notification.user_id == user_id,
                    Notification.read.is_(False),
                ),
            )
        return NotificationDigest(notifications=notifications, unread=unread)
