"""API key authentication."""

from __future__ import annotations

import typing as typ

from sqlalchemy import select

from depwatch.access.errors import AuthenticationError
from depwatch.accounts.mapping import to_user_info
from depwatch.accounts.storage import ApiKey, User

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from depwatch.accounts.models import UserInfo


class ApiKeyAuthenticator:
    """Resolve API keys to users.

    Parameters
    ----------
    session_factory:
        Async session factory for the depwatch database.

    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Configure the authenticator with a session factory."""
        self._session_factory = session_factory

    async def authenticate(self, api_key: str | None) -> UserInfo:
        """Return the user owning *api_key*.

        Raises
        ------
        AuthenticationError
            If the key is missing, unknown or inactive.

        """
        if api_key is None or not api_key.strip():
            raise AuthenticationError.missing_key()

        async with self._session_factory() as session:
            row = (
                await session.execute(
                    select(ApiKey, User)
                    .join(User, User.id == ApiKey.user_id)
                    .where(ApiKey.key == api_key.strip())
                )
            ).first()

        if row is None:
            raise AuthenticationError.unknown_key()
        key, user = row
        if not key.active:
            raise AuthenticationError.inactive_key()
        return to_user_info(user)
