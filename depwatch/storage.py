"""Declarative base, shared column types and schema bootstrap."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine

__all__ = ["Base", "UTCDateTime", "init_storage"]


class Base(DeclarativeBase):
    """Base declarative class for depwatch models."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            msg = "datetime values must be timezone aware"
            raise ValueError(msg)
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


async def init_storage(engine: AsyncEngine) -> None:
    """Create all depwatch tables that are absent."""
    # Model modules register their tables on Base.metadata when imported.
    from depwatch.accounts import storage as _accounts  # noqa: F401
    from depwatch.projects import storage as _projects  # noqa: F401
    from depwatch.repositories import storage as _repositories  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
