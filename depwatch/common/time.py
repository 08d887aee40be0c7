"""Common time utilities."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp suitable for DB defaults."""
    return dt.datetime.now(dt.UTC)


def isoformat_or_none(value: dt.datetime | None) -> str | None:
    """Render *value* as ISO 8601, passing ``None`` through."""
    if value is None:
        return None
    return value.isoformat()
