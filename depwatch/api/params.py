"""Query parameter parsing shared by the listing resources."""

from __future__ import annotations

import typing as typ

from depwatch.api.errors import InvalidInputError

if typ.TYPE_CHECKING:
    from falcon.asgi import Request

__all__ = ["page_param"]

PAGE_PARAM = "page"


def page_param(req: Request) -> int:
    """Return the 1-based ``page`` query parameter.

    A missing or blank value selects page 1, and numbers below 1 clamp to 1.

    Raises
    ------
    InvalidInputError
        If ``page`` is present but not an integer.

    """
    raw = (req.get_param(PAGE_PARAM) or "").strip()
    if not raw:
        return 1
    try:
        number = int(raw)
    except ValueError as exc:
        raise InvalidInputError(
            f"must be an integer, got {raw!r}", field=PAGE_PARAM
        ) from exc
    return max(number, 1)
