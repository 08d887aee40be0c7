"""Page-number pagination helpers.

Listing endpoints page through results with a 1-based ``page`` query
parameter and a fixed page size. :class:`Page` carries one slice of results
together with the paging metadata rendered into API responses.

Usage
-----
Build the window for a query and wrap the rows::

    window = PageRequest.from_number(raw_page, per_page=30)
    rows = await session.scalars(query.offset(window.offset).limit(window.limit))
    page = Page(items=tuple(rows), number=window.number, per_page=30, total=total)

"""

from __future__ import annotations

import dataclasses as dc
import math

__all__ = ["DEFAULT_PER_PAGE", "Page", "PageRequest"]

DEFAULT_PER_PAGE = 30


@dc.dataclass(frozen=True, slots=True)
class PageRequest:
    """A validated request for one page of results.

    Attributes
    ----------
    number
        1-based page number. Values below 1 are clamped to 1.
    per_page
        Number of rows per page.

    """

    number: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def from_number(
        cls, number: int | None, *, per_page: int = DEFAULT_PER_PAGE
    ) -> PageRequest:
        """Build a request, clamping missing or non-positive page numbers to 1."""
        if number is None or number < 1:
            number = 1
        if per_page < 1:
            msg = f"per_page must be positive, got {per_page}"
            raise ValueError(msg)
        return cls(number=number, per_page=per_page)

    @property
    def offset(self) -> int:
        """Return the number of rows to skip."""
        return (self.number - 1) * self.per_page

    @property
    def limit(self) -> int:
        """Return the maximum number of rows on the page."""
        return self.per_page


@dc.dataclass(frozen=True, slots=True)
class Page[T]:
    """One page of results plus the metadata needed to render paging links."""

    items: tuple[T, ...]
    number: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        """Return the number of pages needed to hold ``total`` rows."""
        if self.total <= 0:
            return 0
        return math.ceil(self.total / self.per_page)

    def paging(self) -> dict[str, int]:
        """Return the paging object embedded in list responses."""
        return {
            "current_page": self.number,
            "per_page": self.per_page,
            "total_entries": self.total,
            "total_pages": self.total_pages,
        }
