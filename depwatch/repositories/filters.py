"""Structured filters for repository listings.

Example:
-------
Only private Ruby repositories owned by an organisation::

    filters = RepositoryFilters(
        language="ruby",
        private=True,
        owner_type="organization",
    )
    filters.validate()

"""

from __future__ import annotations

import dataclasses

from depwatch.repositories.errors import InvalidFilterError

OWNER_TYPES = frozenset({"user", "organization"})


def _require_text(field: str, value: str | None) -> None:
    if value is not None and not value.strip():
        raise InvalidFilterError(field, "must not be blank")


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryFilters:
    """Repository listing filters.

    Every filter is optional. Supplied filters are combined with AND and
    compared by exact match.

    Attributes
    ----------
    language
        Type: ``str | None``. Primary language reported by GitHub.
    private
        Type: ``bool | None``. Visibility of the repository.
    owner_login
        Type: ``str | None``. Login of the owning user or organisation.
    owner_type
        Type: ``str | None``. Either ``"user"`` or ``"organization"``.
    only_imported
        Type: ``bool``. Default: ``False``.

        Restrict results to repositories with at least one imported project.

    """

    language: str | None = None
    private: bool | None = None
    owner_login: str | None = None
    owner_type: str | None = None
    only_imported: bool = False

    def validate(self) -> None:
        """Validate each supplied filter.

        Raises
        ------
        InvalidFilterError
            If a text filter is blank or ``owner_type`` is not recognised.

        """
        _require_text("lang", self.language)
        _require_text("org_name", self.owner_login)
        _require_text("org_type", self.owner_type)
        if self.owner_type is not None and self.owner_type not in OWNER_TYPES:
            allowed = ", ".join(sorted(OWNER_TYPES))
            raise InvalidFilterError("org_type", f"must be one of: {allowed}")
