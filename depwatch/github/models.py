"""Typed GitHub REST payloads."""

from __future__ import annotations

import msgspec


class RemoteOwner(msgspec.Struct, kw_only=True):
    """Owner block of a GitHub repository payload.

    Attributes
    ----------
    login : str
        GitHub login of the user or organisation.
    type : str
        ``"User"`` or ``"Organization"``.

    """

    login: str
    type: str = "User"


class RemoteRepository(msgspec.Struct, kw_only=True):
    """Repository descriptor returned by ``GET /user/repos``.

    Only the fields depwatch stores are declared; msgspec ignores the rest.
    """

    id: int
    name: str
    full_name: str
    owner: RemoteOwner
    private: bool = False
    language: str | None = None
    default_branch: str = "master"
    description: str | None = None
    html_url: str | None = None
    pushed_at: str | None = None

    @property
    def owner_type(self) -> str:
        """Return the owner type in the lowercase form used for filtering."""
        return "organization" if self.owner.type == "Organization" else "user"
