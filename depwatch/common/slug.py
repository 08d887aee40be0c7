"""Repository full-name utilities.

Full names are GitHub identifiers in ``owner/name`` format. They are not
filesystem paths, even though they use ``/`` as a separator, so they should be
parsed using these helpers rather than ``pathlib``.
"""

from __future__ import annotations


def split_fullname(fullname: str) -> tuple[str, str]:
    """Split a repository full name into owner and name.

    Parameters
    ----------
    fullname:
        Repository full name in ``owner/name`` format.

    Returns
    -------
    tuple[str, str]
        ``(owner, name)``.

    Raises
    ------
    ValueError
        If the full name is not in ``owner/name`` format.

    Examples
    --------
    >>> split_fullname("acme/app")
    ('acme', 'app')

    """
    owner, sep, name = fullname.partition("/")
    if not sep or not owner or not name or "/" in name:
        msg = f"Invalid repository full name: expected 'owner/name', got {fullname!r}"
        raise ValueError(msg)
    return owner, name
