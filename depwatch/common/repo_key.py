"""Repository key codec.

GitHub full names (``owner/name``) travel through URL path segments as repo
keys. The separator ``/`` becomes ``:`` and every literal ``.`` becomes
``~`` so Falcon's router never splits or normalises the segment. The mapping
is a plain character substitution, so decoding never fails: a key that does
not correspond to a stored repository simply fails to match downstream.

Usage
-----
>>> encode_repo_key("acme/app.js")
'acme:app~js'
>>> decode_repo_key("acme:app~js")
'acme/app.js'

"""

from __future__ import annotations

__all__ = ["decode_repo_key", "encode_repo_key"]

_ENCODE_TABLE = str.maketrans({"/": ":", ".": "~"})
_DECODE_TABLE = str.maketrans({":": "/", "~": "."})


def encode_repo_key(fullname: str) -> str:
    """Encode a repository full name into a URL-safe repo key.

    Parameters
    ----------
    fullname:
        Repository full name in ``owner/name`` format.

    Returns
    -------
    str
        The repo key, with ``/`` replaced by ``:`` and ``.`` by ``~``.

    """
    return fullname.translate(_ENCODE_TABLE)


def decode_repo_key(repo_key: str) -> str:
    """Decode a repo key back into a repository full name.

    Parameters
    ----------
    repo_key:
        Token produced by :func:`encode_repo_key`.

    Returns
    -------
    str
        The repository full name.

    """
    return repo_key.translate(_DECODE_TABLE)
