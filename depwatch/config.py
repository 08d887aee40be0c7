"""Service configuration loaded from the environment.

Usage
-----
Load the configuration once at process start:

>>> import os
>>> os.environ["DEPWATCH_SYNC_RUNNING_TTL"] = "900"
>>> config = ServiceConfig.from_env()
>>> config.sync_running_ttl_s
900

"""

from __future__ import annotations

import dataclasses as dc
import os

__all__ = ["ServiceConfig"]


def _parse_positive_int(env_var: str, default: int) -> int:
    """Read a positive integer env var, falling back to a default."""
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < 1:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


def _optional_str(env_var: str) -> str | None:
    raw = os.environ.get(env_var, "").strip()
    return raw or None


@dc.dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Runtime configuration shared by the API process and task workers.

    Attributes
    ----------
    database_url
        SQLAlchemy async URL. When ``None`` the API starts in health-only
        mode.
    valkey_url
        Redis-protocol URL for the key-value store shared by the API and
        the task workers. Falls back to ``DEPWATCH_BROKER_URL``, since the
        broker already runs on Valkey.
    page_size
        Rows per page for listing endpoints. Default is 30.
    sync_running_ttl_s
        Lifetime of a ``running`` sync status entry. Bounds how long a
        crashed worker can block new syncs. Default is 600 seconds.
    sync_done_ttl_s
        Lifetime of a ``done`` sync status entry. Default is 30 seconds.
    rate_limit_requests
        Requests allowed per identity per window. Default is 300.
    rate_limit_window_s
        Length of the rate-limit window. Default is 3600 seconds.
    auto_create_schema
        Create missing tables on startup when ``True``.

    """

    database_url: str | None = None
    valkey_url: str | None = None
    page_size: int = 30
    sync_running_ttl_s: int = 600
    sync_done_ttl_s: int = 30
    rate_limit_requests: int = 300
    rate_limit_window_s: int = 3600
    auto_create_schema: bool = False

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Create configuration from environment variables.

        Reads ``DEPWATCH_DATABASE_URL``, ``DEPWATCH_VALKEY_URL``,
        ``DEPWATCH_BROKER_URL``, ``DEPWATCH_PAGE_SIZE``,
        ``DEPWATCH_SYNC_RUNNING_TTL``, ``DEPWATCH_SYNC_DONE_TTL``,
        ``DEPWATCH_RATE_LIMIT_REQUESTS``, ``DEPWATCH_RATE_LIMIT_WINDOW`` and
        ``DEPWATCH_AUTO_CREATE_SCHEMA``.

        Raises
        ------
        ValueError
            If a numeric variable is not a positive integer.

        """
        auto_create = os.environ.get("DEPWATCH_AUTO_CREATE_SCHEMA", "")
        return cls(
            database_url=_optional_str("DEPWATCH_DATABASE_URL"),
            valkey_url=_optional_str("DEPWATCH_VALKEY_URL")
            or _optional_str("DEPWATCH_BROKER_URL"),
            page_size=_parse_positive_int("DEPWATCH_PAGE_SIZE", 30),
            sync_running_ttl_s=_parse_positive_int("DEPWATCH_SYNC_RUNNING_TTL", 600),
            sync_done_ttl_s=_parse_positive_int("DEPWATCH_SYNC_DONE_TTL", 30),
            rate_limit_requests=_parse_positive_int(
                "DEPWATCH_RATE_LIMIT_REQUESTS", 300
            ),
            rate_limit_window_s=_parse_positive_int(
                "DEPWATCH_RATE_LIMIT_WINDOW", 3600
            ),
            auto_create_schema=auto_create.strip().lower() in {"1", "true", "yes"},
        )

    def require_store_url(self) -> str:
        """Return the shared key-value store URL.

        The sync tracker and rate limiter only work when every API process
        and worker sees the same store, so there is no in-process fallback.

        Raises
        ------
        ValueError
            If neither ``DEPWATCH_VALKEY_URL`` nor ``DEPWATCH_BROKER_URL`` is
            set.

        """
        if self.valkey_url is None:
            msg = (
                "DEPWATCH_VALKEY_URL (or DEPWATCH_BROKER_URL) must be set "
                "when DEPWATCH_DATABASE_URL is set"
            )
            raise ValueError(msg)
        return self.valkey_url
