"""Logging helpers for femtologging integration.

depwatch logs pre-formatted messages through femtologging. Request handlers,
coordinators and background actors all go through these helpers so level
names and message formatting stay consistent across the API process and the
Dramatiq workers.

Example:
>>> from depwatch.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Queued sync for %s", "alice")

"""

from __future__ import annotations

import enum
import typing as typ

from femtologging import basicConfig, get_logger

_DEFAULT_LEVEL = "INFO"


class LogLevel(enum.StrEnum):
    """Log levels accepted by femtologging."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Normalize a log level string and report invalid inputs.

    Parameters
    ----------
    level : str | None
        Raw log level, usually read from ``DEPWATCH_LOG_LEVEL``.

    Returns
    -------
    tuple[str, bool]
        The normalized level and ``True`` when the input was unusable and
        the default level was substituted.

    """
    if not level or not level.strip():
        return (_DEFAULT_LEVEL, True)

    candidate = level.strip().upper()
    if candidate in LogLevel.__members__:
        return (candidate, False)
    return (_DEFAULT_LEVEL, True)


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Install the femtologging root configuration.

    Parameters
    ----------
    level : str | None
        Raw log level string.
    force : bool, optional
        Replace an existing handler configuration when ``True``.

    Returns
    -------
    tuple[str, bool]
        Result of :func:`normalize_log_level` for *level*.

    """
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


def format_log_message(template: str, *args: object) -> str:
    """Interpolate *args* into *template* using percent-style formatting."""
    if not args:
        return template
    return template % args


class _SupportsLog(typ.Protocol):
    """Protocol for femtologging-compatible loggers."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


def _emit(
    logger: _SupportsLog,
    level: LogLevel,
    template: str,
    args: tuple[object, ...],
    exc_info: object | None,
) -> None:
    logger.log(
        level.value,
        format_log_message(template, *args),
        exc_info=exc_info,
        stack_info=False,
    )


def log_debug(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a DEBUG message with percent-style formatting."""
    _emit(logger, LogLevel.DEBUG, template, args, exc_info)


def log_info(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an INFO message with percent-style formatting.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the formatted message.
    template : str
        Message template using percent-style placeholders.
    *args : object
        Values to interpolate into the template.
    exc_info : object | None, optional
        Exception information to attach to the log record.

    """
    _emit(logger, LogLevel.INFO, template, args, exc_info)


def log_warning(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log a WARNING message with percent-style formatting."""
    _emit(logger, LogLevel.WARNING, template, args, exc_info)


def log_error(
    logger: _SupportsLog,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Log an ERROR message with percent-style formatting."""
    _emit(logger, LogLevel.ERROR, template, args, exc_info)


def log_exception(logger: _SupportsLog, message: str, exc: BaseException) -> None:
    """Log *exc* at ERROR level with its traceback attached.

    Parameters
    ----------
    logger : _SupportsLog
        Logger that receives the exception payload.
    message : str
        Pre-formatted message describing the failure.
    exc : BaseException
        Exception instance to attach as exc_info.

    """
    logger.log(LogLevel.ERROR.value, message, exc_info=exc, stack_info=False)


__all__ = [
    "LogLevel",
    "configure_logging",
    "format_log_message",
    "get_logger",
    "log_debug",
    "log_error",
    "log_exception",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
