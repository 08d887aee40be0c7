"""Unit tests for femtologging integration helpers.

Run with:
    pytest tests/unit/test_logging.py
"""

from __future__ import annotations

import pytest

from depwatch.logging import (
    configure_logging,
    format_log_message,
    log_debug,
    log_error,
    log_exception,
    log_info,
    log_warning,
    normalize_log_level,
)


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None, bool]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info, stack_info))
        return message


@pytest.mark.parametrize(
    ("input_level", "expected_level", "invalid_label"),
    [
        ("warning", "WARNING", "valid"),
        (" debug ", "DEBUG", "valid"),
        (None, "INFO", "invalid"),
        ("", "INFO", "invalid"),
        ("nope", "INFO", "invalid"),
    ],
)
def test_normalize_log_level(
    input_level: str | None, expected_level: str, invalid_label: str
) -> None:
    """Normalize log levels and flag invalid inputs."""
    level, invalid = normalize_log_level(input_level)
    assert level == expected_level
    assert invalid is (invalid_label == "invalid")


def test_format_log_message_uses_percent_formatting() -> None:
    """Percent formatting produces the expected message."""
    assert format_log_message("hello %s (%d)", "world", 3) == "hello world (3)"


def test_format_log_message_without_args_is_verbatim() -> None:
    """Templates without args are not interpolated."""
    assert format_log_message("100%") == "100%"


@pytest.mark.parametrize(
    ("emit", "level"),
    [
        (log_debug, "DEBUG"),
        (log_info, "INFO"),
        (log_warning, "WARNING"),
        (log_error, "ERROR"),
    ],
)
def test_level_helpers(emit: object, level: str) -> None:
    """Each helper formats the message and emits its level."""
    logger = _FakeLogger()
    emit(logger, "sync %s", "reiz")  # type: ignore[operator]
    assert logger.calls == [(level, "sync reiz", None, False)]


def test_log_warning_forwards_exc_info() -> None:
    """log_warning forwards exc_info to the logger."""
    logger = _FakeLogger()
    exc = ValueError("boom")
    log_warning(logger, "warning: %s", "oops", exc_info=exc)
    assert logger.calls == [("WARNING", "warning: oops", exc, False)]


def test_log_exception_passes_exc_info() -> None:
    """log_exception forwards the exception payload to the logger."""
    logger = _FakeLogger()
    exc = ValueError("boom")
    log_exception(logger, "failed", exc)
    assert logger.calls == [("ERROR", "failed", exc, False)]


def test_configure_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """configure_logging installs the normalized level."""
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr("depwatch.logging.basicConfig", fake_basic_config)

    assert configure_logging("nope") == ("INFO", True)
    assert captured == {"level": "INFO", "force": False}
