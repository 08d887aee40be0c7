"""Broker configuration helpers for Dramatiq actor setup.

Actors bind to the global broker when they are declared, so
:func:`ensure_broker_configured` runs before the actor module defines them.
Production points the broker at Valkey through ``DEPWATCH_BROKER_URL`` (or
``DEPWATCH_VALKEY_URL``); tests and local runs fall back to a ``StubBroker``.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker

_BROKER_LOCK = threading.Lock()
_broker_configured = False


def _is_running_tests() -> bool:
    """Check if the current process is running in a test environment.

    Returns
    -------
    bool
        True if running under pytest, False otherwise.

    """
    return "pytest" in sys.modules or any(
        key in os.environ
        for key in ["PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS"]
    )


def _should_use_stub_broker() -> bool:
    """Return True if ``DEPWATCH_ALLOW_STUB_BROKER`` is truthy or under tests."""
    allow_stub = os.environ.get("DEPWATCH_ALLOW_STUB_BROKER", "")
    return allow_stub.lower() in {"1", "true", "yes"} or _is_running_tests()


def broker_url_from_env() -> str | None:
    """Return ``DEPWATCH_BROKER_URL``, falling back to ``DEPWATCH_VALKEY_URL``."""
    for key in ("DEPWATCH_BROKER_URL", "DEPWATCH_VALKEY_URL"):
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return None


def _build_broker(broker_url: str | None) -> dramatiq.Broker:
    if broker_url is not None:
        return RedisBroker(url=broker_url)
    if _should_use_stub_broker():
        return StubBroker()
    message = (
        "No Dramatiq broker configured. Set DEPWATCH_BROKER_URL, or "
        "DEPWATCH_ALLOW_STUB_BROKER=1 for local/test runs."
    )
    raise RuntimeError(message)


def ensure_broker_configured(broker_url: str | None = None) -> None:
    """Install the process-wide Dramatiq broker once.

    Thread-safe: uses a lock and sentinel to guarantee idempotent
    configuration even when called concurrently from worker threads.

    Parameters
    ----------
    broker_url
        Redis-protocol URL for a ``RedisBroker``. When ``None`` a
        ``StubBroker`` is installed in test/stub-allowed contexts.

    Raises
    ------
    RuntimeError
        If no URL is given and we're not in a test/stub-allowed context.

    """
    global _broker_configured

    if _broker_configured:
        return

    with _BROKER_LOCK:
        # Double-check after acquiring the lock
        if _broker_configured:
            return
        dramatiq.set_broker(_build_broker(broker_url))
        _broker_configured = True
