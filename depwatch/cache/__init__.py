"""Shared key-value store implementations."""

from __future__ import annotations

from .memory import InMemoryStore
from .protocol import KeyValueStore
from .valkey import ValkeyStore

__all__ = ["InMemoryStore", "KeyValueStore", "ValkeyStore"]
