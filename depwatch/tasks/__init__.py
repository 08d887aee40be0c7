"""Background tasks and their dispatch."""

from __future__ import annotations

from .dispatch import DramatiqTaskDispatcher, TaskDispatcher

__all__ = ["DramatiqTaskDispatcher", "TaskDispatcher"]
