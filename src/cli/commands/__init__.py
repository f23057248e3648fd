"""CLI command modules."""

from .daemon import evaluate_cmd, run
from .state import fullscreen_guard, pause, reset, resume, skip, snooze, status, style

__all__ = [
    "evaluate_cmd",
    "fullscreen_guard",
    "pause",
    "reset",
    "resume",
    "run",
    "skip",
    "snooze",
    "status",
    "style",
]
