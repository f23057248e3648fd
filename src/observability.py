"""Observability: reminder counters, timers and the shutdown summary log."""

import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """In-process counters and timers. Not thread-safe; the reminder runs on one thread."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._timers: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Record wall time spent inside the block under ``name``."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._timers.setdefault(name, []).append(time.monotonic() - start)

    def summary(self) -> dict[str, Any]:
        timers = {
            name: {
                "count": len(durations),
                "total": sum(durations),
                "max": max(durations),
            }
            for name, durations in self._timers.items()
            if durations
        }
        return {"counters": dict(self._counters), "timers": timers}

    def reset(self):
        self._counters.clear()
        self._timers.clear()


# Module-level singleton
metrics = Metrics()


def log_run_summary():
    """Log collected metrics, typically once at daemon shutdown."""
    logger.info("run_summary", **metrics.summary())
