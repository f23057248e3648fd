"""Environment signal aggregation — window focus, fullscreen guard, install-in-progress."""

from collections.abc import Callable
from dataclasses import asdict

import structlog

from .models import EnvironmentSignals

logger = structlog.get_logger()

BoolProvider = Callable[[], bool]


def _always(value: bool) -> BoolProvider:
    return lambda: value


class EnvironmentSignalAggregator:
    """Combine independent boolean providers into one EnvironmentSignals snapshot.

    Window activity and install state are read on demand. Fullscreen state is
    comparatively expensive to detect, so it is cached and refreshed only by
    ``poll_fullscreen()``, which does nothing unless the guard is enabled.
    Provider failures fall back to the permissive value and are logged.
    """

    def __init__(
        self,
        window_active: BoolProvider | None = None,
        fullscreen_detector: BoolProvider | None = None,
        update_in_progress: BoolProvider | None = None,
        on_change: Callable[[EnvironmentSignals], None] | None = None,
    ):
        self._window_active = window_active or _always(True)
        self._fullscreen_detector = fullscreen_detector or _always(False)
        self._update_in_progress = update_in_progress or _always(False)
        self._on_change = on_change
        self._fullscreen_busy = False
        self._guard_enabled = False
        self._last: EnvironmentSignals | None = None

    def set_on_change(self, callback: Callable[[EnvironmentSignals], None] | None) -> None:
        self._on_change = callback

    @property
    def guard_enabled(self) -> bool:
        return self._guard_enabled

    def set_fullscreen_guard(self, enabled: bool) -> None:
        """Enable/disable fullscreen polling. Disabling clears the cached flag."""
        self._guard_enabled = enabled
        if not enabled:
            self._fullscreen_busy = False
        self.refresh()

    def _read(self, name: str, provider: BoolProvider, fallback: bool) -> bool:
        try:
            return bool(provider())
        except Exception as e:
            logger.warning("reminder.signals.provider_failed", signal=name, error=str(e))
            return fallback

    def poll_fullscreen(self) -> bool:
        """Refresh the cached fullscreen flag when the guard is on."""
        if not self._guard_enabled:
            return False
        self._fullscreen_busy = self._read("fullscreen_busy", self._fullscreen_detector, False)
        self.refresh()
        return self._fullscreen_busy

    def snapshot(self) -> EnvironmentSignals:
        return EnvironmentSignals(
            window_active=self._read("window_active", self._window_active, True),
            fullscreen_busy=self._fullscreen_busy if self._guard_enabled else False,
            update_in_progress=self._read("update_in_progress", self._update_in_progress, False),
        )

    def refresh(self) -> EnvironmentSignals:
        """Take a snapshot and notify the listener if anything changed."""
        current = self.snapshot()
        changed = self._last is not None and current != self._last
        self._last = current
        if changed:
            logger.debug("reminder.signals.changed", **asdict(current))
            if self._on_change:
                self._on_change(current)
        return current
