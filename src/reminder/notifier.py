"""Background notifier — best-effort OS notification / attention request with per-version rate limit."""

from collections.abc import Callable
from typing import Protocol

import structlog

from observability import metrics
from shared_types import BackgroundMode

from .models import REMINDER_INTERVAL_MS, NotifyBackground
from .store import ReminderStore

logger = structlog.get_logger()

DEFAULT_BODY = "A new version is ready to install."


class NotificationPermission(Protocol):
    def is_granted(self) -> bool: ...

    def request(self) -> bool: ...


class StaticPermission:
    """Permission that is simply granted or not (headless hosts, tests)."""

    def __init__(self, granted: bool = True):
        self.granted = granted

    def is_granted(self) -> bool:
        return self.granted

    def request(self) -> bool:
        return self.granted


class BackgroundNotifier:
    """Sends at most one side-channel notification per version per rate-limit window.

    Only used while the app window is inactive. Never raises: delivery
    failures are logged and reported as "not sent", leaving the banner
    cadence untouched.
    """

    def __init__(
        self,
        store: ReminderStore,
        mode: BackgroundMode | str = BackgroundMode.OS_NOTIFICATION,
        send_notification: Callable[[str, str], None] | None = None,
        request_attention: Callable[[], None] | None = None,
        permission: NotificationPermission | None = None,
        rate_limit_ms: int = REMINDER_INTERVAL_MS,
    ):
        self._store = store
        self.mode = BackgroundMode(mode)
        self._send_notification = send_notification
        self._request_attention = request_attention
        self._permission = permission or StaticPermission(False)
        self.rate_limit_ms = rate_limit_ms
        self._permission_granted: bool | None = None

    def ensure_permission(self) -> bool:
        """Check, then request once per process; the answer is cached."""
        if self._permission_granted is not None:
            return self._permission_granted
        try:
            granted = self._permission.is_granted()
            if not granted:
                granted = self._permission.request()
        except Exception as e:
            logger.warning("reminder.notifier.permission_failed", error=str(e))
            granted = False
        self._permission_granted = bool(granted)
        logger.info("reminder.notifier.permission", granted=self._permission_granted)
        return self._permission_granted

    def _in_cooldown(self, version: str, now: int) -> bool:
        last = self._store.state.last_notification_at(version)
        return last is not None and now - last < self.rate_limit_ms

    def notify(self, action: NotifyBackground, now: int, window_active: bool = False) -> bool:
        """Deliver ``action`` if allowed. Returns True when sent and recorded."""
        if window_active:
            logger.debug("reminder.notifier.window_active", version=action.version)
            return False
        if self.mode == BackgroundMode.NONE:
            logger.debug("reminder.notifier.disabled", version=action.version)
            return False
        if self._in_cooldown(action.version, now):
            metrics.counter("reminder_notification_cooldown")
            logger.debug("reminder.notifier.cooldown", version=action.version)
            return False

        try:
            if self.mode == BackgroundMode.OS_NOTIFICATION:
                if self._send_notification is None or not self.ensure_permission():
                    logger.debug("reminder.notifier.unavailable", version=action.version)
                    return False
                title = action.title or f"Update {action.version} available"
                self._send_notification(title, action.body or DEFAULT_BODY)
            else:
                if self._request_attention is None:
                    logger.debug("reminder.notifier.unavailable", version=action.version)
                    return False
                self._request_attention()
        except Exception as e:
            metrics.counter("reminder_notification_failed")
            logger.error(
                "reminder.notifier.failed",
                version=action.version,
                mode=str(self.mode),
                error=str(e),
            )
            return False

        self._store.mark_notified(action.version, now)
        metrics.counter("reminder_notification_sent")
        logger.info("reminder.notifier.sent", version=action.version, mode=str(self.mode))
        return True
