"""Scheduler loop — one outstanding re-evaluation timer, floored delays."""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Protocol

import structlog
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from observability import metrics

logger = structlog.get_logger().bind(source="reminder_scheduler")

REMINDER_JOB_ID = "update_reminder_check"


class TimerBackend(Protocol):
    """A single cancellable deferred call."""

    def arm(self, delay_ms: int, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` after ``delay_ms``, replacing any pending call."""

    def cancel(self) -> None:
        """Drop the pending call, if any."""


def create_background_scheduler() -> BackgroundScheduler:
    """BackgroundScheduler with a single worker so every job runs on one thread."""
    return BackgroundScheduler(
        executors={"default": ThreadPoolExecutor(max_workers=1)},
        job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": None},
    )


class APSchedulerTimer:
    """TimerBackend on an APScheduler date job with a fixed id.

    ``replace_existing=True`` on the fixed id is what guarantees at most one
    pending job.
    """

    def __init__(self, scheduler: BackgroundScheduler, job_id: str = REMINDER_JOB_ID):
        self.scheduler = scheduler
        self.job_id = job_id

    def arm(self, delay_ms: int, callback: Callable[[], None]) -> None:
        run_date = datetime.now().astimezone() + timedelta(milliseconds=delay_ms)
        self.scheduler.add_job(
            callback,
            trigger="date",
            run_date=run_date,
            id=self.job_id,
            replace_existing=True,
        )

    def cancel(self) -> None:
        try:
            self.scheduler.remove_job(self.job_id)
        except JobLookupError:
            pass


class ReminderScheduler:
    """Owns the one pending re-evaluation timer.

    Every external event calls ``trigger()``; every decision or user action
    calls ``arm(delay)``. Arming cancels whatever was pending. When the
    timer fires its handle is cleared before the evaluation callback runs.
    """

    def __init__(
        self,
        timer: TimerBackend,
        on_fire: Callable[[], None],
        min_reschedule_ms: int,
    ):
        self._timer = timer
        self._on_fire = on_fire
        self.min_reschedule_ms = min_reschedule_ms
        self._pending_delay_ms: int | None = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._pending_delay_ms is not None

    @property
    def pending_delay_ms(self) -> int | None:
        """Floored delay of the outstanding timer, as requested at arm time."""
        return self._pending_delay_ms

    def arm(self, delay_ms: int | None) -> int | None:
        """Replace the pending timer. None just cancels. Returns the armed delay."""
        self.cancel()
        if delay_ms is None:
            return None
        safe_delay = max(int(delay_ms), self.min_reschedule_ms)
        self._generation += 1
        generation = self._generation
        self._pending_delay_ms = safe_delay
        self._timer.arm(safe_delay, lambda: self._fire(generation))
        metrics.counter("reminder_timer_armed")
        logger.debug("reminder.scheduler.armed", delay_ms=safe_delay, requested_ms=delay_ms)
        return safe_delay

    def cancel(self) -> None:
        if self._pending_delay_ms is None:
            return
        self._pending_delay_ms = None
        self._timer.cancel()

    def trigger(self) -> None:
        """Re-evaluate now, dropping any pending timer first."""
        self.cancel()
        self._on_fire()

    def _fire(self, generation: int) -> None:
        if generation != self._generation or self._pending_delay_ms is None:
            # superseded by a later arm/cancel
            logger.debug("reminder.scheduler.stale_fire", generation=generation)
            return
        self._pending_delay_ms = None
        metrics.counter("reminder_timer_fired")
        self._on_fire()
