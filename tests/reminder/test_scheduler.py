"""Tests for the single-timer reminder scheduler."""

from unittest.mock import MagicMock

from apscheduler.jobstores.base import JobLookupError

from observability import metrics
from reminder.scheduler import (
    REMINDER_JOB_ID,
    APSchedulerTimer,
    ReminderScheduler,
    create_background_scheduler,
)


def _scheduler(timer, fired=None, floor=5000):
    fired = fired if fired is not None else []
    return ReminderScheduler(timer, lambda: fired.append(timer.clock.now), floor), fired


class TestReminderScheduler:
    def test_delay_floored(self, timer):
        sched, _ = _scheduler(timer)
        assert sched.arm(10) == 5000
        assert timer.arm_calls == [5000]
        assert sched.pending_delay_ms == 5000

    def test_none_cancels_only(self, timer):
        sched, _ = _scheduler(timer)
        sched.arm(60_000)
        assert sched.arm(None) is None
        assert not sched.pending
        assert not timer.pending
        assert timer.cancel_calls == 1

    def test_at_most_one_pending(self, timer, clock):
        sched, fired = _scheduler(timer)
        sched.arm(60_000)
        sched.arm(10_000)
        timer.advance(120_000)
        assert fired == [clock.now - 110_000]
        assert not sched.pending

    def test_fires_after_delay(self, timer):
        sched, fired = _scheduler(timer)
        sched.arm(30_000)
        timer.advance(29_999)
        assert fired == []
        timer.advance(1)
        assert len(fired) == 1

    def test_stale_callback_ignored(self, timer):
        sched, fired = _scheduler(timer)
        sched.arm(30_000)
        stale = timer.callback
        sched.arm(60_000)
        stale()
        assert fired == []
        assert sched.pending

    def test_callback_after_cancel_ignored(self, timer):
        sched, fired = _scheduler(timer)
        sched.arm(30_000)
        stale = timer.callback
        sched.cancel()
        stale()
        assert fired == []

    def test_handle_cleared_before_on_fire(self, timer):
        observed = []
        sched = ReminderScheduler(timer, lambda: observed.append(sched.pending), 5000)
        sched.arm(5000)
        timer.advance(5000)
        assert observed == [False]

    def test_on_fire_may_rearm(self, timer):
        count = []

        def on_fire():
            count.append(1)
            if len(count) < 3:
                sched.arm(5000)

        sched = ReminderScheduler(timer, on_fire, 5000)
        sched.arm(5000)
        timer.advance(60_000)
        assert len(count) == 3
        assert not sched.pending

    def test_trigger_cancels_then_fires(self, timer):
        sched, fired = _scheduler(timer)
        sched.arm(60_000)
        sched.trigger()
        assert len(fired) == 1
        assert not timer.pending

    def test_metrics(self, timer):
        sched, _ = _scheduler(timer)
        sched.arm(5000)
        timer.advance(5000)
        assert metrics.get("reminder_timer_armed") == 1
        assert metrics.get("reminder_timer_fired") == 1


class TestAPSchedulerTimer:
    def test_arm_replaces_fixed_job(self):
        backend = MagicMock()
        timer = APSchedulerTimer(backend)
        callback = MagicMock()
        timer.arm(5000, callback)

        args, kwargs = backend.add_job.call_args
        assert args == (callback,)
        assert kwargs["trigger"] == "date"
        assert kwargs["id"] == REMINDER_JOB_ID
        assert kwargs["replace_existing"] is True

    def test_cancel_ignores_missing_job(self):
        backend = MagicMock()
        backend.remove_job.side_effect = JobLookupError(REMINDER_JOB_ID)
        APSchedulerTimer(backend).cancel()
        backend.remove_job.assert_called_once_with(REMINDER_JOB_ID)

    def test_background_scheduler_single_worker(self):
        scheduler = create_background_scheduler()
        assert not scheduler.running
        assert scheduler._job_defaults["max_instances"] == 1
        assert scheduler._job_defaults["coalesce"] is True
