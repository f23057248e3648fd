"""Long-running reminder service — polls sources and drives the controller on one APScheduler worker."""

from collections.abc import Callable

import structlog
from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.background import BackgroundScheduler

from shared_types import CandidateSource

from .controller import ReminderController
from .resolver import SourceSignal
from .sources import LocalFeedReader, RemoteUpdateChecker

logger = structlog.get_logger().bind(source="reminder_daemon")


class ReminderDaemon:
    """Registers source/signal polling jobs next to the reminder timer.

    All jobs share the scheduler's single worker thread, so the controller
    never sees two callbacks at once.
    """

    def __init__(
        self,
        scheduler: BackgroundScheduler,
        controller: ReminderController,
        local_feed: LocalFeedReader | None = None,
        remote_checker: RemoteUpdateChecker | None = None,
        local_feed_refresh_seconds: int = 30,
        remote_check_interval_seconds: int = 6 * 3600,
        fullscreen_poll_seconds: int = 60,
        state_sync_seconds: int = 10,
        on_error: Callable | None = None,
    ):
        self.scheduler = scheduler
        self.controller = controller
        self.local_feed = local_feed
        self.remote_checker = remote_checker
        self.local_feed_refresh_seconds = local_feed_refresh_seconds
        self.remote_check_interval_seconds = remote_check_interval_seconds
        self.fullscreen_poll_seconds = fullscreen_poll_seconds
        self.state_sync_seconds = state_sync_seconds
        self.on_error = on_error

    def poll_local_feed(self) -> None:
        if self.local_feed is None:
            return
        candidate = self.local_feed.read()
        self.controller.update_source(CandidateSource.SECONDARY, SourceSignal.resolved(candidate))

    def check_remote(self) -> None:
        if self.remote_checker is None:
            return
        candidate = self.remote_checker.check()
        self.controller.update_source(CandidateSource.PRIMARY, SourceSignal.resolved(candidate))

    def poll_fullscreen(self) -> None:
        self.controller.signals.poll_fullscreen()

    def sync_state(self) -> None:
        self.controller.sync_state()

    def _job_error(self, event) -> None:
        logger.error(
            "reminder.daemon.job_failed",
            job_id=event.job_id,
            exception=str(event.exception),
        )
        if self.on_error:
            try:
                self.on_error(event)
            except Exception as e:
                logger.error("reminder.daemon.on_error_failed", error=str(e))

    def _bootstrap(self) -> None:
        if self.remote_checker is not None:
            self.controller.update_source(CandidateSource.PRIMARY, SourceSignal.pending())
        self.controller.start()
        self.poll_local_feed()
        self.check_remote()

    def start(self) -> None:
        if self.local_feed is not None:
            self.scheduler.add_job(
                self.poll_local_feed,
                trigger="interval",
                seconds=self.local_feed_refresh_seconds,
                id="update_reminder_local_feed",
                replace_existing=True,
            )
        if self.remote_checker is not None:
            self.scheduler.add_job(
                self.check_remote,
                trigger="interval",
                seconds=self.remote_check_interval_seconds,
                id="update_reminder_remote_check",
                replace_existing=True,
            )
        self.scheduler.add_job(
            self.poll_fullscreen,
            trigger="interval",
            seconds=self.fullscreen_poll_seconds,
            id="update_reminder_fullscreen_poll",
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.sync_state,
            trigger="interval",
            seconds=self.state_sync_seconds,
            id="update_reminder_state_sync",
            replace_existing=True,
        )
        # first pass runs on the worker thread like everything else
        self.scheduler.add_job(self._bootstrap, id="update_reminder_bootstrap", replace_existing=True)
        self.scheduler.add_listener(self._job_error, EVENT_JOB_ERROR)
        self.scheduler.start()
        logger.info("reminder.daemon.started")

    def stop(self) -> None:
        self.controller.stop()
        self.scheduler.shutdown()
        logger.info("reminder.daemon.stopped")
