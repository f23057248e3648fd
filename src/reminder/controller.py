"""Reminder controller — wires resolver, evaluator, scheduler, notifier and display.

Every external event (source change, signal change, user action, operator
command) funnels into ``refresh()``, which cancels the pending timer and
re-evaluates. Evaluation outcomes are applied here: mark-shown and show,
background notification, or re-arming the single timer.
"""

from collections.abc import Callable

import structlog

from observability import metrics
from shared_types import CandidateSource, HideReason, ReminderStyle

from .display import DisplayStateMachine, ReminderPresenter
from .evaluator import evaluate
from .models import Decision, ReminderCandidate, TimingPolicy, now_ms
from .notifier import BackgroundNotifier
from .resolver import CandidateResolver, SourceSignal
from .scheduler import ReminderScheduler, TimerBackend
from .signals import EnvironmentSignalAggregator
from .store import ReminderState, ReminderStore

logger = structlog.get_logger()

# Decisions that take down a reminder that is already on screen
SUPPRESSING_RULES = frozenset(
    {"no_candidate", "dismissed", "manual_pause", "fullscreen", "update_in_progress"}
)


class ReminderController:
    """Single active update reminder: decide, show, hide, re-arm."""

    def __init__(
        self,
        store: ReminderStore,
        timer: TimerBackend,
        policy: TimingPolicy | None = None,
        resolver: CandidateResolver | None = None,
        signals: EnvironmentSignalAggregator | None = None,
        notifier: BackgroundNotifier | None = None,
        presenter: ReminderPresenter | None = None,
        clock: Callable[[], int] = now_ms,
        on_open_details: Callable[[ReminderCandidate], None] | None = None,
    ):
        self.store = store
        self.policy = policy or TimingPolicy()
        self.resolver = resolver or CandidateResolver()
        self.signals = signals or EnvironmentSignalAggregator()
        self.notifier = notifier
        self.display = DisplayStateMachine(presenter)
        self.clock = clock
        self.on_open_details = on_open_details
        self.scheduler = ReminderScheduler(timer, self.evaluate_now, self.policy.min_reschedule_ms)
        self.candidate: ReminderCandidate | None = None
        self.last_decision: Decision | None = None
        self._sources: dict[CandidateSource, SourceSignal] = {}
        self.signals.set_on_change(lambda _signals: self.refresh())

    # --- Lifecycle ---

    def start(self) -> None:
        self.signals.set_fullscreen_guard(self.store.state.pause_while_fullscreen)
        self.refresh()

    def stop(self) -> None:
        self.scheduler.cancel()

    # --- Sources ---

    def update_source(self, source: CandidateSource, signal: SourceSignal) -> None:
        """Record a source outcome; re-resolve and re-evaluate when it changed."""
        if self._sources.get(source) == signal:
            return
        self._sources[source] = signal
        self.candidate = self.resolver.resolve(self._sources, self.clock())
        self.refresh()

    # --- Evaluation ---

    def refresh(self) -> None:
        """External event: drop the pending timer and evaluate now."""
        self.scheduler.trigger()

    def sync_state(self) -> bool:
        """Pick up state written by another process and re-evaluate if it changed."""
        if not self.store.sync():
            return False
        guard = self.store.state.pause_while_fullscreen
        if guard != self.signals.guard_enabled:
            self.signals.set_fullscreen_guard(guard)
        self.refresh()
        return True

    def evaluate_now(self) -> Decision:
        self.store.sync()
        now = self.clock()
        signals = self.signals.snapshot()
        candidate = self.candidate

        if self.display.visible and (
            candidate is None or candidate.version != self.display.version
        ):
            self.display.hide(HideReason.SUPPRESSED)

        with metrics.timer("reminder_evaluate"):
            decision = evaluate(
                candidate,
                self.store.state,
                signals,
                now,
                self.resolver.ledger.snapshot(),
                self.policy,
            )
        self.last_decision = decision
        metrics.counter("reminder_evaluations")
        logger.debug(
            "reminder.evaluated",
            rule=decision.rule,
            visible=decision.visible,
            next_delay_ms=decision.next_delay_ms,
        )

        if decision.action is not None and self.notifier is not None:
            self.notifier.notify(decision.action, now, window_active=signals.window_active)

        if self.display.visible:
            # On screen: only a suppressor takes it down, otherwise wait for the user
            if decision.rule in SUPPRESSING_RULES:
                self.display.hide(HideReason.SUPPRESSED)
                self.scheduler.arm(decision.next_delay_ms)
            return decision

        if decision.visible:
            self.store.mark_shown(candidate.version, now)
            metrics.counter("reminder_shown")
            self.display.show(candidate, self.store.state.preferred_style)
        else:
            self.scheduler.arm(decision.next_delay_ms)
        return decision

    # --- User actions (Visible -> Hidden) ---

    def _cadence(self) -> int:
        if self.candidate is None:
            return self.policy.default_cadence_ms
        return self.policy.cadence_for(self.candidate)

    def open_details(self) -> bool:
        if not self.display.visible:
            return False
        candidate = self.display.candidate
        self.display.hide(HideReason.DETAILS)
        metrics.counter("reminder_action_details")
        if candidate.is_mock:
            logger.info("reminder.details.mock", version=candidate.version)
        elif self.on_open_details:
            try:
                self.on_open_details(candidate)
            except Exception as e:
                logger.error("reminder.details.failed", version=candidate.version, error=str(e))
        self.scheduler.arm(self._cadence())
        return True

    def snooze(self, duration_ms: int) -> bool:
        if self.candidate is None:
            return False
        self.store.snooze(self.candidate.version, duration_ms, self.clock())
        metrics.counter("reminder_action_snooze")
        if not self.display.visible:
            self.refresh()
            return True
        self.display.hide(HideReason.SNOOZE)
        self.scheduler.arm(duration_ms)
        return True

    def skip(self) -> bool:
        if self.candidate is None:
            return False
        self.store.dismiss(self.candidate.version)
        metrics.counter("reminder_action_skip")
        if not self.display.visible:
            self.refresh()
            return True
        self.display.hide(HideReason.SKIP)
        self.scheduler.cancel()
        return True

    def close(self) -> bool:
        if not self.display.visible:
            return False
        self.display.hide(HideReason.CLOSE)
        metrics.counter("reminder_action_close")
        self.scheduler.arm(self._cadence())
        return True

    def auto_dismiss(self) -> bool:
        """Toast timeout elapsed. Banners never auto-dismiss."""
        if not self.display.visible or self.display.style != ReminderStyle.TOAST:
            return False
        self.display.hide(HideReason.AUTO_DISMISS)
        self.scheduler.arm(self._cadence())
        return True

    # --- Operator / debug surface ---

    def trigger_mock(self, version: str, body: str | None = None, title: str | None = None) -> None:
        candidate = ReminderCandidate(
            version=version,
            source=CandidateSource.DEBUG,
            body=body,
            title=title,
        )
        logger.info("reminder.debug.mock_triggered", version=version)
        self.update_source(CandidateSource.DEBUG, SourceSignal.resolved(candidate))

    def clear_mock(self) -> None:
        self.update_source(CandidateSource.DEBUG, SourceSignal.absent())

    def set_style(self, style: ReminderStyle | str) -> None:
        self.store.set_preferred_style(style)
        self.refresh()

    def pause(self, duration_ms: int) -> None:
        self.store.set_manual_pause_until(self.clock() + duration_ms)
        self.refresh()

    def resume(self) -> None:
        self.store.set_manual_pause_until(0)
        self.refresh()

    def set_fullscreen_guard(self, enabled: bool) -> None:
        self.store.set_pause_while_fullscreen(enabled)
        self.signals.set_fullscreen_guard(enabled)
        self.refresh()

    def reset(self) -> None:
        self.store.reset()
        self.signals.set_fullscreen_guard(False)
        if self._sources.get(CandidateSource.DEBUG, SourceSignal.absent()).available:
            self.clear_mock()
        else:
            self.refresh()

    def show_now(self) -> Decision:
        self.scheduler.cancel()
        return self.evaluate_now()

    def get_state(self) -> ReminderState:
        return self.store.state
