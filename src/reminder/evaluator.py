"""Reminder evaluator — ordered suppression rules ending in a show decision.

``evaluate`` is pure: it reads the candidate, persisted state, environment
signals, detection ledger and clock, and returns a Decision. Callers apply
side effects (mark-shown, background notification, timer arming).

Rules are checked top to bottom and the first one that returns a Decision
wins, so precedence is simply list order in ``RULES``.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from .models import (
    Decision,
    EnvironmentSignals,
    NotifyBackground,
    ReminderCandidate,
    TimingPolicy,
)
from .store import ReminderState


@dataclass(frozen=True)
class EvaluationContext:
    candidate: ReminderCandidate | None
    state: ReminderState
    signals: EnvironmentSignals
    now: int
    first_seen: int | None
    policy: TimingPolicy

    @property
    def version(self) -> str:
        return self.candidate.version

    @property
    def cadence_ms(self) -> int:
        return self.policy.cadence_for(self.candidate)


Rule = Callable[[EvaluationContext], Decision | None]


def _hidden(rule: str, delay: int | None, action: NotifyBackground | None = None) -> Decision:
    return Decision(visible=False, next_delay_ms=delay, rule=rule, action=action)


def eligible_at(ctx: EvaluationContext) -> int:
    """Earliest instant the cadence check passes for the active candidate.

    Requires a ledger entry. A snooze that expired after the last showing
    counts as due on its own; otherwise the first showing waits out the
    first-reminder delay from first-seen and later ones wait a full cadence
    from the last showing.
    """
    last_shown = ctx.state.last_shown_at(ctx.version)
    if last_shown is None:
        return ctx.first_seen + ctx.policy.first_reminder_delay_ms
    due = last_shown + ctx.cadence_ms
    snoozed_until = ctx.state.snoozed_until_for(ctx.version)
    if snoozed_until is not None and snoozed_until > last_shown:
        due = min(due, snoozed_until)
    return due


def rule_no_candidate(ctx: EvaluationContext) -> Decision | None:
    if ctx.candidate is None:
        return _hidden("no_candidate", None)
    return None


def rule_dismissed(ctx: EvaluationContext) -> Decision | None:
    if ctx.state.is_dismissed(ctx.version):
        return _hidden("dismissed", None)
    return None


def rule_manual_pause(ctx: EvaluationContext) -> Decision | None:
    pause_until = ctx.state.manual_pause_until
    if pause_until > ctx.now:
        return _hidden("manual_pause", pause_until - ctx.now)
    return None


def rule_fullscreen(ctx: EvaluationContext) -> Decision | None:
    if ctx.state.pause_while_fullscreen and ctx.signals.fullscreen_busy:
        return _hidden("fullscreen", ctx.policy.fullscreen_poll_for(ctx.candidate))
    return None


def rule_update_in_progress(ctx: EvaluationContext) -> Decision | None:
    if ctx.signals.update_in_progress:
        return _hidden("update_in_progress", ctx.cadence_ms)
    return None


def rule_snoozed(ctx: EvaluationContext) -> Decision | None:
    snoozed_until = ctx.state.snoozed_until_for(ctx.version)
    if snoozed_until is not None and snoozed_until > ctx.now:
        return _hidden("snoozed", snoozed_until - ctx.now)
    return None


def rule_not_detected(ctx: EvaluationContext) -> Decision | None:
    if ctx.first_seen is None:
        return _hidden("not_detected", ctx.policy.first_reminder_delay_ms)
    return None


def rule_window_inactive(ctx: EvaluationContext) -> Decision | None:
    if ctx.signals.window_active:
        return None
    action = None
    if ctx.now >= eligible_at(ctx):
        last_notified = ctx.state.last_notification_at(ctx.version)
        if last_notified is None or ctx.now - last_notified >= ctx.policy.notification_rate_limit_ms:
            action = NotifyBackground(
                version=ctx.version,
                title=ctx.candidate.title,
                body=ctx.candidate.snippet,
            )
    return _hidden("window_inactive", ctx.policy.inactive_poll_ms, action)


def rule_cadence(ctx: EvaluationContext) -> Decision | None:
    remaining = eligible_at(ctx) - ctx.now
    if remaining > 0:
        return _hidden("cadence", remaining)
    return None


RULES: tuple[Rule, ...] = (
    rule_no_candidate,
    rule_dismissed,
    rule_manual_pause,
    rule_fullscreen,
    rule_update_in_progress,
    rule_snoozed,
    rule_not_detected,
    rule_window_inactive,
    rule_cadence,
)


def evaluate(
    candidate: ReminderCandidate | None,
    state: ReminderState,
    signals: EnvironmentSignals,
    now: int,
    ledger: Mapping[str, int] | None = None,
    policy: TimingPolicy | None = None,
) -> Decision:
    """Decide whether the reminder is visible now and when to look again.

    Args:
        candidate: Active candidate from the resolver, or None.
        state: Persisted reminder state.
        signals: Environment snapshot.
        now: Current time, epoch ms.
        ledger: detection_key -> first-seen ms (a DetectionLedger snapshot).
        policy: Timing constants; defaults apply when omitted.
    """
    policy = policy or TimingPolicy()
    first_seen = None
    if candidate is not None and ledger:
        first_seen = ledger.get(candidate.detection_key)
    ctx = EvaluationContext(
        candidate=candidate,
        state=state,
        signals=signals,
        now=now,
        first_seen=first_seen,
        policy=policy,
    )
    for rule in RULES:
        decision = rule(ctx)
        if decision is not None:
            return decision
    return Decision(visible=True, next_delay_ms=None, rule="show")
