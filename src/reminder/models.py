"""Core reminder types: candidates, environment signals, timing policy, decisions."""

import re
import time
from dataclasses import dataclass

from shared_types import CandidateSource

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS

FIRST_REMINDER_DELAY_MS = 10 * MINUTE_MS
REMINDER_INTERVAL_MS = DAY_MS
MIN_RESCHEDULE_MS = 5 * SECOND_MS

SNOOZE_OPTIONS_MS: tuple[int, ...] = (HOUR_MS, DAY_MS, WEEK_MS)
PAUSE_OPTIONS_MS: tuple[int, ...] = (30 * MINUTE_MS, HOUR_MS, 4 * HOUR_MS, DAY_MS)

SNIPPET_MAX_CHARS = 200


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def compute_snippet(body: str | None, max_length: int = SNIPPET_MAX_CHARS) -> str | None:
    """First paragraph of a changelog body, collapsed to a single line."""
    if not isinstance(body, str) or not body:
        return None
    normalized = body.replace("\r\n", "\n")
    first_paragraph = re.split(r"\n{2,}", normalized)[0]
    single_line = re.sub(r"\s+", " ", first_paragraph).strip()
    if not single_line:
        return None
    if len(single_line) <= max_length:
        return single_line
    return single_line[: max_length - 1] + "…"


@dataclass(frozen=True)
class ReminderCandidate:
    """The single update currently eligible for reminding."""

    version: str
    source: CandidateSource
    body: str | None = None
    title: str | None = None
    interval_override_ms: int | None = None
    revision: int | str | None = None

    @property
    def detection_key(self) -> str:
        if self.revision is None:
            return self.version
        return f"{self.version}:{self.revision}"

    @property
    def snippet(self) -> str | None:
        return compute_snippet(self.body)

    @property
    def is_mock(self) -> bool:
        return self.source == CandidateSource.DEBUG


@dataclass(frozen=True)
class EnvironmentSignals:
    """Snapshot of host-environment flags consulted by the evaluator."""

    window_active: bool = True
    fullscreen_busy: bool = False
    update_in_progress: bool = False


@dataclass(frozen=True)
class TimingPolicy:
    """Timing constants for one evaluation, in milliseconds."""

    first_reminder_delay_ms: int = FIRST_REMINDER_DELAY_MS
    default_cadence_ms: int = REMINDER_INTERVAL_MS
    min_reschedule_ms: int = MIN_RESCHEDULE_MS
    inactive_poll_ms: int = 6 * MIN_RESCHEDULE_MS
    fullscreen_poll_fraction: float = 1 / 6
    fullscreen_min_poll_ms: int = MINUTE_MS
    notification_rate_limit_ms: int = REMINDER_INTERVAL_MS

    def cadence_for(self, candidate: ReminderCandidate) -> int:
        if candidate.interval_override_ms is not None:
            return candidate.interval_override_ms
        return self.default_cadence_ms

    def fullscreen_poll_for(self, candidate: ReminderCandidate) -> int:
        poll = round(self.cadence_for(candidate) * self.fullscreen_poll_fraction)
        return max(poll, self.fullscreen_min_poll_ms)


@dataclass(frozen=True)
class NotifyBackground:
    """Intent to emit one background notification for a version."""

    version: str
    title: str | None = None
    body: str | None = None


@dataclass(frozen=True)
class Decision:
    """Evaluator output. ``next_delay_ms`` of None means nothing to reschedule."""

    visible: bool
    next_delay_ms: int | None
    rule: str
    action: NotifyBackground | None = None
