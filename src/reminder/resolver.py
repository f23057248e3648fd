"""Candidate resolution — merge update sources into one active candidate."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

import structlog

from shared_types import SOURCE_PRIORITY, CandidateSource

from .models import ReminderCandidate

logger = structlog.get_logger()


class SourceStatus(StrEnum):
    ABSENT = "absent"
    PENDING = "pending"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class SourceSignal:
    """Latest known outcome of one update source."""

    status: SourceStatus = SourceStatus.ABSENT
    candidate: ReminderCandidate | None = None

    @classmethod
    def absent(cls) -> "SourceSignal":
        return cls()

    @classmethod
    def pending(cls) -> "SourceSignal":
        return cls(status=SourceStatus.PENDING)

    @classmethod
    def resolved(cls, candidate: ReminderCandidate | None) -> "SourceSignal":
        if candidate is None:
            return cls()
        return cls(status=SourceStatus.RESOLVED, candidate=candidate)

    @property
    def available(self) -> bool:
        return self.status == SourceStatus.RESOLVED and self.candidate is not None


class DetectionLedger:
    """In-memory first-seen timestamps keyed by detection key.

    Not persisted: a fresh process re-measures the initial grace period.
    """

    def __init__(self):
        self._first_seen: dict[str, int] = {}

    def first_seen(self, key: str) -> int | None:
        return self._first_seen.get(key)

    def stamp(self, key: str, now: int) -> int:
        """Record ``now`` as first-seen for ``key`` unless already known."""
        return self._first_seen.setdefault(key, now)

    def clear(self) -> None:
        self._first_seen.clear()

    def snapshot(self) -> dict[str, int]:
        return dict(self._first_seen)

    def __contains__(self, key: str) -> bool:
        return key in self._first_seen

    def __len__(self) -> int:
        return len(self._first_seen)


class CandidateResolver:
    """Pick the highest-priority available source: debug > secondary > primary."""

    def __init__(self, ledger: DetectionLedger | None = None):
        self.ledger = ledger or DetectionLedger()
        self._active_key: str | None = None

    def resolve(
        self,
        signals: Mapping[CandidateSource, SourceSignal],
        now: int,
    ) -> ReminderCandidate | None:
        candidate = None
        for source in SOURCE_PRIORITY:
            signal = signals.get(source)
            if signal is not None and signal.available:
                candidate = signal.candidate
                break

        if candidate is None:
            if self._active_key is not None:
                logger.info("reminder.resolver.candidate_cleared", previous=self._active_key)
            self._active_key = None
            self.ledger.clear()
            return None

        key = candidate.detection_key
        if key not in self.ledger:
            self.ledger.stamp(key, now)
            logger.info(
                "reminder.resolver.detected",
                version=candidate.version,
                detection_key=key,
                source=str(candidate.source),
            )
        self._active_key = key
        return candidate
