from .controller import ReminderController
from .evaluator import evaluate
from .models import Decision, EnvironmentSignals, NotifyBackground, ReminderCandidate, TimingPolicy
from .resolver import CandidateResolver, DetectionLedger, SourceSignal
from .scheduler import APSchedulerTimer, ReminderScheduler
from .store import ReminderState, ReminderStore

__all__ = [
    "APSchedulerTimer",
    "CandidateResolver",
    "Decision",
    "DetectionLedger",
    "EnvironmentSignals",
    "NotifyBackground",
    "ReminderCandidate",
    "ReminderController",
    "ReminderScheduler",
    "ReminderState",
    "ReminderStore",
    "SourceSignal",
    "TimingPolicy",
    "evaluate",
]
