"""Fixtures for reminder tests: a manual clock and a fake single-slot timer."""

import pytest

from reminder.controller import ReminderController
from reminder.models import TimingPolicy
from reminder.notifier import BackgroundNotifier, StaticPermission
from reminder.signals import EnvironmentSignalAggregator
from reminder.store import ReminderStore

T0 = 1_700_000_000_000


class ManualClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeTimer:
    """TimerBackend stand-in: holds at most one (due, callback) pair."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.due: int | None = None
        self.callback = None
        self.arm_calls: list[int] = []
        self.cancel_calls = 0

    @property
    def pending(self) -> bool:
        return self.callback is not None

    def arm(self, delay_ms, callback):
        self.arm_calls.append(delay_ms)
        self.due = self.clock.now + delay_ms
        self.callback = callback

    def cancel(self):
        self.cancel_calls += 1
        self.due = None
        self.callback = None

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing the timer each time it comes due."""
        target = self.clock.now + ms
        while self.callback is not None and self.due <= target:
            self.clock.now = self.due
            callback = self.callback
            self.due = None
            self.callback = None
            callback()
        self.clock.now = target


class RecordingPresenter:
    def __init__(self):
        self.events: list[tuple] = []

    def show(self, candidate, style):
        self.events.append(("show", candidate.version, style))

    def hide(self, reason):
        self.events.append(("hide", reason))

    @property
    def shows(self) -> list[tuple]:
        return [e for e in self.events if e[0] == "show"]


class WindowState:
    def __init__(self, active: bool = True):
        self.active = active

    def __call__(self) -> bool:
        return self.active


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def timer(clock):
    return FakeTimer(clock)


@pytest.fixture
def store(state_path):
    return ReminderStore(state_path)


@pytest.fixture
def policy():
    return TimingPolicy()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def window():
    return WindowState()


@pytest.fixture
def sent_notifications():
    return []


@pytest.fixture
def notifier(store, sent_notifications):
    return BackgroundNotifier(
        store,
        send_notification=lambda title, body: sent_notifications.append((title, body)),
        permission=StaticPermission(True),
    )


@pytest.fixture
def controller(store, timer, policy, presenter, window, notifier, clock):
    ctrl = ReminderController(
        store,
        timer,
        policy=policy,
        signals=EnvironmentSignalAggregator(window_active=window),
        notifier=notifier,
        presenter=presenter,
        clock=clock,
    )
    ctrl.start()
    return ctrl


