"""Tests for the Hidden/Visible display state machine."""

import pytest

from reminder.display import DisplayStateMachine, InvalidTransition
from reminder.models import ReminderCandidate
from shared_types import CandidateSource, DisplayState, HideReason, ReminderStyle

CANDIDATE = ReminderCandidate(version="2.0.0", source=CandidateSource.PRIMARY)


class TestDisplayStateMachine:
    def test_starts_hidden(self):
        machine = DisplayStateMachine()
        assert machine.state == DisplayState.HIDDEN
        assert machine.version is None

    def test_show_then_hide(self, presenter):
        machine = DisplayStateMachine(presenter)
        machine.show(CANDIDATE, ReminderStyle.TOAST)
        assert machine.visible
        assert machine.version == "2.0.0"
        assert machine.style == ReminderStyle.TOAST

        machine.hide(HideReason.CLOSE)
        assert not machine.visible
        assert machine.last_hide_reason == HideReason.CLOSE
        assert presenter.events == [
            ("show", "2.0.0", ReminderStyle.TOAST),
            ("hide", HideReason.CLOSE),
        ]

    def test_show_while_visible_rejected(self):
        machine = DisplayStateMachine()
        machine.show(CANDIDATE, ReminderStyle.BANNER)
        with pytest.raises(InvalidTransition):
            machine.show(CANDIDATE, ReminderStyle.BANNER)

    def test_hide_while_hidden_rejected(self):
        with pytest.raises(InvalidTransition):
            DisplayStateMachine().hide(HideReason.SKIP)

    def test_show_token_increments(self):
        machine = DisplayStateMachine()
        machine.show(CANDIDATE, ReminderStyle.BANNER)
        machine.hide(HideReason.SNOOZE)
        machine.show(CANDIDATE, ReminderStyle.BANNER)
        assert machine.show_token == 2
