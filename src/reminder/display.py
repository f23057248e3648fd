"""Display state machine — Hidden/Visible for the single active reminder."""

from typing import Protocol

import structlog

from shared_types import DisplayState, HideReason, ReminderStyle

from .models import ReminderCandidate

logger = structlog.get_logger()


class ReminderPresenter(Protocol):
    """Renders the banner/toast. Purely presentational."""

    def show(self, candidate: ReminderCandidate, style: ReminderStyle) -> None: ...

    def hide(self, reason: HideReason) -> None: ...


class InvalidTransition(Exception):
    """Raised when a transition is requested from the wrong state."""


class DisplayStateMachine:
    """Hidden (initial) <-> Visible.

    ``show`` is only legal from Hidden, ``hide`` only from Visible. Each show
    bumps ``show_token`` so a presenter can tell a re-show from the previous
    one (e.g. to restart a toast's auto-hide countdown).
    """

    def __init__(self, presenter: ReminderPresenter | None = None):
        self.presenter = presenter
        self.state = DisplayState.HIDDEN
        self.candidate: ReminderCandidate | None = None
        self.style: ReminderStyle | None = None
        self.show_token = 0
        self.last_hide_reason: HideReason | None = None

    @property
    def visible(self) -> bool:
        return self.state == DisplayState.VISIBLE

    @property
    def version(self) -> str | None:
        return self.candidate.version if self.candidate else None

    def show(self, candidate: ReminderCandidate, style: ReminderStyle) -> None:
        if self.visible:
            raise InvalidTransition(f"Reminder for {self.version} is already visible")
        self.state = DisplayState.VISIBLE
        self.candidate = candidate
        self.style = style
        self.show_token += 1
        logger.info("reminder.display.shown", version=candidate.version, style=str(style))
        if self.presenter:
            self.presenter.show(candidate, style)

    def hide(self, reason: HideReason) -> None:
        if not self.visible:
            raise InvalidTransition("Reminder is not visible")
        logger.info("reminder.display.hidden", version=self.version, reason=str(reason))
        self.state = DisplayState.HIDDEN
        self.last_hide_reason = reason
        self.candidate = None
        self.style = None
        if self.presenter:
            self.presenter.hide(reason)
