"""Shared enums and types for update-reminder."""

from enum import StrEnum


class CandidateSource(StrEnum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    DEBUG = "debug"


class ReminderStyle(StrEnum):
    BANNER = "banner"
    TOAST = "toast"


class BackgroundMode(StrEnum):
    OS_NOTIFICATION = "os_notification"
    ATTENTION = "attention"
    NONE = "none"


class DisplayState(StrEnum):
    HIDDEN = "hidden"
    VISIBLE = "visible"


class HideReason(StrEnum):
    DETAILS = "details"
    SNOOZE = "snooze"
    SKIP = "skip"
    CLOSE = "close"
    AUTO_DISMISS = "auto_dismiss"
    SUPPRESSED = "suppressed"


# Source priority, highest first
SOURCE_PRIORITY: tuple[CandidateSource, ...] = (
    CandidateSource.DEBUG,
    CandidateSource.SECONDARY,
    CandidateSource.PRIMARY,
)
