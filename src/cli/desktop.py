"""Terminal/desktop adapters: rich console presenter and notify-send delivery."""

import shutil
import subprocess

import structlog
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from reminder.models import SNOOZE_OPTIONS_MS, ReminderCandidate
from reminder.sources import parse_duration
from shared_types import HideReason, ReminderStyle

logger = structlog.get_logger()

NOTIFY_SEND = "notify-send"

_ACTION_WORDS = {
    "d": "open_details",
    "details": "open_details",
    "k": "skip",
    "skip": "skip",
    "c": "close",
    "close": "close",
    "q": "quit",
    "quit": "quit",
}


class NotifySendPermission:
    """OS notifications are "granted" when notify-send is on PATH."""

    def is_granted(self) -> bool:
        return shutil.which(NOTIFY_SEND) is not None

    def request(self) -> bool:
        return self.is_granted()


def desktop_notify(title: str, body: str) -> None:
    """Raise a desktop notification; errors propagate to the notifier."""
    subprocess.run(
        [NOTIFY_SEND, "--app-name=update-reminder", title, body],
        check=True,
        timeout=10,
        capture_output=True,
    )


class ConsolePresenter:
    """Prints reminders as rich panels.

    A toast gets an auto-hide countdown registered through ``schedule_auto_hide``
    (the daemon wires this to a scheduler job that calls
    ``controller.auto_dismiss``).
    """

    def __init__(self, console: Console | None = None, schedule_auto_hide=None):
        self.console = console or Console()
        self.schedule_auto_hide = schedule_auto_hide

    def show(self, candidate: ReminderCandidate, style: ReminderStyle) -> None:
        lines = [f"[bold]Version {escape(candidate.version)}[/] is available."]
        if candidate.snippet:
            lines.append(escape(candidate.snippet))
        if style == ReminderStyle.BANNER:
            lines.append(f"[dim]{action_hint()}[/]")
        title = candidate.title or "Update available"
        if candidate.is_mock:
            title += " [mock]"
        self.console.print(Panel("\n".join(lines), title=escape(title), expand=style == ReminderStyle.BANNER))
        if style == ReminderStyle.TOAST and self.schedule_auto_hide:
            self.schedule_auto_hide()

    def hide(self, reason: HideReason) -> None:
        self.console.print(f"[dim]Update reminder hidden ({reason})[/]")


def _format_duration(ms: int) -> str:
    minutes = ms // 60000
    if minutes % (24 * 60) == 0:
        days = minutes // (24 * 60)
        return f"{days // 7}w" if days % 7 == 0 else f"{days}d"
    if minutes % 60 == 0:
        return f"{minutes // 60}h"
    return f"{minutes}m"


def action_hint() -> str:
    snoozes = "|".join(_format_duration(ms) for ms in SNOOZE_OPTIONS_MS)
    return f"d: details · s {snoozes}: snooze · k: skip · c: close"


def parse_action(line: str) -> tuple[str, tuple] | None:
    """Map a line typed into the running service to a controller action.

    Returns ``(method_name, args)``; ``"quit"`` stops the service. ``s`` or
    ``snooze`` takes an optional duration (``s 1d``) and defaults to the
    shortest snooze option. Unknown input yields None.
    """
    words = line.strip().lower().split(maxsplit=1)
    if not words:
        return None
    verb = words[0]
    if verb in ("s", "snooze"):
        if len(words) == 1:
            return "snooze", (SNOOZE_OPTIONS_MS[0],)
        duration_ms = parse_duration(words[1])
        return ("snooze", (duration_ms,)) if duration_ms else None
    if verb in _ACTION_WORDS and len(words) == 1:
        return _ACTION_WORDS[verb], ()
    return None
