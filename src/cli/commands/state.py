"""State CLI commands — inspect and edit persisted reminder state."""

from datetime import datetime

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from reminder.models import now_ms
from reminder.sources import parse_duration
from shared_types import ReminderStyle

console = Console()


class DurationType(click.ParamType):
    """Accepts ``30m``/``4h``/``1w`` as well as the UPDATE.txt forms (``h:4``, ``3600000``)."""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        parsed = parse_duration(value)
        if parsed is None:
            self.fail(f"{value!r} is not a valid duration (try 30m, 4h, 1d)", param, ctx)
        return parsed


DURATION = DurationType()


def _fmt_ts(ts: int | None) -> str:
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d %H:%M:%S")


@click.command("status")
def status():
    """Show persisted reminder state."""
    c = get_components()
    state = c["store"].state
    now = now_ms()

    console.print(f"Style: {state.preferred_style}")
    console.print(f"Pause while fullscreen: {'on' if state.pause_while_fullscreen else 'off'}")
    if state.manual_pause_until > now:
        console.print(f"Paused until: {_fmt_ts(state.manual_pause_until)}")
    else:
        console.print("Paused: no")

    versions = (
        set(state.dismissed_versions)
        | set(state.snoozed_until)
        | set(state.last_shown_at_by_version)
        | set(state.last_notification_at_by_version)
    )
    if not versions:
        console.print("No reminder history.")
        return

    table = Table(title="Versions")
    table.add_column("Version")
    table.add_column("Dismissed")
    table.add_column("Snoozed until")
    table.add_column("Last shown")
    table.add_column("Last notified")
    for version in sorted(versions):
        table.add_row(
            version,
            "yes" if state.is_dismissed(version) else "",
            _fmt_ts(state.snoozed_until_for(version)),
            _fmt_ts(state.last_shown_at(version)),
            _fmt_ts(state.last_notification_at(version)),
        )
    console.print(table)


@click.command("style")
@click.argument("style", type=click.Choice([s.value for s in ReminderStyle]))
def style(style: str):
    """Set the preferred presentation (banner or toast)."""
    c = get_components()
    c["store"].set_preferred_style(style)
    console.print(f"[green]Style set to[/] {style}")


@click.command("pause")
@click.argument("duration", type=DURATION)
def pause(duration: int):
    """Pause reminders for DURATION (e.g. 30m, 4h, 1d)."""
    c = get_components()
    state = c["store"].set_manual_pause_until(now_ms() + duration)
    console.print(f"[yellow]Paused until[/] {_fmt_ts(state.manual_pause_until)}")


@click.command("resume")
def resume():
    """Lift a manual pause."""
    c = get_components()
    c["store"].set_manual_pause_until(0)
    console.print("[green]Reminders resumed[/]")


@click.command("fullscreen-guard")
@click.argument("mode", type=click.Choice(["on", "off"]))
def fullscreen_guard(mode: str):
    """Hold reminders while a fullscreen app is in front."""
    c = get_components()
    c["store"].set_pause_while_fullscreen(mode == "on")
    console.print(f"Fullscreen guard {mode}")


@click.command("snooze")
@click.argument("version")
@click.argument("duration", type=DURATION)
def snooze(version: str, duration: int):
    """Hide VERSION for DURATION."""
    c = get_components()
    state = c["store"].snooze(version, duration, now_ms())
    console.print(f"Snoozed {version} until {_fmt_ts(state.snoozed_until_for(version))}")


@click.command("skip")
@click.argument("version")
def skip(version: str):
    """Never remind about VERSION again."""
    c = get_components()
    c["store"].dismiss(version)
    console.print(f"Skipped {version}")


@click.command("reset")
@click.confirmation_option(prompt="Reset all reminder state?")
def reset():
    """Restore default reminder state."""
    c = get_components()
    c["store"].reset()
    console.print("[green]Reminder state reset[/]")
