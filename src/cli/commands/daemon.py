"""Daemon CLI commands — one-shot evaluation and the long-running reminder service."""

import time
from datetime import datetime, timedelta

import click
from rich.console import Console
from rich.markup import escape

from cli.utils import get_components, lock_file_provider
from observability import log_run_summary
from reminder.models import EnvironmentSignals, ReminderCandidate, now_ms
from reminder.resolver import CandidateResolver, SourceSignal
from shared_types import CandidateSource

console = Console()


def _fmt_delay(ms: int | None) -> str:
    if ms is None:
        return "none"
    return str(timedelta(milliseconds=ms)).split(".")[0]


@click.command("evaluate")
@click.option("--mock", "mock_version", help="Evaluate a mock candidate with this version")
@click.option("--body", help="Changelog body for the mock candidate")
@click.option("--inactive", is_flag=True, help="Evaluate as if the window were inactive")
@click.option("--fullscreen", is_flag=True, help="Evaluate as if a fullscreen app were in front")
def evaluate_cmd(mock_version: str | None, body: str | None, inactive: bool, fullscreen: bool):
    """Resolve sources and print the decision, without side effects.

    The detection ledger is per-process, so the candidate counts as first
    seen right now.
    """
    from reminder.evaluator import evaluate

    c = get_components()
    config = c["config"]
    sources: dict[CandidateSource, SourceSignal] = {}
    if mock_version:
        sources[CandidateSource.DEBUG] = SourceSignal.resolved(
            ReminderCandidate(version=mock_version, source=CandidateSource.DEBUG, body=body)
        )
    if c["local_feed"] is not None:
        sources[CandidateSource.SECONDARY] = SourceSignal.resolved(c["local_feed"].read())
    if c["remote_checker"] is not None and not mock_version:
        sources[CandidateSource.PRIMARY] = SourceSignal.resolved(c["remote_checker"].check())

    now = now_ms()
    resolver = CandidateResolver()
    candidate = resolver.resolve(sources, now)
    signals = EnvironmentSignals(
        window_active=not inactive,
        fullscreen_busy=fullscreen,
        update_in_progress=lock_file_provider(config.sources.update_lock_path)(),
    )
    decision = evaluate(candidate, c["store"].state, signals, now, resolver.ledger.snapshot(), c["policy"])

    if candidate is None:
        console.print("Candidate: none")
    else:
        console.print(f"Candidate: {candidate.version} ({candidate.source})")
    console.print(f"Rule: {decision.rule}")
    console.print(f"Visible: {'yes' if decision.visible else 'no'}")
    console.print(f"Next check in: {_fmt_delay(decision.next_delay_ms)}")
    if decision.action is not None:
        console.print(f"Background notification due for {decision.action.version}")


@click.command("run")
@click.option("--mock", "mock_version", help="Inject a mock candidate at startup")
@click.option("--headless", is_flag=True, help="Treat the window as inactive (background channel only)")
@click.option("--json-logs", is_flag=True, help="Log JSON lines instead of console output")
def run(mock_version: str | None, headless: bool, json_logs: bool):
    """Run the reminder service until interrupted."""
    from cli.desktop import ConsolePresenter, NotifySendPermission, action_hint, desktop_notify, parse_action
    from cli.logging_config import setup_logging
    from reminder.controller import ReminderController
    from reminder.daemon import ReminderDaemon
    from reminder.notifier import BackgroundNotifier
    from reminder.scheduler import APSchedulerTimer, create_background_scheduler
    from reminder.signals import EnvironmentSignalAggregator

    c = get_components()
    config = c["config"]
    setup_logging(
        json_mode=json_logs or config.logging.json_mode,
        level=config.logging.level,
        log_file=config.paths.log_file,
    )

    scheduler = create_background_scheduler()
    controller_ref: list[ReminderController] = []

    def schedule_auto_hide():
        auto_hide_ms = config.schedule.toast_auto_hide_ms
        if auto_hide_ms <= 0:
            return
        scheduler.add_job(
            controller_ref[0].auto_dismiss,
            trigger="date",
            run_date=datetime.now().astimezone() + timedelta(milliseconds=auto_hide_ms),
            id="update_reminder_toast_autohide",
            replace_existing=True,
        )

    signals = EnvironmentSignalAggregator(
        window_active=lambda: not headless,
        update_in_progress=lock_file_provider(config.sources.update_lock_path),
    )
    notifier = BackgroundNotifier(
        c["store"],
        mode=config.notifications.background_mode,
        send_notification=desktop_notify,
        request_attention=console.bell,
        permission=NotifySendPermission(),
        rate_limit_ms=config.notifications.rate_limit_ms,
    )
    controller = ReminderController(
        c["store"],
        APSchedulerTimer(scheduler),
        policy=c["policy"],
        signals=signals,
        notifier=notifier,
        presenter=ConsolePresenter(console, schedule_auto_hide=schedule_auto_hide),
        on_open_details=lambda cand: console.print(cand.body or "(no release notes)"),
    )
    controller_ref.append(controller)

    daemon = ReminderDaemon(
        scheduler,
        controller,
        local_feed=c["local_feed"],
        remote_checker=c["remote_checker"],
        local_feed_refresh_seconds=config.sources.local_feed_refresh_seconds,
        remote_check_interval_seconds=config.sources.remote_check_interval_seconds,
        fullscreen_poll_seconds=config.sources.fullscreen_poll_seconds,
        state_sync_seconds=config.sources.state_sync_seconds,
    )
    daemon.start()
    if mock_version:
        scheduler.add_job(
            controller.trigger_mock,
            args=[mock_version],
            kwargs={"body": "Mock update injected from the command line."},
            id="update_reminder_mock",
            replace_existing=True,
        )

    console.print(f"[green]Started[/] update reminder (state: {config.paths.state_file})")
    console.print(f"Type an action ({action_hint()}) or q to quit. Ctrl+C also stops.")
    try:
        # actions run on the scheduler worker, never on this thread
        for line in click.get_text_stream("stdin"):
            action = parse_action(line)
            if action is None:
                if line.strip():
                    console.print(f"[yellow]Unknown action[/] '{escape(line.strip())}': {action_hint()}, q: quit")
                continue
            name, args = action
            if name == "quit":
                break
            scheduler.add_job(getattr(controller, name), args=list(args))
        else:
            # stdin closed (service mode): keep running until interrupted
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        pass
    daemon.stop()
    log_run_summary()
    console.print("\n[yellow]Stopped[/]")
