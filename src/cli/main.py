"""CLI entry point for update-reminder."""

import sys
from pathlib import Path

import click

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands import (  # noqa: E402
    evaluate_cmd,
    fullscreen_guard,
    pause,
    reset,
    resume,
    run,
    skip,
    snooze,
    status,
    style,
)
from cli.config import load_config_model  # noqa: E402
from cli.logging_config import setup_logging  # noqa: E402


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Update reminder - decide when to nudge about a pending update."""
    try:
        config = load_config_model()
    except ValueError as e:
        raise click.ClickException(str(e))
    setup_logging(
        json_mode=config.logging.json_mode,
        level="DEBUG" if verbose else config.logging.level,
    )


cli.add_command(status)
cli.add_command(evaluate_cmd)
cli.add_command(style)
cli.add_command(pause)
cli.add_command(resume)
cli.add_command(fullscreen_guard)
cli.add_command(snooze)
cli.add_command(skip)
cli.add_command(reset)
cli.add_command(run)


if __name__ == "__main__":
    cli()
