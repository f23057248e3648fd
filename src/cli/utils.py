"""Shared CLI utilities — build reminder components from config."""

from pathlib import Path

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components(config_path: Path | None = None) -> dict:
    """Load config and construct the store and sources (no scheduler).

    Enough for one-shot commands that read or edit state.
    """
    from cli.config import load_config_model
    from reminder.sources import LocalFeedReader, RemoteUpdateChecker
    from reminder.store import ReminderStore

    config = load_config_model(config_path)
    store = ReminderStore(config.paths.state_file)

    local_feed = None
    if config.sources.local_feed_enabled:
        local_feed = LocalFeedReader(config.sources.local_feed_path)

    remote_checker = None
    if config.sources.manifest_url:
        remote_checker = RemoteUpdateChecker(
            config.sources.manifest_url,
            config.sources.current_version,
            max_attempts=config.retry.max_attempts,
            min_wait=config.retry.min_wait,
            max_wait=config.retry.max_wait,
        )

    return {
        "config": config,
        "store": store,
        "policy": config.timing_policy(),
        "local_feed": local_feed,
        "remote_checker": remote_checker,
    }


def lock_file_provider(path: Path | None):
    """update_in_progress provider: True while ``path`` exists."""
    if path is None:
        return lambda: False
    return lambda: Path(path).exists()
