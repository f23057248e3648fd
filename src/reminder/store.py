"""Reminder state — Pydantic model + JSON persistence with default fallback."""

import json
import os
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared_types import ReminderStyle

logger = structlog.get_logger()

DEFAULT_STATE_PATH = "~/.update-reminder/state.json"


class ReminderError(Exception):
    """Base error for the reminder subsystem."""


class StateWriteError(ReminderError):
    """Persisting reminder state failed."""


class ReminderState(BaseModel):
    """Durable per-version suppression and history record.

    Instances are treated as immutable: every store action builds a new
    record with ``model_copy`` and swaps it in whole.
    """

    model_config = ConfigDict(frozen=True)

    dismissed_versions: frozenset[str] = Field(default_factory=frozenset)
    snoozed_until: dict[str, int] = Field(default_factory=dict)
    last_shown_at_by_version: dict[str, int] = Field(default_factory=dict)
    last_notification_at_by_version: dict[str, int] = Field(default_factory=dict)
    preferred_style: ReminderStyle = ReminderStyle.BANNER
    pause_while_fullscreen: bool = False
    manual_pause_until: int = Field(default=0, ge=0)

    @field_validator("preferred_style", mode="before")
    @classmethod
    def migrate_card_style(cls, v):
        # "card" is the older name for the persistent banner
        if v == "card":
            return ReminderStyle.BANNER
        return v

    @field_validator("snoozed_until", "last_shown_at_by_version", "last_notification_at_by_version")
    @classmethod
    def validate_timestamps(cls, v: dict[str, int]) -> dict[str, int]:
        for version, ts in v.items():
            if ts < 0:
                raise ValueError(f"Negative timestamp for {version}: {ts}")
        return v

    def is_dismissed(self, version: str) -> bool:
        return version in self.dismissed_versions

    def snoozed_until_for(self, version: str) -> int | None:
        return self.snoozed_until.get(version)

    def last_shown_at(self, version: str) -> int | None:
        return self.last_shown_at_by_version.get(version)

    def last_notification_at(self, version: str) -> int | None:
        return self.last_notification_at_by_version.get(version)

    def to_json_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["dismissed_versions"] = sorted(self.dismissed_versions)
        return data


class ReminderStore:
    """Owns the current ReminderState and writes it through to a JSON file.

    All mutations are read-modify-write replacements of the whole record,
    followed by a persist. Each mutation first picks up any write another
    process (a CLI command next to a running daemon) made since this store
    last read or wrote the file, so neither side loses the other's changes.
    A failed write is logged and the in-memory state stays authoritative
    until the file changes or the next write succeeds.
    """

    def __init__(self, path: str | Path = DEFAULT_STATE_PATH, listeners=None):
        self.path = Path(path).expanduser()
        self._listeners = list(listeners or [])
        self._disk_signature = self._signature()
        self._state = self.load()

    @property
    def state(self) -> ReminderState:
        return self._state

    def subscribe(self, listener) -> None:
        """Register a callable invoked with the new state after each mutation."""
        self._listeners.append(listener)

    # --- Persistence ---

    def load(self) -> ReminderState:
        """Read state from disk; any missing/corrupt/invalid payload yields defaults."""
        if not self.path.exists():
            return ReminderState()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("reminder.store.read_failed", path=str(self.path), error=str(e))
            return ReminderState()
        if not raw.strip():
            return ReminderState()
        try:
            return ReminderState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning("reminder.store.invalid_payload", path=str(self.path), error=str(e))
            return ReminderState()

    def _signature(self) -> tuple[int, int, int] | None:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def sync(self) -> bool:
        """Reload if the file changed on disk since the last load or write.

        Returns True when the in-memory state was replaced.
        """
        signature = self._signature()
        if signature == self._disk_signature:
            return False
        self._disk_signature = signature
        if signature is None:
            return False
        fresh = self.load()
        if fresh == self._state:
            return False
        logger.info("reminder.store.reloaded", path=str(self.path))
        self._state = fresh
        for listener in self._listeners:
            listener(fresh)
        return True

    def persist(self) -> bool:
        """Write the current state. Returns False (and logs) on failure."""
        try:
            self._write(self._state)
            return True
        except StateWriteError as e:
            logger.warning("reminder.store.write_failed", path=str(self.path), error=str(e))
            return False

    def _write(self, state: ReminderState) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(state.to_json_dict(), indent=2))
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StateWriteError(str(e)) from e
        self._disk_signature = self._signature()

    def _current(self) -> ReminderState:
        self.sync()
        return self._state

    def _replace(self, state: ReminderState) -> ReminderState:
        if state == self._state:
            return self._state
        self._state = state
        self.persist()
        for listener in self._listeners:
            listener(state)
        return state

    # --- Actions ---

    def dismiss(self, version: str) -> ReminderState:
        """Never remind about ``version`` again. Clears any snooze for it."""
        prev = self._current()
        if prev.is_dismissed(version):
            return prev
        snoozed = {v: ts for v, ts in prev.snoozed_until.items() if v != version}
        logger.info("reminder.store.dismissed", version=version)
        return self._replace(
            prev.model_copy(
                update={
                    "dismissed_versions": prev.dismissed_versions | {version},
                    "snoozed_until": snoozed,
                }
            )
        )

    def snooze(self, version: str, duration_ms: int, now: int) -> ReminderState:
        """Hide ``version`` until ``now + duration_ms``. Un-dismisses it."""
        if duration_ms <= 0:
            raise ValueError(f"Snooze duration must be positive, got {duration_ms}")
        prev = self._current()
        until = now + duration_ms
        logger.info("reminder.store.snoozed", version=version, until=until)
        return self._replace(
            prev.model_copy(
                update={
                    "snoozed_until": {**prev.snoozed_until, version: until},
                    "dismissed_versions": prev.dismissed_versions - {version},
                }
            )
        )

    def mark_shown(self, version: str, now: int) -> ReminderState:
        prev = self._current()
        return self._replace(
            prev.model_copy(
                update={"last_shown_at_by_version": {**prev.last_shown_at_by_version, version: now}}
            )
        )

    def mark_notified(self, version: str, now: int) -> ReminderState:
        prev = self._current()
        return self._replace(
            prev.model_copy(
                update={
                    "last_notification_at_by_version": {
                        **prev.last_notification_at_by_version,
                        version: now,
                    }
                }
            )
        )

    def set_preferred_style(self, style: ReminderStyle | str) -> ReminderState:
        if style == "card":
            style = ReminderStyle.BANNER
        return self._replace(self._current().model_copy(update={"preferred_style": ReminderStyle(style)}))

    def set_pause_while_fullscreen(self, enabled: bool) -> ReminderState:
        return self._replace(self._current().model_copy(update={"pause_while_fullscreen": bool(enabled)}))

    def set_manual_pause_until(self, until: int) -> ReminderState:
        """Pause reminders until ``until`` (epoch ms). 0 resumes immediately."""
        return self._replace(self._current().model_copy(update={"manual_pause_until": max(0, until)}))

    def reset(self) -> ReminderState:
        logger.info("reminder.store.reset")
        return self._replace(ReminderState())
