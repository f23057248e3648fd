"""Update sources — remote release manifest and locally staged UPDATE.txt feed."""

import math
import re
from pathlib import Path

import httpx
import structlog

from cli.retry import http_retry
from shared_types import CandidateSource

from .models import DAY_MS, HOUR_MS, MINUTE_MS, SECOND_MS, WEEK_MS, ReminderCandidate

logger = structlog.get_logger()

DEFAULT_FEED_PATH = "~/.update-reminder/UPDATE.txt"

_DURATION_UNITS = {
    "milliseconds": 1,
    "ms": 1,
    "seconds": SECOND_MS,
    "s": SECOND_MS,
    "minutes": MINUTE_MS,
    "m": MINUTE_MS,
    "hours": HOUR_MS,
    "h": HOUR_MS,
    "days": DAY_MS,
    "d": DAY_MS,
    "weeks": WEEK_MS,
    "w": WEEK_MS,
}

_UNIT_PATTERN = "milliseconds|ms|seconds|s|minutes|m|hours|h|days|d|weeks|w"
_NUMBER_PATTERN = r"\d+(?:\.\d+)?"

# "h:2", "minutes 30"
_UNIT_FIRST_RE = re.compile(rf"^({_UNIT_PATTERN})\s*:?\s*({_NUMBER_PATTERN})$", re.IGNORECASE)
# "30m", "1.5h", "2 days"
_NUMBER_FIRST_RE = re.compile(rf"^({_NUMBER_PATTERN})\s*({_UNIT_PATTERN})$", re.IGNORECASE)


def _to_ms(numeric: float, unit_ms: int = 1) -> int | None:
    if not math.isfinite(numeric) or numeric <= 0:
        return None
    total = numeric * unit_ms
    if not math.isfinite(total):
        return None
    ms = int(total)
    return ms if ms > 0 else None


def parse_duration(value: str) -> int | None:
    """Parse ``"90000"``, ``"h:2"``, ``"minutes 30"``, ``"30m"``, ``"1w"`` into milliseconds.

    A bare number is taken as milliseconds. Non-positive, non-finite or
    unparseable values give None.
    """
    trimmed = value.strip()
    if not trimmed:
        return None
    try:
        direct = float(trimmed)
    except ValueError:
        direct = None
    if direct is not None:
        return _to_ms(direct)

    m = _UNIT_FIRST_RE.match(trimmed)
    if m:
        unit, number = m.group(1), m.group(2)
    else:
        m = _NUMBER_FIRST_RE.match(trimmed)
        if not m:
            return None
        number, unit = m.group(1), m.group(2)
    return _to_ms(float(number), _DURATION_UNITS[unit.lower()])


def parse_update_file(raw: str, revision: int) -> ReminderCandidate | None:
    """Parse UPDATE.txt ``key=value`` lines into a secondary-source candidate.

    Recognized keys: version, title, body (repeatable, joined by newlines),
    staleness (cadence override). Blank lines and ``#`` comments are skipped.
    """
    version = None
    title = None
    body_lines: list[str] = []
    staleness_ms = None

    for line in raw.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        key, _, value = trimmed.partition("=")
        key = key.strip().lower()
        value = value.strip()
        if not key:
            continue
        if key == "version" and value:
            version = value
        elif key == "title" and value:
            title = value
        elif key == "body" and value:
            body_lines.append(value)
        elif key == "staleness":
            staleness_ms = parse_duration(value)

    if not version:
        return None

    return ReminderCandidate(
        version=version,
        source=CandidateSource.SECONDARY,
        title=title,
        body="\n".join(body_lines) if body_lines else None,
        interval_override_ms=staleness_ms,
        revision=revision,
    )


class LocalFeedReader:
    """Reads the locally staged update feed. Any failure means "no candidate"."""

    def __init__(self, path: str | Path = DEFAULT_FEED_PATH):
        self.path = Path(path).expanduser()

    def read(self) -> ReminderCandidate | None:
        try:
            if not self.path.exists():
                return None
            raw = self.path.read_text(encoding="utf-8")
            revision = int(self.path.stat().st_mtime * 1000)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("reminder.local_feed.read_failed", path=str(self.path), error=str(e))
            return None
        candidate = parse_update_file(raw, revision)
        if candidate is None:
            logger.debug("reminder.local_feed.no_version", path=str(self.path))
        return candidate


def _text_field(data: dict, key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) and value.strip() else None


class RemoteUpdateChecker:
    """Fetches a JSON release manifest and reports a primary-source candidate.

    The manifest is ``{"version": ..., "notes"|"body": ..., "title": ...}``.
    A manifest version equal to ``current_version`` means no update; versions
    are compared by equality only.
    """

    def __init__(
        self,
        manifest_url: str,
        current_version: str,
        timeout: float = 15.0,
        max_attempts: int = 3,
        min_wait: float = 2.0,
        max_wait: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.manifest_url = manifest_url
        self.current_version = current_version
        self.timeout = timeout
        self._transport = transport
        self._fetch = http_retry(
            max_attempts=max_attempts,
            min_wait=min_wait,
            max_wait=max_wait,
            exceptions=(httpx.HTTPStatusError, httpx.TransportError),
        )(self._fetch_manifest)

    def _fetch_manifest(self) -> dict:
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.get(self.manifest_url)
            response.raise_for_status()
            return response.json()

    def check(self) -> ReminderCandidate | None:
        """Return a candidate when the manifest advertises another version."""
        try:
            data = self._fetch()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("reminder.remote_check.failed", url=self.manifest_url, error=str(e))
            return None

        if not isinstance(data, dict):
            logger.warning("reminder.remote_check.bad_manifest", url=self.manifest_url)
            return None
        raw_version = data.get("version")
        if isinstance(raw_version, bool) or not isinstance(raw_version, (str, int, float)):
            return None
        version = str(raw_version).strip()
        if not version or version == self.current_version:
            return None

        return ReminderCandidate(
            version=version,
            source=CandidateSource.PRIMARY,
            title=_text_field(data, "title"),
            body=_text_field(data, "notes") or _text_field(data, "body"),
        )
