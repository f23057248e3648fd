"""Tests for config models and YAML loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cli.config import DEFAULT_CONFIG, find_config, load_config, load_config_model
from cli.config_models import ReminderConfig, ScheduleConfig, SourcesConfig
from reminder.models import DAY_MS, MINUTE_MS, TimingPolicy
from shared_types import BackgroundMode


class TestModels:
    def test_defaults_match_timing_policy(self):
        assert ReminderConfig().timing_policy() == TimingPolicy()

    def test_default_dict(self):
        assert DEFAULT_CONFIG["schedule"]["cadence_ms"] == DAY_MS
        assert DEFAULT_CONFIG["sources"]["manifest_url"] is None

    def test_fraction_bounds(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(fullscreen_poll_fraction=0)
        with pytest.raises(ValidationError):
            ScheduleConfig(fullscreen_poll_fraction=1.5)

    def test_fullscreen_floor_not_below_reschedule_floor(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(min_reschedule_ms=MINUTE_MS, fullscreen_min_poll_ms=1000)

    def test_state_sync_interval(self):
        assert ReminderConfig().sources.state_sync_seconds == 10
        with pytest.raises(ValidationError):
            SourcesConfig(state_sync_seconds=0)

    def test_log_level_normalized(self):
        config = ReminderConfig.from_dict({"logging": {"level": "debug"}})
        assert config.logging.level == "DEBUG"

    def test_bad_log_level(self):
        with pytest.raises(ValidationError):
            ReminderConfig.from_dict({"logging": {"level": "LOUD"}})

    def test_background_mode(self):
        config = ReminderConfig.from_dict({"notifications": {"background_mode": "attention"}})
        assert config.notifications.background_mode == BackgroundMode.ATTENTION

    def test_paths_expanded(self):
        config = ReminderConfig()
        assert "~" not in str(config.paths.state_file)
        assert "~" not in str(config.sources.local_feed_path)

    def test_manifest_url_from_env(self, monkeypatch):
        monkeypatch.setenv("REMINDER_MANIFEST_URL", "https://u.example.com/m.json")
        config = ReminderConfig.from_dict({"sources": {"manifest_url": "${REMINDER_MANIFEST_URL}"}})
        assert config.sources.manifest_url == "https://u.example.com/m.json"

    def test_manifest_url_env_missing(self, monkeypatch):
        monkeypatch.delenv("REMINDER_MANIFEST_URL", raising=False)
        config = ReminderConfig.from_dict({"sources": {"manifest_url": "${REMINDER_MANIFEST_URL}"}})
        assert config.sources.manifest_url is None

    def test_timing_policy_from_config(self):
        config = ReminderConfig.from_dict(
            {
                "schedule": {"cadence_ms": 3_600_000, "first_reminder_delay_ms": 0},
                "notifications": {"rate_limit_ms": 7_200_000},
            }
        )
        policy = config.timing_policy()
        assert policy.default_cadence_ms == 3_600_000
        assert policy.first_reminder_delay_ms == 0
        assert policy.notification_rate_limit_ms == 7_200_000


class TestLoading:
    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("sources:\n  current_version: 1.4.2\n")
        assert load_config_model(path).sources.current_version == "1.4.2"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_model(path) == ReminderConfig()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("schedule: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_model(path)

    def test_validation_error_wrapped(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("schedule:\n  cadence_ms: 0\n")
        with pytest.raises(ValueError, match="Config validation failed"):
            load_config_model(path)

    def test_load_config_dict(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("logging:\n  json_mode: true\n")
        assert load_config(path)["logging"]["json_mode"] is True


class TestFindConfig:
    def test_cwd_first(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.chdir(tmp_path)
        (tmp_path / "reminder.yaml").write_text("{}")
        home_cfg = tmp_path / "home" / ".update-reminder" / "config.yaml"
        home_cfg.parent.mkdir(parents=True)
        home_cfg.write_text("{}")
        assert find_config() == tmp_path / "reminder.yaml"

    def test_home_fallback(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.chdir(tmp_path)
        home_cfg = tmp_path / "home" / ".update-reminder" / "config.yaml"
        home_cfg.parent.mkdir(parents=True)
        home_cfg.write_text("{}")
        assert find_config() == home_cfg

    def test_none_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.chdir(tmp_path)
        assert find_config() is None
        assert isinstance(load_config_model(), ReminderConfig)
        assert Path.cwd() == tmp_path
