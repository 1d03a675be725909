"""
Tests for configuration loading, resolution and sync settings.
"""

from datetime import timedelta

import pytest

from drivesync.config import DEFAULT_TIMEZONE_SKEW, SyncSettings, load_config, resolve_config
from drivesync.config.loader import Config, _merge_dict
from drivesync.exceptions import ConfigurationError


class TestConfig:
    """Tests for Config class."""

    def test_dot_notation(self):
        cfg = Config({"connections": {"watermarks": {"type": "postgres"}}})
        assert cfg.get("connections.watermarks.type") == "postgres"

    def test_dot_notation_missing_returns_default(self):
        cfg = Config({"a": 1})
        assert cfg.get("a.b.c", "fallback") == "fallback"

    def test_contains(self):
        cfg = Config({"a": {"b": 1}})
        assert "a" in cfg
        assert "a.b" in cfg
        assert "a.c" not in cfg

    def test_getitem_nested_returns_config(self):
        cfg = Config({"sync": {"match_key": "composite"}})
        assert isinstance(cfg["sync"], Config)
        assert cfg["sync"]["match_key"] == "composite"

    def test_getitem_missing_raises(self):
        with pytest.raises(KeyError):
            _ = Config({})["missing"]

    def test_validate_section_types(self):
        with pytest.raises(ConfigurationError, match="sync"):
            Config({"sync": "fast"}).validate()

    def test_validate_role_points_to_connection(self):
        cfg = Config({"connections": {"db": {"type": "duckdb"}}, "state": {"connection": "other"}})
        with pytest.raises(ConfigurationError, match="state.connection 'other'"):
            cfg.validate()


class TestMergeDict:
    def test_nested_merge(self):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        _merge_dict(base, {"a": {"y": 3}, "c": 4})
        assert base == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}


class TestResolveConfig:
    def test_env_var_substitution(self, monkeypatch):
        monkeypatch.setenv("QUEUE_URL", "https://sqs/queue")
        assert resolve_config({"queue": {"url": "${QUEUE_URL}"}}) == {"queue": {"url": "https://sqs/queue"}}

    def test_unset_var_left_verbatim(self, monkeypatch):
        monkeypatch.delenv("DRIVESYNC_MISSING", raising=False)
        assert resolve_config({"v": "${DRIVESYNC_MISSING}"}) == {"v": "${DRIVESYNC_MISSING}"}

    def test_env_placeholder(self):
        assert resolve_config({"bucket": "sync-{env}", "n": 3}, env="prod") == {"bucket": "sync-prod", "n": 3}

    def test_lists(self):
        assert resolve_config({"scopes": ["a-{env}"]}, env="dev") == {"scopes": ["a-dev"]}


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "config.yaml").write_text("sync: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Error parsing config.yaml"):
            load_config(tmp_path)

    def test_env_overlay(self, tmp_path):
        (tmp_path / "config.yaml").write_text("sync:\n  match_key: composite\n  key_suffix: .csv\n")
        (tmp_path / "config.staging.yaml").write_text("sync:\n  match_key: event_type\n")
        cfg = load_config(tmp_path, env="staging")
        assert cfg.get("sync.match_key") == "event_type"
        assert cfg.get("sync.key_suffix") == ".csv"

    def test_overlay_ignored_when_absent(self, tmp_path):
        (tmp_path / "config.yaml").write_text("name: drivesync\n")
        assert load_config(tmp_path, env="prod").get("name") == "drivesync"


class TestSyncSettings:
    def test_defaults(self):
        settings = SyncSettings()
        assert settings.timezone_skew == DEFAULT_TIMEZONE_SKEW == timedelta(hours=5)
        assert settings.forward_prior_records is True
        assert settings.match_key == "composite"
        assert settings.key_suffix == ".csv"
        assert settings.max_concurrent_transfers == 1
        assert (settings.watermark_schema, settings.watermark_table) == ("api_connectors", "flows")

    def test_from_config(self):
        settings = SyncSettings.from_config(
            {
                "timezone_skew_hours": 0,
                "forward_prior_records": False,
                "match_key": "event_type",
                "max_concurrent_transfers": 4,
                "watermark": {"schema": "sync_state", "table": "files"},
            }
        )
        assert settings.timezone_skew == timedelta(0)
        assert settings.forward_prior_records is False
        assert settings.match_key == "event_type"
        assert settings.max_concurrent_transfers == 4
        assert settings.watermark_schema == "sync_state"
        assert settings.watermark_table == "files"

    def test_from_none(self):
        assert SyncSettings.from_config(None) == SyncSettings()

    def test_invalid_match_key(self):
        with pytest.raises(ConfigurationError, match="match_key"):
            SyncSettings(match_key="name")

    def test_invalid_concurrency(self):
        with pytest.raises(ConfigurationError):
            SyncSettings.from_config({"max_concurrent_transfers": 0})

    def test_non_numeric_skew(self):
        with pytest.raises(ConfigurationError, match="numeric"):
            SyncSettings.from_config({"timezone_skew_hours": "five"})

    def test_rejects_unsafe_identifiers(self):
        with pytest.raises(ConfigurationError):
            SyncSettings.from_config({"watermark": {"table": "flows; DROP TABLE x"}})
