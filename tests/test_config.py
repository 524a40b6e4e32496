"""Tests for configuration loading, env overrides and trace settings."""

from __future__ import annotations

import os

import pytest

from cardtrace.config import (
    DEFAULT_CONFIG,
    ConfigError,
    TraceSettings,
    _try_parse_env_value,
    find_config_file,
    get_workspace_root,
    load_config,
    merge_configs,
)
from cardtrace.graph.relations import TraceDirection


class TestTryParseEnvValue:
    """_try_parse_env_value correctly parses typed values."""

    def test_json_list_parsed(self):
        assert _try_parse_env_value('["trace", "tests"]') == ["trace", "tests"]

    def test_booleans_parsed_case_insensitively(self):
        assert _try_parse_env_value("TRUE") is True
        assert _try_parse_env_value("false") is False

    def test_integers_parsed(self):
        assert _try_parse_env_value("9000") == 9000

    def test_malformed_json_returns_string(self):
        assert _try_parse_env_value("[not json") == "[not json"

    def test_plain_string_passthrough(self):
        assert _try_parse_env_value("0.0.0.0") == "0.0.0.0"


class TestLoadConfig:
    """load_config() merging and overrides."""

    def test_defaults_without_file(self, monkeypatch):
        for name in list(os.environ):
            if name.startswith("CARDTRACE_"):
                monkeypatch.delenv(name)
        assert load_config(None) == DEFAULT_CONFIG

    def test_file_values_merge_over_defaults(self, tmp_path):
        path = tmp_path / ".cardtrace.toml"
        path.write_text(
            '[trace]\nkinds = ["trace", "verifies"]\ndefault_kind = "verifies"\n\n'
            "[server]\nport = 9100\n",
            encoding="utf-8",
        )
        config = load_config(path)

        assert config["trace"]["kinds"] == ["trace", "verifies"]
        assert config["trace"]["default_direction"] == "left_to_right"
        assert config["server"] == {"host": "127.0.0.1", "port": 9100}
        assert config["workspace"]["cards_dir"] == "_out"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / ".cardtrace.toml"
        path.write_text("[server]\nport = 9100\n", encoding="utf-8")
        monkeypatch.setenv("CARDTRACE_SERVER_PORT", "9200")
        monkeypatch.setenv("CARDTRACE_SYNC_EXCLUDE_SELF_HIGHLIGHT", "true")

        config = load_config(path)
        assert config["server"]["port"] == 9200
        assert config["sync"]["exclude_self_highlight"] is True

    def test_invalid_toml_raises_config_error(self, tmp_path):
        path = tmp_path / ".cardtrace.toml"
        path.write_text("[trace\nkinds = ", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_default_kind_outside_vocabulary_is_rejected(self, tmp_path):
        path = tmp_path / ".cardtrace.toml"
        path.write_text('[trace]\nkinds = ["trace"]\ndefault_kind = "tests"\n', encoding="utf-8")
        with pytest.raises(ConfigError, match="default_kind"):
            load_config(path)

    def test_merge_does_not_mutate_base(self):
        base = {"a": {"b": 1}}
        merged = merge_configs(base, {"a": {"c": 2}})
        assert merged == {"a": {"b": 1, "c": 2}}
        assert base == {"a": {"b": 1}}


class TestTraceSettings:
    """Typed trace defaults."""

    def test_from_defaults(self):
        settings = TraceSettings.from_config(DEFAULT_CONFIG)
        assert settings.kinds[0] == "trace"
        assert "refines" in settings.kinds
        assert settings.defaults.kind == "trace"
        assert settings.defaults.direction is TraceDirection.LEFT_TO_RIGHT

    def test_unknown_direction_is_rejected(self):
        config = merge_configs(DEFAULT_CONFIG, {"trace": {"default_direction": "up"}})
        with pytest.raises(ConfigError):
            TraceSettings.from_config(config)

    def test_empty_vocabulary_is_rejected(self):
        config = merge_configs(DEFAULT_CONFIG, {"trace": {"kinds": []}})
        with pytest.raises(ConfigError):
            TraceSettings.from_config(config)


class TestPaths:
    """Config file discovery and workspace root."""

    def test_find_config_walks_up(self, tmp_path):
        (tmp_path / ".cardtrace.toml").write_text("", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / ".cardtrace.toml").resolve()

    def test_relative_root_resolves_against_base(self, tmp_path):
        config = merge_configs(DEFAULT_CONFIG, {"workspace": {"root": "project"}})
        assert get_workspace_root(config, tmp_path) == tmp_path / "project"

    def test_absolute_root_is_kept(self, tmp_path):
        config = merge_configs(DEFAULT_CONFIG, {"workspace": {"root": str(tmp_path)}})
        assert get_workspace_root(config, tmp_path / "elsewhere") == tmp_path
