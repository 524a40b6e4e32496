"""
cardtrace.config.loader - Configuration file loading.

Reads ``.cardtrace.toml`` with tomlkit, merges it over the defaults and
applies ``CARDTRACE_<SECTION>_<KEY>`` environment overrides.
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from cardtrace.config.defaults import DEFAULT_CONFIG
from cardtrace.graph.mutations import RelationDefaults
from cardtrace.graph.relations import TraceDirection

CONFIG_FILE_NAME = ".cardtrace.toml"
ENV_PREFIX = "CARDTRACE_"


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


def find_config_file(start: Path) -> Path | None:
    """Find ``.cardtrace.toml`` in ``start`` or any parent directory.

    Args:
        start: Directory to start searching from.

    Returns:
        Path to the config file, or None if not found.
    """
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested dicts are merged key by key; any other value in ``override``
    replaces the base value.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(raw: str) -> Any:
    """Parse an environment value into a typed Python value.

    JSON arrays and objects are decoded, ``true``/``false`` become bools and
    integers become ints. Anything else (including malformed JSON) is
    returned as the raw string.
    """
    stripped = raw.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return raw
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(stripped)
    except ValueError:
        return raw


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``CARDTRACE_SECTION_KEY`` environment variables to a config dict.

    The first underscore-separated token after the prefix names the
    section; the rest (lower-cased) is the key within it, so
    ``CARDTRACE_SERVER_PORT=9000`` sets ``config["server"]["port"]``.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX) :].lower().split("_", 1)
        if len(parts) != 2 or not parts[1]:
            continue
        section, key = parts
        config.setdefault(section, {})
        if isinstance(config[section], dict):
            config[section][key] = _try_parse_env_value(raw)
    return config


def _to_plain(value: Any) -> Any:
    """Unwrap tomlkit containers into plain dicts/lists."""
    if hasattr(value, "unwrap"):
        return value.unwrap()
    return value


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration, merged over defaults with env overrides applied.

    Args:
        config_path: Explicit config file. When None only the defaults and
            environment are used.

    Returns:
        The effective configuration dict.

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid.
    """
    user: dict[str, Any] = {}
    if config_path is not None:
        try:
            user = _to_plain(tomlkit.parse(config_path.read_text(encoding="utf-8")))
        except (OSError, ParseError) as e:
            raise ConfigError(f"cannot read {config_path}: {e}") from e
    config = _apply_env_overrides(merge_configs(DEFAULT_CONFIG, user))
    TraceSettings.from_config(config)
    return config


@dataclass(frozen=True)
class TraceSettings:
    """Typed view of the ``[trace]`` section."""

    kinds: tuple[str, ...]
    defaults: RelationDefaults

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> TraceSettings:
        """Validate and extract the trace settings.

        Raises:
            ConfigError: If the kind vocabulary is empty, the default kind
                is not part of it, or the default direction is unknown.
        """
        section = config.get("trace", {})
        kinds = tuple(section.get("kinds") or ())
        if not kinds:
            raise ConfigError("trace.kinds must list at least one relation kind")
        default_kind = section.get("default_kind", kinds[0])
        if default_kind not in kinds:
            raise ConfigError(f"trace.default_kind '{default_kind}' is not in trace.kinds")
        try:
            direction = TraceDirection.parse(section.get("default_direction", "left_to_right"))
        except ValueError as e:
            raise ConfigError(f"trace.default_direction: {e}") from e
        return cls(kinds=kinds, defaults=RelationDefaults(kind=default_kind, direction=direction))


def get_workspace_root(config: dict[str, Any], base: Path | None = None) -> Path:
    """Resolve the workspace root relative to ``base`` (default: cwd)."""
    root = Path(config.get("workspace", {}).get("root", "."))
    if root.is_absolute():
        return root
    return (base or Path.cwd()) / root
