"""
cardtrace.config - Configuration loading and defaults
"""

from cardtrace.config.defaults import DEFAULT_CONFIG
from cardtrace.config.loader import (
    ConfigError,
    TraceSettings,
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_workspace_root,
    load_config,
    merge_configs,
)

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG",
    "TraceSettings",
    "_apply_env_overrides",
    "_try_parse_env_value",
    "find_config_file",
    "get_workspace_root",
    "load_config",
    "merge_configs",
]
