"""
cardtrace.commands._context - Shared setup for CLI commands.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from cardtrace.config.loader import find_config_file, get_workspace_root, load_config
from cardtrace.persistence import JsonWorkspaceStore
from cardtrace.sync.coordinator import SyncCoordinator


def resolve_config(args: argparse.Namespace) -> tuple[dict[str, Any], Path | None]:
    """Load the effective config for a command.

    Uses ``--config`` when given, else searches upward from the cwd.
    """
    config_path = getattr(args, "config", None) or find_config_file(Path.cwd())
    return load_config(config_path), config_path


def build_coordinator(args: argparse.Namespace) -> tuple[SyncCoordinator, dict[str, Any]]:
    """Create a coordinator over the configured workspace.

    ``--workspace`` overrides ``[workspace] root``; a relative root in the
    config file is resolved against the config file's directory.
    """
    config, config_path = resolve_config(args)
    root = getattr(args, "workspace", None)
    if root is None:
        root = get_workspace_root(config, config_path.parent if config_path else None)
    store = JsonWorkspaceStore.from_config(config, root)
    return SyncCoordinator(store, config), config
