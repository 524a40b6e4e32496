"""
cardtrace.commands.config_cmd - Show configuration.

Subcommands:
- show: print the effective configuration (TOML, or JSON with --json)
- path: print the config file in use
"""

from __future__ import annotations

import argparse
import json
import sys

import tomlkit

from cardtrace.commands._context import resolve_config


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None)
    config, config_path = resolve_config(args)

    if action == "path":
        if config_path is None:
            print("No .cardtrace.toml found (using defaults)", file=sys.stderr)
            return 1
        print(config_path)
        return 0

    if action == "show":
        if getattr(args, "json", False):
            print(json.dumps(config, indent=2, ensure_ascii=False))
        else:
            print(tomlkit.dumps(config), end="")
        return 0

    print("Usage: cardtrace config <show|path>", file=sys.stderr)
    return 1
