"""
cardtrace.commands.delete_cards - Remove deleted cards from relations.
"""

from __future__ import annotations

import argparse

from cardtrace.commands._context import build_coordinator
from cardtrace.commands.merge import print_outcomes


def run(args: argparse.Namespace) -> int:
    """Run the delete-cards command."""
    coordinator, _ = build_coordinator(args)
    outcomes = coordinator.remove_cards(args.file, args.cards)
    return print_outcomes(outcomes, args)
