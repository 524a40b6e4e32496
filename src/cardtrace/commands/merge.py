"""
cardtrace.commands.merge - Reassign relations after a card merge.
"""

from __future__ import annotations

import argparse
import json
import sys

from cardtrace.commands._context import build_coordinator
from cardtrace.sync.coordinator import PairOutcome


def print_outcomes(outcomes: list[PairOutcome], args: argparse.Namespace) -> int:
    """Print per-pair results; return 1 if any pair failed."""
    if getattr(args, "json", False):
        print(json.dumps([o.to_dict() for o in outcomes], indent=2, ensure_ascii=False))
    else:
        if not outcomes and not args.quiet:
            print("No trace files reference this file.")
        for outcome in outcomes:
            label = f"{outcome.pair.left_file} x {outcome.pair.right_file}"
            if not outcome.success:
                print(f"  FAILED {label}: {outcome.error}", file=sys.stderr)
                continue
            if not args.quiet:
                print(
                    f"  {label}: {len(outcome.changed_ids)} changed, "
                    f"{len(outcome.removed_ids)} removed"
                )
            for violation in outcome.violations:
                print(f"    {violation}", file=sys.stderr)
    return 0 if all(o.success for o in outcomes) else 1


def run(args: argparse.Namespace) -> int:
    """Run the merge command."""
    coordinator, _ = build_coordinator(args)
    outcomes = coordinator.reassign_cards(args.file, args.into, args.sources)
    return print_outcomes(outcomes, args)
