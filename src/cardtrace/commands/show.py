"""
cardtrace.commands.show - Show trace statistics for a file pair.

Prints the relation count, untraced cards on each side and any
integrity faults found in the pair's relations.
"""

from __future__ import annotations

import argparse
import json

from cardtrace.commands._context import build_coordinator
from cardtrace.graph.metrics import untraced_cards


def run(args: argparse.Namespace) -> int:
    """Run the show command."""
    coordinator, _ = build_coordinator(args)
    view = coordinator.open_view(args.left, args.right)

    untraced = {
        "left": untraced_cards(view.left_cards, view.relations, "left"),
        "right": untraced_cards(view.right_cards, view.relations, "right"),
    }
    violations = view.integrity_violations

    if getattr(args, "json", False):
        print(
            json.dumps(
                {
                    "left_file": view.left_file,
                    "right_file": view.right_file,
                    "trace_file_name": view.trace_file_name,
                    "stats": view.stats.to_dict(),
                    "untraced": {side: [c.label for c in cards] for side, cards in untraced.items()},
                    "integrity": [v.to_dict() for v in violations],
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return 1 if violations else 0

    print(f"{view.left_file} x {view.right_file}")
    print(f"  Trace file:  {view.trace_file_name or '(none)'}")
    print(f"  Relations:   {view.stats.total_traces}")
    print(f"  Untraced ({view.left_file}):  {view.stats.untraced_left_count}")
    print(f"  Untraced ({view.right_file}): {view.stats.untraced_right_count}")

    if not args.quiet:
        for side, file_name in (("left", view.left_file), ("right", view.right_file)):
            if untraced[side]:
                print(f"\nUntraced cards in {file_name}:")
                for card in untraced[side]:
                    print(f"  - {card.label}  {card.title}")

    if violations:
        print(f"\n{len(violations)} integrity fault(s):")
        for violation in violations:
            print(f"  {violation}")
        return 1
    return 0
