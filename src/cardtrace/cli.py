"""
cardtrace.cli - Command-line interface.

Main entry point for the cardtrace CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cardtrace import __version__
from cardtrace.commands import config_cmd, delete_cards, export_cmd, merge, serve, show

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cardtrace",
        description="Traceability links between two card collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cardtrace show reqs.json tests.json            # Stats and untraced cards
  cardtrace export reqs.json tests.json -o m.csv # Matrix as CSV
  cardtrace export reqs.json tests.json --format html -o m.html
  cardtrace merge reqs.json --into c3 c1 c2      # Cards c1, c2 merged into c3
  cardtrace delete-cards reqs.json c7            # Card c7 deleted
  cardtrace serve --port 8080                    # REST API for matrix views

Configuration:
  cardtrace config path         # Show config file location
  cardtrace config show         # View all settings

For detailed command help: cardtrace <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"cardtrace {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override workspace root directory",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (debug logging)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show trace statistics for a file pair",
    )
    show_parser.add_argument("left", help="Card file shown on the rows")
    show_parser.add_argument("right", help="Card file shown on the columns")
    show_parser.add_argument("-j", "--json", action="store_true", help="Output JSON")

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export a trace matrix (csv, links, html)",
    )
    export_parser.add_argument("left", help="Card file shown on the rows")
    export_parser.add_argument("right", help="Card file shown on the columns")
    export_parser.add_argument(
        "--format",
        choices=export_cmd.EXPORT_FORMATS,
        default="csv",
        help="Output format (default: csv)",
    )
    export_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file (default: stdout)",
        metavar="PATH",
    )
    export_parser.add_argument(
        "--include-kind",
        action="store_true",
        help="Add the relation kind to marked CSV cells",
    )
    export_parser.add_argument(
        "--include-memo",
        action="store_true",
        help="Add relation memos to the export",
    )

    # merge command
    merge_parser = subparsers.add_parser(
        "merge",
        help="Reassign relations after cards were merged",
    )
    merge_parser.add_argument("file", help="Card file the merge happened in")
    merge_parser.add_argument("--into", required=True, help="Target card id", metavar="TARGET")
    merge_parser.add_argument("sources", nargs="+", help="Source card ids merged into TARGET")
    merge_parser.add_argument("-j", "--json", action="store_true", help="Output JSON")

    # delete-cards command
    delete_parser = subparsers.add_parser(
        "delete-cards",
        help="Remove deleted cards from relations",
    )
    delete_parser.add_argument("file", help="Card file the cards were deleted from")
    delete_parser.add_argument("cards", nargs="+", help="Deleted card ids")
    delete_parser.add_argument("-j", "--json", action="store_true", help="Output JSON")

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the REST API server",
    )
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default: from config)")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action")
    config_show = config_subparsers.add_parser("show", help="Print the effective configuration")
    config_show.add_argument("-j", "--json", action="store_true", help="Output JSON")
    config_subparsers.add_parser("path", help="Print the config file location")

    return parser


def setup_logging(args: argparse.Namespace) -> None:
    """Configure stderr logging from -v/-q or the ``[logging] level`` setting."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        from cardtrace.commands._context import resolve_config

        config, _ = resolve_config(args)
        configured = config.get("logging", {}).get("level", "warning")
        level = LOG_LEVELS.get(str(configured).lower(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        setup_logging(args)

        # Dispatch to command handlers
        if args.command == "show":
            return show.run(args)
        elif args.command == "export":
            return export_cmd.run(args)
        elif args.command == "merge":
            return merge.run(args)
        elif args.command == "delete-cards":
            return delete_cards.run(args)
        elif args.command == "serve":
            return serve.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
