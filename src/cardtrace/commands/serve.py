"""
cardtrace.commands.serve - Run the REST API server.
"""

from __future__ import annotations

import argparse
import sys

from cardtrace.commands._context import build_coordinator
from cardtrace.server.app import create_app


def run(args: argparse.Namespace) -> int:
    """Run the serve command."""
    coordinator, config = build_coordinator(args)
    server_config = config.get("server", {})
    host = args.host or server_config.get("host", "127.0.0.1")
    port = args.port or int(server_config.get("port", 8080))

    app = create_app(coordinator, config)
    if not args.quiet:
        print(f"cardtrace server on http://{host}:{port}", file=sys.stderr)
    app.run(host=host, port=port, threaded=True, debug=False)
    return 0
