"""cardtrace.server - Flask REST API server for matrix views.

Provides a thin REST wrapper over the SyncCoordinator, exposing open
views, relation edits, selection broadcast and exports via HTTP.
"""

from cardtrace.server.app import create_app

__all__ = ["create_app"]
