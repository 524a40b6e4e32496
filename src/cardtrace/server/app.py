"""cardtrace.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: every route delegates to the
SyncCoordinator, which owns the views, the relation cache and the
event bus. No relation logic lives here.

State pattern:
    _state = {"coordinator": coordinator, "config": config,
              "start_time": time.time()}
"""

from __future__ import annotations

import time
from typing import Any

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from cardtrace import __version__
from cardtrace.config.defaults import DEFAULT_CONFIG
from cardtrace.export.csv import DEFAULT_MARK, generate_links_csv, generate_matrix_csv
from cardtrace.export.html import generate_matrix_html
from cardtrace.export.rows import view_export_rows, view_matrix_table
from cardtrace.persistence import PersistenceError
from cardtrace.sync.coordinator import SyncCoordinator
from cardtrace.sync.transaction import CommitResult
from cardtrace.view.filters import MatrixFilter
from cardtrace.view.state import MatrixView


def _view_summary(view: MatrixView) -> dict[str, Any]:
    return {
        "id": view.id,
        "left_file": view.left_file,
        "right_file": view.right_file,
        "stats": view.stats.to_dict(),
    }


def create_app(coordinator: SyncCoordinator, config: dict[str, Any] | None = None) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        coordinator: Engine entry point shared by all requests.
        config: cardtrace configuration dict.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    _state: dict[str, Any] = {
        "coordinator": coordinator,
        "config": config or DEFAULT_CONFIG,
        "start_time": time.time(),
    }
    export_config = _state["config"].get("export", {})

    def _error(message: str, status: int):
        return jsonify({"success": False, "error": message}), status

    def _payload() -> dict[str, Any]:
        data = request.get_json(force=True, silent=True)
        return data if isinstance(data, dict) else {}

    def _commit_response(view_id: str, result: CommitResult):
        body = result.to_dict()
        body["view"] = _state["coordinator"].get_view(view_id).snapshot()
        return jsonify(body), 200 if result.success else 500

    # ─────────────────────────────────────────────────────────────────
    # Status
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/status")
    def api_status():
        """GET /api/status - Server and cache status."""
        coord = _state["coordinator"]
        return jsonify(
            {
                "version": __version__,
                "uptime": round(time.time() - _state["start_time"], 1),
                "views": len(coord.views),
                "cache": [entry.to_dict() for entry in coord.cache.entries()],
            }
        )

    # ─────────────────────────────────────────────────────────────────
    # Views
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/views", methods=["GET"])
    def api_list_views():
        """GET /api/views - Open views."""
        return jsonify([_view_summary(v) for v in _state["coordinator"].list_views()])

    @app.route("/api/views", methods=["POST"])
    def api_open_view():
        """POST /api/views - Open a view on a file pair."""
        data = _payload()
        left_file = data.get("left_file", "")
        right_file = data.get("right_file", "")
        if not left_file or not right_file:
            return _error("left_file and right_file required", 400)
        try:
            view = _state["coordinator"].open_view(left_file, right_file, data.get("view_id"))
        except PersistenceError as e:
            return _error(str(e), 500)
        except ValueError as e:
            return _error(str(e), 400)
        return jsonify({"success": True, "view": view.snapshot()}), 201

    @app.route("/api/views/<view_id>", methods=["GET"])
    def api_get_view(view_id: str):
        """GET /api/views/<id> - Full view state."""
        try:
            view = _state["coordinator"].get_view(view_id)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        return jsonify(view.snapshot())

    @app.route("/api/views/<view_id>", methods=["DELETE"])
    def api_close_view(view_id: str):
        """DELETE /api/views/<id> - Close a view."""
        try:
            _state["coordinator"].close_view(view_id)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        return jsonify({"success": True})

    # ─────────────────────────────────────────────────────────────────
    # Relation edits
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/views/<view_id>/toggle", methods=["POST"])
    def api_toggle(view_id: str):
        """POST /api/views/<id>/toggle - Toggle one cell."""
        data = _payload()
        left_id = data.get("left_id", "")
        right_id = data.get("right_id", "")
        if not left_id or not right_id:
            return _error("left_id and right_id required", 400)
        try:
            result = _state["coordinator"].toggle(view_id, left_id, right_id)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        return _commit_response(view_id, result)

    @app.route("/api/views/<view_id>/kind", methods=["POST"])
    def api_change_kind(view_id: str):
        """POST /api/views/<id>/kind - Change the kind of the relation on a cell."""
        data = _payload()
        left_id = data.get("left_id", "")
        right_id = data.get("right_id", "")
        kind = data.get("kind", "")
        if not left_id or not right_id or not kind:
            return _error("left_id, right_id, and kind required", 400)
        try:
            result = _state["coordinator"].change_kind(view_id, left_id, right_id, kind)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        except ValueError as e:
            return _error(str(e), 400)
        return _commit_response(view_id, result)

    @app.route("/api/views/<view_id>/direction", methods=["POST"])
    def api_change_direction(view_id: str):
        """POST /api/views/<id>/direction - Change a relation's direction."""
        data = _payload()
        relation_id = data.get("relation_id", "")
        direction = data.get("direction", "")
        if not relation_id or not direction:
            return _error("relation_id and direction required", 400)
        try:
            result = _state["coordinator"].change_direction(view_id, relation_id, direction)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        except ValueError as e:
            return _error(str(e), 400)
        return _commit_response(view_id, result)

    @app.route("/api/views/<view_id>/memo", methods=["POST"])
    def api_change_memo(view_id: str):
        """POST /api/views/<id>/memo - Set or clear a relation memo."""
        data = _payload()
        relation_id = data.get("relation_id", "")
        if not relation_id:
            return _error("relation_id required", 400)
        try:
            result = _state["coordinator"].change_memo(view_id, relation_id, data.get("memo"))
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        return _commit_response(view_id, result)

    @app.route("/api/views/<view_id>/defaults", methods=["POST"])
    def api_set_defaults(view_id: str):
        """POST /api/views/<id>/defaults - Kind/direction for new relations."""
        data = _payload()
        try:
            view = _state["coordinator"].set_defaults(
                view_id, kind=data.get("kind"), direction=data.get("direction")
            )
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        except ValueError as e:
            return _error(str(e), 400)
        return jsonify({"success": True, "view": view.snapshot()})

    # ─────────────────────────────────────────────────────────────────
    # Display state
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/views/<view_id>/select", methods=["POST"])
    def api_select(view_id: str):
        """POST /api/views/<id>/select - Broadcast a card selection."""
        data = _payload()
        side = data.get("side", "")
        card_ids = data.get("card_ids")
        if not side or not isinstance(card_ids, list):
            return _error("side and card_ids required", 400)
        try:
            delivered = _state["coordinator"].select_cards(view_id, side, card_ids)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        except ValueError as e:
            return _error(str(e), 400)
        return jsonify({"success": True, "delivered": delivered})

    @app.route("/api/views/<view_id>/filter", methods=["POST"])
    def api_filter(view_id: str):
        """POST /api/views/<id>/filter - Update filter fields."""
        try:
            view = _state["coordinator"].get_view(view_id)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        try:
            view.set_filter(MatrixFilter.from_dict(_payload(), base=view.filter))
        except ValueError as e:
            return _error(str(e), 400)
        return jsonify({"success": True, "view": view.snapshot()})

    @app.route("/api/views/<view_id>/filter/reset", methods=["POST"])
    def api_filter_reset(view_id: str):
        """POST /api/views/<id>/filter/reset - Clear the filter."""
        try:
            view = _state["coordinator"].get_view(view_id)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        view.reset_filter()
        return jsonify({"success": True, "view": view.snapshot()})

    @app.route("/api/views/<view_id>/mutations")
    def api_mutations(view_id: str):
        """GET /api/views/<id>/mutations?limit=N - Recent committed edits."""
        try:
            view = _state["coordinator"].get_view(view_id)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        limit = request.args.get("limit", "50")
        if not limit.isdigit():
            return _error("limit must be a non-negative integer", 400)
        entries = view.mutation_log.recent(int(limit))
        return jsonify({"count": len(view.mutation_log), "entries": [e.to_dict() for e in entries]})

    # ─────────────────────────────────────────────────────────────────
    # Export
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/views/<view_id>/export")
    def api_export(view_id: str):
        """GET /api/views/<id>/export?format=csv|links|html - Export the filtered matrix."""
        try:
            view = _state["coordinator"].get_view(view_id)
        except KeyError as e:
            return _error(str(e.args[0]), 404)
        fmt = request.args.get("format", "csv")
        mark = export_config.get("mark", DEFAULT_MARK)
        include_memo = bool(export_config.get("include_memo", False))
        if fmt == "csv":
            body = generate_matrix_csv(view_matrix_table(view), mark=mark, include_memo=include_memo)
            return Response(body, mimetype="text/csv")
        if fmt == "links":
            return Response(generate_links_csv(view_export_rows(view, linked_only=True)), mimetype="text/csv")
        if fmt == "html":
            body = generate_matrix_html(view_matrix_table(view), mark=mark, include_memo=include_memo)
            return Response(body, mimetype="text/html")
        return _error(f"unknown export format '{fmt}'", 400)

    # ─────────────────────────────────────────────────────────────────
    # Card structure changes
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/cards/merge", methods=["POST"])
    def api_cards_merge():
        """POST /api/cards/merge - Reassign relations after a card merge."""
        data = _payload()
        file_name = data.get("file_name", "")
        target_id = data.get("target_id", "")
        source_ids = data.get("source_ids")
        if not file_name or not target_id or not isinstance(source_ids, list):
            return _error("file_name, target_id, and source_ids required", 400)
        outcomes = _state["coordinator"].reassign_cards(file_name, target_id, source_ids)
        success = all(o.success for o in outcomes)
        return jsonify(
            {"success": success, "pairs": [o.to_dict() for o in outcomes]}
        ), 200 if success else 500

    @app.route("/api/cards/delete", methods=["POST"])
    def api_cards_delete():
        """POST /api/cards/delete - Remove deleted cards from relations."""
        data = _payload()
        file_name = data.get("file_name", "")
        card_ids = data.get("card_ids")
        if not file_name or not isinstance(card_ids, list):
            return _error("file_name and card_ids required", 400)
        outcomes = _state["coordinator"].remove_cards(file_name, card_ids)
        success = all(o.success for o in outcomes)
        return jsonify(
            {"success": success, "pairs": [o.to_dict() for o in outcomes]}
        ), 200 if success else 500

    @app.route("/api/reset", methods=["POST"])
    def api_reset():
        """POST /api/reset - Close all views and drop the relation cache."""
        _state["coordinator"].reset()
        return jsonify({"success": True})

    return app
