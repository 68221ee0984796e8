"""HTTP API for the search core (Flask).

    POST /search  {"query": str, "temporalFilter"?: "evergreen" | "<days>"}
      200 {"success": true, "matches": [...]}
      400 {"error": "Query is required"}
      500 {"error": str}
    GET /health   {"status": "ok"}
"""

from __future__ import annotations

import structlog
from flask import Flask, jsonify, request

from veritas.config import VeritasConfig, load_config
from veritas.errors import QueryValidationError, SearchError
from veritas.providers.embedder import Embedder
from veritas.search.query import parse_temporal_filter, validate_query
from veritas.search.service import open_orchestrator

log = structlog.get_logger()


def create_app(
    cfg: VeritasConfig | None = None,
    embedder: Embedder | None = None,
    **index_kwargs,
) -> Flask:
    """Application factory.

    Args:
        cfg: Veritas config; loaded from the current directory if omitted.
        embedder: Embedding provider shared by all requests (LiteLLM by default).
        index_kwargs: Passed through to VectorIndex (e.g. ``clock``).
    """
    app = Flask(__name__)
    app.config["VERITAS"] = cfg or load_config()
    app.config["VERITAS_EMBEDDER"] = embedder
    app.config["VERITAS_INDEX_KWARGS"] = index_kwargs

    register_routes(app)
    return app


def register_routes(app: Flask) -> None:
    """Register all API routes."""

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"}), 200

    @app.route("/search", methods=["POST"])
    def search():
        """
        Semantic search over indexed content.

        Body:
            query (str): Free-text query (required, non-empty).
            temporalFilter (str, optional): "evergreen" or a number of days.
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        query = data.get("query")
        temporal_filter = data.get("temporalFilter")

        try:
            # Reject bad input before a connection is opened.
            validate_query(query)
            parse_temporal_filter(temporal_filter)
            with open_orchestrator(
                app.config["VERITAS"],
                embedder=app.config["VERITAS_EMBEDDER"],
                **app.config["VERITAS_INDEX_KWARGS"],
            ) as orchestrator:
                response = orchestrator.search(query, temporal_filter)
        except QueryValidationError as exc:
            return jsonify({"error": str(exc)}), 400
        except SearchError as exc:
            log.error("search failed", error=str(exc), kind=type(exc).__name__)
            return jsonify({"error": str(exc) or "Search failed."}), 500

        return jsonify(response.to_dict()), 200
