"""
Application factory with request timing middleware.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from flask import Flask, Response, g, jsonify

from chronopick.config import ENV_PREFIX, Config
from chronopick.errors import InvalidConfiguration, SessionNotFound
from chronopick.services.session_service import SessionRegistry

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("chronopick")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)


def _check_config(config: Any) -> None:
    max_sessions = config["MAX_SESSIONS"]
    if isinstance(max_sessions, bool) or not isinstance(max_sessions, int) or max_sessions < 1:
        raise InvalidConfiguration(
            f"{ENV_PREFIX}_MAX_SESSIONS must be a positive integer, got {max_sessions!r}."
        )
    for key in ("DEFAULT_LOCALE", "LOG_LEVEL"):
        if not isinstance(config[key], str):
            raise InvalidConfiguration(f"{ENV_PREFIX}_{key} must be a string, got {config[key]!r}.")


def create_app(config_object: Optional[type] = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config.from_prefixed_env(ENV_PREFIX)
    _check_config(app.config)
    app.json.sort_keys = app.config["JSON_SORT_KEYS"]
    _configure_logging(app.config["LOG_LEVEL"])

    app.extensions["chronopick.sessions"] = SessionRegistry(
        max_sessions=app.config["MAX_SESSIONS"],
        default_locale=app.config["DEFAULT_LOCALE"],
    )

    # ── Timing middleware ───────────────────────────────────────────────────

    @app.before_request
    def _start_timer() -> None:
        g.start_time = time.perf_counter()

    @app.after_request
    def _stop_timer(response: Response) -> Response:
        elapsed = (time.perf_counter() - g.start_time) * 1_000
        response.headers["X-Response-Time-Ms"] = f"{elapsed:.4f}"
        return response

    # ── Error handlers ──────────────────────────────────────────────────────

    @app.errorhandler(InvalidConfiguration)
    def invalid_configuration(exc: InvalidConfiguration) -> tuple[Response, int]:
        return jsonify({"error": "Invalid Configuration", "message": str(exc)}), 422

    @app.errorhandler(SessionNotFound)
    def session_not_found(exc: SessionNotFound) -> tuple[Response, int]:
        return jsonify({"error": "Not Found", "message": str(exc)}), 404

    @app.errorhandler(400)
    def bad_request(exc: Any) -> tuple[Response, int]:
        return jsonify({"error": "Bad Request", "message": str(exc)}), 400

    @app.errorhandler(404)
    def not_found(exc: Any) -> tuple[Response, int]:
        return jsonify({"error": "Not Found", "message": str(exc)}), 404

    @app.errorhandler(405)
    def method_not_allowed(exc: Any) -> tuple[Response, int]:
        return jsonify({"error": "Method Not Allowed", "message": str(exc)}), 405

    @app.errorhandler(500)
    def internal_error(exc: Any) -> tuple[Response, int]:
        return jsonify({"error": "Internal Server Error", "message": str(exc)}), 500

    # ── Register blueprints ─────────────────────────────────────────────────

    from chronopick.routes.values import values_bp
    from chronopick.routes.sessions import sessions_bp

    app.register_blueprint(values_bp)
    app.register_blueprint(sessions_bp)

    return app
