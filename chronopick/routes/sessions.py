"""
Selection session endpoints.

The UI shell creates a session from the input props, forwards each
interaction event, and renders whatever the returned render request says.

POST   /chronopick/v1/sessions                 create ({"kind"?, "props"})
GET    /chronopick/v1/sessions/<id>            current render request
POST   /chronopick/v1/sessions/<id>/events     deliver one event, drain ticks
DELETE /chronopick/v1/sessions/<id>            drop the session
"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, Response, current_app, jsonify, request

from chronopick.services.session_service import SessionRegistry

sessions_bp = Blueprint("sessions", __name__)

BASE = "/chronopick/v1"


def _registry() -> SessionRegistry:
    return current_app.extensions["chronopick.sessions"]


@sessions_bp.route(f"{BASE}/sessions", methods=["POST"])
def create_session() -> tuple[Response, int]:
    body: Dict[str, Any] | None = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    props = body.get("props", {})
    if not isinstance(props, dict):
        return jsonify({"error": "'props' must be an object."}), 422
    try:
        session_id, _ = _registry().create(props, kind=body.get("kind", "datetime"))
    except ValueError as exc:
        # InvalidConfiguration is a ValueError too; both are caller errors
        return jsonify({"error": str(exc)}), 422

    return jsonify(_registry().snapshot(session_id)), 201


@sessions_bp.route(f"{BASE}/sessions/<session_id>", methods=["GET"])
def get_session(session_id: str) -> tuple[Response, int]:
    return jsonify(_registry().snapshot(session_id)), 200


@sessions_bp.route(f"{BASE}/sessions/<session_id>/events", methods=["POST"])
def post_event(session_id: str) -> tuple[Response, int]:
    event: Dict[str, Any] | None = request.get_json(silent=True)
    if not isinstance(event, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    try:
        snapshot, changes = _registry().dispatch(session_id, event)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 422

    snapshot["changes"] = changes
    return jsonify(snapshot), 200


@sessions_bp.route(f"{BASE}/sessions/<session_id>", methods=["DELETE"])
def delete_session(session_id: str) -> tuple[Response, int]:
    _registry().delete(session_id)
    return jsonify({}), 204
