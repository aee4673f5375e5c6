"""
Stateless value endpoints.

POST /chronopick/v1/formats:resolve
POST /chronopick/v1/values:parse
POST /chronopick/v1/values:serialize
POST /chronopick/v1/constraints:evaluate

A body names its format either directly (``"format"``) or through the
input props (``dateFormat``, ``divider``, ``timeFormat``, ``dateTimeFormat``).
"""

from __future__ import annotations

from typing import Any, Dict, List

from flask import Blueprint, Response, current_app, jsonify, request

from chronopick.models.schemas import CalendarMode, CanonicalDate, sort_key
from chronopick.services.constraint_service import (
    is_selectable,
    make_bounds,
    months_fully_disabled,
    normalize,
    years_fully_disabled,
)
from chronopick.services.format_service import resolve_format
from chronopick.services.parse_service import parse_value, parse_values
from chronopick.services.serialize_service import serialize

values_bp = Blueprint("values", __name__)

BASE = "/chronopick/v1"


#Shared body helpers
def _json_body() -> Dict[str, Any] | None:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else None


def _format_from(body: Dict[str, Any]) -> str:
    fmt = body.get("format")
    if fmt is not None:
        if not isinstance(fmt, str) or not fmt:
            raise ValueError("'format' must be a non-empty string.")
        return fmt
    return resolve_format(
        date_format=str(body.get("dateFormat") or "DD-MM-YYYY"),
        divider=str(body.get("divider") if body.get("divider") is not None else " "),
        time_format=str(body.get("timeFormat") or "24"),
        date_time_format=body.get("dateTimeFormat"),
    )


def _locale_from(body: Dict[str, Any]) -> str:
    return body.get("localization") or current_app.config["DEFAULT_LOCALE"]


def _dates(values) -> List[Dict[str, int]]:
    return [v.to_dict() for v in sorted(values, key=sort_key)]


#Endpoint: resolve format
@values_bp.route(f"{BASE}/formats:resolve", methods=["POST"])
def resolve() -> tuple[Response, int]:
    body = _json_body()
    if body is None:
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    try:
        fmt = _format_from(body)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 422
    return jsonify({"format": fmt}), 200


#Endpoint: parse
@values_bp.route(f"{BASE}/values:parse", methods=["POST"])
def parse() -> tuple[Response, int]:
    body = _json_body()
    if body is None:
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    try:
        fmt = _format_from(body)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 422

    locale = _locale_from(body)
    raw = body.get("value")
    single = parse_value(raw, fmt, locale)
    return jsonify({
        "format": fmt,
        "value": single.to_dict() if single is not None else None,
        "values": [v.to_dict() for v in parse_values(raw, fmt, locale)],
    }), 200


#Endpoint: serialize
@values_bp.route(f"{BASE}/values:serialize", methods=["POST"])
def serialize_value() -> tuple[Response, int]:
    body = _json_body()
    if body is None:
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    try:
        fmt = _format_from(body)
        raw = _require_field(body, "value")
        if not isinstance(raw, dict):
            raise ValueError("'value' must be an object with year/month/day/hour/minute.")
        value = CanonicalDate.from_dict(raw)
    except (ValueError, KeyError, TypeError) as exc:
        return jsonify({"error": str(exc)}), 422
    return jsonify({"format": fmt, "value": serialize(value, fmt, _locale_from(body))}), 200


#Endpoint: evaluate constraints
@values_bp.route(f"{BASE}/constraints:evaluate", methods=["POST"])
def evaluate_constraints() -> tuple[Response, int]:
    body = _json_body()
    if body is None:
        return jsonify({"error": "Invalid or missing JSON body."}), 400
    try:
        fmt = _format_from(body)
        years = body.get("years", [])
        if not isinstance(years, list) or not all(
            isinstance(y, int) and not isinstance(y, bool) for y in years
        ):
            raise ValueError("'years' must be a list of integers.")
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 422

    locale = _locale_from(body)
    # InvalidConfiguration (inverted bounds) is mapped to 422 by the app
    bounds = make_bounds(body.get("minDate"), body.get("maxDate"), fmt, locale)
    disabled = normalize(body.get("disable"), fmt, locale)

    result: Dict[str, Any] = {
        "disabled": _dates(disabled),
        "monthsFullyDisabled": [
            {"year": y, "month": m} for y, m in sorted(months_fully_disabled(disabled, bounds, years))
        ],
        "yearsFullyDisabled": sorted(years_fully_disabled(disabled, bounds, years)),
    }

    candidate_raw = body.get("candidate")
    if candidate_raw is not None:
        mode = CalendarMode.coerce(body.get("mode", "day"))
        candidate = parse_value(candidate_raw, fmt, locale)
        result["selectable"] = candidate is not None and is_selectable(candidate, bounds, disabled, mode)

    return jsonify(result), 200


#Internal field-access helpers
def _require_field(obj: Dict[str, Any], key: str) -> Any:
    if key not in obj:
        raise KeyError(f"Missing required field: {key!r}")
    return obj[key]
