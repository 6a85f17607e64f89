# Overview: Flask API routes for units operations; parses input and returns JSON responses.

"""
Unit API Routes

SECURITY:
- VIEW_PROPERTIES to read, MANAGE_PROPERTIES to change
- Status changes that contradict tenant occupancy are rejected (400)
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DOMAIN_ERRORS, json_error
from ..permissions import MANAGE_PROPERTIES, VIEW_PROPERTIES
from ..services import unit_service

units_bp = Blueprint("units", __name__, url_prefix="/api/units")


@units_bp.get("")
@require_auth
@require_permission(VIEW_PROPERTIES)
def list_units():
    units = unit_service.list_units(
        g.org_id,
        property_id=request.args.get("property_id", type=int),
        status=request.args.get("status"),
    )
    return jsonify([u.to_dict() for u in units]), 200


@units_bp.get("/vacant")
@require_auth
@require_permission(VIEW_PROPERTIES)
def list_vacant_units():
    units = unit_service.list_vacant_units(g.org_id, property_id=request.args.get("property_id", type=int))
    return jsonify([u.to_dict() for u in units]), 200


@units_bp.get("/options")
@require_auth
@require_permission(VIEW_PROPERTIES)
def unit_options():
    vacant_only = request.args.get("vacant", "").lower() in ("1", "true", "yes")
    return jsonify(unit_service.get_unit_options(g.org_id, vacant_only=vacant_only)), 200


@units_bp.post("")
@require_auth
@require_permission(MANAGE_PROPERTIES)
def create_unit():
    """
    Request body:
    {
        "property_id": 1,
        "unit_number": "A-12-03",
        "unit_type": "2br",
        "rent_amount": "1500.00",
        "bedrooms": 2
    }
    """
    try:
        unit = unit_service.create_unit(g.org_id, request.get_json(silent=True) or {})
        return jsonify(unit.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create unit")
        return jsonify({"error": "Internal server error"}), 500


@units_bp.get("/<int:unit_id>")
@require_auth
@require_permission(VIEW_PROPERTIES)
def get_unit(unit_id: int):
    try:
        return jsonify(unit_service.get_unit_detail(g.org_id, unit_id)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@units_bp.put("/<int:unit_id>")
@require_auth
@require_permission(MANAGE_PROPERTIES)
def update_unit(unit_id: int):
    try:
        unit = unit_service.update_unit(g.org_id, unit_id, request.get_json(silent=True) or {})
        return jsonify(unit.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update unit")
        return jsonify({"error": "Internal server error"}), 500


@units_bp.patch("/<int:unit_id>/status")
@require_auth
@require_permission(MANAGE_PROPERTIES)
def update_unit_status(unit_id: int):
    try:
        data = request.get_json(silent=True) or {}
        if not data.get("status"):
            return jsonify({"error": "status required"}), 400
        unit = unit_service.update_unit_status(g.org_id, unit_id, data["status"])
        return jsonify(unit.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update unit status")
        return jsonify({"error": "Internal server error"}), 500


@units_bp.delete("/<int:unit_id>")
@require_auth
@require_permission(MANAGE_PROPERTIES)
def delete_unit(unit_id: int):
    try:
        unit_service.delete_unit(g.org_id, unit_id)
        return jsonify({"message": "Unit deleted"}), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to delete unit")
        return jsonify({"error": "Internal server error"}), 500
