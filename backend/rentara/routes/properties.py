# Overview: Flask API routes for properties operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DOMAIN_ERRORS, json_error
from ..permissions import MANAGE_PROPERTIES, VIEW_PROPERTIES
from ..services import property_service

properties_bp = Blueprint("properties", __name__, url_prefix="/api/properties")


@properties_bp.get("")
@require_auth
@require_permission(VIEW_PROPERTIES)
def list_properties():
    """Properties with occupancy stats (total/occupied/vacant units, occupancy_rate %)."""
    return jsonify(property_service.list_properties(g.org_id)), 200


@properties_bp.get("/options")
@require_auth
@require_permission(VIEW_PROPERTIES)
def property_options():
    return jsonify(property_service.get_property_options(g.org_id)), 200


@properties_bp.post("")
@require_auth
@require_permission(MANAGE_PROPERTIES)
def create_property():
    try:
        prop = property_service.create_property(g.org_id, request.get_json(silent=True) or {})
        return jsonify(prop.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create property")
        return jsonify({"error": "Internal server error"}), 500


@properties_bp.get("/<int:property_id>")
@require_auth
@require_permission(VIEW_PROPERTIES)
def get_property(property_id: int):
    try:
        return jsonify(property_service.get_property_detail(g.org_id, property_id)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@properties_bp.put("/<int:property_id>")
@require_auth
@require_permission(MANAGE_PROPERTIES)
def update_property(property_id: int):
    try:
        prop = property_service.update_property(g.org_id, property_id, request.get_json(silent=True) or {})
        return jsonify(prop.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update property")
        return jsonify({"error": "Internal server error"}), 500


@properties_bp.delete("/<int:property_id>")
@require_auth
@require_permission(MANAGE_PROPERTIES)
def delete_property(property_id: int):
    try:
        property_service.delete_property(g.org_id, property_id)
        return jsonify({"message": "Property deleted"}), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to delete property")
        return jsonify({"error": "Internal server error"}), 500
