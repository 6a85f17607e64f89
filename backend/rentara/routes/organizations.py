# Overview: Flask API routes for the caller's own organization: profile, users, usage and stats.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DOMAIN_ERRORS, json_error
from ..permissions import MANAGE_ORGANIZATION, MANAGE_USERS, VIEW_PROPERTIES, VIEW_REPORTS
from ..services import auth_service, organization_service
from rentara.time_utils import to_utc_z

organizations_bp = Blueprint("organizations", __name__, url_prefix="/api/organization")


def _organization_payload(org) -> dict:
    data = org.to_dict()
    metrics = organization_service.calculate_subscription_metrics(org)
    if metrics:
        metrics["ends_at"] = to_utc_z(metrics["ends_at"])
    data["subscription_metrics"] = metrics
    data["limits"] = organization_service.get_plan_limits(org)
    return data


@organizations_bp.get("")
@require_auth
def get_current_organization():
    try:
        org = organization_service.get_organization(g.org_id)
        return jsonify(_organization_payload(org)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@organizations_bp.patch("")
@require_auth
@require_permission(MANAGE_ORGANIZATION)
def update_current_organization():
    try:
        org = organization_service.update_organization(g.org_id, request.get_json(silent=True) or {})
        return jsonify(_organization_payload(org)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update organization")
        return jsonify({"error": "Internal server error"}), 500


@organizations_bp.get("/stats")
@require_auth
@require_permission(VIEW_REPORTS)
def organization_stats():
    return jsonify(organization_service.get_organization_stats(g.org_id)), 200


@organizations_bp.get("/usage")
@require_auth
@require_permission(VIEW_PROPERTIES)
def organization_usage():
    return jsonify(organization_service.get_usage(g.org_id)), 200


@organizations_bp.get("/users")
@require_auth
@require_permission(MANAGE_USERS)
def list_users():
    users = organization_service.list_organization_users(g.org_id)
    return jsonify([u.to_dict() for u in users]), 200


@organizations_bp.post("/users")
@require_auth
@require_permission(MANAGE_USERS)
def create_user():
    """
    Add a user to the caller's organization (subject to the plan's user limit).

    Request body: {"email", "password", "full_name", "role": "owner|admin|member"}
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.create_user(
            email=data.get("email"),
            password=data.get("password"),
            organization_id=g.org_id,
            full_name=data.get("full_name"),
            role=data.get("role") or "member",
        )
        return jsonify(user.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@organizations_bp.patch("/users/<int:user_id>/role")
@require_auth
@require_permission(MANAGE_USERS)
def update_user_role(user_id: int):
    try:
        data = request.get_json(silent=True) or {}
        user = organization_service.update_user_role(
            g.org_id, user_id, data.get("role"), actor_id=g.current_user.id
        )
        return jsonify(user.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update user role")
        return jsonify({"error": "Internal server error"}), 500
