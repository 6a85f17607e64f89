# Overview: Flask API routes for the super-admin portal (organizations and platform metrics).

"""
Super Admin API Routes

SECURITY:
- Sign-in is separate from the organization login; non-super-admin
  credentials are refused even when correct
- Every other endpoint requires a super-admin session
- Organization mutations are audited by the service layer
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_super_admin
from ..errors import DOMAIN_ERRORS, json_error
from ..services import audit_service, auth_service, session_service, superadmin_service

superadmin_bp = Blueprint("superadmin", __name__, url_prefix="/api/superadmin")


def _client():
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


@superadmin_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user, token = auth_service.super_admin_sign_in(email, password, **_client())
        return jsonify({"token": token, "user": user.to_dict()}), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed super admin sign-in")
        return jsonify({"error": "Internal server error"}), 500


@superadmin_bp.post("/logout")
@require_super_admin
def logout_route():
    session_service.revoke_session(g.token, reason="User logout")
    return jsonify({"message": "Signed out"}), 200


@superadmin_bp.get("/me")
@require_super_admin
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200


@superadmin_bp.get("/organizations")
@require_super_admin
def list_organizations():
    """Query params: status (trial|active|suspended|canceled), search (name or slug)."""
    orgs = superadmin_service.list_organizations(
        status=request.args.get("status") or None,
        search=request.args.get("search") or None,
    )
    return jsonify([superadmin_service.organization_summary(o) for o in orgs]), 200


@superadmin_bp.post("/organizations")
@require_super_admin
def create_organization():
    """
    Request body:
    {
        "name": "Harbour View Properties",
        "slug": "harbour-view",                (optional)
        "subscription_plan": "professional",
        "subscription_status": "active",
        "billing_cycle": "annual",
        "owner_email": "owner@example.com",    (optional)
        "owner_password": "Passw0rd!",
        "owner_full_name": "Aisyah Rahman"
    }
    """
    try:
        org = superadmin_service.create_organization(
            request.get_json(silent=True) or {},
            actor_id=g.current_user.id,
            **_client(),
        )
        return jsonify(superadmin_service.organization_summary(org)), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create organization")
        return jsonify({"error": "Internal server error"}), 500


@superadmin_bp.get("/organizations/<int:org_id>")
@require_super_admin
def get_organization(org_id: int):
    try:
        org = superadmin_service.get_organization(org_id)
        return jsonify(superadmin_service.organization_summary(org)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@superadmin_bp.patch("/organizations/<int:org_id>")
@require_super_admin
def update_organization(org_id: int):
    try:
        org = superadmin_service.update_organization(
            org_id,
            request.get_json(silent=True) or {},
            actor_id=g.current_user.id,
            **_client(),
        )
        return jsonify(superadmin_service.organization_summary(org)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update organization")
        return jsonify({"error": "Internal server error"}), 500


@superadmin_bp.get("/metrics")
@require_super_admin
def system_metrics():
    return jsonify(superadmin_service.get_system_metrics()), 200


@superadmin_bp.get("/security-events")
@require_super_admin
def security_events():
    limit = min(request.args.get("limit", default=100, type=int) or 100, 500)
    events = audit_service.list_security_events(
        organization_id=request.args.get("organization_id", type=int),
        event_type=request.args.get("event_type") or None,
        limit=limit,
    )
    return jsonify([e.to_dict() for e in events]), 200
