# Overview: Flask API routes for organization sign-up, sign-in and session lookup.

"""
Authentication API routes

- POST /api/auth/signup   new trial organization + owner, returns a session
- POST /api/auth/login    email/password sign-in
- POST /api/auth/logout   revoke the presented token
- GET  /api/auth/me       current user, organization and permissions
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..errors import DOMAIN_ERRORS, json_error
from ..permissions import get_role_permissions
from ..services import auth_service, organization_service, session_service
from rentara.time_utils import to_utc_z

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _client():
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


def _profile(user) -> dict:
    org = user.organization
    return {
        "user": user.to_dict(),
        "organization": org.to_dict() if org else None,
        "permissions": sorted(get_role_permissions(user.role)),
    }


@auth_bp.post("/signup")
def signup_route():
    """
    Request body:
    {
        "organization_name": "Harbour View Properties",
        "email": "owner@example.com",
        "password": "Passw0rd!",
        "full_name": "Aisyah Rahman"
    }

    Returns 201 with the session token, user and organization.
    """
    try:
        data = request.get_json(silent=True) or {}
        org, user = auth_service.signup(
            org_name=data.get("organization_name") or data.get("org_name"),
            email=data.get("email"),
            password=data.get("password"),
            full_name=data.get("full_name"),
        )
        _session, token = session_service.create_session(user, **_client())
        return jsonify({"token": token, **_profile(user)}), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to sign up organization")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user, token = auth_service.sign_in(email, password, **_client())
        return jsonify({"token": token, **_profile(user)}), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to sign in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.token, reason="User logout")
    return jsonify({"message": "Signed out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    data = _profile(g.current_user)
    metrics = organization_service.calculate_subscription_metrics(g.current_user.organization)
    if metrics:
        metrics["ends_at"] = to_utc_z(metrics["ends_at"])
    data["subscription_metrics"] = metrics
    return jsonify(data), 200
