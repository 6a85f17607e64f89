# Overview: Request decorators establishing the caller and enforcing role permissions.

from functools import wraps

from flask import g, jsonify, request

from .permissions import role_has_permission
from .services import session_service
from .services.audit_service import log_security_event


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _client_info() -> dict:
    return {
        "ip_address": request.remote_addr,
        "user_agent": request.headers.get("User-Agent"),
    }


def require_auth(f):
    """
    Require an organization session and establish tenant context.

    MULTI-TENANT: Sets
    - g.current_user: the authenticated User
    - g.org_id: the session's organization (never taken from the request)
    - g.session_context / g.token

    Returns 401 for missing/invalid/expired tokens and for super-admin
    sessions, which carry no organization.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        if not context.org_id:
            log_security_event(
                user_id=context.user.id,
                event_type="TENANT_CONTEXT_MISSING",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Session has no organization",
                **_client_info(),
            )
            return jsonify({"error": "Invalid session: missing organization context"}), 401

        g.current_user = context.user
        g.org_id = context.org_id
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the caller's organization role to grant permission_code (403 otherwise)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user") or not hasattr(g, "org_id"):
                return jsonify({"error": "Authentication required"}), 401

            user = g.current_user
            if not role_has_permission(user.role, permission_code):
                log_security_event(
                    user_id=user.id,
                    event_type="PERMISSION_DENIED",
                    success=False,
                    resource=request.path,
                    action=request.method,
                    reason=f"Role {user.role} lacks {permission_code}",
                    organization_id=g.org_id,
                    **_client_info(),
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_super_admin(f):
    """
    Require a session belonging to a super admin.

    Sets g.current_user and g.token; g.org_id is not set because the portal
    works across organizations.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        if not context.user.is_super_admin:
            log_security_event(
                user_id=context.user.id,
                event_type="PERMISSION_DENIED",
                success=False,
                resource=request.path,
                action=request.method,
                reason="Super admin privilege required",
                organization_id=context.org_id,
                **_client_info(),
            )
            return jsonify({"error": "Super admin privileges required"}), 403

        g.current_user = context.user
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function
