# Overview: Flask API routes for tenants, moves, lease expiry and compliance reports.

"""
Tenant API Routes

DESIGN:
- Create/update/delete/move run the unit occupancy sync server-side in one
  transaction (see tenant_service)
- Compliance endpoints cover Malaysian letting checks: IC on file, visa
  expiry for foreign tenants, guarantor details
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DOMAIN_ERRORS, json_error
from ..permissions import MANAGE_TENANTS, VIEW_TENANTS
from ..services import tenant_service
from ..validation import ValidationError
from rentara.time_utils import parse_iso_date

tenants_bp = Blueprint("tenants", __name__, url_prefix="/api/tenants")


def _days_arg(default: int = 30) -> int:
    days = request.args.get("days", default=default, type=int)
    if days is None or days < 0:
        raise ValidationError("days must be a non-negative integer")
    return days


@tenants_bp.get("")
@require_auth
@require_permission(VIEW_TENANTS)
def list_tenants():
    tenants = tenant_service.list_tenants(
        g.org_id,
        status=request.args.get("status"),
        unit_id=request.args.get("unit_id", type=int),
        search=request.args.get("search"),
    )
    return jsonify([t.to_dict() for t in tenants]), 200


@tenants_bp.post("")
@require_auth
@require_permission(MANAGE_TENANTS)
def create_tenant():
    """
    Create a tenant. status "active" with a unit_id marks the unit occupied.

    Request body (amounts in ringgit or *_cents):
    {
        "full_name": "Tan Wei Ming",
        "ic_number": "900101-14-5678",
        "phone": "012-345 6789",
        "unit_id": 3,
        "status": "active",
        "lease_start_date": "2024-01-01",
        "lease_end_date": "2024-12-31",
        "rent_amount": "1500.00",
        "security_deposit": "3000.00"
    }
    """
    try:
        tenant = tenant_service.create_tenant(g.org_id, request.get_json(silent=True) or {})
        return jsonify(tenant.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create tenant")
        return jsonify({"error": "Internal server error"}), 500


@tenants_bp.get("/expiring-leases")
@require_auth
@require_permission(VIEW_TENANTS)
def expiring_leases():
    try:
        tenants = tenant_service.get_expiring_leases(g.org_id, days=_days_arg())
        return jsonify([t.to_dict() for t in tenants]), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@tenants_bp.get("/compliance/summary")
@require_auth
@require_permission(VIEW_TENANTS)
def compliance_summary():
    return jsonify(tenant_service.get_compliance_summary(g.org_id)), 200


@tenants_bp.get("/compliance/expiring-visas")
@require_auth
@require_permission(VIEW_TENANTS)
def expiring_visas():
    try:
        tenants = tenant_service.get_expiring_visas(g.org_id, days=_days_arg())
        return jsonify([t.to_dict() for t in tenants]), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@tenants_bp.get("/compliance/missing-guarantor")
@require_auth
@require_permission(VIEW_TENANTS)
def missing_guarantor():
    tenants = tenant_service.get_foreign_tenants_without_guarantor(g.org_id)
    return jsonify([t.to_dict() for t in tenants]), 200


@tenants_bp.get("/compliance/nationalities")
@require_auth
@require_permission(VIEW_TENANTS)
def nationality_counts():
    return jsonify(tenant_service.get_nationality_counts(g.org_id)), 200


@tenants_bp.get("/<int:tenant_id>")
@require_auth
@require_permission(VIEW_TENANTS)
def get_tenant(tenant_id: int):
    try:
        return jsonify(tenant_service.get_tenant_detail(g.org_id, tenant_id)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@tenants_bp.put("/<int:tenant_id>")
@require_auth
@require_permission(MANAGE_TENANTS)
def update_tenant(tenant_id: int):
    try:
        tenant = tenant_service.update_tenant(g.org_id, tenant_id, request.get_json(silent=True) or {})
        return jsonify(tenant.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update tenant")
        return jsonify({"error": "Internal server error"}), 500


@tenants_bp.post("/<int:tenant_id>/move")
@require_auth
@require_permission(MANAGE_TENANTS)
def move_tenant(tenant_id: int):
    """Request body: {"unit_id": 7, "move_date": "2024-03-01"}"""
    try:
        data = request.get_json(silent=True) or {}
        unit_id = data.get("unit_id")
        if not isinstance(unit_id, int) or isinstance(unit_id, bool):
            return jsonify({"error": "unit_id (integer) required"}), 400
        try:
            move_date = parse_iso_date(data.get("move_date"))
        except ValueError:
            return jsonify({"error": "move_date must be a date (YYYY-MM-DD)"}), 400

        tenant = tenant_service.move_tenant(g.org_id, tenant_id, unit_id, move_date)
        return jsonify(tenant.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to move tenant")
        return jsonify({"error": "Internal server error"}), 500


@tenants_bp.delete("/<int:tenant_id>")
@require_auth
@require_permission(MANAGE_TENANTS)
def delete_tenant(tenant_id: int):
    try:
        tenant_service.delete_tenant(g.org_id, tenant_id)
        return jsonify({"message": "Tenant deleted"}), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to delete tenant")
        return jsonify({"error": "Internal server error"}), 500
