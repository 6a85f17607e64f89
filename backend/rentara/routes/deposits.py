# Overview: Flask API routes for security deposits, deductions and refunds.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DOMAIN_ERRORS, json_error
from ..permissions import MANAGE_PAYMENTS, VIEW_PAYMENTS
from ..services import deposit_service
from rentara.time_utils import parse_iso_date

deposits_bp = Blueprint("deposits", __name__, url_prefix="/api/deposits")


def _date_field(data: dict, key: str):
    try:
        return parse_iso_date(data.get(key))
    except ValueError:
        return None


@deposits_bp.get("/calculate")
@require_auth
def calculate_deposit():
    """?monthly_rent=1500 -> security (2x), advance (1x), utility (0.5x), total (3.5x)."""
    breakdown = deposit_service.calculate_malaysian_deposit(request.args.get("monthly_rent"))
    return jsonify({key: f"{value:.2f}" for key, value in breakdown.items()}), 200


@deposits_bp.get("")
@require_auth
@require_permission(VIEW_PAYMENTS)
def list_deposits():
    deposits = deposit_service.list_deposits(
        g.org_id,
        tenant_id=request.args.get("tenant_id", type=int),
        status=request.args.get("status"),
    )
    return jsonify([d.to_dict() for d in deposits]), 200


@deposits_bp.post("")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def create_deposit():
    try:
        deposit = deposit_service.create_deposit(g.org_id, request.get_json(silent=True) or {})
        return jsonify(deposit.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create security deposit")
        return jsonify({"error": "Internal server error"}), 500


@deposits_bp.get("/<int:deposit_id>")
@require_auth
@require_permission(VIEW_PAYMENTS)
def get_deposit(deposit_id: int):
    try:
        return jsonify(deposit_service.get_deposit(g.org_id, deposit_id).to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@deposits_bp.post("/<int:deposit_id>/deductions")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def add_deduction(deposit_id: int):
    """Request body: {"amount": "200.00", "reason": "cleaning", "description": "..."}"""
    try:
        data = request.get_json(silent=True) or {}
        deduction = deposit_service.add_deduction(
            g.org_id,
            deposit_id,
            amount=data.get("amount"),
            reason=data.get("reason"),
            description=data.get("description"),
            deduction_date=_date_field(data, "deduction_date"),
        )
        return jsonify(deduction.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to add deposit deduction")
        return jsonify({"error": "Internal server error"}), 500


@deposits_bp.post("/<int:deposit_id>/refund")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def process_refund(deposit_id: int):
    try:
        data = request.get_json(silent=True) or {}
        deposit = deposit_service.process_refund(
            g.org_id,
            deposit_id,
            amount=data.get("amount"),
            refund_date=_date_field(data, "refund_date"),
            reason=data.get("reason"),
        )
        return jsonify(deposit.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to process deposit refund")
        return jsonify({"error": "Internal server error"}), 500
