# Overview: Flask API routes for payments, transactions, rent generation and analytics.

"""
Payment API Routes

DESIGN:
- Payments are charges; money received is posted as a transaction
- Transactions update the payment's paid amount and status atomically
- "overdue" is reported as effective_status, never stored
- Rent generation is idempotent per (month, year); preview writes nothing

SECURITY:
- VIEW_PAYMENTS to read
- RECORD_PAYMENTS to post transactions (members included)
- MANAGE_PAYMENTS to create or cancel charges and manage rent schedules
- GENERATE_RENT to run monthly generation
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import DOMAIN_ERRORS, json_error
from ..permissions import GENERATE_RENT, MANAGE_PAYMENTS, RECORD_PAYMENTS, VIEW_PAYMENTS, VIEW_REPORTS
from ..services import analytics_service, payment_service, rent_service
from ..validation import ValidationError, to_cents
from rentara.time_utils import parse_iso_date

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _payment_filters() -> dict:
    return {
        "status": request.args.get("status") or None,
        "tenant_id": request.args.get("tenant_id", type=int),
        "unit_id": request.args.get("unit_id", type=int),
        "payment_type_id": request.args.get("payment_type_id", type=int),
        "from_date": request.args.get("from_date") or None,
        "to_date": request.args.get("to_date") or None,
    }


def _period(source) -> tuple[int, int]:
    month, year = source.get("month"), source.get("year")
    try:
        return int(month), int(year)
    except (TypeError, ValueError):
        raise ValidationError("month and year (integers) are required")


# =============================================================================
# CATALOGS
# =============================================================================

@payments_bp.get("/types")
@require_auth
def list_payment_types():
    return jsonify([t.to_dict() for t in payment_service.list_payment_types()]), 200


@payments_bp.get("/methods")
@require_auth
def list_payment_methods():
    return jsonify([m.to_dict() for m in payment_service.list_payment_methods()]), 200


# =============================================================================
# PAYMENTS
# =============================================================================

@payments_bp.get("")
@require_auth
@require_permission(VIEW_PAYMENTS)
def list_payments():
    """
    Query params: status (pending|partial|paid|overdue|cancelled), tenant_id,
    unit_id, payment_type_id, from_date, to_date (due date range, inclusive).
    """
    try:
        payments = payment_service.list_payments(g.org_id, **_payment_filters())
        return jsonify([p.to_dict() for p in payments]), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@payments_bp.post("")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def create_payment():
    try:
        payment = payment_service.create_payment(
            g.org_id, request.get_json(silent=True) or {}, created_by=g.current_user.id
        )
        return jsonify(payment.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/analytics")
@require_auth
@require_permission(VIEW_REPORTS)
def payment_analytics():
    """Totals, status/type breakdowns and monthly trends; same filters as the list."""
    try:
        return jsonify(analytics_service.get_payment_analytics(g.org_id, **_payment_filters())), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@payments_bp.get("/<int:payment_id>")
@require_auth
@require_permission(VIEW_PAYMENTS)
def get_payment(payment_id: int):
    try:
        payment = payment_service.get_payment(g.org_id, payment_id)
        data = payment.to_dict()
        data["transactions"] = [t.to_dict() for t in payment.transactions]
        return jsonify(data), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@payments_bp.patch("/<int:payment_id>/status")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def update_payment_status(payment_id: int):
    try:
        data = request.get_json(silent=True) or {}
        payment = payment_service.update_payment_status(g.org_id, payment_id, data.get("status"))
        return jsonify(payment.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update payment status")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/<int:payment_id>/cancel")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def cancel_payment(payment_id: int):
    try:
        payment = payment_service.cancel_payment(g.org_id, payment_id)
        return jsonify(payment.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to cancel payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/<int:payment_id>/transactions")
@require_auth
@require_permission(VIEW_PAYMENTS)
def list_transactions(payment_id: int):
    try:
        transactions = payment_service.get_payment_transactions(g.org_id, payment_id)
        return jsonify([t.to_dict() for t in transactions]), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@payments_bp.post("/<int:payment_id>/transactions")
@require_auth
@require_permission(RECORD_PAYMENTS)
def record_transaction(payment_id: int):
    """
    Record money received.

    Request body:
    {
        "amount": "500.00",            (or "amount_cents": 50000)
        "payment_method_id": 2,
        "transaction_date": "2024-02-03",
        "reference": "FPX-88123",
        "notes": "February rent, first half"
    }

    Returns:
        201: {"transaction": {...}, "payment": {...}}
        400: amount <= 0, above remaining balance, or payment cancelled/paid
    """
    try:
        data = request.get_json(silent=True) or {}
        if data.get("amount_cents") is not None:
            amount_cents = data["amount_cents"]
        else:
            amount_cents = to_cents(data.get("amount"), "amount")
        try:
            transaction_date = parse_iso_date(data.get("transaction_date"))
        except ValueError:
            return jsonify({"error": "transaction_date must be a date (YYYY-MM-DD)"}), 400

        transaction = payment_service.record_transaction(
            g.org_id,
            payment_id,
            amount_cents,
            payment_method_id=data.get("payment_method_id"),
            transaction_date=transaction_date,
            reference=data.get("reference"),
            notes=data.get("notes"),
            recorded_by=g.current_user.id,
        )
        return jsonify({
            "transaction": transaction.to_dict(),
            "payment": transaction.payment.to_dict(),
        }), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to record payment transaction")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# RENT SCHEDULES / GENERATION
# =============================================================================

@payments_bp.get("/rent-schedules")
@require_auth
@require_permission(VIEW_PAYMENTS)
def list_rent_schedules():
    is_active = request.args.get("is_active")
    schedules = rent_service.list_rent_schedules(
        g.org_id,
        tenant_id=request.args.get("tenant_id", type=int),
        is_active=None if is_active is None else is_active.lower() in ("1", "true", "yes"),
    )
    return jsonify([s.to_dict() for s in schedules]), 200


@payments_bp.post("/rent-schedules")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def create_rent_schedule():
    try:
        schedule = rent_service.create_rent_schedule(g.org_id, request.get_json(silent=True) or {})
        return jsonify(schedule.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create rent schedule")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/rent-schedules/<int:schedule_id>/deactivate")
@require_auth
@require_permission(MANAGE_PAYMENTS)
def deactivate_rent_schedule(schedule_id: int):
    try:
        schedule = rent_service.deactivate_rent_schedule(g.org_id, schedule_id)
        return jsonify(schedule.to_dict()), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@payments_bp.get("/rent/preview")
@require_auth
@require_permission(GENERATE_RENT)
def preview_rent():
    try:
        month, year = _period(request.args)
        return jsonify(rent_service.preview_monthly_rent(g.org_id, month, year)), 200
    except DOMAIN_ERRORS as exc:
        return json_error(exc)


@payments_bp.post("/rent/generate")
@require_auth
@require_permission(GENERATE_RENT)
def generate_rent():
    """Request body: {"month": 2, "year": 2024}. Safe to repeat."""
    try:
        month, year = _period(request.get_json(silent=True) or {})
        result = rent_service.generate_monthly_rent(g.org_id, month, year, created_by=g.current_user.id)
        return jsonify(result.to_dict()), 201
    except DOMAIN_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to generate monthly rent")
        return jsonify({"error": "Internal server error"}), 500
