# Overview: Payment records, the transaction-driven status engine, and the payment type/method catalogs.

"""
Payment Service

WHY: A Payment is an amount a tenant owes; money received against it is a
PaymentTransaction. Recording a transaction and updating the payment's
paid amount and status happen in one database transaction.

STATUS ENGINE:
- pending:   nothing received yet
- partial:   0 < paid < amount
- paid:      paid >= amount (paid_date set)
- cancelled: voided charge, no further transactions
- overdue:   NEVER stored; a pending payment whose due date has passed
             reads as overdue (effective_status)

Amounts are integer cents throughout.
"""

from __future__ import annotations

from datetime import date

from ..constants import (
    DEFAULT_PAYMENT_METHODS,
    DEFAULT_PAYMENT_TYPES,
    PAYMENT_CANCELLED,
    PAYMENT_OVERDUE,
    PAYMENT_PAID,
    PAYMENT_PARTIAL,
    PAYMENT_PENDING,
    PAYMENT_STATUSES,
    RECURRING_PERIODS,
)
from ..errors import ServiceError
from ..extensions import db
from ..models import Payment, PaymentMethod, PaymentTransaction, PaymentType, Tenant, Unit
from ..validation import (
    MAX_AMOUNT_CENTS,
    ModelValidationPolicy,
    ValidationError,
    enforce_choice,
    validate_payload,
)
from rentara.time_utils import parse_iso_date, today
from .concurrency import lock_for_update, run_with_retry
from .org_scope import require_in_org


class PaymentError(ServiceError):
    """Raised for payment operation errors."""


PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "tenant_id",
        "unit_id",
        "payment_type_id",
        "amount_cents",
        "due_date",
        "description",
        "is_recurring",
        "recurring_period",
    },
    required_on_create={"tenant_id", "payment_type_id", "amount_cents", "due_date"},
)


# =============================================================================
# CATALOGS
# =============================================================================

def ensure_payment_catalog() -> None:
    """Seed the global payment types and methods. Idempotent."""
    existing_types = {name for (name,) in db.session.query(PaymentType.name).all()}
    for name, display_name in DEFAULT_PAYMENT_TYPES:
        if name not in existing_types:
            db.session.add(PaymentType(name=name, display_name=display_name, is_active=True))

    existing_methods = {name for (name,) in db.session.query(PaymentMethod.name).all()}
    for name, display_name in DEFAULT_PAYMENT_METHODS:
        if name not in existing_methods:
            db.session.add(PaymentMethod(name=name, display_name=display_name, is_active=True))

    db.session.commit()


def list_payment_types() -> list[PaymentType]:
    return db.session.query(PaymentType).filter_by(is_active=True).order_by(PaymentType.id).all()


def list_payment_methods() -> list[PaymentMethod]:
    return db.session.query(PaymentMethod).filter_by(is_active=True).order_by(PaymentMethod.id).all()


def get_payment_type_by_name(name: str) -> PaymentType:
    payment_type = db.session.query(PaymentType).filter_by(name=name).first()
    if not payment_type:
        raise PaymentError(f"Payment type '{name}' is not configured; run `flask system init`")
    return payment_type


# =============================================================================
# STATUS
# =============================================================================

def effective_status(payment: Payment, as_of: date | None = None) -> str:
    """'overdue' iff stored status is pending and due_date < as_of; else the stored status."""
    return payment.effective_status(as_of)


def status_after(amount_cents: int, paid_amount_cents: int) -> str:
    if paid_amount_cents >= amount_cents:
        return PAYMENT_PAID
    if paid_amount_cents > 0:
        return PAYMENT_PARTIAL
    return PAYMENT_PENDING


# =============================================================================
# QUERIES
# =============================================================================

def list_payments(
    org_id: int,
    *,
    status: str | None = None,
    tenant_id: int | None = None,
    unit_id: int | None = None,
    payment_type_id: int | None = None,
    from_date=None,
    to_date=None,
    as_of: date | None = None,
) -> list[Payment]:
    """
    Payments newest due date first.

    status filters on the effective status: "overdue" selects pending
    payments past due, "pending" only those not yet due.
    """
    as_of = as_of or today()
    query = db.session.query(Payment).filter(Payment.organization_id == org_id)

    if status:
        if status not in PAYMENT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(sorted(PAYMENT_STATUSES))}")
        if status == PAYMENT_OVERDUE:
            query = query.filter(Payment.status == PAYMENT_PENDING, Payment.due_date < as_of)
        elif status == PAYMENT_PENDING:
            query = query.filter(Payment.status == PAYMENT_PENDING, Payment.due_date >= as_of)
        else:
            query = query.filter(Payment.status == status)
    if tenant_id is not None:
        query = query.filter(Payment.tenant_id == tenant_id)
    if unit_id is not None:
        query = query.filter(Payment.unit_id == unit_id)
    if payment_type_id is not None:
        query = query.filter(Payment.payment_type_id == payment_type_id)

    try:
        start = parse_iso_date(from_date)
        end = parse_iso_date(to_date)
    except ValueError:
        raise ValidationError("from_date and to_date must be dates (YYYY-MM-DD)")
    if start:
        query = query.filter(Payment.due_date >= start)
    if end:
        query = query.filter(Payment.due_date <= end)

    return query.order_by(Payment.due_date.desc(), Payment.id.desc()).all()


def get_payment(org_id: int, payment_id: int) -> Payment:
    return require_in_org(Payment, payment_id, org_id, label="Payment")


def get_payment_transactions(org_id: int, payment_id: int) -> list[PaymentTransaction]:
    payment = get_payment(org_id, payment_id)
    return list(payment.transactions)


# =============================================================================
# MUTATIONS
# =============================================================================

def create_payment(org_id: int, payload: dict, *, created_by: int | None = None) -> Payment:
    """
    Create a charge for a tenant. Starts pending with nothing paid.

    unit_id defaults to the tenant's current unit.
    """
    patch = validate_payload(model=Payment, payload=payload, policy=PAYMENT_POLICY, partial=False)
    enforce_choice(patch, "recurring_period", RECURRING_PERIODS)
    if patch["amount_cents"] <= 0:
        raise ValidationError("amount must be greater than zero")

    tenant = require_in_org(Tenant, patch["tenant_id"], org_id, label="Tenant")
    if patch.get("unit_id") is not None:
        require_in_org(Unit, patch["unit_id"], org_id, label="Unit")
    else:
        patch["unit_id"] = tenant.unit_id
    if not db.session.get(PaymentType, patch["payment_type_id"]):
        raise ValidationError("Unknown payment_type_id")

    payment = Payment(
        organization_id=org_id,
        paid_amount_cents=0,
        status=PAYMENT_PENDING,
        created_by=created_by,
        **patch,
    )
    db.session.add(payment)
    db.session.commit()
    return payment


def update_payment_status(org_id: int, payment_id: int, status: str) -> Payment:
    """
    Manual status change. Only cancellation is allowed by hand; paid and
    partial come from transactions and overdue is derived.
    """
    if status != PAYMENT_CANCELLED:
        raise PaymentError("Only cancellation can be set manually; record a transaction to pay")
    return cancel_payment(org_id, payment_id)


def cancel_payment(org_id: int, payment_id: int) -> Payment:
    def _op():
        get_payment(org_id, payment_id)
        payment = lock_for_update(db.session.query(Payment).filter_by(id=payment_id)).one()
        if payment.status == PAYMENT_PAID:
            raise PaymentError("Cannot cancel a payment that is fully paid")
        if payment.status == PAYMENT_CANCELLED:
            raise PaymentError("Payment is already cancelled")
        payment.status = PAYMENT_CANCELLED
        db.session.commit()
        return payment

    return run_with_retry(_op)


def record_transaction(
    org_id: int,
    payment_id: int,
    amount_cents: int,
    *,
    payment_method_id: int | None = None,
    transaction_date: date | None = None,
    reference: str | None = None,
    notes: str | None = None,
    recorded_by: int | None = None,
    as_of: date | None = None,
) -> PaymentTransaction:
    """
    Record money received against a payment.

    Preconditions (enforced here, not left to callers):
    - 0 < amount_cents <= remaining balance
    - payment is neither cancelled nor already paid

    Effect, atomically:
    - insert PaymentTransaction
    - paid_amount_cents += amount_cents
    - status -> paid when paid_amount >= amount (paid_date = as_of), else partial

    Raises:
        PaymentError: invalid amount or payment state
        OrganizationAccessError: payment not in this organization
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise PaymentError("Transaction amount must be an integer number of cents")
    if amount_cents <= 0:
        raise PaymentError("Transaction amount must be greater than zero")
    if amount_cents > MAX_AMOUNT_CENTS:
        raise PaymentError("Transaction amount is too large")
    as_of = as_of or today()

    def _op():
        get_payment(org_id, payment_id)
        payment = lock_for_update(db.session.query(Payment).filter_by(id=payment_id)).one()

        if payment.status == PAYMENT_CANCELLED:
            raise PaymentError("Cannot record a transaction on a cancelled payment")
        if payment.status == PAYMENT_PAID:
            raise PaymentError("Payment is already fully paid")

        remaining = payment.amount_cents - payment.paid_amount_cents
        if amount_cents > remaining:
            raise PaymentError(
                f"Transaction amount exceeds the remaining balance of {remaining} cents"
            )

        if payment_method_id is not None and not db.session.get(PaymentMethod, payment_method_id):
            raise PaymentError("Unknown payment method")

        transaction = PaymentTransaction(
            organization_id=org_id,
            payment_id=payment.id,
            payment_method_id=payment_method_id,
            amount_cents=amount_cents,
            transaction_date=transaction_date or as_of,
            reference=reference,
            notes=notes,
            recorded_by=recorded_by,
        )
        db.session.add(transaction)

        payment.paid_amount_cents += amount_cents
        payment.status = status_after(payment.amount_cents, payment.paid_amount_cents)
        if payment.status == PAYMENT_PAID:
            payment.paid_date = as_of

        db.session.commit()
        return transaction

    return run_with_retry(_op)
