# Overview: Security deposits held per tenancy, deductions against them, and refunds.

from __future__ import annotations

from datetime import date

from ..constants import DEPOSIT_FULLY_REFUNDED, DEPOSIT_HELD, DEPOSIT_PARTIALLY_REFUNDED
from ..errors import ServiceError
from ..extensions import db
from ..models import DepositDeduction, SecurityDeposit, Tenant, Unit
from ..validation import ModelValidationPolicy, ValidationError, to_cents, validate_payload
from rentara.currency import calculate_deposit
from rentara.time_utils import today
from .concurrency import lock_for_update, run_with_retry
from .org_scope import require_in_org


class DepositError(ServiceError):
    """Raised for deposit rule violations."""


DEPOSIT_POLICY = ModelValidationPolicy(
    writable_fields={"tenant_id", "unit_id", "amount_cents", "received_date", "notes"},
    required_on_create={"tenant_id", "amount_cents", "received_date"},
)


def calculate_malaysian_deposit(monthly_rent) -> dict:
    """2 months security + 1 month advance + half a month utilities."""
    return calculate_deposit(monthly_rent)


def list_deposits(org_id: int, *, tenant_id: int | None = None, status: str | None = None) -> list[SecurityDeposit]:
    query = db.session.query(SecurityDeposit).filter(SecurityDeposit.organization_id == org_id)
    if tenant_id is not None:
        query = query.filter(SecurityDeposit.tenant_id == tenant_id)
    if status:
        query = query.filter(SecurityDeposit.status == status)
    return query.order_by(SecurityDeposit.received_date.desc(), SecurityDeposit.id.desc()).all()


def get_deposit(org_id: int, deposit_id: int) -> SecurityDeposit:
    return require_in_org(SecurityDeposit, deposit_id, org_id, label="Security deposit")


def create_deposit(org_id: int, payload: dict) -> SecurityDeposit:
    patch = validate_payload(model=SecurityDeposit, payload=payload, policy=DEPOSIT_POLICY, partial=False)
    if patch["amount_cents"] <= 0:
        raise ValidationError("amount must be greater than zero")

    tenant = require_in_org(Tenant, patch["tenant_id"], org_id, label="Tenant")
    if patch.get("unit_id") is not None:
        require_in_org(Unit, patch["unit_id"], org_id, label="Unit")
    else:
        patch["unit_id"] = tenant.unit_id

    deposit = SecurityDeposit(
        organization_id=org_id,
        status=DEPOSIT_HELD,
        refund_amount_cents=0,
        total_deductions_cents=0,
        **patch,
    )
    db.session.add(deposit)
    db.session.commit()
    return deposit


def _lock_deposit(org_id: int, deposit_id: int) -> SecurityDeposit:
    get_deposit(org_id, deposit_id)
    return lock_for_update(db.session.query(SecurityDeposit).filter_by(id=deposit_id)).one()


def add_deduction(
    org_id: int,
    deposit_id: int,
    *,
    amount,
    reason: str,
    description: str | None = None,
    deduction_date: date | None = None,
) -> DepositDeduction:
    """Deduct from a held deposit; the running total may not exceed the deposit."""
    amount_cents = to_cents(amount, "amount")
    if amount_cents <= 0:
        raise ValidationError("amount must be greater than zero")
    if not reason or not str(reason).strip():
        raise ValidationError("reason is required")

    def _op():
        deposit = _lock_deposit(org_id, deposit_id)
        if deposit.status != DEPOSIT_HELD:
            raise DepositError("Deductions can only be made while the deposit is held")
        if deposit.total_deductions_cents + amount_cents > deposit.amount_cents:
            raise DepositError("Total deductions cannot exceed the deposit amount")

        deduction = DepositDeduction(
            deposit_id=deposit.id,
            amount_cents=amount_cents,
            reason=str(reason).strip(),
            description=description,
            deduction_date=deduction_date or today(),
        )
        db.session.add(deduction)
        deposit.total_deductions_cents += amount_cents
        db.session.commit()
        return deduction

    return run_with_retry(_op)


def process_refund(
    org_id: int,
    deposit_id: int,
    *,
    amount,
    refund_date: date | None = None,
    reason: str | None = None,
) -> SecurityDeposit:
    """
    Refund part or all of the deposit balance (amount - deductions).

    Status becomes fully_refunded when the refund covers the balance,
    otherwise partially_refunded. A deposit is refunded once.
    """
    refund_cents = to_cents(amount, "amount")

    def _op():
        deposit = _lock_deposit(org_id, deposit_id)
        if deposit.status != DEPOSIT_HELD:
            raise DepositError("Deposit has already been refunded")

        balance = deposit.refundable_cents
        if refund_cents <= 0 and balance > 0:
            raise ValidationError("amount must be greater than zero")
        if refund_cents > balance:
            raise DepositError("Refund cannot exceed the deposit balance after deductions")

        deposit.refund_amount_cents = refund_cents
        deposit.refund_date = refund_date or today()
        deposit.refund_reason = reason
        deposit.status = DEPOSIT_FULLY_REFUNDED if refund_cents >= balance else DEPOSIT_PARTIALLY_REFUNDED
        db.session.commit()
        return deposit

    return run_with_retry(_op)
