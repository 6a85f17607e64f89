# Overview: Rent schedules and idempotent monthly rent generation.

"""
Rent Generation Service

WHY: Landlords bill rent monthly from a recurring template (RentSchedule).
Generation must be safe to run repeatedly: a tenant gets at most one rent
Payment per calendar month.

ALGORITHM (per organization, per month):
1. Take active schedules whose [start_date, end_date] overlaps the month.
2. due_date = (year, month, due_day), clamped to the month's last day.
3. Skip when the tenant already has a "rent" payment due within
   [month_start, next_month_start).
4. Otherwise create a pending Payment (is_recurring, monthly).

All payments for one run are created in a single transaction; preview
runs steps 1-3 without writing anything.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date

from ..constants import DEFAULT_LATE_FEE_DAYS, PAYMENT_PENDING, PAYMENT_TYPE_RENT
from ..errors import ServiceError
from ..extensions import db
from ..models import Payment, RentSchedule, Tenant, Unit
from ..validation import ModelValidationPolicy, ValidationError, enforce_date_order, validate_payload
from rentara.currency import money
from rentara.time_utils import clamp_day, month_bounds, to_iso_date
from .concurrency import run_with_retry
from .org_scope import require_in_org
from .payment_service import get_payment_type_by_name

log = logging.getLogger(__name__)


class RentScheduleError(ServiceError):
    """Raised for rent schedule rule violations."""


RENT_SCHEDULE_POLICY = ModelValidationPolicy(
    writable_fields={
        "tenant_id",
        "unit_id",
        "rent_amount_cents",
        "due_day",
        "start_date",
        "end_date",
        "late_fee_amount_cents",
        "late_fee_days",
        "is_active",
    },
    required_on_create={"tenant_id", "rent_amount_cents", "due_day", "start_date"},
)


@dataclass
class RentGenerationResult:
    month: int
    year: int
    created: list[Payment] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "year": self.year,
            "created": [p.to_dict() for p in self.created],
            "skipped": self.skipped,
            "created_count": len(self.created),
            "skipped_count": len(self.skipped),
        }


# =============================================================================
# SCHEDULES
# =============================================================================

def list_rent_schedules(
    org_id: int,
    *,
    tenant_id: int | None = None,
    is_active: bool | None = None,
) -> list[RentSchedule]:
    query = db.session.query(RentSchedule).filter(RentSchedule.organization_id == org_id)
    if tenant_id is not None:
        query = query.filter(RentSchedule.tenant_id == tenant_id)
    if is_active is not None:
        query = query.filter(RentSchedule.is_active.is_(is_active))
    return query.order_by(RentSchedule.start_date.desc(), RentSchedule.id.desc()).all()


def create_rent_schedule(org_id: int, payload: dict) -> RentSchedule:
    """unit_id defaults to the tenant's unit; late_fee_days defaults to 7."""
    patch = validate_payload(model=RentSchedule, payload=payload, policy=RENT_SCHEDULE_POLICY, partial=False)

    if not 1 <= patch["due_day"] <= 31:
        raise ValidationError("due_day must be between 1 and 31")
    if patch["rent_amount_cents"] <= 0:
        raise ValidationError("rent_amount must be greater than zero")
    if patch.get("late_fee_days") is not None and patch["late_fee_days"] < 0:
        raise ValidationError("late_fee_days cannot be negative")
    enforce_date_order(patch["start_date"], patch.get("end_date"), start_field="start_date", end_field="end_date")

    tenant = require_in_org(Tenant, patch["tenant_id"], org_id, label="Tenant")
    if patch.get("unit_id") is not None:
        require_in_org(Unit, patch["unit_id"], org_id, label="Unit")
    else:
        patch["unit_id"] = tenant.unit_id

    patch.setdefault("late_fee_amount_cents", 0)
    if patch.get("late_fee_days") is None:
        patch["late_fee_days"] = DEFAULT_LATE_FEE_DAYS

    schedule = RentSchedule(organization_id=org_id, **patch)
    db.session.add(schedule)
    db.session.commit()
    return schedule


def deactivate_rent_schedule(org_id: int, schedule_id: int) -> RentSchedule:
    schedule = require_in_org(RentSchedule, schedule_id, org_id, label="Rent schedule")
    if not schedule.is_active:
        raise RentScheduleError("Rent schedule is already inactive")
    schedule.is_active = False
    db.session.commit()
    return schedule


# =============================================================================
# GENERATION
# =============================================================================

def _validate_period(month: int, year: int) -> None:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    if isinstance(year, bool) or not isinstance(year, int) or not 2000 <= year <= 2100:
        raise ValidationError("year must be between 2000 and 2100")


def month_label(month: int, year: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def _schedules_for_month(org_id: int, month_start: date, next_month_start: date) -> list[RentSchedule]:
    return (
        db.session.query(RentSchedule)
        .filter(
            RentSchedule.organization_id == org_id,
            RentSchedule.is_active.is_(True),
            RentSchedule.start_date < next_month_start,
            db.or_(RentSchedule.end_date.is_(None), RentSchedule.end_date >= month_start),
        )
        .order_by(RentSchedule.id)
        .all()
    )


def _existing_rent_payment(tenant_id: int, rent_type_id: int, month_start: date, next_month_start: date):
    return (
        db.session.query(Payment)
        .filter(
            Payment.tenant_id == tenant_id,
            Payment.payment_type_id == rent_type_id,
            Payment.due_date >= month_start,
            Payment.due_date < next_month_start,
        )
        .first()
    )


def _plan(org_id: int, month: int, year: int) -> list[dict]:
    month_start, next_month_start = month_bounds(month, year)
    rent_type = get_payment_type_by_name(PAYMENT_TYPE_RENT)

    plan = []
    planned_tenants: set[int] = set()
    for schedule in _schedules_for_month(org_id, month_start, next_month_start):
        due_date = clamp_day(year, month, schedule.due_day)
        existing = _existing_rent_payment(schedule.tenant_id, rent_type.id, month_start, next_month_start)
        # a second active schedule for the same tenant must not double-bill
        duplicate = schedule.tenant_id in planned_tenants
        planned_tenants.add(schedule.tenant_id)
        plan.append({
            "schedule": schedule,
            "rent_type_id": rent_type.id,
            "due_date": due_date,
            "existing": existing,
            "action": "skip" if existing or duplicate else "create",
        })
    return plan


def _describe(item: dict) -> dict:
    schedule = item["schedule"]
    existing = item["existing"]
    return {
        "schedule_id": schedule.id,
        "tenant_id": schedule.tenant_id,
        "tenant_name": schedule.tenant.full_name if schedule.tenant else None,
        "unit_id": schedule.unit_id,
        "amount_cents": schedule.rent_amount_cents,
        "amount": money(schedule.rent_amount_cents),
        "due_date": to_iso_date(item["due_date"]),
        "action": item["action"],
        "existing_payment_id": existing.id if existing else None,
    }


def preview_monthly_rent(org_id: int, month: int, year: int) -> dict:
    """What generate_monthly_rent would do; writes nothing."""
    _validate_period(month, year)
    items = [_describe(item) for item in _plan(org_id, month, year)]
    return {
        "month": month,
        "year": year,
        "to_create": [i for i in items if i["action"] == "create"],
        "to_skip": [i for i in items if i["action"] == "skip"],
    }


def generate_monthly_rent(
    org_id: int,
    month: int,
    year: int,
    *,
    created_by: int | None = None,
) -> RentGenerationResult:
    """
    Create this month's rent payments for an organization.

    Idempotent: a second run for the same (month, year) creates nothing and
    reports every schedule as skipped.
    """
    _validate_period(month, year)

    def _op():
        result = RentGenerationResult(month=month, year=year)
        description = f"Monthly rent for {month_label(month, year)}"

        for item in _plan(org_id, month, year):
            if item["action"] == "skip":
                result.skipped.append(_describe(item))
                continue
            schedule = item["schedule"]
            payment = Payment(
                organization_id=org_id,
                tenant_id=schedule.tenant_id,
                unit_id=schedule.unit_id,
                payment_type_id=item["rent_type_id"],
                amount_cents=schedule.rent_amount_cents,
                paid_amount_cents=0,
                due_date=item["due_date"],
                status=PAYMENT_PENDING,
                description=description,
                is_recurring=True,
                recurring_period="monthly",
                created_by=created_by,
            )
            db.session.add(payment)
            result.created.append(payment)

        db.session.commit()
        return result

    result = run_with_retry(_op)
    log.info(
        "Generated rent for org %s %02d/%d: %d created, %d skipped",
        org_id, month, year, len(result.created), len(result.skipped),
    )
    return result
