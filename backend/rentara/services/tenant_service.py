# Overview: Tenant lifecycle (create/update/move/delete) with unit occupancy and lease history kept in step.

"""
Tenant Service

WHY: A tenant's status and unit decide the unit's status. Every change
that can move a tenant into or out of a unit updates the Unit row and the
LeaseHistory in the SAME database transaction as the Tenant row, so a
failure part-way leaves nothing behind.

SYNC RULES:
- Becoming active in a unit: unit -> occupied, open LeaseHistory (active)
- Leaving active, or leaving the unit: unit -> vacant, close the open
  LeaseHistory (completed, move_out_date)
- Move: both of the above, old unit first
- Delete: frees the unit; refused while payments reference the tenant
- Departure (inactive/moved_out) stops the tenant's rent schedules

A unit holds at most one active tenant; assigning a second is rejected.
"""

from __future__ import annotations

from datetime import date, timedelta

from ..constants import (
    LEASE_ACTIVE,
    LEASE_COMPLETED,
    MALAYSIAN_NATIONALITIES,
    NATIONALITY_MALAYSIAN,
    TENANT_ACTIVE,
    TENANT_DEPARTED_STATUSES,
    TENANT_STATUSES,
    UNIT_MAINTENANCE,
    UNIT_OCCUPIED,
    UNIT_UNAVAILABLE,
    UNIT_VACANT,
    WORK_PERMIT_NONE,
    WORK_PERMIT_TYPES,
)
from ..errors import ServiceError
from ..extensions import db
from ..malaysian_validation import validate_malaysian_ic, validate_malaysian_phone
from ..models import LeaseHistory, Payment, RentSchedule, SecurityDeposit, Tenant, Unit
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_choice,
    enforce_date_order,
    validate_payload,
)
from rentara.time_utils import today
from .concurrency import lock_for_update, run_with_retry
from .org_scope import require_in_org


class TenantError(ServiceError):
    """Raised for tenant/unit occupancy rule violations."""


TENANT_POLICY = ModelValidationPolicy(
    writable_fields={
        "unit_id",
        "full_name",
        "email",
        "phone",
        "ic_number",
        "passport_number",
        "nationality",
        "work_permit_type",
        "visa_expiry_date",
        "guarantor_name",
        "guarantor_phone",
        "guarantor_ic",
        "emergency_contact_name",
        "emergency_contact_phone",
        "lease_start_date",
        "lease_end_date",
        "move_in_date",
        "move_out_date",
        "rent_amount_cents",
        "security_deposit_cents",
        "status",
        "notes",
    },
    required_on_create={"full_name"},
)

NATIONALITY_CODES = {code for code, _label in MALAYSIAN_NATIONALITIES}
WORK_PERMIT_CODES = {code for code, _label in WORK_PERMIT_TYPES}


def _validate_fields(patch: dict, tenant: Tenant | None = None) -> None:
    enforce_choice(patch, "status", TENANT_STATUSES)
    enforce_choice(patch, "nationality", NATIONALITY_CODES)
    enforce_choice(patch, "work_permit_type", WORK_PERMIT_CODES)

    for field in ("ic_number", "guarantor_ic"):
        if patch.get(field):
            check = validate_malaysian_ic(patch[field])
            if not check:
                raise ValidationError(f"{field}: {check.error}")
    for field in ("phone", "guarantor_phone", "emergency_contact_phone"):
        if patch.get(field):
            check = validate_malaysian_phone(patch[field])
            if not check:
                raise ValidationError(f"{field}: {check.error}")

    def current(field):
        if field in patch:
            return patch[field]
        return getattr(tenant, field) if tenant is not None else None

    enforce_date_order(
        current("lease_start_date"), current("lease_end_date"),
        start_field="lease_start_date", end_field="lease_end_date",
    )
    enforce_date_order(
        current("move_in_date"), current("move_out_date"),
        start_field="move_in_date", end_field="move_out_date",
    )


# =============================================================================
# UNIT SYNC HELPERS (call inside a transaction)
# =============================================================================

def _lock_unit(org_id: int, unit_id: int) -> Unit:
    require_in_org(Unit, unit_id, org_id, label="Unit")
    return lock_for_update(db.session.query(Unit).filter_by(id=unit_id)).one()


def _occupy(org_id: int, tenant: Tenant, unit_id: int, on: date) -> Unit:
    unit = _lock_unit(org_id, unit_id)
    other = (
        db.session.query(Tenant)
        .filter(Tenant.unit_id == unit.id, Tenant.status == TENANT_ACTIVE, Tenant.id != tenant.id)
        .first()
    )
    if other:
        raise TenantError(f"Unit {unit.unit_number} is already occupied by {other.full_name}")
    if unit.status in (UNIT_MAINTENANCE, UNIT_UNAVAILABLE):
        raise TenantError(f"Unit {unit.unit_number} is not available ({unit.status})")

    unit.status = UNIT_OCCUPIED
    db.session.add(LeaseHistory(
        organization_id=org_id,
        tenant=tenant,
        unit_id=unit.id,
        lease_start_date=tenant.lease_start_date,
        lease_end_date=tenant.lease_end_date,
        rent_amount_cents=tenant.rent_amount_cents or 0,
        deposit_amount_cents=tenant.security_deposit_cents or 0,
        move_in_date=on,
        status=LEASE_ACTIVE,
    ))
    return unit


def _vacate(org_id: int, tenant: Tenant, unit_id: int, on: date) -> Unit:
    unit = _lock_unit(org_id, unit_id)
    still_occupied = (
        db.session.query(Tenant.id)
        .filter(Tenant.unit_id == unit.id, Tenant.status == TENANT_ACTIVE, Tenant.id != tenant.id)
        .first()
    )
    if not still_occupied and unit.status == UNIT_OCCUPIED:
        unit.status = UNIT_VACANT

    if tenant.id is not None:
        open_leases = db.session.query(LeaseHistory).filter_by(
            tenant_id=tenant.id, unit_id=unit.id, status=LEASE_ACTIVE
        ).all()
        for lease in open_leases:
            lease.status = LEASE_COMPLETED
            lease.move_out_date = on
    return unit


# =============================================================================
# QUERIES
# =============================================================================

def list_tenants(
    org_id: int,
    *,
    status: str | None = None,
    unit_id: int | None = None,
    search: str | None = None,
) -> list[Tenant]:
    query = db.session.query(Tenant).filter(Tenant.organization_id == org_id)
    if status:
        query = query.filter(Tenant.status == status)
    if unit_id is not None:
        query = query.filter(Tenant.unit_id == unit_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Tenant.full_name.ilike(like),
            Tenant.email.ilike(like),
            Tenant.phone.ilike(like),
            Tenant.ic_number.ilike(like),
        ))
    return query.order_by(Tenant.created_at.desc(), Tenant.id.desc()).all()


def get_tenant(org_id: int, tenant_id: int) -> Tenant:
    return require_in_org(Tenant, tenant_id, org_id, label="Tenant")


def get_tenant_detail(org_id: int, tenant_id: int) -> dict:
    tenant = get_tenant(org_id, tenant_id)
    data = tenant.to_dict()
    data["lease_history"] = [lease.to_dict() for lease in tenant.lease_history]
    return data


# =============================================================================
# MUTATIONS
# =============================================================================

def create_tenant(org_id: int, payload: dict, *, as_of: date | None = None) -> Tenant:
    """
    Create a tenant; an active tenant with a unit occupies it immediately.

    rent_amount defaults to the unit's rent when a unit is given.
    """
    patch = validate_payload(model=Tenant, payload=payload, policy=TENANT_POLICY, partial=False)
    _validate_fields(patch)
    as_of = as_of or today()

    def _op():
        tenant = Tenant(organization_id=org_id, **patch)
        unit_id = patch.get("unit_id")

        if unit_id is not None:
            unit = require_in_org(Unit, unit_id, org_id, label="Unit")
            if "rent_amount_cents" not in patch:
                tenant.rent_amount_cents = unit.rent_amount_cents

        db.session.add(tenant)
        db.session.flush()

        if tenant.status == TENANT_ACTIVE and unit_id is not None:
            if tenant.move_in_date is None:
                tenant.move_in_date = tenant.lease_start_date or as_of
            _occupy(org_id, tenant, unit_id, tenant.move_in_date)

        db.session.commit()
        return tenant

    return run_with_retry(_op)


def update_tenant(org_id: int, tenant_id: int, payload: dict, *, as_of: date | None = None) -> Tenant:
    """
    Update a tenant and re-synchronize unit occupancy.

    Leaving "active" (or leaving the unit) frees the previous unit and closes
    its lease; entering "active" with a unit occupies it and opens a lease.
    """
    patch = validate_payload(model=Tenant, payload=payload, policy=TENANT_POLICY, partial=True)
    as_of = as_of or today()

    def _op():
        tenant = get_tenant(org_id, tenant_id)
        _validate_fields(patch, tenant)
        if patch.get("unit_id") is not None:
            require_in_org(Unit, patch["unit_id"], org_id, label="Unit")

        prev_status, prev_unit_id = tenant.status, tenant.unit_id
        for key, value in patch.items():
            setattr(tenant, key, value)
        new_status, new_unit_id = tenant.status, tenant.unit_id

        was_in_unit = prev_status == TENANT_ACTIVE and prev_unit_id is not None
        now_in_unit = new_status == TENANT_ACTIVE and new_unit_id is not None

        if was_in_unit and (not now_in_unit or new_unit_id != prev_unit_id):
            leave_date = tenant.move_out_date or as_of
            if new_status in TENANT_DEPARTED_STATUSES and tenant.move_out_date is None:
                tenant.move_out_date = leave_date
            _vacate(org_id, tenant, prev_unit_id, leave_date)

        if now_in_unit and (not was_in_unit or new_unit_id != prev_unit_id):
            if new_unit_id != prev_unit_id or tenant.move_in_date is None or prev_status in TENANT_DEPARTED_STATUSES:
                tenant.move_in_date = patch.get("move_in_date") or as_of
            tenant.move_out_date = None
            _occupy(org_id, tenant, new_unit_id, tenant.move_in_date)

        if new_status in TENANT_DEPARTED_STATUSES and prev_status not in TENANT_DEPARTED_STATUSES:
            db.session.query(RentSchedule).filter_by(tenant_id=tenant.id, is_active=True).update(
                {"is_active": False}, synchronize_session="fetch"
            )

        db.session.commit()
        return tenant

    return run_with_retry(_op)


def move_tenant(org_id: int, tenant_id: int, new_unit_id: int, move_date: date | None = None) -> Tenant:
    """
    Move an active tenant to another unit on move_date (default today).

    Old unit -> vacant and its lease closed; new unit -> occupied with a new
    lease; active rent schedules follow the tenant to the new unit.
    """
    move_date = move_date or today()

    def _op():
        tenant = get_tenant(org_id, tenant_id)
        if tenant.status != TENANT_ACTIVE:
            raise TenantError("Only active tenants can be moved")
        if tenant.unit_id == new_unit_id:
            raise TenantError("Tenant is already in this unit")

        if tenant.unit_id is not None:
            _vacate(org_id, tenant, tenant.unit_id, move_date)

        tenant.unit_id = new_unit_id
        tenant.move_in_date = move_date
        _occupy(org_id, tenant, new_unit_id, move_date)

        schedules = db.session.query(RentSchedule).filter_by(tenant_id=tenant.id, is_active=True).all()
        for schedule in schedules:
            schedule.unit_id = new_unit_id

        db.session.commit()
        return tenant

    return run_with_retry(_op)


def delete_tenant(org_id: int, tenant_id: int, *, as_of: date | None = None) -> None:
    """
    Delete a tenant who has no payment or deposit records.

    An active tenant's unit is freed in the same transaction.
    """
    as_of = as_of or today()

    def _op():
        tenant = get_tenant(org_id, tenant_id)
        if db.session.query(Payment.id).filter(Payment.tenant_id == tenant.id).first():
            raise TenantError("Cannot delete a tenant with payment records; mark them moved out instead")
        if db.session.query(SecurityDeposit.id).filter(SecurityDeposit.tenant_id == tenant.id).first():
            raise TenantError("Cannot delete a tenant with security deposit records")

        if tenant.status == TENANT_ACTIVE and tenant.unit_id is not None:
            _vacate(org_id, tenant, tenant.unit_id, as_of)

        db.session.query(RentSchedule).filter(RentSchedule.tenant_id == tenant.id).delete()
        db.session.query(LeaseHistory).filter(LeaseHistory.tenant_id == tenant.id).delete()
        db.session.delete(tenant)
        db.session.commit()

    run_with_retry(_op)


# =============================================================================
# LEASES / COMPLIANCE
# =============================================================================

def get_expiring_leases(org_id: int, *, days: int = 30, as_of: date | None = None) -> list[Tenant]:
    as_of = as_of or today()
    return (
        db.session.query(Tenant)
        .filter(
            Tenant.organization_id == org_id,
            Tenant.status == TENANT_ACTIVE,
            Tenant.lease_end_date.isnot(None),
            Tenant.lease_end_date >= as_of,
            Tenant.lease_end_date <= as_of + timedelta(days=days),
        )
        .order_by(Tenant.lease_end_date)
        .all()
    )


def get_expiring_visas(org_id: int, *, days: int = 30, as_of: date | None = None) -> list[Tenant]:
    """Foreign tenants holding a work permit whose visa expires within `days`."""
    as_of = as_of or today()
    return (
        db.session.query(Tenant)
        .filter(
            Tenant.organization_id == org_id,
            Tenant.nationality != NATIONALITY_MALAYSIAN,
            Tenant.work_permit_type != WORK_PERMIT_NONE,
            Tenant.visa_expiry_date.isnot(None),
            Tenant.visa_expiry_date >= as_of,
            Tenant.visa_expiry_date <= as_of + timedelta(days=days),
        )
        .order_by(Tenant.visa_expiry_date)
        .all()
    )


def _has_guarantor(tenant: Tenant) -> bool:
    return bool(tenant.guarantor_name and tenant.guarantor_phone and tenant.guarantor_ic)


def get_foreign_tenants_without_guarantor(org_id: int) -> list[Tenant]:
    foreign = (
        db.session.query(Tenant)
        .filter(Tenant.organization_id == org_id, Tenant.nationality != NATIONALITY_MALAYSIAN)
        .order_by(Tenant.full_name)
        .all()
    )
    return [t for t in foreign if not _has_guarantor(t)]


def get_nationality_counts(org_id: int) -> dict[str, int]:
    rows = (
        db.session.query(Tenant.nationality, db.func.count(Tenant.id))
        .filter(Tenant.organization_id == org_id)
        .group_by(Tenant.nationality)
        .all()
    )
    return {nationality: count for nationality, count in rows}


def get_compliance_summary(org_id: int, *, as_of: date | None = None) -> dict:
    as_of = as_of or today()
    tenants = db.session.query(Tenant).filter(Tenant.organization_id == org_id).all()

    malaysian = [t for t in tenants if t.nationality == NATIONALITY_MALAYSIAN]
    foreign = [t for t in tenants if t.nationality != NATIONALITY_MALAYSIAN]
    with_visa = [t for t in foreign if t.visa_expiry_date is not None]

    return {
        "total_tenants": len(tenants),
        "malaysian_tenants": len(malaysian),
        "foreign_tenants": len(foreign),
        "with_ic": sum(1 for t in tenants if t.ic_number),
        "with_guarantor": sum(1 for t in tenants if _has_guarantor(t)),
        "expired_visas": sum(1 for t in with_visa if t.visa_expiry_date < as_of),
        "expiring_visas": sum(
            1 for t in with_visa
            if as_of <= t.visa_expiry_date <= as_of + timedelta(days=30)
        ),
    }
