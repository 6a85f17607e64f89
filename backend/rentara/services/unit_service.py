# Overview: Unit CRUD and manual status changes that respect tenant occupancy.

"""
Unit Service

INVARIANT: Unit.status == "occupied" exactly when an active tenant is
assigned to the unit. tenant_service moves units between occupied and
vacant as tenants come and go; this module refuses manual changes that
would break the invariant (freeing an occupied unit, or marking an empty
unit occupied by hand).
"""

from __future__ import annotations

from ..constants import TENANT_ACTIVE, UNIT_OCCUPIED, UNIT_STATUSES, UNIT_VACANT
from ..errors import ServiceError
from ..extensions import db
from ..models import LeaseHistory, Payment, Property, Tenant, Unit
from ..validation import ConflictError, ModelValidationPolicy, enforce_choice, validate_payload
from .concurrency import lock_for_update, run_with_retry
from .org_scope import require_in_org
from .organization_service import ensure_within_plan_limit, get_organization


class UnitError(ServiceError):
    """Raised for unit rule violations."""


UNIT_POLICY = ModelValidationPolicy(
    writable_fields={
        "property_id",
        "unit_number",
        "unit_type",
        "floor",
        "bedrooms",
        "bathrooms",
        "square_feet",
        "rent_amount_cents",
        "status",
        "description",
    },
    required_on_create={"property_id", "unit_number", "rent_amount_cents"},
)


def active_tenant_for(unit_id: int) -> Tenant | None:
    return (
        db.session.query(Tenant)
        .filter(Tenant.unit_id == unit_id, Tenant.status == TENANT_ACTIVE)
        .first()
    )


def _check_manual_status(unit: Unit | None, status: str) -> None:
    occupied_by = active_tenant_for(unit.id) if unit is not None and unit.id else None
    if occupied_by and status != UNIT_OCCUPIED:
        raise UnitError(
            f"Unit is occupied by {occupied_by.full_name}; move the tenant out before changing its status"
        )
    if not occupied_by and status == UNIT_OCCUPIED:
        raise UnitError("A unit becomes occupied only when an active tenant is assigned")


def _ensure_unique_number(property_id: int, unit_number: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(Unit.id).filter(Unit.property_id == property_id, Unit.unit_number == unit_number)
    if exclude_id is not None:
        query = query.filter(Unit.id != exclude_id)
    if query.first():
        raise ConflictError(f"Unit {unit_number} already exists in this property")


def list_units(org_id: int, *, property_id: int | None = None, status: str | None = None) -> list[Unit]:
    query = db.session.query(Unit).filter(Unit.organization_id == org_id)
    if property_id is not None:
        query = query.filter(Unit.property_id == property_id)
    if status:
        query = query.filter(Unit.status == status)
    return query.order_by(Unit.property_id, Unit.unit_number).all()


def list_vacant_units(org_id: int, *, property_id: int | None = None) -> list[Unit]:
    return list_units(org_id, property_id=property_id, status=UNIT_VACANT)


def get_unit(org_id: int, unit_id: int) -> Unit:
    return require_in_org(Unit, unit_id, org_id, label="Unit")


def get_unit_detail(org_id: int, unit_id: int) -> dict:
    unit = get_unit(org_id, unit_id)
    data = unit.to_dict()
    data["tenants"] = [t.to_dict() for t in unit.tenants]
    return data


def create_unit(org_id: int, payload: dict) -> Unit:
    patch = validate_payload(model=Unit, payload=payload, policy=UNIT_POLICY, partial=False)
    enforce_choice(patch, "status", UNIT_STATUSES)
    require_in_org(Property, patch["property_id"], org_id, label="Property")
    _ensure_unique_number(patch["property_id"], patch["unit_number"])
    if patch.get("status") == UNIT_OCCUPIED:
        raise UnitError("A unit becomes occupied only when an active tenant is assigned")
    ensure_within_plan_limit(get_organization(org_id), "units")

    unit = Unit(organization_id=org_id, **patch)
    db.session.add(unit)
    db.session.commit()
    return unit


def update_unit(org_id: int, unit_id: int, payload: dict) -> Unit:
    patch = validate_payload(model=Unit, payload=payload, policy=UNIT_POLICY, partial=True)
    enforce_choice(patch, "status", UNIT_STATUSES)

    def _op():
        get_unit(org_id, unit_id)
        unit = lock_for_update(db.session.query(Unit).filter_by(id=unit_id)).one()

        if "property_id" in patch and patch["property_id"] != unit.property_id:
            require_in_org(Property, patch["property_id"], org_id, label="Property")
        if "unit_number" in patch or "property_id" in patch:
            _ensure_unique_number(
                patch.get("property_id", unit.property_id),
                patch.get("unit_number", unit.unit_number),
                exclude_id=unit.id,
            )
        if "status" in patch and patch["status"] != unit.status:
            _check_manual_status(unit, patch["status"])

        for key, value in patch.items():
            setattr(unit, key, value)
        db.session.commit()
        return unit

    return run_with_retry(_op)


def update_unit_status(org_id: int, unit_id: int, status: str) -> Unit:
    return update_unit(org_id, unit_id, {"status": status})


def delete_unit(org_id: int, unit_id: int) -> None:
    unit = get_unit(org_id, unit_id)
    if active_tenant_for(unit.id):
        raise UnitError("Cannot delete a unit with an active tenant")
    if (
        db.session.query(Tenant.id).filter(Tenant.unit_id == unit.id).first()
        or db.session.query(LeaseHistory.id).filter(LeaseHistory.unit_id == unit.id).first()
    ):
        raise UnitError("Cannot delete a unit that still has tenant records")
    if db.session.query(Payment.id).filter(Payment.unit_id == unit.id).first():
        raise UnitError("Cannot delete a unit with payment history")
    db.session.delete(unit)
    db.session.commit()


def get_unit_options(org_id: int, *, vacant_only: bool = False) -> list[dict]:
    units = list_vacant_units(org_id) if vacant_only else list_units(org_id)
    return [
        {
            "id": u.id,
            "label": f"{u.property.name} - {u.unit_number}" if u.property else u.unit_number,
            "status": u.status,
            "rent_amount_cents": u.rent_amount_cents,
        }
        for u in units
    ]
