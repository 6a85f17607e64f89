# Overview: Property CRUD scoped to the caller's organization, with unit occupancy statistics.

from __future__ import annotations

from ..constants import UNIT_OCCUPIED, UNIT_VACANT
from ..errors import ServiceError
from ..extensions import db
from ..models import Property, Unit
from ..validation import ModelValidationPolicy, validate_payload
from .org_scope import require_in_org
from .organization_service import ensure_within_plan_limit, get_organization


class PropertyError(ServiceError):
    """Raised for property rule violations."""


PROPERTY_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "address",
        "city",
        "state",
        "zip_code",
        "property_type",
        "total_units",
        "description",
    },
    required_on_create={"name"},
)


def occupancy_stats(units) -> dict:
    total = len(units)
    occupied = sum(1 for u in units if u.status == UNIT_OCCUPIED)
    vacant = sum(1 for u in units if u.status == UNIT_VACANT)
    return {
        "total_units": total,
        "occupied_units": occupied,
        "vacant_units": vacant,
        "occupancy_rate": round(occupied / total * 100) if total else 0,
    }


def list_properties(org_id: int) -> list[dict]:
    """Newest first; total_units here is the count of Unit rows, not the declared capacity."""
    properties = (
        db.session.query(Property)
        .filter(Property.organization_id == org_id)
        .order_by(Property.created_at.desc(), Property.id.desc())
        .all()
    )
    result = []
    for prop in properties:
        data = prop.to_dict()
        data["declared_units"] = prop.total_units
        data.update(occupancy_stats(prop.units))
        result.append(data)
    return result


def get_property(org_id: int, property_id: int) -> Property:
    return require_in_org(Property, property_id, org_id, label="Property")


def get_property_detail(org_id: int, property_id: int) -> dict:
    prop = get_property(org_id, property_id)
    data = prop.to_dict()
    data["units"] = []
    for unit in prop.units:
        unit_data = unit.to_dict()
        unit_data["tenants"] = [
            {
                "id": t.id,
                "full_name": t.full_name,
                "status": t.status,
                "lease_end_date": t.to_dict()["lease_end_date"],
            }
            for t in unit.tenants
        ]
        data["units"].append(unit_data)
    data.update(occupancy_stats(prop.units))
    return data


def create_property(org_id: int, payload: dict) -> Property:
    patch = validate_payload(model=Property, payload=payload, policy=PROPERTY_POLICY, partial=False)
    ensure_within_plan_limit(get_organization(org_id), "properties")

    prop = Property(organization_id=org_id, **patch)
    db.session.add(prop)
    db.session.commit()
    return prop


def update_property(org_id: int, property_id: int, payload: dict) -> Property:
    prop = get_property(org_id, property_id)
    patch = validate_payload(model=Property, payload=payload, policy=PROPERTY_POLICY, partial=True)
    for key, value in patch.items():
        setattr(prop, key, value)
    db.session.commit()
    return prop


def delete_property(org_id: int, property_id: int) -> None:
    prop = get_property(org_id, property_id)
    if db.session.query(Unit.id).filter(Unit.property_id == prop.id).first():
        raise PropertyError("Cannot delete a property that still has units")
    db.session.delete(prop)
    db.session.commit()


def get_property_options(org_id: int) -> list[dict]:
    rows = (
        db.session.query(Property.id, Property.name)
        .filter(Property.organization_id == org_id)
        .order_by(Property.name)
        .all()
    )
    return [{"id": row.id, "name": row.name} for row in rows]
