from __future__ import annotations

from ..extensions import db
from rentara.currency import money
from rentara.time_utils import to_utc_z

class Property(db.Model):
    """
    A building or estate owned by an organization.

    Owns zero or more Units. total_units is the declared capacity and is
    informational; occupancy is always computed from Unit rows.
    """
    __tablename__ = "properties"
    __table_args__ = (
        db.Index("ix_properties_org_name", "organization_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(512), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    zip_code = db.Column(db.String(16), nullable=True)
    property_type = db.Column(db.String(32), nullable=True)  # condominium, apartment, landed, shoplot, ...
    total_units = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    units = db.relationship("Unit", backref="property", lazy=True, order_by="Unit.unit_number")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "property_type": self.property_type,
            "total_units": self.total_units,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Unit(db.Model):
    """
    Rentable unit inside a property.

    INVARIANT: status == "occupied" iff an active Tenant references the unit.
    Kept in sync by tenant_service inside the tenant's transaction;
    version_id guards against two writers racing on the same row.
    """
    __tablename__ = "units"
    __table_args__ = (
        db.UniqueConstraint("property_id", "unit_number", name="uq_units_property_number"),
        db.Index("ix_units_org_status", "organization_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id"), nullable=False, index=True)

    unit_number = db.Column(db.String(32), nullable=False)
    unit_type = db.Column(db.String(32), nullable=True)  # studio, 1br, 2br, room, ...
    floor = db.Column(db.String(16), nullable=True)
    bedrooms = db.Column(db.Integer, nullable=True)
    bathrooms = db.Column(db.Integer, nullable=True)
    square_feet = db.Column(db.Integer, nullable=True)

    rent_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="vacant", index=True)  # vacant, occupied, maintenance, unavailable
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "property_id": self.property_id,
            "property_name": self.property.name if self.property else None,
            "unit_number": self.unit_number,
            "unit_type": self.unit_type,
            "floor": self.floor,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "square_feet": self.square_feet,
            "rent_amount_cents": self.rent_amount_cents,
            "rent_amount": money(self.rent_amount_cents),
            "status": self.status,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
