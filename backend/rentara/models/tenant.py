from __future__ import annotations

from ..extensions import db
from rentara.currency import money
from rentara.time_utils import to_utc_z, to_iso_date

class Tenant(db.Model):
    """
    A renter (not to be confused with an Organization, the SaaS tenant).

    unit_id is nullable: pending applicants and moved-out tenants keep their
    record without occupying a unit. Compliance fields (IC, nationality,
    work permit, visa expiry, guarantor) follow Malaysian letting practice.
    """
    __tablename__ = "tenants"
    __table_args__ = (
        db.Index("ix_tenants_org_status", "organization_id", "status"),
        db.Index("ix_tenants_unit_status", "unit_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=True)

    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    # Identity / compliance
    ic_number = db.Column(db.String(20), nullable=True)
    passport_number = db.Column(db.String(32), nullable=True)
    nationality = db.Column(db.String(32), nullable=False, default="malaysian")
    work_permit_type = db.Column(db.String(32), nullable=False, default="none")
    visa_expiry_date = db.Column(db.Date, nullable=True)

    guarantor_name = db.Column(db.String(255), nullable=True)
    guarantor_phone = db.Column(db.String(32), nullable=True)
    guarantor_ic = db.Column(db.String(20), nullable=True)

    emergency_contact_name = db.Column(db.String(255), nullable=True)
    emergency_contact_phone = db.Column(db.String(32), nullable=True)

    # Lease
    lease_start_date = db.Column(db.Date, nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True)
    move_in_date = db.Column(db.Date, nullable=True)
    move_out_date = db.Column(db.Date, nullable=True)
    rent_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    security_deposit_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)  # active, pending, inactive, moved_out
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    unit = db.relationship("Unit", backref=db.backref("tenants", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "unit_id": self.unit_id,
            "unit_number": self.unit.unit_number if self.unit else None,
            "property_id": self.unit.property_id if self.unit else None,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "ic_number": self.ic_number,
            "passport_number": self.passport_number,
            "nationality": self.nationality,
            "work_permit_type": self.work_permit_type,
            "visa_expiry_date": to_iso_date(self.visa_expiry_date),
            "guarantor_name": self.guarantor_name,
            "guarantor_phone": self.guarantor_phone,
            "guarantor_ic": self.guarantor_ic,
            "emergency_contact_name": self.emergency_contact_name,
            "emergency_contact_phone": self.emergency_contact_phone,
            "lease_start_date": to_iso_date(self.lease_start_date),
            "lease_end_date": to_iso_date(self.lease_end_date),
            "move_in_date": to_iso_date(self.move_in_date),
            "move_out_date": to_iso_date(self.move_out_date),
            "rent_amount_cents": self.rent_amount_cents,
            "rent_amount": money(self.rent_amount_cents),
            "security_deposit_cents": self.security_deposit_cents,
            "security_deposit": money(self.security_deposit_cents),
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class LeaseHistory(db.Model):
    """
    One row per stay of a tenant in a unit.

    Opened (status active) when a tenant becomes active in a unit; closed
    (status completed, move_out_date set) when the tenant moves out or moves
    to another unit. At most one active row per tenant.
    """
    __tablename__ = "lease_history"
    __table_args__ = (
        db.Index("ix_lease_history_tenant_status", "tenant_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=False, index=True)

    lease_start_date = db.Column(db.Date, nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True)
    rent_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    deposit_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    move_in_date = db.Column(db.Date, nullable=True)
    move_out_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")  # active, completed, terminated

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    tenant = db.relationship("Tenant", backref=db.backref("lease_history", lazy=True, order_by="LeaseHistory.id"))
    unit = db.relationship("Unit")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "tenant_id": self.tenant_id,
            "unit_id": self.unit_id,
            "unit_number": self.unit.unit_number if self.unit else None,
            "lease_start_date": to_iso_date(self.lease_start_date),
            "lease_end_date": to_iso_date(self.lease_end_date),
            "rent_amount_cents": self.rent_amount_cents,
            "rent_amount": money(self.rent_amount_cents),
            "deposit_amount_cents": self.deposit_amount_cents,
            "deposit_amount": money(self.deposit_amount_cents),
            "move_in_date": to_iso_date(self.move_in_date),
            "move_out_date": to_iso_date(self.move_out_date),
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
