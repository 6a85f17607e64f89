from __future__ import annotations

from ..extensions import db
from ..constants import ACTIVE_SUBSCRIPTION_STATUSES
from rentara.time_utils import to_utc_z

class Organization(db.Model):
    """
    Multi-tenant root: every customer of the product is an Organization.

    All properties, units, tenants, payments and users belong to exactly one
    organization. No data may cross organization boundaries.

    LIFECYCLE: created by signup or by a super admin; status changes
    (suspend/cancel) go through update, rows are never hard-deleted.
    """
    __tablename__ = "organizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)

    subscription_plan = db.Column(db.String(32), nullable=False, default="starter")
    subscription_status = db.Column(db.String(16), nullable=False, default="trial", index=True)  # trial, active, suspended, canceled
    billing_cycle = db.Column(db.String(16), nullable=False, default="monthly")
    subscription_started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    trial_ends_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_active(self) -> bool:
        return self.subscription_status in ACTIVE_SUBSCRIPTION_STATUSES

    def __repr__(self) -> str:
        return f"<Organization id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "subscription_plan": self.subscription_plan,
            "subscription_status": self.subscription_status,
            "billing_cycle": self.billing_cycle,
            "subscription_started_at": to_utc_z(self.subscription_started_at),
            "trial_ends_at": to_utc_z(self.trial_ends_at),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
