from __future__ import annotations

from datetime import date

from ..extensions import db
from ..constants import PAYMENT_OVERDUE, PAYMENT_PENDING
from rentara.currency import money
from rentara.time_utils import to_utc_z, to_iso_date, today


class PaymentType(db.Model):
    """Global catalog of charge kinds (rent, deposit, utility, ...)."""
    __tablename__ = "payment_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False, unique=True)
    display_name = db.Column(db.String(64), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "is_active": self.is_active,
        }


class PaymentMethod(db.Model):
    """Global catalog of ways money is received (cash, FPX, cheque, ...)."""
    __tablename__ = "payment_methods"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False, unique=True)
    display_name = db.Column(db.String(64), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "is_active": self.is_active,
        }


class Payment(db.Model):
    """
    An amount owed by a tenant (rent, deposit, utility, ...).

    LIFECYCLE: pending -> partial -> paid, or cancelled.
    paid_amount_cents only moves through PaymentTransaction rows.

    "overdue" is never stored: see effective_status().
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_org_due", "organization_id", "due_date"),
        db.Index("ix_payments_tenant_type_due", "tenant_id", "payment_type_id", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=True, index=True)
    payment_type_id = db.Column(db.Integer, db.ForeignKey("payment_types.id"), nullable=False)

    amount_cents = db.Column(db.Integer, nullable=False)
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    due_date = db.Column(db.Date, nullable=False)
    paid_date = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)  # pending, partial, paid, cancelled
    description = db.Column(db.String(255), nullable=True)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    recurring_period = db.Column(db.String(16), nullable=True)  # monthly, quarterly, yearly

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    tenant = db.relationship("Tenant", backref=db.backref("payments", lazy=True))
    unit = db.relationship("Unit")
    payment_type = db.relationship("PaymentType")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def balance_cents(self) -> int:
        return max(self.amount_cents - (self.paid_amount_cents or 0), 0)

    def effective_status(self, as_of: date | None = None) -> str:
        """Stored status, except a pending payment past its due date reads as overdue."""
        as_of = as_of or today()
        if self.status == PAYMENT_PENDING and self.due_date < as_of:
            return PAYMENT_OVERDUE
        return self.status

    def to_dict(self, as_of: date | None = None) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.full_name if self.tenant else None,
            "unit_id": self.unit_id,
            "unit_number": self.unit.unit_number if self.unit else None,
            "payment_type_id": self.payment_type_id,
            "payment_type": self.payment_type.name if self.payment_type else None,
            "payment_type_display": self.payment_type.display_name if self.payment_type else None,
            "amount_cents": self.amount_cents,
            "amount": money(self.amount_cents),
            "paid_amount_cents": self.paid_amount_cents,
            "paid_amount": money(self.paid_amount_cents),
            "balance_cents": self.balance_cents,
            "balance": money(self.balance_cents),
            "due_date": to_iso_date(self.due_date),
            "paid_date": to_iso_date(self.paid_date),
            "status": self.status,
            "effective_status": self.effective_status(as_of),
            "description": self.description,
            "is_recurring": self.is_recurring,
            "recurring_period": self.recurring_period,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class PaymentTransaction(db.Model):
    """
    Money received against a Payment.

    IMMUTABLE: Never update or delete. Inserted in the same DB transaction
    that bumps Payment.paid_amount_cents.
    """
    __tablename__ = "payment_transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id"), nullable=False, index=True)
    payment_method_id = db.Column(db.Integer, db.ForeignKey("payment_methods.id"), nullable=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    transaction_date = db.Column(db.Date, nullable=False)
    reference = db.Column(db.String(128), nullable=True)  # bank ref, cheque no, ...
    notes = db.Column(db.Text, nullable=True)

    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    payment = db.relationship("Payment", backref=db.backref("transactions", lazy=True, order_by="PaymentTransaction.id"))
    payment_method = db.relationship("PaymentMethod")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payment_id": self.payment_id,
            "payment_method_id": self.payment_method_id,
            "payment_method": self.payment_method.name if self.payment_method else None,
            "amount_cents": self.amount_cents,
            "amount": money(self.amount_cents),
            "transaction_date": to_iso_date(self.transaction_date),
            "reference": self.reference,
            "notes": self.notes,
            "recorded_by": self.recorded_by,
            "created_at": to_utc_z(self.created_at),
        }


class RentSchedule(db.Model):
    """Recurring-rent template; one Payment per month is generated from it."""
    __tablename__ = "rent_schedules"
    __table_args__ = (
        db.CheckConstraint("due_day >= 1 AND due_day <= 31", name="due_day_range"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=True)

    rent_amount_cents = db.Column(db.Integer, nullable=False)
    due_day = db.Column(db.Integer, nullable=False, default=1)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=True)
    late_fee_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    late_fee_days = db.Column(db.Integer, nullable=False, default=7)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    tenant = db.relationship("Tenant")
    unit = db.relationship("Unit")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.full_name if self.tenant else None,
            "unit_id": self.unit_id,
            "rent_amount_cents": self.rent_amount_cents,
            "rent_amount": money(self.rent_amount_cents),
            "due_day": self.due_day,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "late_fee_amount_cents": self.late_fee_amount_cents,
            "late_fee_amount": money(self.late_fee_amount_cents),
            "late_fee_days": self.late_fee_days,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class SecurityDeposit(db.Model):
    """
    Deposit held for a tenancy.

    balance = amount - total_deductions; refunds may not exceed the balance.
    """
    __tablename__ = "security_deposits"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    unit_id = db.Column(db.Integer, db.ForeignKey("units.id"), nullable=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    received_date = db.Column(db.Date, nullable=False)
    refund_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    refund_date = db.Column(db.Date, nullable=True)
    refund_reason = db.Column(db.String(255), nullable=True)
    total_deductions_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(24), nullable=False, default="held")  # held, partially_refunded, fully_refunded
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    tenant = db.relationship("Tenant")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def refundable_cents(self) -> int:
        return self.amount_cents - self.total_deductions_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "tenant_id": self.tenant_id,
            "tenant_name": self.tenant.full_name if self.tenant else None,
            "unit_id": self.unit_id,
            "amount_cents": self.amount_cents,
            "amount": money(self.amount_cents),
            "received_date": to_iso_date(self.received_date),
            "refund_amount_cents": self.refund_amount_cents,
            "refund_amount": money(self.refund_amount_cents),
            "refund_date": to_iso_date(self.refund_date),
            "refund_reason": self.refund_reason,
            "total_deductions_cents": self.total_deductions_cents,
            "total_deductions": money(self.total_deductions_cents),
            "refundable_cents": self.refundable_cents,
            "status": self.status,
            "notes": self.notes,
            "deductions": [d.to_dict() for d in self.deductions],
            "created_at": to_utc_z(self.created_at),
        }


class DepositDeduction(db.Model):
    __tablename__ = "deposit_deductions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    deposit_id = db.Column(db.Integer, db.ForeignKey("security_deposits.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(64), nullable=False)  # cleaning, damage, unpaid_rent, ...
    description = db.Column(db.Text, nullable=True)
    deduction_date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    deposit = db.relationship("SecurityDeposit", backref=db.backref("deductions", lazy=True, order_by="DepositDeduction.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "deposit_id": self.deposit_id,
            "amount_cents": self.amount_cents,
            "amount": money(self.amount_cents),
            "reason": self.reason,
            "description": self.description,
            "deduction_date": to_iso_date(self.deduction_date),
        }
