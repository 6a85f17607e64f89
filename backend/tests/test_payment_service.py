# Overview: Pytest coverage for payment status transitions and transaction recording.

"""
Payment lifecycle tests

pending -> partial -> paid through transactions, cancellation rules, and
"overdue" as a read-time projection that is never stored.
"""

from datetime import date

import pytest

from rentara.errors import OrganizationAccessError
from rentara.models import Payment, PaymentTransaction
from rentara.services import payment_service, tenant_service
from rentara.services.payment_service import PaymentError
from rentara.validation import ValidationError

AS_OF = date(2024, 3, 10)


@pytest.fixture
def tenant_a(db_session, org_a, unit_a1):
    return tenant_service.create_tenant(org_a.id, {
        "full_name": "Tan Mei Ling",
        "unit_id": unit_a1.id,
        "status": "active",
        "lease_start_date": "2024-01-01",
    })


def _charge(org, tenant, amount="1500.00", due="2024-03-01", type_name="rent"):
    payment_type = payment_service.get_payment_type_by_name(type_name)
    return payment_service.create_payment(org.id, {
        "tenant_id": tenant.id,
        "payment_type_id": payment_type.id,
        "amount": amount,
        "due_date": due,
    })


class TestCreatePayment:

    def test_new_payment_is_pending_with_nothing_paid(self, org_a, tenant_a, unit_a1):
        payment = _charge(org_a, tenant_a)
        assert payment.status == "pending"
        assert payment.amount_cents == 150000
        assert payment.paid_amount_cents == 0
        assert payment.unit_id == unit_a1.id

    def test_zero_amount_rejected(self, org_a, tenant_a):
        with pytest.raises(ValidationError):
            _charge(org_a, tenant_a, amount="0")

    def test_tenant_from_other_org_rejected(self, org_a, org_b, tenant_a):
        with pytest.raises(OrganizationAccessError):
            _charge(org_b, tenant_a)


class TestRecordTransaction:

    def test_partial_then_paid(self, db_session, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)

        payment_service.record_transaction(org_a.id, payment.id, 50000, as_of=AS_OF)
        payment = db_session.get(Payment, payment.id)
        assert payment.paid_amount_cents == 50000
        assert payment.status == "partial"
        assert payment.paid_date is None

        payment_service.record_transaction(org_a.id, payment.id, 100000, as_of=AS_OF)
        payment = db_session.get(Payment, payment.id)
        assert payment.paid_amount_cents == 150000
        assert payment.status == "paid"
        assert payment.paid_date == AS_OF

    def test_transactions_sum_to_paid_amount(self, db_session, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)
        for cents in (10000, 25000, 40000):
            payment_service.record_transaction(org_a.id, payment.id, cents, as_of=AS_OF)

        payment = db_session.get(Payment, payment.id)
        assert payment.paid_amount_cents == 75000
        assert payment.status == "partial"
        assert sum(t.amount_cents for t in payment.transactions) == 75000

    def test_transaction_fields_recorded(self, org_a, tenant_a, owner_a):
        payment = _charge(org_a, tenant_a)
        method = payment_service.list_payment_methods()[0]

        transaction = payment_service.record_transaction(
            org_a.id, payment.id, 150000,
            payment_method_id=method.id,
            transaction_date=date(2024, 3, 2),
            reference="FPX-88123",
            recorded_by=owner_a.id,
            as_of=AS_OF,
        )
        assert transaction.transaction_date == date(2024, 3, 2)
        assert transaction.reference == "FPX-88123"
        assert transaction.payment_method_id == method.id
        assert transaction.recorded_by == owner_a.id

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_amount_rejected(self, org_a, tenant_a, amount):
        payment = _charge(org_a, tenant_a)
        with pytest.raises(PaymentError):
            payment_service.record_transaction(org_a.id, payment.id, amount)

    def test_overpayment_rejected_and_nothing_written(self, db_session, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)
        payment_service.record_transaction(org_a.id, payment.id, 100000, as_of=AS_OF)

        with pytest.raises(PaymentError, match="remaining balance"):
            payment_service.record_transaction(org_a.id, payment.id, 60000, as_of=AS_OF)

        payment = db_session.get(Payment, payment.id)
        assert payment.paid_amount_cents == 100000
        assert db_session.query(PaymentTransaction).filter_by(payment_id=payment.id).count() == 1

    def test_paid_payment_rejects_more(self, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)
        payment_service.record_transaction(org_a.id, payment.id, 150000, as_of=AS_OF)
        with pytest.raises(PaymentError, match="already fully paid"):
            payment_service.record_transaction(org_a.id, payment.id, 1)

    def test_cancelled_payment_rejects_transactions(self, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)
        payment_service.cancel_payment(org_a.id, payment.id)
        with pytest.raises(PaymentError, match="cancelled"):
            payment_service.record_transaction(org_a.id, payment.id, 1000)

    def test_unknown_payment_method_rejected(self, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)
        with pytest.raises(PaymentError, match="payment method"):
            payment_service.record_transaction(org_a.id, payment.id, 1000, payment_method_id=9999)

    def test_cross_org_payment_not_found(self, org_a, org_b, tenant_a):
        payment = _charge(org_a, tenant_a)
        with pytest.raises(OrganizationAccessError):
            payment_service.record_transaction(org_b.id, payment.id, 1000)


class TestStatus:

    def test_only_cancellation_is_manual(self, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)
        with pytest.raises(PaymentError):
            payment_service.update_payment_status(org_a.id, payment.id, "paid")

        cancelled = payment_service.update_payment_status(org_a.id, payment.id, "cancelled")
        assert cancelled.status == "cancelled"

    def test_cannot_cancel_paid_payment(self, org_a, tenant_a):
        payment = _charge(org_a, tenant_a)
        payment_service.record_transaction(org_a.id, payment.id, 150000, as_of=AS_OF)
        with pytest.raises(PaymentError):
            payment_service.cancel_payment(org_a.id, payment.id)

    def test_effective_status_overdue_is_derived(self, db_session, org_a, tenant_a):
        payment = _charge(org_a, tenant_a, due="2024-03-01")

        assert payment_service.effective_status(payment, date(2024, 3, 1)) == "pending"
        assert payment_service.effective_status(payment, date(2024, 3, 2)) == "overdue"
        assert db_session.get(Payment, payment.id).status == "pending"

    def test_partial_and_paid_are_never_overdue(self, org_a, tenant_a):
        partial = _charge(org_a, tenant_a, due="2024-01-01")
        payment_service.record_transaction(org_a.id, partial.id, 1000, as_of=AS_OF)
        paid = _charge(org_a, tenant_a, due="2024-01-01", type_name="utility", amount="50")
        payment_service.record_transaction(org_a.id, paid.id, 5000, as_of=AS_OF)

        assert payment_service.effective_status(partial, AS_OF) == "partial"
        assert payment_service.effective_status(paid, AS_OF) == "paid"

    def test_status_after(self):
        assert payment_service.status_after(1000, 0) == "pending"
        assert payment_service.status_after(1000, 1) == "partial"
        assert payment_service.status_after(1000, 1000) == "paid"


class TestListPayments:

    def test_overdue_filter_uses_effective_status(self, org_a, tenant_a):
        late = _charge(org_a, tenant_a, due="2024-03-01")
        upcoming = _charge(org_a, tenant_a, due="2024-04-01")

        overdue_ids = [p.id for p in payment_service.list_payments(org_a.id, status="overdue", as_of=AS_OF)]
        pending_ids = [p.id for p in payment_service.list_payments(org_a.id, status="pending", as_of=AS_OF)]

        assert overdue_ids == [late.id]
        assert pending_ids == [upcoming.id]

    def test_date_range_and_type_filters(self, org_a, tenant_a):
        rent = _charge(org_a, tenant_a, due="2024-02-01")
        _charge(org_a, tenant_a, due="2024-05-01")
        utility = _charge(org_a, tenant_a, due="2024-02-15", type_name="utility", amount="80")

        in_feb = payment_service.list_payments(org_a.id, from_date="2024-02-01", to_date="2024-02-29")
        assert {p.id for p in in_feb} == {rent.id, utility.id}

        utilities = payment_service.list_payments(org_a.id, payment_type_id=utility.payment_type_id)
        assert [p.id for p in utilities] == [utility.id]

    def test_scoped_to_organization(self, org_a, org_b, tenant_a):
        _charge(org_a, tenant_a)
        assert payment_service.list_payments(org_b.id) == []

    def test_invalid_status_filter(self, org_a):
        with pytest.raises(ValidationError):
            payment_service.list_payments(org_a.id, status="late")


class TestCatalog:

    def test_catalog_seed_is_idempotent(self, db_session):
        payment_service.ensure_payment_catalog()
        names = [t.name for t in payment_service.list_payment_types()]
        assert names.count("rent") == 1
        assert {"rent", "deposit", "utility", "late_fee", "maintenance", "other"} <= set(names)
        assert "online_banking" in {m.name for m in payment_service.list_payment_methods()}
