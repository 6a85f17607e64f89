# Overview: Pytest coverage for payment totals, breakdowns and monthly trends.

"""
Payment analytics tests

compute_analytics works on unsaved Payment objects, so most cases here
need no database.
"""

from datetime import date

from rentara.models import Payment, PaymentType
from rentara.services import analytics_service, payment_service, tenant_service

AS_OF = date(2024, 3, 10)

RENT = PaymentType(name="rent", display_name="Rent")
UTILITY = PaymentType(name="utility", display_name="Utilities")


def _payment(amount, paid, status, due, payment_type=RENT):
    return Payment(
        amount_cents=amount,
        paid_amount_cents=paid,
        status=status,
        due_date=due,
        payment_type=payment_type,
    )


def _ledger():
    return [
        _payment(150000, 0, "pending", date(2024, 3, 1)),       # overdue
        _payment(150000, 50000, "partial", date(2024, 2, 1)),   # partial, past due
        _payment(150000, 150000, "paid", date(2024, 1, 1)),
        _payment(20000, 0, "pending", date(2024, 3, 20), UTILITY),
        _payment(150000, 0, "cancelled", date(2024, 3, 1)),
    ]


class TestComputeAnalytics:

    def test_totals(self):
        result = analytics_service.compute_analytics(_ledger(), as_of=AS_OF)

        assert result["total_due_cents"] == 620000
        assert result["total_paid_cents"] == 200000
        assert result["total_overdue_cents"] == 250000
        assert result["total_pending_cents"] == 20000
        assert result["total_partial_cents"] == 0
        assert result["total_due"] == "6200.00"
        assert result["total_overdue"] == "2500.00"

    def test_collection_rate(self):
        result = analytics_service.compute_analytics(_ledger(), as_of=AS_OF)
        assert result["collection_rate"] == 32.3

    def test_by_status_uses_effective_status(self):
        by_status = analytics_service.compute_analytics(_ledger(), as_of=AS_OF)["payments_by_status"]

        assert by_status["overdue"]["count"] == 1
        assert by_status["pending"] == {"count": 1, "amount_cents": 20000, "amount": "200.00"}
        assert by_status["partial"]["count"] == 1
        assert by_status["paid"]["count"] == 1
        assert by_status["cancelled"]["amount_cents"] == 150000

    def test_by_type_counts_every_payment(self):
        by_type = analytics_service.compute_analytics(_ledger(), as_of=AS_OF)["payments_by_type"]

        assert by_type["Rent"]["count"] == 4
        assert by_type["Rent"]["amount_cents"] == 600000
        assert by_type["Utilities"]["count"] == 1

    def test_cancelled_payments_count_in_due_but_not_in_open_balances(self):
        cancelled = [_payment(150000, 20000, "cancelled", date(2024, 1, 1))]
        result = analytics_service.compute_analytics(cancelled, as_of=AS_OF)

        assert result["total_due_cents"] == 150000
        assert result["total_paid_cents"] == 20000
        assert result["total_overdue_cents"] == 0
        assert result["total_pending_cents"] == 0
        assert result["total_partial_cents"] == 0

    def test_open_balance_counted_in_one_bucket(self):
        result = analytics_service.compute_analytics([
            _payment(150000, 0, "pending", date(2024, 3, 1)),
            _payment(150000, 40000, "partial", date(2024, 3, 1)),
            _payment(150000, 40000, "partial", date(2024, 4, 1)),
        ], as_of=AS_OF)

        assert result["total_overdue_cents"] == 260000
        assert result["total_pending_cents"] == 0
        assert result["total_partial_cents"] == 110000

    def test_not_yet_due_is_not_overdue(self):
        result = analytics_service.compute_analytics(
            [_payment(150000, 0, "pending", AS_OF)], as_of=AS_OF,
        )
        assert result["total_overdue_cents"] == 0
        assert result["total_pending_cents"] == 150000

    def test_empty(self):
        result = analytics_service.compute_analytics([], as_of=AS_OF)

        assert result["total_due"] == "0.00"
        assert result["collection_rate"] == 0
        assert result["payments_by_status"] == {}
        assert result["payments_by_type"] == {}


class TestMonthlyTrends:

    def test_grouped_by_due_month_ascending(self):
        trends = analytics_service.compute_monthly_trends(_ledger())

        assert [t["month"] for t in trends] == ["2024-01", "2024-02", "2024-03"]
        march = trends[-1]
        assert march["due_cents"] == 320000
        assert march["paid_cents"] == 0
        assert march["count"] == 3
        assert trends[1]["paid"] == "500.00"


class TestGetPaymentAnalytics:

    def test_loads_organization_payments(self, org_a, org_b, unit_a1):
        tenant = tenant_service.create_tenant(org_a.id, {
            "full_name": "Nurul Aina",
            "unit_id": unit_a1.id,
            "status": "active",
        })
        rent = payment_service.get_payment_type_by_name("rent")
        payment = payment_service.create_payment(org_a.id, {
            "tenant_id": tenant.id,
            "payment_type_id": rent.id,
            "amount": "1500",
            "due_date": "2024-03-01",
        })
        payment_service.record_transaction(org_a.id, payment.id, 60000, as_of=AS_OF)

        result = analytics_service.get_payment_analytics(org_a.id, as_of=AS_OF)

        assert result["total_due_cents"] == 150000
        assert result["total_paid_cents"] == 60000
        assert result["total_overdue_cents"] == 90000
        assert result["total_partial_cents"] == 0
        assert result["monthly_trends"][0]["month"] == "2024-03"

        empty = analytics_service.get_payment_analytics(org_b.id, as_of=AS_OF)
        assert empty["total_due_cents"] == 0
