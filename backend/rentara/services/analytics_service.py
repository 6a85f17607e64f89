# Overview: Payment totals, status/type breakdowns and monthly trends for the reports page.

"""
Payment Analytics

compute_analytics is a pure function over Payment rows; get_payment_analytics
loads the organization's payments (same filters as the payment list) and
feeds them through it.

CONVENTIONS:
- total_due and total_paid sum every payment, cancelled ones included.
- payments_by_status groups by EFFECTIVE status, so pending payments past
  their due date are counted under "overdue", not "pending".
- The open balance of a non-cancelled payment lands in one bucket only:
  total_overdue when it is unpaid and due before as_of, otherwise
  total_pending (full amount) or total_partial (remaining balance).
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date

from ..constants import PAYMENT_CANCELLED, PAYMENT_PAID, PAYMENT_PARTIAL, PAYMENT_PENDING
from rentara.currency import money
from rentara.time_utils import today
from .payment_service import list_payments


def _bucket() -> dict:
    return {"count": 0, "amount_cents": 0}


def _render(buckets: dict) -> dict:
    return {
        key: {"count": b["count"], "amount_cents": b["amount_cents"], "amount": money(b["amount_cents"])}
        for key, b in buckets.items()
    }


def compute_analytics(payments, *, as_of: date | None = None) -> dict:
    as_of = as_of or today()
    totals = {
        "total_due": 0,
        "total_paid": 0,
        "total_overdue": 0,
        "total_pending": 0,
        "total_partial": 0,
    }
    by_status: dict = {}
    by_type: dict = {}

    for payment in payments:
        status = payment.effective_status(as_of)
        by_status.setdefault(status, _bucket())
        by_status[status]["count"] += 1
        by_status[status]["amount_cents"] += payment.amount_cents

        type_name = payment.payment_type.display_name if payment.payment_type else "Unknown"
        by_type.setdefault(type_name, _bucket())
        by_type[type_name]["count"] += 1
        by_type[type_name]["amount_cents"] += payment.amount_cents

        paid = payment.paid_amount_cents or 0
        totals["total_due"] += payment.amount_cents
        totals["total_paid"] += paid

        # Each open balance lands in exactly one bucket; cancelled charges in none
        if payment.status == PAYMENT_CANCELLED:
            continue
        if payment.status != PAYMENT_PAID and payment.due_date < as_of:
            totals["total_overdue"] += payment.amount_cents - paid
        elif payment.status == PAYMENT_PENDING:
            totals["total_pending"] += payment.amount_cents
        elif payment.status == PAYMENT_PARTIAL:
            totals["total_partial"] += payment.amount_cents - paid

    result = {}
    for key, cents in totals.items():
        result[f"{key}_cents"] = cents
        result[key] = money(cents)
    result["payments_by_status"] = _render(by_status)
    result["payments_by_type"] = _render(by_type)
    result["collection_rate"] = (
        round(totals["total_paid"] / totals["total_due"] * 100, 1) if totals["total_due"] else 0
    )
    return result


def compute_monthly_trends(payments) -> list[dict]:
    """Per due month (YYYY-MM, ascending): amount due, amount paid and payment count."""
    months: "OrderedDict[str, dict]" = OrderedDict()
    for payment in sorted(payments, key=lambda p: p.due_date):
        key = payment.due_date.strftime("%Y-%m")
        entry = months.setdefault(key, {"month": key, "due_cents": 0, "paid_cents": 0, "count": 0})
        entry["due_cents"] += payment.amount_cents
        entry["paid_cents"] += payment.paid_amount_cents or 0
        entry["count"] += 1

    return [
        {**entry, "due": money(entry["due_cents"]), "paid": money(entry["paid_cents"])}
        for entry in months.values()
    ]


def get_payment_analytics(org_id: int, *, as_of: date | None = None, **filters) -> dict:
    as_of = as_of or today()
    payments = list_payments(org_id, as_of=as_of, **filters)
    analytics = compute_analytics(payments, as_of=as_of)
    analytics["monthly_trends"] = compute_monthly_trends(payments)
    return analytics
