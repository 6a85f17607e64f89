# Overview: Pytest coverage proving one organization can never read or change another's rows.

"""
Organization isolation tests

Every id-addressed endpoint answers 404 for rows owned by another
organization and records a CROSS_ORG_ACCESS_DENIED security event.
"""

import pytest

from rentara.errors import OrganizationAccessError
from rentara.models import Payment, SecurityEvent, Unit
from rentara.services import deposit_service, payment_service, rent_service, tenant_service

from conftest import auth_headers


@pytest.fixture
def tenant_a(db_session, org_a, unit_a1):
    return tenant_service.create_tenant(org_a.id, {
        "full_name": "Kavitha Raman",
        "unit_id": unit_a1.id,
        "status": "active",
    })


@pytest.fixture
def payment_a(org_a, tenant_a):
    rent = payment_service.get_payment_type_by_name("rent")
    return payment_service.create_payment(org_a.id, {
        "tenant_id": tenant_a.id,
        "payment_type_id": rent.id,
        "amount": "1500",
        "due_date": "2024-03-01",
    })


def _cross_org_events(db_session):
    return db_session.query(SecurityEvent).filter_by(event_type="CROSS_ORG_ACCESS_DENIED").all()


class TestReadIsolation:

    @pytest.mark.parametrize("path", [
        "/api/properties/{property}",
        "/api/units/{unit}",
        "/api/tenants/{tenant}",
        "/api/payments/{payment}",
        "/api/payments/{payment}/transactions",
    ])
    def test_other_org_rows_are_not_found(self, client, db_session, owner_b, property_a, unit_a1, tenant_a, payment_a, path):
        url = path.format(property=property_a.id, unit=unit_a1.id, tenant=tenant_a.id, payment=payment_a.id)

        response = client.get(url, headers=auth_headers(owner_b))

        assert response.status_code == 404
        assert "not found" in response.get_json()["error"]
        events = _cross_org_events(db_session)
        assert len(events) == 1
        assert events[0].user_id == owner_b.id

    def test_lists_only_show_own_rows(self, client, owner_b, tenant_a, payment_a):
        headers = auth_headers(owner_b)
        for path in ("/api/properties", "/api/units", "/api/tenants", "/api/payments", "/api/deposits"):
            response = client.get(path, headers=headers)
            assert response.status_code == 200, path
            assert response.get_json() == [], path


class TestWriteIsolation:

    def test_cannot_record_transaction_on_other_org_payment(self, client, db_session, owner_b, payment_a):
        response = client.post(
            f"/api/payments/{payment_a.id}/transactions",
            json={"amount": "100"},
            headers=auth_headers(owner_b),
        )

        assert response.status_code == 404
        db_session.expire_all()
        assert db_session.get(Payment, payment_a.id).paid_amount_cents == 0

    def test_cannot_assign_other_org_unit(self, client, db_session, owner_b, unit_a1):
        response = client.post(
            "/api/tenants",
            json={"full_name": "Intruder", "unit_id": unit_a1.id, "status": "active"},
            headers=auth_headers(owner_b),
        )

        assert response.status_code == 404
        db_session.expire_all()
        assert db_session.get(Unit, unit_a1.id).status == "vacant"

    def test_cannot_move_tenant_into_other_org_unit(self, client, db_session, owner_a, tenant_a, unit_b1):
        response = client.post(
            f"/api/tenants/{tenant_a.id}/move",
            json={"unit_id": unit_b1.id},
            headers=auth_headers(owner_a),
        )

        assert response.status_code == 404
        db_session.expire_all()
        assert db_session.get(Unit, unit_b1.id).status == "vacant"
        assert _cross_org_events(db_session)[0].organization_id == tenant_a.organization_id

    def test_cannot_cancel_or_delete_across_orgs(self, client, owner_b, property_a, payment_a):
        headers = auth_headers(owner_b)
        assert client.post(f"/api/payments/{payment_a.id}/cancel", headers=headers).status_code == 404
        assert client.delete(f"/api/properties/{property_a.id}", headers=headers).status_code == 404


class TestServiceIsolation:

    def test_rent_generation_never_touches_other_orgs(self, db_session, org_a, org_b, tenant_a):
        rent_service.create_rent_schedule(org_a.id, {
            "tenant_id": tenant_a.id, "rent_amount": "1500", "due_day": 1, "start_date": "2024-01-01",
        })
        assert rent_service.generate_monthly_rent(org_b.id, 2, 2024).created == []

    def test_deposit_lookup_scoped(self, org_a, org_b, tenant_a):
        deposit = deposit_service.create_deposit(org_a.id, {
            "tenant_id": tenant_a.id, "amount": "3000", "received_date": "2024-01-01",
        })
        assert deposit_service.list_deposits(org_b.id) == []
        with pytest.raises(OrganizationAccessError, match="not found"):
            deposit_service.get_deposit(org_b.id, deposit.id)
