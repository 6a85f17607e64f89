# Overview: Pytest coverage for the HTTP API: auth, permissions and the payment/tenant flows end to end.

"""
API route tests

Exercises the Flask blueprints through the test client. Responses are
checked from their JSON; model reads after a request call expire_all()
first.
"""

from datetime import date

from rentara.models import SecurityEvent, Unit

from conftest import PASSWORD, auth_headers


def _create_tenant(client, headers, unit, **extra):
    body = {
        "full_name": "Tan Wei Ming",
        "ic_number": "900101-14-5678",
        "phone": "012-345 6789",
        "unit_id": unit.id,
        "status": "active",
        "lease_start_date": "2024-01-01",
    }
    body.update(extra)
    response = client.post("/api/tenants", json=body, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _create_charge(client, headers, tenant_id, amount="1500.00", due="2024-02-01"):
    types = client.get("/api/payments/types", headers=headers).get_json()
    rent_id = next(t["id"] for t in types if t["name"] == "rent")
    response = client.post("/api/payments", json={
        "tenant_id": tenant_id,
        "payment_type_id": rent_id,
        "amount": amount,
        "due_date": due,
    }, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


class TestHealth:

    def test_health(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["checks"]["database"]["status"] == "healthy"


class TestAuthRoutes:

    def test_signup_then_me(self, client, db_session):
        response = client.post("/api/auth/signup", json={
            "organization_name": "Sri Damansara Lets",
            "email": "boss@sdl.my",
            "password": PASSWORD,
            "full_name": "Hafiz",
        })
        assert response.status_code == 201
        token = response.get_json()["token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        data = me.get_json()
        assert me.status_code == 200
        assert data["user"]["role"] == "owner"
        assert data["organization"]["subscription_status"] == "trial"
        assert "MANAGE_ORGANIZATION" in data["permissions"]
        assert data["subscription_metrics"]["total_days"] == 14

    def test_signup_weak_password(self, client, db_session):
        response = client.post("/api/auth/signup", json={
            "organization_name": "Weak Org", "email": "w@weak.my", "password": "password",
        })
        assert response.status_code == 400

    def test_login_logout(self, client, owner_a):
        response = client.post("/api/auth/login", json={"email": owner_a.email, "password": PASSWORD})
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.get_json()['token']}"}

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_login_bad_credentials(self, client, owner_a):
        response = client.post("/api/auth/login", json={"email": owner_a.email, "password": "Wr0ng!pass"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid email or password"

    def test_login_missing_fields(self, client, db_session):
        assert client.post("/api/auth/login", json={"email": "x@y.my"}).status_code == 400

    def test_missing_token(self, client, db_session):
        assert client.get("/api/payments").status_code == 401

    def test_super_admin_token_rejected_by_org_routes(self, client, db_session, super_admin):
        response = client.get("/api/payments", headers=auth_headers(super_admin))
        assert response.status_code == 401
        assert db_session.query(SecurityEvent).filter_by(event_type="TENANT_CONTEXT_MISSING").count() == 1


class TestPermissions:

    def test_member_cannot_create_charges(self, client, db_session, member_a, owner_a, unit_a1):
        tenant = _create_tenant(client, auth_headers(owner_a), unit_a1)
        response = client.post("/api/payments", json={
            "tenant_id": tenant["id"], "payment_type_id": 1, "amount": "10", "due_date": "2024-01-01",
        }, headers=auth_headers(member_a))

        assert response.status_code == 403
        assert response.get_json()["required_permission"] == "MANAGE_PAYMENTS"
        assert db_session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").count() == 1

    def test_member_can_record_transactions(self, client, member_a, owner_a, unit_a1):
        owner = auth_headers(owner_a)
        tenant = _create_tenant(client, owner, unit_a1)
        payment = _create_charge(client, owner, tenant["id"])

        response = client.post(
            f"/api/payments/{payment['id']}/transactions",
            json={"amount": "500"},
            headers=auth_headers(member_a),
        )
        assert response.status_code == 201

    def test_member_cannot_generate_rent_or_manage_users(self, client, member_a):
        headers = auth_headers(member_a)
        assert client.post("/api/payments/rent/generate", json={"month": 1, "year": 2024}, headers=headers).status_code == 403
        assert client.get("/api/organization/users", headers=headers).status_code == 403


class TestPaymentFlow:

    def test_charge_partial_paid(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        payment = _create_charge(client, headers, tenant["id"])
        assert payment["status"] == "pending"
        assert payment["amount"] == "1500.00"

        methods = client.get("/api/payments/methods", headers=headers).get_json()
        fpx = next(m["id"] for m in methods if m["name"] == "online_banking")

        first = client.post(f"/api/payments/{payment['id']}/transactions", json={
            "amount": "500.00",
            "payment_method_id": fpx,
            "transaction_date": "2024-02-03",
            "reference": "FPX-1",
        }, headers=headers)
        assert first.status_code == 201
        body = first.get_json()
        assert body["transaction"]["payment_method"] == "online_banking"
        assert body["payment"]["status"] == "partial"
        assert body["payment"]["balance"] == "1000.00"

        second = client.post(f"/api/payments/{payment['id']}/transactions", json={"amount_cents": 100000}, headers=headers)
        assert second.get_json()["payment"]["status"] == "paid"

        detail = client.get(f"/api/payments/{payment['id']}", headers=headers).get_json()
        assert detail["paid_amount"] == "1500.00"
        assert [t["amount_cents"] for t in detail["transactions"]] == [50000, 100000]

    def test_overpayment_rejected(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        payment = _create_charge(client, headers, tenant["id"], amount="100")

        response = client.post(f"/api/payments/{payment['id']}/transactions", json={"amount": "100.01"}, headers=headers)
        assert response.status_code == 400
        assert "remaining balance" in response.get_json()["error"]

    def test_bad_transaction_input(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        payment = _create_charge(client, headers, tenant["id"])
        url = f"/api/payments/{payment['id']}/transactions"

        assert client.post(url, json={}, headers=headers).status_code == 400
        assert client.post(url, json={"amount": "abc"}, headers=headers).status_code == 400
        assert client.post(url, json={"amount": "10", "transaction_date": "03/02/2024"}, headers=headers).status_code == 400

    def test_status_patch_only_cancels(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        payment = _create_charge(client, headers, tenant["id"])
        url = f"/api/payments/{payment['id']}/status"

        assert client.patch(url, json={"status": "paid"}, headers=headers).status_code == 400
        response = client.patch(url, json={"status": "cancelled"}, headers=headers)
        assert response.status_code == 200
        assert response.get_json()["status"] == "cancelled"

    def test_overdue_is_reported_not_stored(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        payment = _create_charge(client, headers, tenant["id"], due="2020-01-01")

        assert payment["status"] == "pending"
        assert payment["effective_status"] == "overdue"
        overdue = client.get("/api/payments?status=overdue", headers=headers).get_json()
        assert [p["id"] for p in overdue] == [payment["id"]]

    def test_analytics(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        payment = _create_charge(client, headers, tenant["id"])
        client.post(f"/api/payments/{payment['id']}/transactions", json={"amount": "300"}, headers=headers)

        data = client.get("/api/payments/analytics", headers=headers).get_json()
        assert data["total_due"] == "1500.00"
        assert data["total_paid"] == "300.00"
        assert data["total_overdue"] == "1200.00"
        assert data["total_partial"] == "0.00"
        assert data["collection_rate"] == 20.0


class TestRentRoutes:

    def test_generate_is_idempotent(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        schedule = client.post("/api/payments/rent-schedules", json={
            "tenant_id": tenant["id"], "rent_amount": "1500", "due_day": 1, "start_date": "2024-01-01",
        }, headers=headers)
        assert schedule.status_code == 201

        preview = client.get("/api/payments/rent/preview?month=2&year=2024", headers=headers).get_json()
        assert len(preview["to_create"]) == 1

        first = client.post("/api/payments/rent/generate", json={"month": 2, "year": 2024}, headers=headers)
        second = client.post("/api/payments/rent/generate", json={"month": 2, "year": 2024}, headers=headers)

        assert first.status_code == 201
        assert first.get_json()["created_count"] == 1
        assert first.get_json()["created"][0]["due_date"] == "2024-02-01"
        assert second.get_json()["created_count"] == 0
        assert second.get_json()["skipped_count"] == 1
        assert len(client.get("/api/payments", headers=headers).get_json()) == 1

    def test_generate_requires_period(self, client, owner_a):
        response = client.post("/api/payments/rent/generate", json={"month": "feb"}, headers=auth_headers(owner_a))
        assert response.status_code == 400


class TestTenantRoutes:

    def test_create_move_and_vacate(self, client, db_session, owner_a, unit_a1, unit_a2):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        assert tenant["rent_amount"] == "1500.00"

        moved = client.post(f"/api/tenants/{tenant['id']}/move", json={
            "unit_id": unit_a2.id, "move_date": "2024-06-01",
        }, headers=headers)
        assert moved.status_code == 200

        detail = client.get(f"/api/tenants/{tenant['id']}", headers=headers).get_json()
        assert [lease["status"] for lease in detail["lease_history"]] == ["completed", "active"]

        out = client.put(f"/api/tenants/{tenant['id']}", json={"status": "moved_out"}, headers=headers)
        assert out.status_code == 200

        db_session.expire_all()
        assert db_session.get(Unit, unit_a1.id).status == "vacant"
        assert db_session.get(Unit, unit_a2.id).status == "vacant"

    def test_move_requires_unit_id(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        response = client.post(f"/api/tenants/{tenant['id']}/move", json={"unit_id": "2"}, headers=headers)
        assert response.status_code == 400

    def test_invalid_ic(self, client, owner_a):
        response = client.post("/api/tenants", json={"full_name": "X", "ic_number": "901301145678"}, headers=auth_headers(owner_a))
        assert response.status_code == 400
        assert "month" in response.get_json()["error"]

    def test_manual_occupied_status_rejected(self, client, owner_a, unit_a1):
        response = client.patch(f"/api/units/{unit_a1.id}/status", json={"status": "occupied"}, headers=auth_headers(owner_a))
        assert response.status_code == 400

    def test_property_with_units_cannot_be_deleted(self, client, owner_a, property_a, unit_a1):
        response = client.delete(f"/api/properties/{property_a.id}", headers=auth_headers(owner_a))
        assert response.status_code == 400


class TestDepositRoutes:

    def test_calculate(self, client, owner_a):
        data = client.get("/api/deposits/calculate?monthly_rent=1500", headers=auth_headers(owner_a)).get_json()
        assert data == {
            "security_deposit": "3000.00",
            "advance_rental": "1500.00",
            "utility_deposit": "750.00",
            "total": "5250.00",
        }

    def test_deposit_lifecycle(self, client, owner_a, unit_a1):
        headers = auth_headers(owner_a)
        tenant = _create_tenant(client, headers, unit_a1)
        deposit = client.post("/api/deposits", json={
            "tenant_id": tenant["id"], "amount": "3000", "received_date": "2024-01-01",
        }, headers=headers).get_json()

        deduction = client.post(f"/api/deposits/{deposit['id']}/deductions", json={
            "amount": "200", "reason": "cleaning",
        }, headers=headers)
        assert deduction.status_code == 201

        too_much = client.post(f"/api/deposits/{deposit['id']}/refund", json={"amount": "2900"}, headers=headers)
        assert too_much.status_code == 400

        refund = client.post(f"/api/deposits/{deposit['id']}/refund", json={
            "amount": "2800", "refund_date": date(2025, 1, 1).isoformat(),
        }, headers=headers)
        assert refund.status_code == 200
        assert refund.get_json()["status"] == "fully_refunded"
