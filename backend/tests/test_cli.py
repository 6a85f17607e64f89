# Overview: Pytest coverage for the flask CLI command groups.

from rentara.models import Organization, Payment, Unit, User
from rentara.services import rent_service, tenant_service

from conftest import PASSWORD


def _invoke(app, *args):
    return app.test_cli_runner().invoke(args=list(args))


def test_system_init_with_super_admin(app, db_session):
    result = _invoke(app, "system", "init", "--super-admin-email", "root@rentara.my", "--super-admin-password", PASSWORD)

    assert result.exit_code == 0
    assert "PASS Created super admin: root@rentara.my" in result.output
    assert db_session.query(User).filter_by(email="root@rentara.my", is_super_admin=True).count() == 1

    again = _invoke(app, "system", "init", "--super-admin-email", "root@rentara.my", "--super-admin-password", PASSWORD)
    assert "already exists" in again.output


def test_orgs_create_and_list(app, db_session):
    result = _invoke(
        app, "orgs", "create", "--name", "Seri Kembangan Stays",
        "--plan", "professional", "--status", "active",
        "--owner-email", "owner@sks.my", "--owner-password", PASSWORD,
    )
    assert result.exit_code == 0
    assert "Slug: seri-kembangan-stays" in result.output

    org = db_session.query(Organization).filter_by(slug="seri-kembangan-stays").one()
    assert org.subscription_plan == "professional"
    assert db_session.query(User).filter_by(organization_id=org.id, role="owner").count() == 1

    listing = _invoke(app, "orgs", "list")
    assert "Seri Kembangan Stays" in listing.output


def test_orgs_create_reports_weak_owner_password(app, db_session):
    result = _invoke(app, "orgs", "create", "--name", "Weak", "--owner-email", "w@weak.my", "--owner-password", "weak")
    assert "FAIL" in result.output
    assert db_session.query(Organization).filter_by(name="Weak").count() == 0


def test_users_create(app, db_session, org_a):
    result = _invoke(
        app, "users", "create", "--org-id", str(org_a.id),
        "--email", "clerk@harbourview.my", "--password", PASSWORD, "--role", "admin",
    )
    assert "PASS Created user: clerk@harbourview.my" in result.output

    listing = _invoke(app, "users", "list", "--org-id", str(org_a.id))
    assert "clerk@harbourview.my" in listing.output


def test_rent_generate_dry_run_then_real(app, db_session, org_a, unit_a1):
    tenant = tenant_service.create_tenant(org_a.id, {"full_name": "Lee Chong", "unit_id": unit_a1.id, "status": "active"})
    rent_service.create_rent_schedule(org_a.id, {
        "tenant_id": tenant.id, "rent_amount": "1500", "due_day": 1, "start_date": "2024-01-01",
    })

    dry = _invoke(app, "rent", "generate", "--month", "2", "--year", "2024", "--dry-run")
    assert "would create 1, skip 0" in dry.output
    assert db_session.query(Payment).count() == 0

    real = _invoke(app, "rent", "generate", "--month", "2", "--year", "2024")
    assert "created 1, skipped 0" in real.output
    rerun = _invoke(app, "rent", "generate", "--month", "2", "--year", "2024", "--org-id", str(org_a.id))
    assert "created 0, skipped 1" in rerun.output
    assert db_session.query(Payment).count() == 1


def test_reconcile_units(app, db_session, org_a, unit_a1):
    db_session.get(Unit, unit_a1.id).status = "occupied"
    db_session.commit()

    result = _invoke(app, "maintenance", "reconcile-units", "--org-id", str(org_a.id))

    assert "occupied -> vacant" in result.output
    assert "1 unit(s) updated." in result.output
    db_session.expire_all()
    assert db_session.get(Unit, unit_a1.id).status == "vacant"


def test_cleanup_security_events(app, db_session):
    result = _invoke(app, "maintenance", "cleanup-security-events", "--retention-days", "30")
    assert "Deleted 0 security events older than 30 days." in result.output
