"""
Pytest fixtures for Rentara backend tests.

Provides an in-memory database, two isolated organizations with users,
property/unit fixtures and auth header helpers.
"""

import pytest

from rentara import create_app
from rentara.extensions import db
from rentara.models import Organization, Property, Unit, User
from rentara.services import payment_service, session_service
from rentara.services.auth_service import hash_password
from rentara.time_utils import utcnow

PASSWORD = "Passw0rd!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test; payment types/methods are re-seeded."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        payment_service.ensure_payment_catalog()

        yield db.session

        db.session.rollback()


def _make_org(db_session, name, slug, *, plan="professional", status="active"):
    org = Organization(
        name=name,
        slug=slug,
        subscription_plan=plan,
        subscription_status=status,
        billing_cycle="monthly",
        subscription_started_at=utcnow(),
    )
    db_session.add(org)
    db_session.commit()
    return org


def _make_user(db_session, org, email, role):
    user = User(
        organization_id=org.id if org else None,
        email=email,
        full_name=email.split("@")[0].title(),
        password_hash=hash_password(PASSWORD),
        role=role,
        is_super_admin=org is None,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def org_a(db_session):
    """Organization A (first tenant of the platform)."""
    return _make_org(db_session, "Harbour View Properties", "harbour-view")


@pytest.fixture(scope='function')
def org_b(db_session):
    """Organization B (second tenant of the platform)."""
    return _make_org(db_session, "Bukit Indah Rentals", "bukit-indah")


@pytest.fixture(scope='function')
def owner_a(db_session, org_a):
    return _make_user(db_session, org_a, "owner@harbourview.my", "owner")


@pytest.fixture(scope='function')
def member_a(db_session, org_a):
    return _make_user(db_session, org_a, "staff@harbourview.my", "member")


@pytest.fixture(scope='function')
def owner_b(db_session, org_b):
    return _make_user(db_session, org_b, "owner@bukitindah.my", "owner")


@pytest.fixture(scope='function')
def super_admin(db_session):
    return _make_user(db_session, None, "ops@rentara.my", "member")


@pytest.fixture(scope='function')
def property_a(db_session, org_a):
    prop = Property(organization_id=org_a.id, name="Residensi Harbour", city="George Town", state="penang", total_units=10)
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture(scope='function')
def property_b(db_session, org_b):
    prop = Property(organization_id=org_b.id, name="Bukit Indah Court", city="Johor Bahru", state="johor", total_units=4)
    db_session.add(prop)
    db_session.commit()
    return prop


def make_unit(db_session, prop, number, rent_cents=150000, status="vacant"):
    unit = Unit(
        organization_id=prop.organization_id,
        property_id=prop.id,
        unit_number=number,
        rent_amount_cents=rent_cents,
        status=status,
    )
    db_session.add(unit)
    db_session.commit()
    return unit


@pytest.fixture(scope='function')
def unit_a1(db_session, property_a):
    return make_unit(db_session, property_a, "A-01-01")


@pytest.fixture(scope='function')
def unit_a2(db_session, property_a):
    return make_unit(db_session, property_a, "A-01-02", rent_cents=180000)


@pytest.fixture(scope='function')
def unit_b1(db_session, property_b):
    return make_unit(db_session, property_b, "B-G-01", rent_cents=90000)


def auth_headers(user) -> dict:
    """Open a session for user and return Authorization headers."""
    _session, token = session_service.create_session(user)
    return {'Authorization': f'Bearer {token}'}
