# Overview: Pytest coverage for passwords, signup, sign-in and session validation.

from datetime import timedelta

import pytest

from rentara.errors import AuthenticationError
from rentara.models import Organization, SecurityEvent, SessionToken, User
from rentara.services import auth_service, session_service
from rentara.services.auth_service import PasswordValidationError
from rentara.validation import ConflictError

from conftest import PASSWORD


class TestPasswords:

    @pytest.mark.parametrize("password", [
        "Sh0rt!",
        "alllower1!",
        "ALLUPPER1!",
        "NoDigits!!",
        "NoSpecial11",
        None,
    ])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_hash_and_verify(self, app):
        with app.app_context():
            hashed = auth_service.hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert auth_service.verify_password(PASSWORD, hashed)
        assert not auth_service.verify_password("Wr0ng!pass", hashed)
        assert not auth_service.verify_password(PASSWORD, "not-a-bcrypt-hash")


class TestSignup:

    def test_creates_trial_org_and_owner(self, db_session):
        org, owner = auth_service.signup(
            org_name="Cahaya Homes", email="Admin@Cahaya.my", password=PASSWORD, full_name="Aisyah",
        )

        assert org.slug == "cahaya-homes"
        assert org.subscription_status == "trial"
        assert org.subscription_plan == "starter"
        assert org.trial_ends_at - org.subscription_started_at == timedelta(days=14)
        assert owner.role == "owner"
        assert owner.email == "admin@cahaya.my"

    def test_slug_made_unique(self, db_session, org_a):
        org, _owner = auth_service.signup(org_name="Harbour View", email="x@hv.my", password=PASSWORD)
        assert org.slug == "harbour-view-2"

    def test_duplicate_email_creates_nothing(self, db_session, owner_a):
        with pytest.raises(ConflictError):
            auth_service.signup(org_name="Another Org", email=owner_a.email, password=PASSWORD)
        assert db_session.query(Organization).filter_by(name="Another Org").count() == 0


class TestSignIn:

    def test_sign_in_returns_usable_token(self, db_session, owner_a, org_a):
        user, token = auth_service.sign_in(owner_a.email, PASSWORD)

        ctx = session_service.validate_session(token)
        assert user.id == owner_a.id
        assert ctx.user.id == owner_a.id
        assert ctx.org_id == org_a.id

    def test_bad_password_logged(self, db_session, owner_a):
        with pytest.raises(AuthenticationError):
            auth_service.sign_in(owner_a.email, "Wr0ng!pass")
        assert db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_suspended_org_cannot_sign_in(self, db_session, org_a, owner_a):
        org_a.subscription_status = "suspended"
        db_session.commit()
        with pytest.raises(AuthenticationError):
            auth_service.sign_in(owner_a.email, PASSWORD)

    def test_super_admin_must_use_portal(self, super_admin):
        with pytest.raises(AuthenticationError, match="super admin portal"):
            auth_service.sign_in(super_admin.email, PASSWORD)

    def test_super_admin_sign_in(self, super_admin):
        user, token = auth_service.super_admin_sign_in(super_admin.email, PASSWORD)
        ctx = session_service.validate_session(token)
        assert user.is_super_admin
        assert ctx.org_id is None

    def test_org_user_denied_super_admin_portal(self, db_session, owner_a):
        with pytest.raises(AuthenticationError, match="Super admin privileges required"):
            auth_service.super_admin_sign_in(owner_a.email, PASSWORD)

        sessions = db_session.query(SessionToken).filter_by(user_id=owner_a.id).all()
        assert sessions and all(s.is_revoked for s in sessions)
        assert db_session.query(SecurityEvent).filter_by(event_type="SUPERADMIN_LOGIN_DENIED").count() == 1


class TestSessions:

    def test_unknown_token(self, db_session):
        assert session_service.validate_session("nope") is None

    def test_revoked_token(self, owner_a):
        _session, token = session_service.create_session(owner_a)
        assert session_service.revoke_session(token)
        assert session_service.validate_session(token) is None
        assert not session_service.revoke_session(token)

    def test_idle_session_revoked(self, db_session, owner_a):
        session, token = session_service.create_session(owner_a)
        session.last_used_at = session.last_used_at - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert db_session.get(SessionToken, session.id).revoked_reason == "Idle timeout"

    def test_expired_session(self, db_session, owner_a):
        session, token = session_service.create_session(owner_a)
        session.expires_at = session.created_at - timedelta(seconds=1)
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_deactivated_user(self, db_session, owner_a):
        _session, token = session_service.create_session(owner_a)
        db_session.get(User, owner_a.id).is_active = False
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_only_hash_is_stored(self, db_session, owner_a):
        session, token = session_service.create_session(owner_a)
        assert session.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).count() == 0

    def test_revoke_all(self, owner_a):
        tokens = [session_service.create_session(owner_a)[1] for _ in range(3)]
        assert session_service.revoke_all_user_sessions(owner_a.id) == 3
        assert all(session_service.validate_session(t) is None for t in tokens)
