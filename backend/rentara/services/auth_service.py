# Overview: Password hashing, user creation, sign-in and organization signup.

"""
Authentication Service

WHY: Every action must be attributable to a user. Passwords are hashed with
bcrypt and checked for strength; sign-in issues an opaque session token.

MULTI-TENANT: Organization users belong to exactly one organization.
Email addresses are globally unique because sign-in is by email alone.
Super admins have no organization and may only use the super-admin portal.

SECURITY NOTES:
- bcrypt cost factor 12 (BCRYPT_ROUNDS)
- Minimum 8 characters with upper, lower, digit and special character
- Failed sign-ins are recorded as LOGIN_FAILED security events
"""

from __future__ import annotations

import re
from datetime import timedelta

import bcrypt
from flask import current_app

from ..constants import (
    ROLE_MEMBER,
    ROLE_OWNER,
    SUBSCRIPTION_DURATIONS,
    SUBSCRIPTION_TRIAL,
    USER_ROLES,
)
from ..errors import AuthenticationError
from ..extensions import db
from ..models import Organization, User
from ..validation import ConflictError, ValidationError
from rentara.time_utils import utcnow
from . import session_service
from .audit_service import log_security_event
from .concurrency import run_with_retry


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet strength requirements."""


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_password_strength(password: str | None) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter, one lowercase letter and one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")
    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never verify."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("A valid email address is required")
    return email


def _ensure_email_available(email: str) -> None:
    if db.session.query(User.id).filter(User.email == email).first():
        raise ConflictError("Email address is already registered")


def create_user(
    *,
    email: str,
    password: str,
    organization_id: int,
    full_name: str | None = None,
    role: str = ROLE_MEMBER,
) -> User:
    """
    Create an organization user.

    Raises:
        ValidationError: bad email/role/password, organization inactive, or
            the organization's plan user limit is reached
        ConflictError: email already registered
    """
    from .organization_service import ensure_within_plan_limit

    email = normalize_email(email)
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(USER_ROLES))}")

    org = db.session.get(Organization, organization_id)
    if not org:
        raise ValidationError("Organization not found")
    if not org.is_active:
        raise ValidationError("Organization is not active")

    _ensure_email_available(email)
    ensure_within_plan_limit(org, "users")

    user = User(
        organization_id=organization_id,
        email=email,
        full_name=(full_name or "").strip() or None,
        password_hash=hash_password(password),
        role=role,
        is_super_admin=False,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def create_super_admin(*, email: str, password: str, full_name: str | None = None) -> User:
    email = normalize_email(email)
    _ensure_email_available(email)
    user = User(
        organization_id=None,
        email=email,
        full_name=(full_name or "").strip() or None,
        password_hash=hash_password(password),
        role=ROLE_MEMBER,
        is_super_admin=True,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Check credentials. Returns the active User or None.

    Organization users additionally need an active organization.
    Updates last_login_at on success.
    """
    email = (email or "").strip().lower()
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        return None

    if not user.is_super_admin:
        org = db.session.get(Organization, user.organization_id) if user.organization_id else None
        if not org or not org.is_active:
            return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def sign_in(
    email: str,
    password: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[User, str]:
    """
    Organization sign-in. Returns (user, plaintext_token).

    Raises AuthenticationError on bad credentials or for super-admin
    accounts, which must use super_admin_sign_in.
    """
    user = authenticate(email, password)
    if not user:
        log_security_event(
            user_id=None,
            event_type="LOGIN_FAILED",
            success=False,
            resource="/api/auth/login",
            action="POST",
            reason=f"Invalid credentials for {email}",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise AuthenticationError("Invalid email or password")

    if user.is_super_admin or not user.organization_id:
        raise AuthenticationError("Super admin accounts must sign in through the super admin portal")

    _session, token = session_service.create_session(user, user_agent=user_agent, ip_address=ip_address)
    return user, token


def super_admin_sign_in(
    email: str,
    password: str,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[User, str]:
    """
    Super-admin portal sign-in.

    SECURITY: A correct password on an account without is_super_admin still
    produces a session, which is revoked immediately before failing; no
    usable token ever leaves this function for such accounts.
    """
    user = authenticate(email, password)
    if not user:
        log_security_event(
            user_id=None,
            event_type="LOGIN_FAILED",
            success=False,
            resource="/api/superadmin/login",
            action="POST",
            reason=f"Invalid credentials for {email}",
            ip_address=ip_address,
            user_agent=user_agent,
        )
        raise AuthenticationError("Invalid email or password")

    _session, token = session_service.create_session(user, user_agent=user_agent, ip_address=ip_address)

    if not user.is_super_admin:
        session_service.revoke_session(token, reason="Super admin privilege required")
        log_security_event(
            user_id=user.id,
            event_type="SUPERADMIN_LOGIN_DENIED",
            success=False,
            resource="/api/superadmin/login",
            action="POST",
            reason="Account lacks super admin privilege",
            ip_address=ip_address,
            user_agent=user_agent,
            organization_id=user.organization_id,
        )
        raise AuthenticationError("Access denied. Super admin privileges required.")

    return user, token


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return slug[:48] or "organization"


def unique_slug(base: str) -> str:
    slug = slugify(base)
    candidate = slug
    n = 2
    while db.session.query(Organization.id).filter(Organization.slug == candidate).first():
        candidate = f"{slug}-{n}"
        n += 1
    return candidate


def signup(
    *,
    org_name: str,
    email: str,
    password: str,
    full_name: str | None = None,
) -> tuple[Organization, User]:
    """
    Self-service signup: a new trial organization plus its owner, atomically.

    The trial lasts SUBSCRIPTION_DURATIONS["trial"] days. Either both rows
    are created or neither is.
    """
    org_name = (org_name or "").strip()
    if not org_name:
        raise ValidationError("Organization name is required")
    email = normalize_email(email)
    password_hash = hash_password(password)

    def _op():
        _ensure_email_available(email)
        now = utcnow()
        org = Organization(
            name=org_name,
            slug=unique_slug(org_name),
            subscription_plan="starter",
            subscription_status=SUBSCRIPTION_TRIAL,
            billing_cycle="monthly",
            subscription_started_at=now,
            trial_ends_at=now + timedelta(days=SUBSCRIPTION_DURATIONS["trial"]),
        )
        db.session.add(org)
        db.session.flush()

        owner = User(
            organization_id=org.id,
            email=email,
            full_name=(full_name or "").strip() or None,
            password_hash=password_hash,
            role=ROLE_OWNER,
            is_super_admin=False,
            is_active=True,
        )
        db.session.add(owner)
        db.session.commit()
        return org, owner

    return run_with_retry(_op)
