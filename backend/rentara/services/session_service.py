# Overview: Opaque bearer-token sessions with absolute and idle timeouts.

"""
Session Token Management

WHY: Sessions are the only credential the API accepts after sign-in.
Tokens are random, stored only as a SHA-256 hash, and time-limited.

MULTI-TENANT: The organization is captured when the session is created and
never changes for the session's lifetime. Super-admin sessions carry no
organization.

SECURITY FEATURES:
- 32 bytes of entropy per token
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revoked on sign-out, deactivation or suspension of the organization
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from rentara.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass
class SessionContext:
    user: User
    session: SessionToken
    org_id: int | None  # None only for super-admin sessions


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is enough here: tokens are high-entropy, unlike passwords."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for an authenticated user.

    Returns (session_record, plaintext_token); only the hash is stored.
    Raises ValueError when a non super-admin user has no organization.
    """
    if not user.organization_id and not user.is_super_admin:
        raise ValueError("User must belong to an organization")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        organization_id=user.organization_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext.

    Returns None if the token is unknown, revoked or expired, the user is
    deactivated, or (for organization users) the organization is no longer
    active. Idle and deactivation cases revoke the session as a side effect.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        db.session.commit()
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        db.session.commit()
        return None

    if session.organization_id is not None:
        org = session.organization
        if not org or not org.is_active:
            _revoke(session, "Organization deactivated")
            db.session.commit()
            return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session, org_id=session.organization_id)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if not session or session.is_revoked:
        return False
    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Security event") -> int:
    sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
    for session in sessions:
        _revoke(session, reason)
    db.session.commit()
    return len(sessions)
