# Overview: Append-only security/audit log with organization context.

from __future__ import annotations

from ..extensions import db
from ..models import SecurityEvent
from rentara.time_utils import utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    organization_id: int | None = None,
    commit: bool = True,
) -> SecurityEvent:
    """
    Record a security event.

    MULTI-TENANT: organization_id is the organization the event concerns
    (for super-admin actions, the organization that was changed).

    event_type examples:
    - LOGIN_FAILED
    - LOGIN_SUCCESS
    - LOGOUT
    - PERMISSION_DENIED
    - CROSS_ORG_ACCESS_DENIED
    - SUPERADMIN_LOGIN_DENIED
    - ORGANIZATION_CREATED / ORGANIZATION_UPDATED
    - USER_CREATED / USER_ROLE_CHANGED

    commit=False lets a caller record the event inside its own transaction
    so the audit row and the audited change land together.
    """
    event = SecurityEvent(
        user_id=user_id,
        organization_id=organization_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )
    db.session.add(event)
    if commit:
        db.session.commit()
    return event


def list_security_events(
    *,
    organization_id: int | None = None,
    event_type: str | None = None,
    limit: int = 100,
) -> list[SecurityEvent]:
    query = db.session.query(SecurityEvent)
    if organization_id is not None:
        query = query.filter(SecurityEvent.organization_id == organization_id)
    if event_type:
        query = query.filter(SecurityEvent.event_type == event_type)
    return query.order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).limit(limit).all()
