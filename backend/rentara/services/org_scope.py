"""
Organization scoping helpers.

Every row a client names by id (property, unit, tenant, payment) must be
checked against the caller's organization before it is read or
changed. Cross-organization lookups are logged and reported as "not found"
so ids from other organizations are never confirmed to exist.

USAGE:
    from rentara.services.org_scope import require_in_org

    unit = require_in_org(Unit, unit_id, org_id)
"""

from __future__ import annotations

from flask import g, has_request_context, request

from ..errors import OrganizationAccessError
from ..extensions import db
from .audit_service import log_security_event


def _log_cross_org_attempt(reason: str, *, org_id: int | None) -> None:
    user = getattr(g, "current_user", None) if has_request_context() else None
    log_security_event(
        user_id=user.id if user else None,
        event_type="CROSS_ORG_ACCESS_DENIED",
        success=False,
        resource=request.path if has_request_context() else None,
        action=request.method if has_request_context() else None,
        reason=reason,
        ip_address=request.remote_addr if has_request_context() else None,
        user_agent=request.headers.get("User-Agent") if has_request_context() else None,
        organization_id=org_id,
    )


def require_in_org(model, row_id, org_id: int, *, label: str | None = None):
    """
    Load model row `row_id` and check it belongs to `org_id`.

    Raises OrganizationAccessError (reported as 404) when the row is missing
    or owned by another organization; the latter is recorded as a
    CROSS_ORG_ACCESS_DENIED security event.
    """
    label = label or model.__name__
    row = db.session.get(model, row_id) if row_id is not None else None

    if not row:
        raise OrganizationAccessError(f"{label} not found")

    if row.organization_id != org_id:
        # Discard the caller's pending work so the audit commit cannot persist it
        db.session.rollback()
        _log_cross_org_attempt(
            f"{label} {row_id} belongs to organization {row.organization_id}, not {org_id}",
            org_id=org_id,
        )
        raise OrganizationAccessError(f"{label} not found")

    return row
