# Overview: Periodic housekeeping: security-event retention and unit status reconciliation.

from __future__ import annotations

import logging
from datetime import timedelta

from ..constants import TENANT_ACTIVE, UNIT_OCCUPIED, UNIT_VACANT
from ..extensions import db
from ..models import SecurityEvent, Tenant, Unit
from rentara.time_utils import utcnow

log = logging.getLogger(__name__)


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete()
    db.session.commit()
    return deleted


def reconcile_unit_statuses(*, org_id: int | None = None, dry_run: bool = False) -> list[dict]:
    """
    Repair units whose status disagrees with their tenants.

    A unit with an active tenant must be occupied; an occupied unit without
    one becomes vacant. Maintenance/unavailable units without tenants are
    left alone. Returns the changes (applied unless dry_run).
    """
    occupied_ids = {
        unit_id
        for (unit_id,) in db.session.query(Tenant.unit_id).filter(
            Tenant.status == TENANT_ACTIVE, Tenant.unit_id.isnot(None)
        )
    }

    query = db.session.query(Unit)
    if org_id is not None:
        query = query.filter(Unit.organization_id == org_id)

    changes = []
    for unit in query.order_by(Unit.id).all():
        if unit.id in occupied_ids and unit.status != UNIT_OCCUPIED:
            target = UNIT_OCCUPIED
        elif unit.id not in occupied_ids and unit.status == UNIT_OCCUPIED:
            target = UNIT_VACANT
        else:
            continue
        changes.append({
            "unit_id": unit.id,
            "organization_id": unit.organization_id,
            "unit_number": unit.unit_number,
            "from": unit.status,
            "to": target,
        })
        if not dry_run:
            unit.status = target

    if dry_run:
        db.session.rollback()
    else:
        db.session.commit()
    log.info("Unit reconciliation: %d unit(s) %s", len(changes), "would change" if dry_run else "updated")
    return changes
