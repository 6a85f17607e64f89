# Overview: Current-organization profile, users, usage statistics, plan limits and subscription metrics.

"""
Organization Service

MULTI-TENANT: Every function takes the caller's organization id explicitly;
routes pass g.org_id. Nothing here reads or writes another organization.

PLAN LIMITS: While an organization is on trial the trial limits apply,
whatever plan it signed up for. -1 means unlimited.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from ..constants import (
    ROLE_OWNER,
    SUBSCRIPTION_DURATIONS,
    SUBSCRIPTION_LIMITS,
    SUBSCRIPTION_TRIAL,
    TENANT_ACTIVE,
    UNIT_OCCUPIED,
    USER_ROLES,
)
from ..errors import ServiceError
from ..extensions import db
from ..models import Organization, Property, Tenant, Unit, User
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from rentara.time_utils import utcnow
from .audit_service import log_security_event


class OrganizationError(ServiceError):
    """Raised for organization rule violations (last owner, plan limit)."""


class PlanLimitError(OrganizationError):
    """Creating the resource would exceed the subscription plan's limit."""


ORGANIZATION_SELF_POLICY = ModelValidationPolicy(writable_fields={"name"})

NEAR_EXPIRATION_DAYS = 7


def get_organization(org_id: int) -> Organization:
    org = db.session.get(Organization, org_id)
    if not org:
        raise NotFoundError("Organization not found")
    return org


def update_organization(org_id: int, payload: dict) -> Organization:
    """Owners may rename their organization; subscription fields are super-admin only."""
    org = get_organization(org_id)
    patch = validate_payload(model=Organization, payload=payload, policy=ORGANIZATION_SELF_POLICY, partial=True)
    for key, value in patch.items():
        setattr(org, key, value)
    db.session.commit()
    return org


# =============================================================================
# USERS
# =============================================================================

def list_organization_users(org_id: int) -> list[User]:
    return (
        db.session.query(User)
        .filter(User.organization_id == org_id)
        .order_by(User.created_at, User.id)
        .all()
    )


def update_user_role(org_id: int, user_id: int, role: str, *, actor_id: int | None = None) -> User:
    """
    Change a user's organization role.

    Raises:
        ValidationError: role not one of owner/admin/member
        NotFoundError: user not in this organization
        OrganizationError: would leave the organization without an owner
    """
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(USER_ROLES))}")

    user = db.session.query(User).filter_by(id=user_id, organization_id=org_id).first()
    if not user:
        raise NotFoundError("User not found")

    if user.role == ROLE_OWNER and role != ROLE_OWNER:
        owners = db.session.query(User).filter_by(
            organization_id=org_id, role=ROLE_OWNER, is_active=True
        ).count()
        if owners <= 1:
            raise OrganizationError("Organization must keep at least one owner")

    previous = user.role
    user.role = role
    log_security_event(
        user_id=actor_id,
        event_type="USER_ROLE_CHANGED",
        success=True,
        resource=f"user:{user.id}",
        action="UPDATE",
        reason=f"{previous} -> {role}",
        organization_id=org_id,
        commit=False,
    )
    db.session.commit()
    return user


# =============================================================================
# STATISTICS / LIMITS
# =============================================================================

def get_organization_stats(org_id: int) -> dict:
    """Dashboard counters; occupancy_rate is a rounded percentage."""
    total_properties = db.session.query(Property).filter_by(organization_id=org_id).count()
    units = db.session.query(Unit.status).filter_by(organization_id=org_id).all()
    active_tenants = db.session.query(Tenant).filter_by(organization_id=org_id, status=TENANT_ACTIVE).count()

    total_units = len(units)
    occupied_units = sum(1 for (status,) in units if status == UNIT_OCCUPIED)

    return {
        "total_properties": total_properties,
        "total_units": total_units,
        "occupied_units": occupied_units,
        "vacant_units": total_units - occupied_units,
        "active_tenants": active_tenants,
        "occupancy_rate": round(occupied_units / total_units * 100) if total_units else 0,
    }


def get_plan_limits(org: Organization) -> dict:
    if org.subscription_status == SUBSCRIPTION_TRIAL:
        return dict(SUBSCRIPTION_LIMITS["trial"])
    return dict(SUBSCRIPTION_LIMITS.get(org.subscription_plan, SUBSCRIPTION_LIMITS["trial"]))


def _usage_count(org_id: int, resource: str) -> int:
    if resource == "properties":
        return db.session.query(Property).filter_by(organization_id=org_id).count()
    if resource == "units":
        return db.session.query(Unit).filter_by(organization_id=org_id).count()
    if resource == "users":
        return db.session.query(User).filter_by(organization_id=org_id, is_active=True).count()
    raise ValueError(f"Unknown plan resource: {resource}")


def get_usage(org_id: int) -> dict:
    """{resource: {"used": n, "limit": m}} for properties, units and users."""
    org = get_organization(org_id)
    limits = get_plan_limits(org)
    return {
        resource: {"used": _usage_count(org_id, resource), "limit": limit}
        for resource, limit in limits.items()
    }


def ensure_within_plan_limit(org: Organization, resource: str, *, adding: int = 1) -> None:
    limit = get_plan_limits(org)[resource]
    if limit < 0:
        return
    used = _usage_count(org.id, resource)
    if used + adding > limit:
        raise PlanLimitError(
            f"Your {org.subscription_plan} plan allows {limit} {resource}; upgrade to add more"
        )


# =============================================================================
# SUBSCRIPTION METRICS
# =============================================================================

def standard_duration_days(status: str, billing_cycle: str | None = "monthly") -> int:
    if status == SUBSCRIPTION_TRIAL:
        return SUBSCRIPTION_DURATIONS["trial"]
    if billing_cycle == "annual":
        return SUBSCRIPTION_DURATIONS["annual"]
    return SUBSCRIPTION_DURATIONS["monthly"]


def subscription_ends_at(org: Organization) -> datetime | None:
    start = org.subscription_started_at or org.created_at
    if org.subscription_status == SUBSCRIPTION_TRIAL and org.trial_ends_at:
        return org.trial_ends_at
    if not start:
        return None
    return start + timedelta(days=standard_duration_days(org.subscription_status, org.billing_cycle))


def _naive(dt: datetime) -> datetime:
    return dt.replace(tzinfo=None) if dt.tzinfo else dt


def calculate_subscription_metrics(org: Organization, *, now: datetime | None = None) -> dict | None:
    """
    Progress through the current subscription period.

    total_days uses the standard duration for the status/billing cycle;
    elapsed days round down, remaining days round up, progress is capped at
    100% and rounded to one decimal.
    """
    start = org.subscription_started_at or org.created_at
    end = subscription_ends_at(org)
    if not start or not end:
        return None

    now = _naive(now or utcnow())
    start, end = _naive(start), _naive(end)

    total_days = standard_duration_days(org.subscription_status, org.billing_cycle)
    day = 24 * 60 * 60
    elapsed_days = math.floor((now - start).total_seconds() / day)
    remaining_days = math.ceil((end - now).total_seconds() / day)
    progress = min(elapsed_days / total_days * 100, 100) if total_days > 0 else 0

    return {
        "total_days": total_days,
        "elapsed_days": max(elapsed_days, 0),
        "remaining_days": max(remaining_days, 0),
        "progress_percentage": round(max(progress, 0), 1),
        "is_expired": now > end,
        "is_near_expiration": 0 < remaining_days <= NEAR_EXPIRATION_DAYS,
        "ends_at": end,
    }
