# Overview: Cross-organization management for the super-admin portal.

"""
Super Admin Service

WHY: Platform operators create organizations, change their plan or status
(suspend/cancel; organizations are never hard-deleted) and watch
platform-wide metrics.

AUDIT: Every mutation writes a SecurityEvent in the same transaction as
the change it describes.
"""

from __future__ import annotations

from datetime import timedelta

from ..constants import (
    ACTIVE_SUBSCRIPTION_STATUSES,
    BILLING_CYCLES,
    ROLE_OWNER,
    SUBSCRIPTION_DURATIONS,
    SUBSCRIPTION_PLANS,
    SUBSCRIPTION_STATUSES,
    SUBSCRIPTION_TRIAL,
    TENANT_ACTIVE,
)
from ..extensions import db
from ..models import Organization, Property, Tenant, Unit, User
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_choice,
    validate_payload,
)
from rentara.time_utils import to_utc_z, utcnow
from .audit_service import log_security_event
from .auth_service import hash_password, normalize_email, slugify, unique_slug
from .concurrency import run_with_retry
from .organization_service import calculate_subscription_metrics


ORGANIZATION_ADMIN_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "slug",
        "subscription_plan",
        "subscription_status",
        "billing_cycle",
        "trial_ends_at",
        "subscription_started_at",
    },
    required_on_create={"name"},
)

OWNER_FIELDS = ("owner_email", "owner_password", "owner_full_name")


def _validate_org_patch(patch: dict) -> None:
    enforce_choice(patch, "subscription_plan", SUBSCRIPTION_PLANS)
    enforce_choice(patch, "subscription_status", SUBSCRIPTION_STATUSES)
    enforce_choice(patch, "billing_cycle", BILLING_CYCLES)
    if "slug" in patch and patch["slug"] is not None and patch["slug"] != slugify(patch["slug"]):
        raise ValidationError("slug may only contain lowercase letters, digits and dashes")


def _ensure_slug_available(slug: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(Organization.id).filter(Organization.slug == slug)
    if exclude_id is not None:
        query = query.filter(Organization.id != exclude_id)
    if query.first():
        raise ConflictError(f"Slug '{slug}' is already taken")


def organization_summary(org: Organization) -> dict:
    data = org.to_dict()
    data["user_count"] = db.session.query(User).filter_by(organization_id=org.id).count()
    data["property_count"] = db.session.query(Property).filter_by(organization_id=org.id).count()
    data["unit_count"] = db.session.query(Unit).filter_by(organization_id=org.id).count()
    metrics = calculate_subscription_metrics(org)
    if metrics:
        metrics["ends_at"] = to_utc_z(metrics["ends_at"])
    data["subscription_metrics"] = metrics
    return data


def list_organizations(*, status: str | None = None, search: str | None = None) -> list[Organization]:
    query = db.session.query(Organization)
    if status:
        query = query.filter(Organization.subscription_status == status)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(db.or_(Organization.name.ilike(like), Organization.slug.ilike(like)))
    return query.order_by(Organization.created_at.desc(), Organization.id.desc()).all()


def get_organization(org_id: int) -> Organization:
    org = db.session.get(Organization, org_id)
    if not org:
        raise NotFoundError("Organization not found")
    return org


def create_organization(
    payload: dict,
    *,
    actor_id: int | None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Organization:
    """
    Create an organization, optionally with its owner account.

    payload may carry owner_email / owner_password / owner_full_name; when
    owner_email is given the owner is created in the same transaction.
    """
    payload = dict(payload or {})
    owner = {k: payload.pop(k, None) for k in OWNER_FIELDS}

    patch = validate_payload(model=Organization, payload=payload, policy=ORGANIZATION_ADMIN_POLICY, partial=False)
    _validate_org_patch(patch)

    owner_email = normalize_email(owner["owner_email"]) if owner["owner_email"] else None
    owner_hash = hash_password(owner["owner_password"]) if owner_email else None
    requested_slug = patch.pop("slug", None)

    def _op():
        now = utcnow()
        if requested_slug:
            _ensure_slug_available(requested_slug)
        slug = requested_slug or unique_slug(patch["name"])

        org = Organization(slug=slug, **patch)
        org.subscription_plan = org.subscription_plan or "starter"
        org.subscription_status = org.subscription_status or SUBSCRIPTION_TRIAL
        org.billing_cycle = org.billing_cycle or "monthly"
        org.subscription_started_at = org.subscription_started_at or now
        if org.subscription_status == SUBSCRIPTION_TRIAL and not org.trial_ends_at:
            org.trial_ends_at = now + timedelta(days=SUBSCRIPTION_DURATIONS["trial"])
        db.session.add(org)
        db.session.flush()

        if owner_email:
            if db.session.query(User.id).filter(User.email == owner_email).first():
                raise ConflictError("Email address is already registered")
            db.session.add(User(
                organization_id=org.id,
                email=owner_email,
                full_name=owner["owner_full_name"],
                password_hash=owner_hash,
                role=ROLE_OWNER,
                is_super_admin=False,
                is_active=True,
            ))

        log_security_event(
            user_id=actor_id,
            event_type="ORGANIZATION_CREATED",
            success=True,
            resource=f"organization:{org.id}",
            action="CREATE",
            reason=f"Created {org.name} ({org.slug})",
            ip_address=ip_address,
            user_agent=user_agent,
            organization_id=org.id,
            commit=False,
        )
        db.session.commit()
        return org

    return run_with_retry(_op)


def update_organization(
    org_id: int,
    payload: dict,
    *,
    actor_id: int | None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Organization:
    """Plan, status and profile changes. Suspending or cancelling is done here."""
    patch = validate_payload(model=Organization, payload=payload, policy=ORGANIZATION_ADMIN_POLICY, partial=True)
    _validate_org_patch(patch)

    def _op():
        org = get_organization(org_id)
        if patch.get("slug"):
            _ensure_slug_available(patch["slug"], exclude_id=org.id)

        changes = []
        for key, value in patch.items():
            if getattr(org, key) != value:
                changes.append(f"{key}: {getattr(org, key)} -> {value}")
                setattr(org, key, value)

        if "subscription_status" in patch and patch["subscription_status"] not in ACTIVE_SUBSCRIPTION_STATUSES:
            event_type = "ORGANIZATION_DEACTIVATED"
        else:
            event_type = "ORGANIZATION_UPDATED"

        log_security_event(
            user_id=actor_id,
            event_type=event_type,
            success=True,
            resource=f"organization:{org.id}",
            action="UPDATE",
            reason="; ".join(changes) or "no changes",
            ip_address=ip_address,
            user_agent=user_agent,
            organization_id=org.id,
            commit=False,
        )
        db.session.commit()
        return org

    return run_with_retry(_op)


def get_system_metrics() -> dict:
    organizations = db.session.query(Organization.subscription_status).all()
    return {
        "total_organizations": len(organizations),
        "active_organizations": sum(
            1 for (status,) in organizations if status in ACTIVE_SUBSCRIPTION_STATUSES
        ),
        "total_users": db.session.query(User).filter(User.is_super_admin.is_(False)).count(),
        "total_properties": db.session.query(Property).count(),
        "active_tenants": db.session.query(Tenant).filter(Tenant.status == TENANT_ACTIVE).count(),
        "last_updated": to_utc_z(utcnow()),
    }
