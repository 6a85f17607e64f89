# Overview: Pytest coverage for plan limits, organization users and subscription metrics.

"""
Organization service tests

Plan limits (trial limits while on trial), role changes that must keep an
owner, dashboard statistics and subscription period metrics.
"""

from datetime import datetime

import pytest

from rentara.models import Organization, SecurityEvent
from rentara.services import organization_service, property_service, unit_service
from rentara.services.organization_service import OrganizationError, PlanLimitError
from rentara.validation import NotFoundError, ValidationError

from conftest import make_unit


class TestPlanLimits:

    def test_trial_limits_apply_whatever_the_plan(self, db_session, org_a):
        org_a.subscription_status = "trial"
        db_session.commit()

        assert organization_service.get_plan_limits(org_a) == {"properties": 1, "units": 5, "users": 1}

    def test_active_plan_limits(self, org_a):
        limits = organization_service.get_plan_limits(org_a)
        assert limits == {"properties": 10, "units": 100, "users": 5}

    def test_trial_property_limit_enforced(self, db_session, org_a):
        org_a.subscription_status = "trial"
        db_session.commit()

        property_service.create_property(org_a.id, {"name": "Menara Satu"})
        with pytest.raises(PlanLimitError, match="upgrade"):
            property_service.create_property(org_a.id, {"name": "Menara Dua"})

    def test_unit_limit_enforced(self, db_session, org_a, property_a):
        org_a.subscription_plan = "starter"
        db_session.commit()
        for n in range(25):
            make_unit(db_session, property_a, f"U-{n:02d}")

        with pytest.raises(PlanLimitError):
            unit_service.create_unit(org_a.id, {
                "property_id": property_a.id, "unit_number": "U-99", "rent_amount": "1200",
            })

    def test_enterprise_is_unlimited(self, db_session, org_a):
        org_a.subscription_plan = "enterprise"
        db_session.commit()
        organization_service.ensure_within_plan_limit(org_a, "properties", adding=10_000)

    def test_usage(self, org_a, owner_a, member_a, property_a, unit_a1):
        usage = organization_service.get_usage(org_a.id)
        assert usage["properties"] == {"used": 1, "limit": 10}
        assert usage["units"]["used"] == 1
        assert usage["users"]["used"] == 2


class TestUsers:

    def test_change_role_is_audited(self, db_session, org_a, owner_a, member_a):
        user = organization_service.update_user_role(org_a.id, member_a.id, "admin", actor_id=owner_a.id)

        assert user.role == "admin"
        event = db_session.query(SecurityEvent).filter_by(event_type="USER_ROLE_CHANGED").one()
        assert event.user_id == owner_a.id
        assert event.reason == "member -> admin"

    def test_last_owner_cannot_be_demoted(self, org_a, owner_a):
        with pytest.raises(OrganizationError, match="at least one owner"):
            organization_service.update_user_role(org_a.id, owner_a.id, "member")

    def test_unknown_role_rejected(self, org_a, member_a):
        with pytest.raises(ValidationError):
            organization_service.update_user_role(org_a.id, member_a.id, "super_admin")

    def test_user_from_other_org_not_found(self, org_b, member_a):
        with pytest.raises(NotFoundError):
            organization_service.update_user_role(org_b.id, member_a.id, "admin")

    def test_list_users_scoped(self, org_a, owner_a, member_a, owner_b):
        emails = {u.email for u in organization_service.list_organization_users(org_a.id)}
        assert emails == {"owner@harbourview.my", "staff@harbourview.my"}


class TestStats:

    def test_occupancy(self, db_session, org_a, property_a, unit_a1, unit_a2):
        unit_a1.status = "occupied"
        db_session.commit()

        stats = organization_service.get_organization_stats(org_a.id)
        assert stats["total_properties"] == 1
        assert stats["total_units"] == 2
        assert stats["occupied_units"] == 1
        assert stats["vacant_units"] == 1
        assert stats["occupancy_rate"] == 50

    def test_empty_organization(self, org_b):
        stats = organization_service.get_organization_stats(org_b.id)
        assert stats["occupancy_rate"] == 0


class TestSubscriptionMetrics:

    def test_monthly_period(self):
        org = Organization(
            subscription_status="active",
            billing_cycle="monthly",
            subscription_started_at=datetime(2024, 1, 1),
        )
        metrics = organization_service.calculate_subscription_metrics(org, now=datetime(2024, 1, 11, 12))

        assert metrics["total_days"] == 30
        assert metrics["elapsed_days"] == 10
        assert metrics["remaining_days"] == 20
        assert metrics["progress_percentage"] == 33.3
        assert metrics["is_expired"] is False
        assert metrics["is_near_expiration"] is False

    def test_trial_near_expiration(self):
        org = Organization(
            subscription_status="trial",
            billing_cycle="monthly",
            subscription_started_at=datetime(2024, 1, 1),
        )
        metrics = organization_service.calculate_subscription_metrics(org, now=datetime(2024, 1, 10))

        assert metrics["total_days"] == 14
        assert metrics["remaining_days"] == 5
        assert metrics["progress_percentage"] == 64.3
        assert metrics["is_near_expiration"] is True

    def test_expired_annual(self):
        org = Organization(
            subscription_status="active",
            billing_cycle="annual",
            subscription_started_at=datetime(2023, 1, 1),
        )
        metrics = organization_service.calculate_subscription_metrics(org, now=datetime(2024, 6, 1))

        assert metrics["total_days"] == 365
        assert metrics["progress_percentage"] == 100
        assert metrics["remaining_days"] == 0
        assert metrics["is_expired"] is True
        assert metrics["is_near_expiration"] is False

    def test_no_start_date(self):
        org = Organization(subscription_status="active", billing_cycle="monthly")
        assert organization_service.calculate_subscription_metrics(org) is None
