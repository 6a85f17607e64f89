# Overview: Flask CLI command groups for bootstrap, inspection, rent generation and maintenance.

# backend/rentara/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--super-admin-email ops@rentara.my --super-admin-password "Passw0rd!"]
#   Create tables, seed payment types/methods and optionally a super admin. Idempotent.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Organization management (MULTI-TENANT):
# - python -m flask orgs list
#   List all organizations with plan, status and usage.
# - python -m flask orgs create --name "Harbour View" --owner-email owner@example.com --owner-password "Passw0rd!"
#   Create an organization and its owner.
#
# Users:
# - python -m flask users list [--org-id 1]
# - python -m flask users create --org-id 1 --email staff@example.com --password "Passw0rd!" --role member
# - python -m flask users create-super-admin --email ops@rentara.my --password "Passw0rd!"
#
# Rent:
# - python -m flask rent generate --month 2 --year 2024 [--org-id 1] [--dry-run]
#   Generate monthly rent payments (every active organization if --org-id is omitted).
#
# Maintenance:
# - python -m flask maintenance reconcile-units [--org-id 1] [--dry-run]
#   Repair unit statuses that disagree with their active tenants.
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .constants import ACTIVE_SUBSCRIPTION_STATUSES, BILLING_CYCLES, SUBSCRIPTION_PLANS, SUBSCRIPTION_STATUSES, USER_ROLES
from .extensions import db
from .models import Organization, Property, Unit, User
from .services import maintenance_service, payment_service, rent_service, superadmin_service
from .services.auth_service import create_super_admin, create_user
from .errors import DOMAIN_ERRORS
from .time_utils import today


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--super-admin-email', help='Create this super admin if missing')
@click.option('--super-admin-password', help='Password for the super admin')
@with_appcontext
def init_system(super_admin_email, super_admin_password):
    """
    Initialize Rentara: schema, payment catalog and (optionally) a super admin.

    Organizations are not created here; they come from signup, the
    super-admin portal or `flask orgs create`.
    """
    click.echo("START Initializing Rentara...")

    db.create_all()
    click.echo("PASS Database schema ready")

    payment_service.ensure_payment_catalog()
    click.echo(
        f"PASS Payment catalog: {len(payment_service.list_payment_types())} types, "
        f"{len(payment_service.list_payment_methods())} methods"
    )

    if super_admin_email:
        existing = db.session.query(User).filter_by(email=super_admin_email.strip().lower()).first()
        if existing:
            click.echo(f"WARN  User '{existing.email}' already exists, skipping super admin")
        elif not super_admin_password:
            click.echo("FAIL --super-admin-password is required with --super-admin-email")
        else:
            try:
                admin = create_super_admin(email=super_admin_email, password=super_admin_password)
                click.echo(f"PASS Created super admin: {admin.email} (ID: {admin.id})")
            except DOMAIN_ERRORS as e:
                click.echo(f"FAIL Could not create super admin: {e}")

    click.echo("DONE Rentara initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes and not click.confirm("This deletes ALL data. Continue?"):
        click.echo("Aborted.")
        return
    db.drop_all()
    db.create_all()
    payment_service.ensure_payment_catalog()
    click.echo("PASS Database reset")


# =============================================================================
# ORGANIZATION MANAGEMENT COMMANDS (MULTI-TENANT)
# =============================================================================

@click.group('orgs')
def orgs_group():
    """Organization (tenant) management commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations."""
    orgs = db.session.query(Organization).order_by(Organization.id).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*88)
    click.echo(f"{'ID':<5} {'Name':<30} {'Plan':<14} {'Status':<11} {'Users':<7} {'Props':<7} {'Units'}")
    click.echo("="*88)

    for org in orgs:
        user_count = db.session.query(User).filter_by(organization_id=org.id).count()
        property_count = db.session.query(Property).filter_by(organization_id=org.id).count()
        unit_count = db.session.query(Unit).filter_by(organization_id=org.id).count()
        click.echo(
            f"{org.id:<5} {org.name[:30]:<30} {org.subscription_plan:<14} {org.subscription_status:<11} "
            f"{user_count:<7} {property_count:<7} {unit_count}"
        )

    click.echo("="*88 + "\n")


@orgs_group.command('create')
@click.option('--name', required=True, help='Organization name')
@click.option('--slug', help='URL slug (derived from the name if omitted)')
@click.option('--plan', type=click.Choice(sorted(SUBSCRIPTION_PLANS)), default='starter', show_default=True)
@click.option('--status', type=click.Choice(sorted(SUBSCRIPTION_STATUSES)), default='trial', show_default=True)
@click.option('--billing-cycle', type=click.Choice(sorted(BILLING_CYCLES)), default='monthly', show_default=True)
@click.option('--owner-email', help='Create an owner account with this email')
@click.option('--owner-password', help='Owner password')
@click.option('--owner-name', help='Owner full name')
@with_appcontext
def create_org_cli(name, slug, plan, status, billing_cycle, owner_email, owner_password, owner_name):
    """Create a new organization (tenant), optionally with its owner."""
    payload = {
        "name": name,
        "subscription_plan": plan,
        "subscription_status": status,
        "billing_cycle": billing_cycle,
    }
    if slug:
        payload["slug"] = slug
    if owner_email:
        payload.update(owner_email=owner_email, owner_password=owner_password, owner_full_name=owner_name)

    try:
        org = superadmin_service.create_organization(payload, actor_id=None, user_agent="flask-cli")
    except DOMAIN_ERRORS as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Created organization: {org.name} (ID: {org.id}, Slug: {org.slug})")
    if owner_email:
        click.echo(f"PASS Owner: {owner_email}")


# =============================================================================
# USER COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection/bootstrap commands."""


@users_group.command('list')
@click.option('--org-id', type=int, help='Filter by organization')
@with_appcontext
def list_users(org_id):
    query = db.session.query(User)
    if org_id is not None:
        query = query.filter(User.organization_id == org_id)
    users = query.order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    for user in users:
        role = "super_admin" if user.is_super_admin else user.role
        active_str = "active" if user.is_active else "inactive"
        click.echo(f"{user.id:<5} {user.email:<40} {role:<12} org={user.organization_id or '-':<5} {active_str}")


@users_group.command('create')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(USER_ROLES)), default='member', show_default=True)
@click.option('--full-name', help='Display name')
@with_appcontext
def create_user_cli(org_id, email, password, role, full_name):
    """Create an organization user."""
    try:
        user = create_user(email=email, password=password, organization_id=org_id, full_name=full_name, role=role)
    except DOMAIN_ERRORS as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('create-super-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--full-name', help='Display name')
@with_appcontext
def create_super_admin_cli(email, password, full_name):
    """Create a platform super admin (no organization)."""
    try:
        user = create_super_admin(email=email, password=password, full_name=full_name)
    except DOMAIN_ERRORS as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"PASS Created super admin: {user.email} (ID: {user.id})")


# =============================================================================
# RENT
# =============================================================================

@click.group('rent')
def rent_group():
    """Monthly rent generation."""


@rent_group.command('generate')
@click.option('--month', type=click.IntRange(1, 12), help='Month (defaults to the current month)')
@click.option('--year', type=int, help='Year (defaults to the current year)')
@click.option('--org-id', type=int, help='Only this organization')
@click.option('--dry-run', is_flag=True, help='Show what would be created')
@with_appcontext
def generate_rent_cli(month, year, org_id, dry_run):
    """
    Generate rent payments from active rent schedules.

    Safe to re-run: tenants already billed for the month are skipped.
    """
    current = today()
    month = month or current.month
    year = year or current.year

    query = db.session.query(Organization).order_by(Organization.id)
    if org_id is not None:
        query = query.filter(Organization.id == org_id)
    else:
        query = query.filter(Organization.subscription_status.in_(sorted(ACTIVE_SUBSCRIPTION_STATUSES)))

    for org in query.all():
        try:
            if dry_run:
                preview = rent_service.preview_monthly_rent(org.id, month, year)
                click.echo(
                    f"{org.name}: would create {len(preview['to_create'])}, skip {len(preview['to_skip'])}"
                )
            else:
                result = rent_service.generate_monthly_rent(org.id, month, year)
                click.echo(f"{org.name}: created {len(result.created)}, skipped {len(result.skipped)}")
        except DOMAIN_ERRORS as e:
            click.echo(f"FAIL {org.name}: {e}")


# =============================================================================
# MAINTENANCE
# =============================================================================

@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('reconcile-units')
@click.option('--org-id', type=int, help='Only this organization')
@click.option('--dry-run', is_flag=True, help='Report without changing anything')
@with_appcontext
def reconcile_units_cli(org_id, dry_run):
    """Set unit status from tenant occupancy where the two disagree."""
    changes = maintenance_service.reconcile_unit_statuses(org_id=org_id, dry_run=dry_run)
    for change in changes:
        click.echo(
            f"unit {change['unit_id']} ({change['unit_number']}, org {change['organization_id']}): "
            f"{change['from']} -> {change['to']}"
        )
    verb = "would change" if dry_run else "updated"
    click.echo(f"{len(changes)} unit(s) {verb}.")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orgs_group)  # Multi-tenant organization management
    app.cli.add_command(users_group)
    app.cli.add_command(rent_group)
    app.cli.add_command(maintenance_group)
