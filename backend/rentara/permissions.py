"""
Role-based permissions for organization users.

Roles are fixed (owner, admin, member) and the mapping is static. Routes
declare the permission they need with @require_permission.

DESIGN:
- owner: everything, including organization settings and user roles
- admin: day-to-day management of properties, tenants and money
- member: read access plus recording received payments
- super admins use the separate /api/superadmin portal, not these codes
"""

from .constants import ROLE_ADMIN, ROLE_MEMBER, ROLE_OWNER

VIEW_PROPERTIES = "VIEW_PROPERTIES"
MANAGE_PROPERTIES = "MANAGE_PROPERTIES"
VIEW_TENANTS = "VIEW_TENANTS"
MANAGE_TENANTS = "MANAGE_TENANTS"
VIEW_PAYMENTS = "VIEW_PAYMENTS"
MANAGE_PAYMENTS = "MANAGE_PAYMENTS"
RECORD_PAYMENTS = "RECORD_PAYMENTS"
GENERATE_RENT = "GENERATE_RENT"
VIEW_REPORTS = "VIEW_REPORTS"
MANAGE_USERS = "MANAGE_USERS"
MANAGE_ORGANIZATION = "MANAGE_ORGANIZATION"

ALL_PERMISSIONS = frozenset({
    VIEW_PROPERTIES,
    MANAGE_PROPERTIES,
    VIEW_TENANTS,
    MANAGE_TENANTS,
    VIEW_PAYMENTS,
    MANAGE_PAYMENTS,
    RECORD_PAYMENTS,
    GENERATE_RENT,
    VIEW_REPORTS,
    MANAGE_USERS,
    MANAGE_ORGANIZATION,
})

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_OWNER: ALL_PERMISSIONS,
    ROLE_ADMIN: ALL_PERMISSIONS - {MANAGE_ORGANIZATION, MANAGE_USERS},
    ROLE_MEMBER: frozenset({
        VIEW_PROPERTIES,
        VIEW_TENANTS,
        VIEW_PAYMENTS,
        RECORD_PAYMENTS,
        VIEW_REPORTS,
    }),
}


def get_role_permissions(role: str) -> frozenset:
    return DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())


def role_has_permission(role: str, permission_code: str) -> bool:
    return permission_code in get_role_permissions(role)
