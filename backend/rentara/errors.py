# Overview: Exception taxonomy shared by services and the JSON error translation used by routes.

from __future__ import annotations

from flask import jsonify

from .validation import ConflictError, NotFoundError, ValidationError


class ServiceError(Exception):
    """Business rule violation raised by a service (HTTP 400)."""


class OrganizationAccessError(Exception):
    """
    Row exists but belongs to another organization, or no tenant context.

    Reported to clients as 404 so other organizations' ids are not revealed.
    """


class AuthenticationError(Exception):
    """Bad credentials, missing profile or missing privilege (HTTP 401)."""


class PermissionDeniedError(Exception):
    """Authenticated but the role lacks the permission (HTTP 403)."""


DOMAIN_ERRORS = (
    ServiceError,
    ValidationError,
    ConflictError,
    NotFoundError,
    OrganizationAccessError,
    AuthenticationError,
    PermissionDeniedError,
)


def status_for(exc: Exception) -> int:
    if isinstance(exc, (ServiceError, ValidationError)):
        return 400
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, PermissionDeniedError):
        return 403
    if isinstance(exc, (NotFoundError, OrganizationAccessError)):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    return 500


def json_error(exc: Exception):
    status = status_for(exc)
    if status == 500:
        return jsonify({"error": "Internal server error"}), status
    return jsonify({"error": str(exc)}), status
