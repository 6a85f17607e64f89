# Overview: Application-state stores for the organization session and the super-admin portal.

"""
Client state stores

Each store receives a RentaraClient by injection and exposes a `state`
object plus action methods. Actions return ApiResult and never raise; the
last error is kept on state.error for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .api import ApiResult, RentaraClient


@dataclass
class AuthState:
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    organization: Optional[Dict[str, Any]] = None
    permissions: List[str] = field(default_factory=list)
    subscription_metrics: Optional[Dict[str, Any]] = None
    loading: bool = False
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None


class AuthStore:
    """Organization user session: sign in/up, restore, sign out."""

    def __init__(self, client: RentaraClient):
        self.client = client
        self.state = AuthState(token=client.token)

    def _apply_session(self, data: Dict[str, Any]) -> None:
        if data.get("token"):
            self.state.token = data["token"]
            self.client.token = data["token"]
        self.state.user = data.get("user")
        self.state.organization = data.get("organization")
        self.state.permissions = list(data.get("permissions") or [])
        self.state.subscription_metrics = data.get("subscription_metrics")
        self.state.error = None

    def _clear(self, error: Optional[str] = None) -> None:
        self.client.token = None
        self.state = AuthState(error=error)

    def has_permission(self, code: str) -> bool:
        return code in self.state.permissions

    def check_auth(self) -> ApiResult:
        """Restore the session from the current token; clears state if it is no longer valid."""
        if not self.client.token:
            self._clear()
            return ApiResult(error="Not signed in")

        self.state.loading = True
        result = self.client.me()
        self.state.loading = False
        if result.ok:
            self.state.token = self.client.token
            self._apply_session(result.data)
        else:
            self._clear(result.error)
        return result

    def sign_in(self, email: str, password: str) -> ApiResult:
        self.state.loading = True
        result = self.client.login(email, password)
        self.state.loading = False
        if result.ok:
            self._apply_session(result.data)
        else:
            self._clear(result.error)
        return result

    def sign_up(self, *, organization_name: str, email: str, password: str, full_name: Optional[str] = None) -> ApiResult:
        self.state.loading = True
        result = self.client.signup(
            organization_name=organization_name,
            email=email,
            password=password,
            full_name=full_name,
        )
        self.state.loading = False
        if result.ok:
            self._apply_session(result.data)
        else:
            self.state.error = result.error
        return result

    def sign_out(self) -> ApiResult:
        result = self.client.logout() if self.client.token else ApiResult()
        # Local state is cleared even if the server call failed
        self._clear()
        return result


@dataclass
class SuperAdminState:
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    organizations: List[Dict[str, Any]] = field(default_factory=list)
    system_metrics: Optional[Dict[str, Any]] = None
    loading: bool = False
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None


class SuperAdminStore:
    """Super-admin portal session plus cached organization list and metrics."""

    def __init__(self, client: RentaraClient):
        self.client = client
        self.state = SuperAdminState(token=client.token)

    def _run(self, call) -> ApiResult:
        self.state.loading = True
        result = call()
        self.state.loading = False
        self.state.error = result.error
        return result

    def check_auth(self) -> ApiResult:
        if not self.client.token:
            return ApiResult(error="Not signed in")
        result = self._run(self.client.superadmin_me)
        if result.ok:
            self.state.token = self.client.token
            self.state.user = result.data.get("user")
        else:
            self.sign_out_locally(result.error)
        return result

    def sign_in(self, email: str, password: str) -> ApiResult:
        result = self._run(lambda: self.client.superadmin_login(email, password))
        if result.ok:
            self.client.token = result.data["token"]
            self.state.token = result.data["token"]
            self.state.user = result.data.get("user")
        else:
            self.sign_out_locally(result.error)
        return result

    def sign_out_locally(self, error: Optional[str] = None) -> None:
        self.client.token = None
        self.state = SuperAdminState(error=error)

    def sign_out(self) -> ApiResult:
        result = self.client.superadmin_logout() if self.client.token else ApiResult()
        self.sign_out_locally()
        return result

    def fetch_organizations(self, *, status: Optional[str] = None, search: Optional[str] = None) -> ApiResult:
        result = self._run(lambda: self.client.list_organizations(status=status, search=search))
        if result.ok:
            self.state.organizations = list(result.data)
        return result

    def create_organization(self, payload: Dict[str, Any]) -> ApiResult:
        result = self._run(lambda: self.client.create_organization(payload))
        if result.ok:
            self.state.organizations = [result.data] + self.state.organizations
        return result

    def update_organization(self, org_id: int, payload: Dict[str, Any]) -> ApiResult:
        result = self._run(lambda: self.client.update_organization(org_id, payload))
        if result.ok:
            self.state.organizations = [
                result.data if org["id"] == org_id else org
                for org in self.state.organizations
            ]
        return result

    def fetch_system_metrics(self) -> ApiResult:
        result = self._run(self.client.system_metrics)
        if result.ok:
            self.state.system_metrics = result.data
        return result
