# Overview: httpx client for the Rentara API returning (data, error) results instead of raising.

"""
Rentara API client

Every call returns an ApiResult. HTTP error statuses and transport failures
become ApiResult(data=None, error=<message>); nothing is retried here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx


@dataclass
class ApiResult:
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RentaraClient:
    """
    Thin wrapper around httpx.Client carrying the bearer token.

    transport is injectable (httpx.WSGITransport in tests, httpx.MockTransport
    for offline fakes).
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:5000",
        *,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(self, method: str, path: str, *, json: Any = None, params: Optional[Dict] = None) -> ApiResult:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self.client.request(method, path, json=json, params=params or None, headers=self._headers())
        except httpx.HTTPError as exc:
            return ApiResult(error=f"Network error: {exc}")

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if response.is_success:
            return ApiResult(data=body, status_code=response.status_code)

        message = body.get("error") if isinstance(body, dict) else None
        return ApiResult(
            error=message or f"HTTP {response.status_code}",
            status_code=response.status_code,
        )

    def get(self, path: str, params: Optional[Dict] = None) -> ApiResult:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> ApiResult:
        return self.request("POST", path, json=json if json is not None else {})

    def put(self, path: str, json: Any = None) -> ApiResult:
        return self.request("PUT", path, json=json if json is not None else {})

    def patch(self, path: str, json: Any = None) -> ApiResult:
        return self.request("PATCH", path, json=json if json is not None else {})

    def delete(self, path: str) -> ApiResult:
        return self.request("DELETE", path)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def signup(self, *, organization_name: str, email: str, password: str, full_name: Optional[str] = None) -> ApiResult:
        return self.post("/api/auth/signup", {
            "organization_name": organization_name,
            "email": email,
            "password": password,
            "full_name": full_name,
        })

    def login(self, email: str, password: str) -> ApiResult:
        return self.post("/api/auth/login", {"email": email, "password": password})

    def logout(self) -> ApiResult:
        return self.post("/api/auth/logout")

    def me(self) -> ApiResult:
        return self.get("/api/auth/me")

    # ------------------------------------------------------------------
    # Super admin portal
    # ------------------------------------------------------------------

    def superadmin_login(self, email: str, password: str) -> ApiResult:
        return self.post("/api/superadmin/login", {"email": email, "password": password})

    def superadmin_logout(self) -> ApiResult:
        return self.post("/api/superadmin/logout")

    def superadmin_me(self) -> ApiResult:
        return self.get("/api/superadmin/me")

    def list_organizations(self, *, status: Optional[str] = None, search: Optional[str] = None) -> ApiResult:
        return self.get("/api/superadmin/organizations", {"status": status, "search": search})

    def create_organization(self, payload: Dict) -> ApiResult:
        return self.post("/api/superadmin/organizations", payload)

    def update_organization(self, org_id: int, payload: Dict) -> ApiResult:
        return self.patch(f"/api/superadmin/organizations/{org_id}", payload)

    def system_metrics(self) -> ApiResult:
        return self.get("/api/superadmin/metrics")

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def list_payments(self, **filters) -> ApiResult:
        return self.get("/api/payments", filters)

    def record_payment(self, payment_id: int, payload: Dict) -> ApiResult:
        return self.post(f"/api/payments/{payment_id}/transactions", payload)

    def payment_analytics(self, **filters) -> ApiResult:
        return self.get("/api/payments/analytics", filters)

    def generate_monthly_rent(self, month: int, year: int) -> ApiResult:
        return self.post("/api/payments/rent/generate", {"month": month, "year": year})
