from .api import ApiResult, RentaraClient
from .stores import AuthState, AuthStore, SuperAdminState, SuperAdminStore

__all__ = [
    "ApiResult",
    "RentaraClient",
    "AuthState",
    "AuthStore",
    "SuperAdminState",
    "SuperAdminStore",
]
