from .tenancy import Organization
from .auth import User, SessionToken
from .security import SecurityEvent
from .property import Property, Unit
from .tenant import Tenant, LeaseHistory
from .payments import (
    PaymentType,
    PaymentMethod,
    Payment,
    PaymentTransaction,
    RentSchedule,
    SecurityDeposit,
    DepositDeduction,
)

__all__ = [
    "Organization",
    "User",
    "SessionToken",
    "SecurityEvent",
    "Property",
    "Unit",
    "Tenant",
    "LeaseHistory",
    "PaymentType",
    "PaymentMethod",
    "Payment",
    "PaymentTransaction",
    "RentSchedule",
    "SecurityDeposit",
    "DepositDeduction",
]
