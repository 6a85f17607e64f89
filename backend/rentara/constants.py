"""
Shared vocabularies for statuses, roles and plans.

Stored values are lowercase strings; the sets below are what the validation
layer accepts.
"""

# =============================================================================
# ORGANIZATION / SUBSCRIPTION
# =============================================================================

SUBSCRIPTION_TRIAL = "trial"
SUBSCRIPTION_ACTIVE = "active"
SUBSCRIPTION_SUSPENDED = "suspended"
SUBSCRIPTION_CANCELED = "canceled"

SUBSCRIPTION_STATUSES = {
    SUBSCRIPTION_TRIAL,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_SUSPENDED,
    SUBSCRIPTION_CANCELED,
}

# Organizations in these states may sign in and use the app
ACTIVE_SUBSCRIPTION_STATUSES = {SUBSCRIPTION_TRIAL, SUBSCRIPTION_ACTIVE}

SUBSCRIPTION_PLANS = {"trial", "starter", "professional", "enterprise"}
BILLING_CYCLES = {"monthly", "annual"}

# -1 means unlimited
SUBSCRIPTION_LIMITS = {
    "trial": {"properties": 1, "units": 5, "users": 1},
    "starter": {"properties": 3, "units": 25, "users": 2},
    "professional": {"properties": 10, "units": 100, "users": 5},
    "enterprise": {"properties": -1, "units": -1, "users": -1},
}

# Standard durations in days
SUBSCRIPTION_DURATIONS = {
    "trial": 14,
    "monthly": 30,
    "annual": 365,
}

# =============================================================================
# USERS
# =============================================================================

ROLE_OWNER = "owner"
ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLE_SUPER_ADMIN = "super_admin"

USER_ROLES = {ROLE_OWNER, ROLE_ADMIN, ROLE_MEMBER}

# =============================================================================
# UNITS / TENANTS / LEASES
# =============================================================================

UNIT_OCCUPIED = "occupied"
UNIT_VACANT = "vacant"
UNIT_MAINTENANCE = "maintenance"
UNIT_UNAVAILABLE = "unavailable"

UNIT_STATUSES = {UNIT_OCCUPIED, UNIT_VACANT, UNIT_MAINTENANCE, UNIT_UNAVAILABLE}

TENANT_ACTIVE = "active"
TENANT_INACTIVE = "inactive"
TENANT_PENDING = "pending"
TENANT_MOVED_OUT = "moved_out"

TENANT_STATUSES = {TENANT_ACTIVE, TENANT_INACTIVE, TENANT_PENDING, TENANT_MOVED_OUT}

# Statuses that release the tenant's unit
TENANT_DEPARTED_STATUSES = {TENANT_INACTIVE, TENANT_MOVED_OUT}

LEASE_ACTIVE = "active"
LEASE_COMPLETED = "completed"
LEASE_TERMINATED = "terminated"

LEASE_STATUSES = {LEASE_ACTIVE, LEASE_COMPLETED, LEASE_TERMINATED}

NATIONALITY_MALAYSIAN = "malaysian"
WORK_PERMIT_NONE = "none"

MALAYSIAN_NATIONALITIES = [
    ("malaysian", "Malaysian"),
    ("singaporean", "Singaporean"),
    ("chinese", "Chinese"),
    ("indian", "Indian"),
    ("indonesian", "Indonesian"),
    ("thai", "Thai"),
    ("vietnamese", "Vietnamese"),
    ("filipino", "Filipino"),
    ("myanmar", "Myanmar"),
    ("bangladeshi", "Bangladeshi"),
    ("pakistani", "Pakistani"),
    ("sri_lankan", "Sri Lankan"),
    ("japanese", "Japanese"),
    ("korean", "Korean"),
    ("australian", "Australian"),
    ("british", "British"),
    ("american", "American"),
    ("other", "Other"),
]

WORK_PERMIT_TYPES = [
    ("none", "Not Applicable (Malaysian)"),
    ("employment_pass", "Employment Pass"),
    ("work_permit", "Work Permit"),
    ("professional_visit_pass", "Professional Visit Pass"),
    ("residence_pass", "Residence Pass (PR)"),
    ("student_visa", "Student Visa"),
    ("dependent_pass", "Dependent Pass"),
    ("social_visit_pass", "Social Visit Pass"),
    ("other", "Other"),
]

MALAYSIAN_STATES = [
    ("johor", "Johor"),
    ("kedah", "Kedah"),
    ("kelantan", "Kelantan"),
    ("malacca", "Malacca"),
    ("negeri_sembilan", "Negeri Sembilan"),
    ("pahang", "Pahang"),
    ("penang", "Penang"),
    ("perak", "Perak"),
    ("perlis", "Perlis"),
    ("selangor", "Selangor"),
    ("terengganu", "Terengganu"),
    ("sabah", "Sabah"),
    ("sarawak", "Sarawak"),
    ("kuala_lumpur", "Federal Territory of Kuala Lumpur"),
    ("labuan", "Federal Territory of Labuan"),
    ("putrajaya", "Federal Territory of Putrajaya"),
]

# =============================================================================
# PAYMENTS
# =============================================================================

PAYMENT_PENDING = "pending"
PAYMENT_PARTIAL = "partial"
PAYMENT_PAID = "paid"
PAYMENT_OVERDUE = "overdue"
PAYMENT_CANCELLED = "cancelled"

PAYMENT_STATUSES = {
    PAYMENT_PENDING,
    PAYMENT_PARTIAL,
    PAYMENT_PAID,
    PAYMENT_OVERDUE,
    PAYMENT_CANCELLED,
}

# "overdue" is derived at read time and never written by the service layer
STORED_PAYMENT_STATUSES = PAYMENT_STATUSES - {PAYMENT_OVERDUE}

PAYMENT_TYPE_RENT = "rent"

# (name, display_name)
DEFAULT_PAYMENT_TYPES = [
    ("rent", "Rent"),
    ("deposit", "Security Deposit"),
    ("utility", "Utilities"),
    ("late_fee", "Late Fee"),
    ("maintenance", "Maintenance"),
    ("other", "Other"),
]

DEFAULT_PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("bank_transfer", "Bank Transfer"),
    ("online_banking", "Online Banking (FPX)"),
    ("cheque", "Cheque"),
    ("credit_card", "Credit/Debit Card"),
    ("ewallet", "E-Wallet"),
]

RECURRING_PERIODS = {"monthly", "quarterly", "yearly"}

DEPOSIT_HELD = "held"
DEPOSIT_PARTIALLY_REFUNDED = "partially_refunded"
DEPOSIT_FULLY_REFUNDED = "fully_refunded"

DEPOSIT_STATUSES = {DEPOSIT_HELD, DEPOSIT_PARTIALLY_REFUNDED, DEPOSIT_FULLY_REFUNDED}

DEFAULT_LATE_FEE_DAYS = 7
