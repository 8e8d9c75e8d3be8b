from scoopops.schemas.auth import (
    LoginRequest,
    MeResponse,
    RefreshRequest,
    SignupRequest,
    TokenResponse,
)
from scoopops.schemas.coverage import (
    CoverageNotifyRequest,
    CoverageNotifyResponse,
    CoveragePriority,
    CoverageRiskReport,
    UncoveredZip,
)
from scoopops.schemas.coverage_area import (
    CoverageAreaCreate,
    CoverageAreaResponse,
    CoverageAreaUpdate,
)
from scoopops.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from scoopops.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from scoopops.schemas.notification import (
    NotificationCountResponse,
    NotificationReadAllResponse,
    NotificationResponse,
)
from scoopops.schemas.payment import (
    CancelRetriesResponse,
    PaymentResponse,
    PaymentRetryResponse,
    RetryRunSummary,
)

__all__ = [
    "CancelRetriesResponse",
    "CoverageAreaCreate",
    "CoverageAreaResponse",
    "CoverageAreaUpdate",
    "CoverageNotifyRequest",
    "CoverageNotifyResponse",
    "CoveragePriority",
    "CoverageRiskReport",
    "CustomerCreate",
    "CustomerResponse",
    "CustomerUpdate",
    "EmployeeCreate",
    "EmployeeResponse",
    "EmployeeUpdate",
    "LoginRequest",
    "MeResponse",
    "NotificationCountResponse",
    "NotificationReadAllResponse",
    "NotificationResponse",
    "PaymentResponse",
    "PaymentRetryResponse",
    "RefreshRequest",
    "RetryRunSummary",
    "SignupRequest",
    "TokenResponse",
    "UncoveredZip",
]
