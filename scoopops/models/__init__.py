from scoopops.models.cache_entry import CacheEntry
from scoopops.models.coverage_area import CoverageArea
from scoopops.models.customer import Customer, CustomerStatus
from scoopops.models.employee import Employee, EmployeeStatus
from scoopops.models.notification import Notification
from scoopops.models.payment import Payment, PaymentStatus, PaymentType
from scoopops.models.payment_retry import PaymentRetry, PaymentRetryStatus
from scoopops.models.processed_webhook_event import ProcessedWebhookEvent
from scoopops.models.subscription import PlanType, Subscription, SubscriptionStatus
from scoopops.models.user import User, UserRole

__all__ = [
    "CacheEntry",
    "CoverageArea",
    "Customer",
    "CustomerStatus",
    "Employee",
    "EmployeeStatus",
    "Notification",
    "Payment",
    "PaymentRetry",
    "PaymentRetryStatus",
    "PaymentStatus",
    "PaymentType",
    "PlanType",
    "ProcessedWebhookEvent",
    "Subscription",
    "SubscriptionStatus",
    "User",
    "UserRole",
]
