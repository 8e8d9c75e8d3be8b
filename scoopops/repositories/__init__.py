from scoopops.repositories.cache_repository import CacheRepository
from scoopops.repositories.coverage_area_repository import CoverageAreaRepository
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.repositories.employee_repository import EmployeeRepository
from scoopops.repositories.notification_repository import NotificationRepository
from scoopops.repositories.payment_repository import PaymentRepository
from scoopops.repositories.payment_retry_repository import PaymentRetryRepository
from scoopops.repositories.processed_webhook_event_repository import (
    ProcessedWebhookEventRepository,
)
from scoopops.repositories.subscription_repository import SubscriptionRepository
from scoopops.repositories.user_repository import UserRepository

__all__ = [
    "CacheRepository",
    "CoverageAreaRepository",
    "CustomerRepository",
    "EmployeeRepository",
    "NotificationRepository",
    "PaymentRepository",
    "PaymentRetryRepository",
    "ProcessedWebhookEventRepository",
    "SubscriptionRepository",
    "UserRepository",
]
