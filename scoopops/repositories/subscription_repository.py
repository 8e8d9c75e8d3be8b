from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.subscription import PlanType, Subscription, SubscriptionStatus


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, subscription_id: UUID) -> Subscription | None:
        return self.db.query(Subscription).filter(Subscription.id == subscription_id).first()

    def get_by_stripe_id(self, stripe_subscription_id: str) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(Subscription.stripe_subscription_id == stripe_subscription_id)
            .first()
        )

    def get_current_for_customer(self, customer_id: UUID) -> Subscription | None:
        """Most recent subscription for a customer, whatever its status."""
        return (
            self.db.query(Subscription)
            .filter(Subscription.customer_id == customer_id)
            .order_by(Subscription.created_at.desc())
            .first()
        )

    def create(
        self,
        customer_id: UUID,
        plan_type: PlanType = PlanType.WEEKLY,
        status: SubscriptionStatus = SubscriptionStatus.PENDING,
        stripe_subscription_id: str | None = None,
        current_period_end: datetime | None = None,
    ) -> Subscription:
        subscription = Subscription(
            customer_id=customer_id,
            plan_type=plan_type.value,
            status=status.value,
            stripe_subscription_id=stripe_subscription_id,
            current_period_end=current_period_end,
        )
        self.db.add(subscription)
        commit(self.db)
        self.db.refresh(subscription)
        return subscription

    def set_status(
        self,
        subscription: Subscription,
        status: SubscriptionStatus,
        when: datetime | None = None,
    ) -> bool:
        """Move ``subscription`` to ``status``; returns False when nothing changed.

        ``when`` stamps the matching lifecycle column (ended_at, paused_at or
        resumed_at) for terminal, pause and resume transitions.
        """
        if subscription.status == status.value:
            return False
        previous = subscription.status
        subscription.status = status.value  # type: ignore[assignment]
        if when is not None:
            if status == SubscriptionStatus.CANCELLED:
                subscription.ended_at = when  # type: ignore[assignment]
            elif status == SubscriptionStatus.PAUSED:
                subscription.paused_at = when  # type: ignore[assignment]
            elif (
                status == SubscriptionStatus.ACTIVE
                and previous == SubscriptionStatus.PAUSED.value
            ):
                subscription.resumed_at = when  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(subscription)
        return True

    def record_payment(
        self,
        subscription: Subscription,
        paid_at: datetime,
        current_period_end: datetime | None = None,
    ) -> Subscription:
        subscription.last_payment_date = paid_at  # type: ignore[assignment]
        if current_period_end is not None:
            subscription.current_period_end = current_period_end  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(subscription)
        return subscription
