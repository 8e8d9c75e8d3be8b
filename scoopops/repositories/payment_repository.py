"""Queries and state changes for recurring and one-off customer payments."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.payment import Payment, PaymentStatus, PaymentType
from scoopops.models.shared import utc_now


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        customer_id: UUID | None = None,
        subscription_id: UUID | None = None,
        status: PaymentStatus | None = None,
        payment_type: PaymentType | None = None,
    ) -> list[Payment]:
        """Newest first, optionally narrowed to one customer or status."""
        query = self.db.query(Payment)

        if customer_id:
            query = query.filter(Payment.customer_id == customer_id)
        if subscription_id:
            query = query.filter(Payment.subscription_id == subscription_id)
        if status:
            query = query.filter(Payment.status == status.value)
        if payment_type:
            query = query.filter(Payment.type == payment_type.value)

        return query.order_by(Payment.date.desc()).offset(skip).limit(limit).all()

    def get_by_id(self, payment_id: UUID) -> Payment | None:
        return self.db.query(Payment).filter(Payment.id == payment_id).first()

    def get_by_stripe_invoice_id(self, stripe_invoice_id: str) -> Payment | None:
        return (
            self.db.query(Payment)
            .filter(Payment.stripe_invoice_id == stripe_invoice_id)
            .first()
        )

    def count_paid_for_customer(self, customer_id: UUID, payment_type: PaymentType) -> int:
        return (
            self.db.query(Payment)
            .filter(
                Payment.customer_id == customer_id,
                Payment.type == payment_type.value,
                Payment.status == PaymentStatus.PAID.value,
            )
            .count()
        )

    def referral_exists(self, referrer_id: UUID, referred_customer_id: UUID) -> bool:
        return (
            self.db.query(Payment)
            .filter(
                Payment.customer_id == referrer_id,
                Payment.referred_customer_id == referred_customer_id,
                Payment.type == PaymentType.REFERRAL.value,
            )
            .first()
            is not None
        )

    def create(
        self,
        customer_id: UUID,
        amount: Decimal,
        payment_type: PaymentType = PaymentType.SUBSCRIPTION,
        status: PaymentStatus = PaymentStatus.PENDING,
        subscription_id: UUID | None = None,
        currency: str = "USD",
        stripe_invoice_id: str | None = None,
        stripe_payment_intent_id: str | None = None,
        referred_customer_id: UUID | None = None,
        date: datetime | None = None,
    ) -> Payment:
        payment = Payment(
            customer_id=customer_id,
            subscription_id=subscription_id,
            referred_customer_id=referred_customer_id,
            amount=amount,
            currency=currency,
            status=status.value,
            type=payment_type.value,
            stripe_invoice_id=stripe_invoice_id,
            stripe_payment_intent_id=stripe_payment_intent_id,
            date=date or utc_now(),
        )
        self.db.add(payment)
        commit(self.db)
        self.db.refresh(payment)
        return payment

    def mark_paid(
        self,
        payment: Payment,
        paid_at: datetime,
        stripe_payment_intent_id: str | None = None,
    ) -> Payment:
        payment.status = PaymentStatus.PAID.value  # type: ignore[assignment]
        payment.paid_at = paid_at  # type: ignore[assignment]
        payment.failure_reason = None  # type: ignore[assignment]
        if stripe_payment_intent_id:
            payment.stripe_payment_intent_id = stripe_payment_intent_id  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(payment)
        return payment

    def mark_failed(
        self,
        payment: Payment,
        retry_count: int,
        failure_reason: str | None = None,
    ) -> Payment:
        payment.status = PaymentStatus.FAILED.value  # type: ignore[assignment]
        payment.retry_count = retry_count  # type: ignore[assignment]
        if failure_reason:
            payment.failure_reason = failure_reason  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(payment)
        return payment

    def reset_retry_count(self, payment: Payment) -> bool:
        if int(payment.retry_count) == 0:
            return False
        payment.retry_count = 0  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(payment)
        return True
