import secrets
from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.customer import Customer, CustomerStatus
from scoopops.schemas.customer import CustomerCreate, CustomerUpdate


def generate_referral_code() -> str:
    """Eight upper-case hex characters."""
    return secrets.token_hex(4).upper()


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        status: CustomerStatus | None = None,
        zip_code: str | None = None,
    ) -> list[Customer]:
        query = self.db.query(Customer)
        if status is not None:
            query = query.filter(Customer.status == status.value)
        if zip_code is not None:
            query = query.filter(Customer.zip_code == zip_code)
        return query.order_by(Customer.created_at.desc()).offset(skip).limit(limit).all()

    def count(self, status: CustomerStatus | None = None) -> int:
        query = self.db.query(Customer)
        if status is not None:
            query = query.filter(Customer.status == status.value)
        return query.count()

    def count_active_by_zip(self) -> dict[str, int]:
        """Number of ACTIVE customers per 5-digit zip code."""
        zip5 = func.substr(Customer.zip_code, 1, 5)
        rows = (
            self.db.query(zip5, func.count(Customer.id))
            .filter(Customer.status == CustomerStatus.ACTIVE.value)
            .group_by(zip5)
            .all()
        )
        return {zip_code: count for zip_code, count in rows}

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def get_by_stripe_customer_id(self, stripe_customer_id: str) -> Customer | None:
        return (
            self.db.query(Customer)
            .filter(Customer.stripe_customer_id == stripe_customer_id)
            .first()
        )

    def get_by_referral_code(self, referral_code: str) -> Customer | None:
        return (
            self.db.query(Customer)
            .filter(Customer.referral_code == referral_code.upper())
            .first()
        )

    def get_active_in_zip_codes(self, zip_codes: set[str]) -> list[Customer]:
        """Active customers living in any of ``zip_codes``."""
        if not zip_codes:
            return []
        return (
            self.db.query(Customer)
            .filter(
                Customer.status == CustomerStatus.ACTIVE.value,
                func.substr(Customer.zip_code, 1, 5).in_(sorted(zip_codes)),
            )
            .all()
        )

    def create(self, data: CustomerCreate) -> Customer:
        payload = data.model_dump()
        payload["status"] = data.status.value
        customer = Customer(**payload, referral_code=generate_referral_code())
        self.db.add(customer)
        commit(self.db)
        self.db.refresh(customer)
        return customer

    def update(self, customer_id: UUID, data: CustomerUpdate) -> Customer | None:
        customer = self.get_by_id(customer_id)
        if not customer:
            return None
        update_data = data.model_dump(exclude_unset=True)
        if "status" in update_data:
            if update_data["status"]:
                update_data["status"] = update_data["status"].value
            else:
                del update_data["status"]
        for key, value in update_data.items():
            setattr(customer, key, value)
        commit(self.db)
        self.db.refresh(customer)
        return customer

    def set_status(self, customer: Customer, status: CustomerStatus) -> bool:
        """Set ``customer.status``; returns False when it already had that status."""
        if customer.status == status.value:
            return False
        customer.status = status.value  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(customer)
        return True

    def grant_credits(self, customer: Customer, credits: int) -> Customer:
        balance = int(customer.service_credits or 0) + credits
        customer.service_credits = balance  # type: ignore[assignment]
        if balance > 0:
            customer.credits_depleted_at = None  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(customer)
        return customer

    def consume_credit(self, customer: Customer, when: datetime) -> bool:
        """Use one credit, never going below zero.

        ``credits_depleted_at`` records when the balance first hit zero and is
        cleared while credits remain. Returns False when none were left.
        """
        remaining = int(customer.service_credits or 0)
        consumed = remaining > 0
        if consumed:
            remaining -= 1
            customer.service_credits = remaining  # type: ignore[assignment]
        if remaining == 0 and customer.credits_depleted_at is None:
            customer.credits_depleted_at = when  # type: ignore[assignment]
        elif remaining > 0:
            customer.credits_depleted_at = None  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(customer)
        return consumed
