from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid


class CustomerStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    DO_NOT_SERVICE = "do_not_service"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    zip_code = Column(String(10), nullable=False, index=True)
    status = Column(
        String(20), nullable=False, default=CustomerStatus.ACTIVE.value, index=True
    )
    service_credits = Column(Integer, nullable=False, default=0)
    credits_depleted_at = Column(DateTime(timezone=True), nullable=True)
    stripe_customer_id = Column(String(255), unique=True, nullable=True, index=True)
    referral_code = Column(String(32), unique=True, nullable=True)
    referred_by_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
