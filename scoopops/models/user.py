"""User accounts and their role claims."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, func

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid


class UserRole(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)
    customer_id = Column(
        UUIDType, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    employee_id = Column(
        UUIDType, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
