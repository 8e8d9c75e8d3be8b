from enum import Enum

from sqlalchemy import Column, DateTime, String, func

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Employee(Base):
    """Field staff member who services customers in claimed zip codes."""

    __tablename__ = "employees"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=EmployeeStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
