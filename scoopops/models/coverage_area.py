"""CoverageArea model - zip codes claimed by field staff as serviceable."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    String,
    UniqueConstraint,
    func,
)

from scoopops.core.database import Base
from scoopops.models.shared import UUIDType, generate_uuid


class CoverageArea(Base):
    __tablename__ = "coverage_areas"
    __table_args__ = (
        UniqueConstraint("employee_id", "zip_code", name="uq_coverage_employee_zip"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    employee_id = Column(
        UUIDType, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    zip_code = Column(String(10), nullable=False, index=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
