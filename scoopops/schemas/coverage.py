"""Coverage-risk report schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class CoveragePriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class UncoveredZip(BaseModel):
    zip_code: str
    customer_count: int
    priority: CoveragePriority


class CoverageRiskReport(BaseModel):
    total_customer_zips: int
    total_covered_zips: int
    uncovered_zip_count: int
    at_risk_customer_count: int
    uncovered: list[UncoveredZip] = Field(default_factory=list)
    generated_at: datetime


class CoverageNotifyRequest(BaseModel):
    notify_customers: bool | None = Field(
        default=None,
        description="Also email every affected customer. Defaults to the server setting.",
    )


class CoverageNotifyResponse(BaseModel):
    uncovered_zip_count: int
    admin_notified: bool
    customers_emailed: int
