from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from scoopops.models.customer import CustomerStatus

ZIP_PATTERN = r"^\d{5}(-\d{4})?$"


def five_digit_zip(value: str) -> str:
    """Coverage is tracked per 5-digit zip, so a ZIP+4 suffix is dropped."""
    return value[:5]


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    zip_code: str = Field(..., min_length=5, max_length=10, pattern=ZIP_PATTERN)
    status: CustomerStatus = CustomerStatus.ACTIVE
    service_credits: int = Field(default=0, ge=0)
    stripe_customer_id: str | None = Field(default=None, max_length=255)
    referred_by_id: UUID | None = None

    @field_validator("zip_code")
    @classmethod
    def normalize_zip(cls, v: str) -> str:
        return five_digit_zip(v)


class CustomerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    zip_code: str | None = Field(default=None, min_length=5, max_length=10, pattern=ZIP_PATTERN)
    status: CustomerStatus | None = None
    stripe_customer_id: str | None = Field(default=None, max_length=255)

    @field_validator("zip_code")
    @classmethod
    def normalize_zip(cls, v: str | None) -> str | None:
        return five_digit_zip(v) if v is not None else None


class CustomerResponse(BaseModel):
    id: UUID
    name: str
    email: str | None
    phone: str | None = None
    zip_code: str
    status: str
    service_credits: int
    credits_depleted_at: datetime | None = None
    stripe_customer_id: str | None = None
    referral_code: str | None = None
    referred_by_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
