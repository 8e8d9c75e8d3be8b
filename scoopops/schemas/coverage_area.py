from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from scoopops.schemas.customer import ZIP_PATTERN, five_digit_zip


class CoverageAreaCreate(BaseModel):
    employee_id: UUID | None = Field(
        default=None,
        description="Owning employee. Defaults to the caller when an employee creates the area.",
    )
    zip_code: str = Field(..., min_length=5, max_length=10, pattern=ZIP_PATTERN)
    active: bool = True

    @field_validator("zip_code")
    @classmethod
    def normalize_zip(cls, v: str) -> str:
        return five_digit_zip(v)


class CoverageAreaUpdate(BaseModel):
    active: bool


class CoverageAreaResponse(BaseModel):
    id: UUID
    employee_id: UUID
    zip_code: str
    active: bool
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
