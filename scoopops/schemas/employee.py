from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from scoopops.models.employee import EmployeeStatus


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    password: str | None = Field(
        default=None,
        min_length=8,
        max_length=128,
        description="When set, a login with the employee role is created.",
    )


class EmployeeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    status: EmployeeStatus | None = None


class EmployeeResponse(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
