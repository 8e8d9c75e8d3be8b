from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from scoopops.models.user import UserRole
from scoopops.schemas.customer import ZIP_PATTERN, five_digit_zip


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)
    zip_code: str = Field(..., min_length=5, max_length=10, pattern=ZIP_PATTERN)
    phone: str | None = Field(default=None, max_length=50)
    referral_code: str | None = Field(default=None, max_length=32)

    @field_validator("zip_code")
    @classmethod
    def normalize_zip(cls, v: str) -> str:
        return five_digit_zip(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    role: UserRole


class MeResponse(BaseModel):
    user_id: UUID
    email: str
    role: UserRole
    customer_id: UUID | None = None
    employee_id: UUID | None = None
