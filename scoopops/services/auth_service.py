import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import bcrypt
import jwt
from sqlalchemy.orm import Session

from scoopops.core.config import settings
from scoopops.core.database import atomic
from scoopops.models.customer import CustomerStatus
from scoopops.models.user import User, UserRole
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.repositories.user_repository import UserRepository
from scoopops.schemas.auth import SignupRequest, TokenResponse
from scoopops.schemas.customer import CustomerCreate

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


@dataclass
class TokenClaims:
    """Verified claims carried by an access or refresh token."""

    user_id: UUID
    role: UserRole
    token_type: str


class AuthService:
    def __init__(self, db: Session) -> None:
        self.db = db
        self.user_repo = UserRepository(db)

    @staticmethod
    def create_token(user_id: UUID, role: UserRole, token_type: str) -> str:
        now = datetime.now(UTC)
        if token_type == REFRESH_TOKEN_TYPE:
            expires = now + timedelta(days=settings.REFRESH_TOKEN_TTL_DAYS)
        else:
            expires = now + timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES)
        payload = {
            "sub": str(user_id),
            "role": role.value,
            "type": token_type,
            "iat": now,
            "exp": expires,
        }
        return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")

    def issue_tokens(self, user: User) -> TokenResponse:
        """Issue an access/refresh token pair for ``user``."""
        role = UserRole(user.role)
        return TokenResponse(
            access_token=self.create_token(user.id, role, ACCESS_TOKEN_TYPE),  # type: ignore[arg-type]
            refresh_token=self.create_token(user.id, role, REFRESH_TOKEN_TYPE),  # type: ignore[arg-type]
            role=role,
        )

    @staticmethod
    def verify_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> TokenClaims:
        """Decode and validate a JWT.

        Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
        """
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=["HS256"],
            options={"require": ["sub", "exp", "type"]},
        )
        if payload.get("type") != expected_type:
            raise jwt.InvalidTokenError("Invalid token type")
        try:
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                role=UserRole(payload.get("role")),
                token_type=payload["type"],
            )
        except ValueError as e:
            raise jwt.InvalidTokenError("Malformed token claims") from e

    def authenticate(self, email: str, password: str) -> User | None:
        """Return the active user matching the credentials, or None."""
        user = self.user_repo.get_by_email(email)
        if user is None or not user.is_active:
            return None
        if not verify_password(password, str(user.password_hash)):
            return None
        self.user_repo.update_last_login(user, datetime.now(UTC))
        return user

    def refresh(self, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new token pair.

        Raises jwt.InvalidTokenError when the token is invalid or the user is gone.
        """
        claims = self.verify_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        user = self.user_repo.get_by_id(claims.user_id)
        if user is None or not user.is_active:
            raise jwt.InvalidTokenError("User no longer active")
        return self.issue_tokens(user)

    def signup_customer(self, data: SignupRequest) -> User:
        """Create a customer and its login.

        Raises:
            ValueError: If the email is already registered or the referral code
                is unknown.
        """
        if self.user_repo.get_by_email(data.email) is not None:
            raise ValueError("Email already registered")

        customer_repo = CustomerRepository(self.db)
        referred_by_id = None
        if data.referral_code:
            referrer = customer_repo.get_by_referral_code(data.referral_code)
            if referrer is None:
                raise ValueError("Invalid referral code")
            referred_by_id = referrer.id

        with atomic(self.db):
            customer = customer_repo.create(
                CustomerCreate(
                    name=data.name,
                    email=data.email,
                    phone=data.phone,
                    zip_code=data.zip_code,
                    status=CustomerStatus.ACTIVE,
                    referred_by_id=referred_by_id,  # type: ignore[arg-type]
                )
            )
            user = self.user_repo.create(
                email=data.email,
                password_hash=hash_password(data.password),
                role=UserRole.CUSTOMER,
                customer_id=customer.id,  # type: ignore[arg-type]
            )
        logger.info("Customer %s signed up as user %s", customer.id, user.id)
        return user
