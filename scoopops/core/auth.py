import hmac
from collections.abc import Callable

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from scoopops.core.config import settings
from scoopops.core.database import get_db
from scoopops.models.user import UserRole
from scoopops.repositories.user_repository import UserRepository
from scoopops.services.auth_service import AuthService, TokenClaims


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")
    token = auth_header[7:]
    if not token:
        raise HTTPException(status_code=401, detail="Token is required")
    return token


def get_current_user(request: Request) -> TokenClaims:
    """Validate the access token from the Authorization header or session cookie."""
    token = _bearer_token(request) or request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return AuthService.verify_token(token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired") from None
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token") from None


def require_roles(*roles: UserRole) -> Callable[..., TokenClaims]:
    """Build a dependency that only admits users holding one of ``roles``."""

    def dependency(
        claims: TokenClaims = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> TokenClaims:
        if claims.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        # Tokens outlive deactivation, so the account is re-checked on every call
        user = UserRepository(db).get_by_id(claims.user_id)
        if user is None or not user.is_active:
            raise HTTPException(status_code=401, detail="Account is disabled")
        if user.role != claims.role.value:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return claims

    return dependency


def verify_cron_secret(request: Request) -> None:
    """Admit scheduler calls presenting ``Bearer <CRON_SECRET>``."""
    if not settings.CRON_SECRET:
        raise HTTPException(status_code=503, detail="Cron secret not configured")
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not hmac.compare_digest(auth_header[7:].encode(), settings.CRON_SECRET.encode()):
        raise HTTPException(status_code=401, detail="Invalid token")
