"""Login, signup and token refresh endpoints."""

import jwt
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scoopops.core.auth import get_current_user
from scoopops.core.config import settings
from scoopops.core.database import get_db
from scoopops.core.rate_limiter import (
    login_rate_limiter,
    rate_limit,
    refresh_rate_limiter,
    signup_rate_limiter,
)
from scoopops.models.user import UserRole
from scoopops.repositories.user_repository import UserRepository
from scoopops.schemas.auth import (
    LoginRequest,
    MeResponse,
    RefreshRequest,
    SignupRequest,
    TokenResponse,
)
from scoopops.services.auth_service import AuthService, TokenClaims

router = APIRouter()


def _set_session_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=settings.ACCESS_TOKEN_TTL_MINUTES * 60,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
    )


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=201,
    summary="Customer self-signup",
    responses={
        400: {"description": "Invalid referral code"},
        409: {"description": "Email already registered"},
        429: {"description": "Too many requests"},
    },
)
async def signup(
    data: SignupRequest,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit(signup_rate_limiter, "signup")),
) -> TokenResponse:
    """Create a customer account and return a token pair."""
    service = AuthService(db)
    try:
        user = service.signup_customer(data)
    except ValueError as e:
        status_code = 409 if "already registered" in str(e) else 400
        raise HTTPException(status_code=status_code, detail=str(e)) from None
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Email already registered") from None

    tokens = service.issue_tokens(user)
    _set_session_cookie(response, tokens.access_token)
    return tokens


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    responses={
        401: {"description": "Invalid email or password"},
        429: {"description": "Too many requests"},
    },
)
async def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit(login_rate_limiter, "login")),
) -> TokenResponse:
    """Exchange credentials for a token pair and set the session cookie."""
    service = AuthService(db)
    user = service.authenticate(data.email, data.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    tokens = service.issue_tokens(user)
    _set_session_cookie(response, tokens.access_token)
    return tokens


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh tokens",
    responses={
        401: {"description": "Invalid or expired refresh token"},
        429: {"description": "Too many requests"},
    },
)
async def refresh(
    data: RefreshRequest,
    response: Response,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit(refresh_rate_limiter, "refresh")),
) -> TokenResponse:
    service = AuthService(db)
    try:
        tokens = service.refresh(data.refresh_token)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Refresh token has expired") from None
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid refresh token") from None
    _set_session_cookie(response, tokens.access_token)
    return tokens


@router.post("/logout", status_code=204, summary="Log out")
async def logout() -> Response:
    """Clear the session cookie."""
    response = Response(status_code=204)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current user",
    responses={401: {"description": "Not authenticated"}},
)
async def me(
    claims: TokenClaims = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MeResponse:
    user = UserRepository(db).get_by_id(claims.user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return MeResponse(
        user_id=user.id,  # type: ignore[arg-type]
        email=str(user.email),
        role=UserRole(user.role),
        customer_id=user.customer_id,  # type: ignore[arg-type]
        employee_id=user.employee_id,  # type: ignore[arg-type]
    )
