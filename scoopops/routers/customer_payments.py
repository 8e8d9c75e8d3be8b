"""Payments as seen by the logged-in customer."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from scoopops.core.auth import require_roles
from scoopops.core.database import get_db
from scoopops.models.payment import Payment
from scoopops.models.user import UserRole
from scoopops.repositories.payment_repository import PaymentRepository
from scoopops.repositories.user_repository import UserRepository
from scoopops.schemas.payment import PaymentResponse
from scoopops.services.auth_service import TokenClaims

router = APIRouter()


def _customer_id_for(claims: TokenClaims, db: Session) -> UUID:
    user = UserRepository(db).get_by_id(claims.user_id)
    if user is None or user.customer_id is None:
        raise HTTPException(status_code=403, detail="No customer profile for this user")
    return user.customer_id  # type: ignore[return-value]


@router.get("/", response_model=list[PaymentResponse], summary="List my payments")
async def list_my_payments(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(require_roles(UserRole.CUSTOMER)),
) -> list[Payment]:
    customer_id = _customer_id_for(claims, db)
    return PaymentRepository(db).get_all(skip=skip, limit=limit, customer_id=customer_id)


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
    summary="Get one of my payments",
    responses={404: {"description": "Payment not found"}},
)
async def get_my_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(require_roles(UserRole.CUSTOMER)),
) -> Payment:
    customer_id = _customer_id_for(claims, db)
    payment = PaymentRepository(db).get_by_id(payment_id)
    if not payment or payment.customer_id != customer_id:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment
