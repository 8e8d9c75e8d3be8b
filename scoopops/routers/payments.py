from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from scoopops.core.auth import require_roles
from scoopops.core.database import get_db
from scoopops.models.payment import Payment, PaymentStatus, PaymentType
from scoopops.models.payment_retry import PaymentRetry
from scoopops.models.user import UserRole
from scoopops.repositories.payment_repository import PaymentRepository
from scoopops.repositories.payment_retry_repository import PaymentRetryRepository
from scoopops.schemas.payment import (
    CancelRetriesResponse,
    PaymentResponse,
    PaymentRetryResponse,
)
from scoopops.services.payment_retry_service import PaymentRetryService

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get(
    "/",
    response_model=list[PaymentResponse],
    summary="List payments",
    responses={401: {"description": "Not authenticated"}, 403: {"description": "Admins only"}},
)
async def list_payments(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    customer_id: UUID | None = None,
    subscription_id: UUID | None = None,
    status: PaymentStatus | None = None,
    payment_type: PaymentType | None = None,
    db: Session = Depends(get_db),
) -> list[Payment]:
    """List payments with optional filters."""
    return PaymentRepository(db).get_all(
        skip=skip,
        limit=limit,
        customer_id=customer_id,
        subscription_id=subscription_id,
        status=status,
        payment_type=payment_type,
    )


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
    summary="Get payment",
    responses={404: {"description": "Payment not found"}},
)
async def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
) -> Payment:
    payment = PaymentRepository(db).get_by_id(payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.get(
    "/{payment_id}/retries",
    response_model=list[PaymentRetryResponse],
    summary="List retries for a payment",
    responses={404: {"description": "Payment not found"}},
)
async def list_payment_retries(
    payment_id: UUID,
    db: Session = Depends(get_db),
) -> list[PaymentRetry]:
    if not PaymentRepository(db).get_by_id(payment_id):
        raise HTTPException(status_code=404, detail="Payment not found")
    return PaymentRetryRepository(db).get_for_payment(payment_id)


@router.post(
    "/{payment_id}/cancel-retries",
    response_model=CancelRetriesResponse,
    summary="Cancel scheduled retries",
    responses={404: {"description": "Payment not found"}},
)
async def cancel_payment_retries(
    payment_id: UUID,
    db: Session = Depends(get_db),
) -> CancelRetriesResponse:
    """Stop retrying a payment.

    Cancels every scheduled retry, resets the retry counter, cancels the
    subscription and marks the customer do-not-service. Calling it again
    changes nothing.
    """
    service = PaymentRetryService(db)
    try:
        return await service.cancel_retries(payment_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Payment not found") from None
