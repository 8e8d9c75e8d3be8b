import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scoopops.core.auth import require_roles
from scoopops.core.database import get_db
from scoopops.models.customer import Customer, CustomerStatus
from scoopops.models.shared import utc_now
from scoopops.models.user import UserRole
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate
from scoopops.services.coverage_risk_service import CoverageRiskService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get(
    "/",
    response_model=list[CustomerResponse],
    summary="List customers",
    responses={401: {"description": "Not authenticated"}, 403: {"description": "Admins only"}},
)
async def list_customers(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: CustomerStatus | None = None,
    zip_code: str | None = None,
    db: Session = Depends(get_db),
) -> list[Customer]:
    """List customers with pagination and optional status/zip filters."""
    repo = CustomerRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(status))
    return repo.get_all(skip=skip, limit=limit, status=status, zip_code=zip_code)


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get customer",
    responses={404: {"description": "Customer not found"}},
)
async def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> Customer:
    customer = CustomerRepository(db).get_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.post(
    "/",
    response_model=CustomerResponse,
    status_code=201,
    summary="Create customer",
    responses={409: {"description": "Stripe customer already linked"}},
)
async def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
) -> Customer:
    try:
        customer = CustomerRepository(db).create(data)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409, detail="Customer with this Stripe ID already exists"
        ) from None
    # Active customers feed the coverage report
    CoverageRiskService(db).invalidate_cache()
    return customer


@router.patch(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Update customer",
    responses={
        404: {"description": "Customer not found"},
        409: {"description": "Stripe customer already linked"},
    },
)
async def update_customer(
    customer_id: UUID,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
) -> Customer:
    """Update a customer, including moving it between statuses."""
    try:
        customer = CustomerRepository(db).update(customer_id, data)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409, detail="Customer with this Stripe ID already exists"
        ) from None
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    CoverageRiskService(db).invalidate_cache()
    return customer


@router.post(
    "/{customer_id}/visits",
    response_model=CustomerResponse,
    summary="Record a completed service visit",
    responses={
        404: {"description": "Customer not found"},
        409: {"description": "Customer is marked do-not-service"},
    },
)
async def record_visit(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> Customer:
    """Consume one service credit for a completed visit."""
    repo = CustomerRepository(db)
    customer = repo.get_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    if customer.status == CustomerStatus.DO_NOT_SERVICE.value:
        raise HTTPException(status_code=409, detail="Customer is marked do-not-service")
    if not repo.consume_credit(customer, utc_now()):
        logger.warning("Customer %s serviced with no credits left", customer_id)
    return customer
