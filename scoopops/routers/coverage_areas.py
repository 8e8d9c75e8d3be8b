"""Coverage area endpoints for admins and scoopers."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scoopops.core.auth import require_roles
from scoopops.core.database import get_db
from scoopops.models.coverage_area import CoverageArea
from scoopops.models.user import UserRole
from scoopops.repositories.coverage_area_repository import CoverageAreaRepository
from scoopops.repositories.employee_repository import EmployeeRepository
from scoopops.repositories.user_repository import UserRepository
from scoopops.schemas.coverage_area import (
    CoverageAreaCreate,
    CoverageAreaResponse,
    CoverageAreaUpdate,
)
from scoopops.services.auth_service import TokenClaims
from scoopops.services.coverage_risk_service import CoverageRiskService
from scoopops.services.geocoding_service import GeocodingService

logger = logging.getLogger(__name__)

router = APIRouter()

allow_staff = require_roles(UserRole.ADMIN, UserRole.EMPLOYEE)


def _employee_scope(claims: TokenClaims, db: Session) -> UUID | None:
    """None for admins; the caller's employee id for scoopers."""
    if claims.role == UserRole.ADMIN:
        return None
    user = UserRepository(db).get_by_id(claims.user_id)
    if user is None or user.employee_id is None:
        raise HTTPException(status_code=403, detail="No employee profile for this user")
    return user.employee_id  # type: ignore[return-value]


def _get_owned_area(area_id: UUID, claims: TokenClaims, db: Session) -> CoverageArea:
    area = CoverageAreaRepository(db).get_by_id(area_id)
    scope = _employee_scope(claims, db)
    if not area or (scope is not None and area.employee_id != scope):
        raise HTTPException(status_code=404, detail="Coverage area not found")
    return area


@router.get("/", response_model=list[CoverageAreaResponse], summary="List coverage areas")
async def list_coverage_areas(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    employee_id: UUID | None = None,
    zip_code: str | None = None,
    active: bool | None = None,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(allow_staff),
) -> list[CoverageArea]:
    """List coverage areas. Scoopers only see their own."""
    scope = _employee_scope(claims, db)
    if scope is not None:
        employee_id = scope
    return CoverageAreaRepository(db).get_all(
        skip=skip, limit=limit, employee_id=employee_id, zip_code=zip_code, active=active
    )


@router.post(
    "/",
    response_model=CoverageAreaResponse,
    status_code=201,
    summary="Claim a zip code",
    responses={
        400: {"description": "employee_id is required for admins"},
        404: {"description": "Employee not found"},
        409: {"description": "Zip code already claimed by this employee"},
    },
)
async def create_coverage_area(
    data: CoverageAreaCreate,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(allow_staff),
) -> CoverageArea:
    scope = _employee_scope(claims, db)
    employee_id = scope if scope is not None else data.employee_id
    if employee_id is None:
        raise HTTPException(status_code=400, detail="employee_id is required")
    if EmployeeRepository(db).get_by_id(employee_id) is None:
        raise HTTPException(status_code=404, detail="Employee not found")

    repo = CoverageAreaRepository(db)
    if repo.get_by_employee_and_zip(employee_id, data.zip_code):
        raise HTTPException(
            status_code=409, detail="Zip code already claimed by this employee"
        )

    coordinates = GeocodingService().geocode_zip(data.zip_code)
    try:
        area = repo.create(
            employee_id=employee_id,
            zip_code=data.zip_code,
            active=data.active,
            latitude=coordinates[0] if coordinates else None,
            longitude=coordinates[1] if coordinates else None,
        )
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409, detail="Zip code already claimed by this employee"
        ) from None

    CoverageRiskService(db).invalidate_cache()
    logger.info("Employee %s now covers zip %s", employee_id, data.zip_code)
    return area


@router.patch(
    "/{area_id}",
    response_model=CoverageAreaResponse,
    summary="Activate or deactivate a coverage area",
    responses={404: {"description": "Coverage area not found"}},
)
async def update_coverage_area(
    area_id: UUID,
    data: CoverageAreaUpdate,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(allow_staff),
) -> CoverageArea:
    _get_owned_area(area_id, claims, db)
    area = CoverageAreaRepository(db).set_active(area_id, data.active)
    if not area:
        raise HTTPException(status_code=404, detail="Coverage area not found")
    CoverageRiskService(db).invalidate_cache()
    return area


@router.delete(
    "/{area_id}",
    status_code=204,
    summary="Delete a coverage area",
    responses={404: {"description": "Coverage area not found"}},
)
async def delete_coverage_area(
    area_id: UUID,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(allow_staff),
) -> None:
    _get_owned_area(area_id, claims, db)
    CoverageAreaRepository(db).delete(area_id)
    CoverageRiskService(db).invalidate_cache()
