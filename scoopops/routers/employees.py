from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from scoopops.core.auth import require_roles
from scoopops.core.database import atomic, get_db
from scoopops.models.employee import Employee, EmployeeStatus
from scoopops.models.user import UserRole
from scoopops.repositories.employee_repository import EmployeeRepository
from scoopops.repositories.user_repository import UserRepository
from scoopops.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from scoopops.services.auth_service import hash_password

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get("/", response_model=list[EmployeeResponse], summary="List employees")
async def list_employees(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Employee]:
    return EmployeeRepository(db).get_all(skip=skip, limit=limit)


@router.post(
    "/",
    response_model=EmployeeResponse,
    status_code=201,
    summary="Create employee",
    responses={409: {"description": "Email already registered"}},
)
async def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
) -> Employee:
    """Create an employee and, when a password is given, their login."""
    user_repo = UserRepository(db)
    if data.password and user_repo.get_by_email(data.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    try:
        with atomic(db):
            employee = EmployeeRepository(db).create(data)
            if data.password:
                user_repo.create(
                    email=data.email,
                    password_hash=hash_password(data.password),
                    role=UserRole.EMPLOYEE,
                    employee_id=employee.id,  # type: ignore[arg-type]
                )
    except IntegrityError:
        raise HTTPException(
            status_code=409, detail="Employee with this email already exists"
        ) from None
    return employee


@router.patch(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Update employee",
    responses={404: {"description": "Employee not found"}},
)
async def update_employee(
    employee_id: UUID,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
) -> Employee:
    """Update an employee. Deactivating one also disables their login."""
    with atomic(db):
        employee = EmployeeRepository(db).update(employee_id, data)
        if employee is not None and data.status is not None:
            UserRepository(db).set_active_for_employee(
                employee_id, data.status == EmployeeStatus.ACTIVE
            )
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")
    return employee
