from uuid import UUID

from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.employee import Employee
from scoopops.schemas.employee import EmployeeCreate, EmployeeUpdate


class EmployeeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Employee]:
        return (
            self.db.query(Employee)
            .order_by(Employee.name)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_by_id(self, employee_id: UUID) -> Employee | None:
        return self.db.query(Employee).filter(Employee.id == employee_id).first()

    def create(self, data: EmployeeCreate) -> Employee:
        employee = Employee(**data.model_dump(exclude={"password"}))
        self.db.add(employee)
        commit(self.db)
        self.db.refresh(employee)
        return employee

    def update(self, employee_id: UUID, data: EmployeeUpdate) -> Employee | None:
        employee = self.get_by_id(employee_id)
        if not employee:
            return None
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("status") is not None:
            update_data["status"] = update_data["status"].value
        for key, value in update_data.items():
            setattr(employee, key, value)
        commit(self.db)
        self.db.refresh(employee)
        return employee
