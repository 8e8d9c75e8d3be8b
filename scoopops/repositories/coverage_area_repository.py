"""Coverage area repository for data access."""

from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.coverage_area import CoverageArea


class CoverageAreaRepository:
    """Repository for CoverageArea model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        employee_id: UUID | None = None,
        zip_code: str | None = None,
        active: bool | None = None,
    ) -> list[CoverageArea]:
        query = self.db.query(CoverageArea)
        if employee_id is not None:
            query = query.filter(CoverageArea.employee_id == employee_id)
        if zip_code is not None:
            query = query.filter(CoverageArea.zip_code == zip_code)
        if active is not None:
            query = query.filter(CoverageArea.active == active)
        return query.order_by(CoverageArea.zip_code).offset(skip).limit(limit).all()

    def get_by_id(self, area_id: UUID) -> CoverageArea | None:
        return self.db.query(CoverageArea).filter(CoverageArea.id == area_id).first()

    def get_by_employee_and_zip(self, employee_id: UUID, zip_code: str) -> CoverageArea | None:
        return (
            self.db.query(CoverageArea)
            .filter(
                CoverageArea.employee_id == employee_id,
                CoverageArea.zip_code == zip_code,
            )
            .first()
        )

    def create(
        self,
        employee_id: UUID,
        zip_code: str,
        active: bool = True,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> CoverageArea:
        area = CoverageArea(
            employee_id=employee_id,
            zip_code=zip_code,
            active=active,
            latitude=latitude,
            longitude=longitude,
        )
        self.db.add(area)
        commit(self.db)
        self.db.refresh(area)
        return area

    def set_active(self, area_id: UUID, active: bool) -> CoverageArea | None:
        area = self.get_by_id(area_id)
        if not area:
            return None
        area.active = active  # type: ignore[assignment]
        commit(self.db)
        self.db.refresh(area)
        return area

    def delete(self, area_id: UUID) -> bool:
        area = self.get_by_id(area_id)
        if not area:
            return False
        self.db.delete(area)
        commit(self.db)
        return True

    def get_active_zip_codes(self) -> set[str]:
        """Distinct zip codes claimed by at least one active coverage area."""
        rows = (
            self.db.query(func.substr(CoverageArea.zip_code, 1, 5))
            .filter(CoverageArea.active.is_(True))
            .distinct()
            .all()
        )
        return {row[0] for row in rows}
