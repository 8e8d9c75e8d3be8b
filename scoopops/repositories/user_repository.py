from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from scoopops.core.database import commit
from scoopops.models.user import User, UserRole


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: UUID) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def create(
        self,
        email: str,
        password_hash: str,
        role: UserRole,
        customer_id: UUID | None = None,
        employee_id: UUID | None = None,
    ) -> User:
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            role=role.value,
            customer_id=customer_id,
            employee_id=employee_id,
        )
        self.db.add(user)
        commit(self.db)
        self.db.refresh(user)
        return user

    def update_last_login(self, user: User, when: datetime) -> None:
        user.last_login_at = when  # type: ignore[assignment]
        commit(self.db)

    def set_active_for_employee(self, employee_id: UUID, active: bool) -> int:
        """Enable or disable the login linked to an employee."""
        updated = (
            self.db.query(User)
            .filter(User.employee_id == employee_id)
            .update({User.is_active: active}, synchronize_session=False)
        )
        commit(self.db)
        return updated
