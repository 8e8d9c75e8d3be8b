"""Shared test fixtures for all test modules."""

import contextlib
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import scoopops.models  # noqa: F401
from scoopops.core import database as db_module
from scoopops.core import rate_limiter as rate_limiter_module
from scoopops.core.database import Base, get_db
from scoopops.main import app
from scoopops.models.payment import PaymentType
from scoopops.models.subscription import SubscriptionStatus
from scoopops.models.user import UserRole
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.repositories.employee_repository import EmployeeRepository
from scoopops.repositories.payment_repository import PaymentRepository
from scoopops.repositories.subscription_repository import SubscriptionRepository
from scoopops.repositories.user_repository import UserRepository
from scoopops.schemas.customer import CustomerCreate
from scoopops.schemas.employee import EmployeeCreate
from scoopops.services.auth_service import AuthService, hash_password

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    # Patch module-level engine and session factory
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    # Restore originals
    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def _reset_rate_limiters():
    """Ensure every named limiter is clean before and after each test."""
    limiters = [
        rate_limiter_module.login_rate_limiter,
        rate_limiter_module.refresh_rate_limiter,
        rate_limiter_module.signup_rate_limiter,
        rate_limiter_module.default_rate_limiter,
    ]
    for limiter in limiters:
        limiter.reset()
    yield
    for limiter in limiters:
        limiter.reset()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db_session():
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


def make_customer(db, **overrides):
    data = {
        "name": "Dana Walker",
        "email": "dana@example.com",
        "zip_code": "78701",
        "stripe_customer_id": None,
    }
    data.update(overrides)
    return CustomerRepository(db).create(CustomerCreate(**data))


def make_subscription(db, customer, status=SubscriptionStatus.ACTIVE, stripe_subscription_id=None):
    return SubscriptionRepository(db).create(
        customer_id=customer.id,
        status=status,
        stripe_subscription_id=stripe_subscription_id,
    )


def make_payment(db, customer, subscription=None, amount="49.99", **kwargs):
    return PaymentRepository(db).create(
        customer_id=customer.id,
        subscription_id=subscription.id if subscription is not None else None,
        amount=Decimal(amount),
        payment_type=kwargs.pop("payment_type", PaymentType.SUBSCRIPTION),
        **kwargs,
    )


def make_user(db, role=UserRole.ADMIN, email=None, password="correct-horse", **kwargs):
    return UserRepository(db).create(
        email=email or f"{role.value}@example.com",
        password_hash=hash_password(password),
        role=role,
        **kwargs,
    )


def bearer(user) -> dict[str, str]:
    token = AuthService.create_token(user.id, UserRole(user.role), "access")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(db_session):
    return make_customer(db_session, stripe_customer_id="cus_test123")


@pytest.fixture
def subscription(db_session, customer):
    return make_subscription(db_session, customer, stripe_subscription_id="sub_test123")


@pytest.fixture
def employee(db_session):
    return EmployeeRepository(db_session).create(
        EmployeeCreate(name="Sam Scooper", email="sam@example.com")
    )


@pytest.fixture
def admin_headers(db_session):
    return bearer(make_user(db_session, UserRole.ADMIN))


@pytest.fixture
def employee_user(db_session, employee):
    return make_user(db_session, UserRole.EMPLOYEE, employee_id=employee.id)


@pytest.fixture
def employee_headers(employee_user):
    return bearer(employee_user)


@pytest.fixture
def customer_user(db_session, customer):
    return make_user(db_session, UserRole.CUSTOMER, customer_id=customer.id)


@pytest.fixture
def customer_headers(customer_user):
    return bearer(customer_user)
