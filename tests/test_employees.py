"""Tests for the admin employee endpoints."""

from unittest.mock import patch
from uuid import uuid4

from fastapi.testclient import TestClient

from scoopops.models.employee import Employee
from scoopops.models.user import UserRole
from scoopops.repositories.user_repository import UserRepository
from tests.conftest import make_user


class TestEmployeesAPI:
    def test_create_without_login(self, client: TestClient, db_session, admin_headers):
        resp = client.post(
            "/v1/employees/",
            json={"name": "Riley", "email": "riley@example.com"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["status"] == "active"
        assert UserRepository(db_session).get_by_email("riley@example.com") is None

    def test_create_with_login(self, client: TestClient, db_session, admin_headers):
        resp = client.post(
            "/v1/employees/",
            json={"name": "Riley", "email": "riley@example.com", "password": "scoop-scoop"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        user = UserRepository(db_session).get_by_email("riley@example.com")
        assert user is not None
        assert user.role == UserRole.EMPLOYEE.value
        assert str(user.employee_id) == resp.json()["id"]

        login = client.post(
            "/v1/auth/login", json={"email": "riley@example.com", "password": "scoop-scoop"}
        )
        assert login.status_code == 200
        assert login.json()["role"] == "employee"

    def test_duplicate_email(self, client: TestClient, admin_headers, employee):
        resp = client.post(
            "/v1/employees/",
            json={"name": "Sam Again", "email": "sam@example.com"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_login_email_taken(self, client: TestClient, db_session, admin_headers):
        make_user(db_session, UserRole.CUSTOMER, email="taken@example.com")
        resp = client.post(
            "/v1/employees/",
            json={"name": "Taken", "email": "taken@example.com", "password": "scoop-scoop"},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_login_collision_rolls_back_employee(
        self, client: TestClient, db_session, admin_headers
    ):
        make_user(db_session, UserRole.CUSTOMER, email="clash@example.com")
        with patch.object(UserRepository, "get_by_email", return_value=None):
            resp = client.post(
                "/v1/employees/",
                json={"name": "Clash", "email": "clash@example.com", "password": "scoop-scoop"},
                headers=admin_headers,
            )
        assert resp.status_code == 409
        assert db_session.query(Employee).filter_by(email="clash@example.com").count() == 0

    def test_list_and_update(self, client: TestClient, admin_headers, employee):
        assert len(client.get("/v1/employees/", headers=admin_headers).json()) == 1

        resp = client.patch(
            f"/v1/employees/{employee.id}", json={"status": "inactive"}, headers=admin_headers
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "inactive"

    def test_deactivation_disables_login(
        self, client: TestClient, admin_headers, employee_headers, employee
    ):
        assert client.get("/v1/coverage_areas/", headers=employee_headers).status_code == 200

        client.patch(
            f"/v1/employees/{employee.id}", json={"status": "inactive"}, headers=admin_headers
        )
        assert client.get("/v1/coverage_areas/", headers=employee_headers).status_code == 401

        client.patch(
            f"/v1/employees/{employee.id}", json={"status": "active"}, headers=admin_headers
        )
        assert client.get("/v1/coverage_areas/", headers=employee_headers).status_code == 200

    def test_update_missing(self, client: TestClient, admin_headers):
        resp = client.patch(f"/v1/employees/{uuid4()}", json={"name": "X"}, headers=admin_headers)
        assert resp.status_code == 404

    def test_employees_cannot_manage_staff(self, client: TestClient, employee_headers):
        assert client.get("/v1/employees/", headers=employee_headers).status_code == 403
