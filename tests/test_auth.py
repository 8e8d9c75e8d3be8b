"""Tests for password hashing, JWT issuance and the auth endpoints."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from scoopops.core.auth import get_current_user, require_roles, verify_cron_secret
from scoopops.core.config import settings
from scoopops.models.user import UserRole
from scoopops.repositories.customer_repository import CustomerRepository
from scoopops.repositories.user_repository import UserRepository
from scoopops.services.auth_service import (
    AuthService,
    TokenClaims,
    hash_password,
    verify_password,
)
from tests.conftest import bearer, make_customer, make_user


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_access_token_round_trip(self):
        user_id = uuid4()
        token = AuthService.create_token(user_id, UserRole.ADMIN, "access")
        claims = AuthService.verify_token(token)
        assert claims == TokenClaims(user_id=user_id, role=UserRole.ADMIN, token_type="access")

    def test_refresh_token_rejected_as_access(self):
        token = AuthService.create_token(uuid4(), UserRole.CUSTOMER, "refresh")
        with pytest.raises(jwt.InvalidTokenError):
            AuthService.verify_token(token)

    def test_expired_token(self):
        payload = {
            "sub": str(uuid4()),
            "role": "admin",
            "type": "access",
            "exp": datetime.now(UTC) - timedelta(minutes=1),
        }
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")
        with pytest.raises(jwt.ExpiredSignatureError):
            AuthService.verify_token(token)

    def test_wrong_secret(self):
        payload = {
            "sub": str(uuid4()),
            "role": "admin",
            "type": "access",
            "exp": datetime.now(UTC) + timedelta(minutes=5),
        }
        token = jwt.encode(payload, "some-other-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            AuthService.verify_token(token)

    def test_unknown_role_is_invalid(self):
        payload = {
            "sub": str(uuid4()),
            "role": "superuser",
            "type": "access",
            "exp": datetime.now(UTC) + timedelta(minutes=5),
        }
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            AuthService.verify_token(token)

    def test_access_token_lifetime(self):
        token = AuthService.create_token(uuid4(), UserRole.ADMIN, "access")
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
        assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_TTL_MINUTES * 60


def _request(headers=None, cookies=None):
    request = MagicMock()
    request.headers = headers or {}
    request.cookies = cookies or {}
    return request


class TestDependencies:
    def test_missing_token(self):
        with pytest.raises(HTTPException) as exc:
            get_current_user(_request())
        assert exc.value.status_code == 401

    def test_bad_scheme(self):
        with pytest.raises(HTTPException) as exc:
            get_current_user(_request({"Authorization": "Basic abc"}))
        assert exc.value.status_code == 401

    def test_cookie_fallback(self):
        user_id = uuid4()
        token = AuthService.create_token(user_id, UserRole.CUSTOMER, "access")
        claims = get_current_user(_request(cookies={settings.SESSION_COOKIE_NAME: token}))
        assert claims.user_id == user_id

    def test_require_roles_rejects_other_roles(self):
        dependency = require_roles(UserRole.ADMIN)
        claims = TokenClaims(user_id=uuid4(), role=UserRole.CUSTOMER, token_type="access")
        with pytest.raises(HTTPException) as exc:
            dependency(claims)
        assert exc.value.status_code == 403

    def test_require_roles_admits_listed_roles(self, db_session):
        user = make_user(db_session, UserRole.EMPLOYEE)
        dependency = require_roles(UserRole.ADMIN, UserRole.EMPLOYEE)
        claims = TokenClaims(user_id=user.id, role=UserRole.EMPLOYEE, token_type="access")
        assert dependency(claims, db_session) is claims

    def test_require_roles_rejects_unknown_user(self, db_session):
        dependency = require_roles(UserRole.ADMIN)
        claims = TokenClaims(user_id=uuid4(), role=UserRole.ADMIN, token_type="access")
        with pytest.raises(HTTPException) as exc:
            dependency(claims, db_session)
        assert exc.value.status_code == 401

    def test_deactivated_admin_loses_access(self, client: TestClient, db_session):
        admin = make_user(db_session, UserRole.ADMIN)
        headers = bearer(admin)
        assert client.get("/v1/customers/", headers=headers).status_code == 200

        admin.is_active = False
        db_session.commit()

        resp = client.get("/v1/customers/", headers=headers)
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Account is disabled"

    def test_stale_role_claim_is_rejected(self, client: TestClient, db_session):
        user = make_user(db_session, UserRole.EMPLOYEE, email="demoted@example.com")
        forged = AuthService.create_token(user.id, UserRole.ADMIN, "access")
        resp = client.get("/v1/customers/", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 403

    def test_cron_secret(self, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", "cron-123")
        verify_cron_secret(_request({"Authorization": "Bearer cron-123"}))
        with pytest.raises(HTTPException) as exc:
            verify_cron_secret(_request({"Authorization": "Bearer nope"}))
        assert exc.value.status_code == 401
        with pytest.raises(HTTPException) as exc:
            verify_cron_secret(_request())
        assert exc.value.status_code == 401

    def test_cron_secret_unconfigured(self, monkeypatch):
        monkeypatch.setattr(settings, "CRON_SECRET", "")
        with pytest.raises(HTTPException) as exc:
            verify_cron_secret(_request({"Authorization": "Bearer "}))
        assert exc.value.status_code == 503


class TestAuthAPI:
    def test_login_success_sets_cookie(self, client: TestClient, db_session):
        make_user(db_session, UserRole.ADMIN, email="boss@example.com", password="hunter2hunter2")
        resp = client.post(
            "/v1/auth/login",
            json={"email": "Boss@Example.com", "password": "hunter2hunter2"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "admin"
        assert body["token_type"] == "bearer"
        assert settings.SESSION_COOKIE_NAME in resp.headers["set-cookie"]
        claims = AuthService.verify_token(body["access_token"])
        assert claims.role == UserRole.ADMIN

    def test_login_wrong_password(self, client: TestClient, db_session):
        make_user(db_session, UserRole.ADMIN, email="boss@example.com")
        resp = client.post(
            "/v1/auth/login", json={"email": "boss@example.com", "password": "nope"}
        )
        assert resp.status_code == 401

    def test_login_inactive_user(self, client: TestClient, db_session):
        user = make_user(db_session, UserRole.ADMIN, email="boss@example.com")
        user.is_active = False
        db_session.commit()
        resp = client.post(
            "/v1/auth/login",
            json={"email": "boss@example.com", "password": "correct-horse"},
        )
        assert resp.status_code == 401

    def test_refresh(self, client: TestClient, db_session):
        user = make_user(db_session, UserRole.EMPLOYEE)
        tokens = AuthService(db_session).issue_tokens(user)
        resp = client.post("/v1/auth/refresh", json={"refresh_token": tokens.refresh_token})
        assert resp.status_code == 200
        assert resp.json()["role"] == "employee"

    def test_refresh_rejects_access_token(self, client: TestClient, db_session):
        user = make_user(db_session, UserRole.EMPLOYEE)
        tokens = AuthService(db_session).issue_tokens(user)
        resp = client.post("/v1/auth/refresh", json={"refresh_token": tokens.access_token})
        assert resp.status_code == 401

    def test_me(self, client: TestClient, db_session, customer):
        user = make_user(db_session, UserRole.CUSTOMER, customer_id=customer.id)
        resp = client.get("/v1/auth/me", headers=bearer(user))
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "customer"
        assert body["customer_id"] == str(customer.id)

    def test_me_with_session_cookie(self, client: TestClient, db_session):
        user = make_user(db_session, UserRole.ADMIN)
        token = AuthService.create_token(user.id, UserRole.ADMIN, "access")
        resp = client.get(
            "/v1/auth/me", headers={"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"}
        )
        assert resp.status_code == 200
        assert resp.json()["email"] == "admin@example.com"

    def test_me_unauthenticated(self, client: TestClient):
        assert client.get("/v1/auth/me").status_code == 401

    def test_signup_creates_customer(self, client: TestClient, db_session):
        resp = client.post(
            "/v1/auth/signup",
            json={
                "email": "newbie@example.com",
                "password": "long-enough-pw",
                "name": "New Bie",
                "zip_code": "78702",
            },
        )
        assert resp.status_code == 201
        assert resp.json()["role"] == "customer"

        customers = CustomerRepository(db_session).get_all(zip_code="78702")
        assert len(customers) == 1
        assert customers[0].referral_code

    def test_signup_with_referral_code(self, client: TestClient, db_session):
        referrer = make_customer(db_session, name="Referrer")
        resp = client.post(
            "/v1/auth/signup",
            json={
                "email": "friend@example.com",
                "password": "long-enough-pw",
                "name": "Friend",
                "zip_code": "78703",
                "referral_code": referrer.referral_code,
            },
        )
        assert resp.status_code == 201
        friend = CustomerRepository(db_session).get_all(zip_code="78703")[0]
        assert friend.referred_by_id == referrer.id

    def test_signup_unknown_referral_code(self, client: TestClient):
        resp = client.post(
            "/v1/auth/signup",
            json={
                "email": "friend@example.com",
                "password": "long-enough-pw",
                "name": "Friend",
                "zip_code": "78703",
                "referral_code": "NOPE0000",
            },
        )
        assert resp.status_code == 400

    def test_signup_duplicate_email(self, client: TestClient, db_session):
        make_user(db_session, UserRole.CUSTOMER, email="taken@example.com")
        resp = client.post(
            "/v1/auth/signup",
            json={
                "email": "taken@example.com",
                "password": "long-enough-pw",
                "name": "Dup",
                "zip_code": "78701",
            },
        )
        assert resp.status_code == 409

    def test_signup_race_leaves_no_orphan_customer(self, client: TestClient, db_session):
        make_user(db_session, UserRole.CUSTOMER, email="race@example.com")
        # The pre-check misses the concurrent login, so the insert itself collides
        with patch.object(UserRepository, "get_by_email", return_value=None):
            resp = client.post(
                "/v1/auth/signup",
                json={
                    "email": "race@example.com",
                    "password": "long-enough-pw",
                    "name": "Racer",
                    "zip_code": "78709",
                },
            )
        assert resp.status_code == 409
        assert CustomerRepository(db_session).get_all(zip_code="78709") == []

    def test_signup_validates_zip(self, client: TestClient):
        resp = client.post(
            "/v1/auth/signup",
            json={
                "email": "zip@example.com",
                "password": "long-enough-pw",
                "name": "Zip",
                "zip_code": "ABCDE",
            },
        )
        assert resp.status_code == 422

    def test_logout_clears_cookie(self, client: TestClient):
        resp = client.post("/v1/auth/logout")
        assert resp.status_code == 204
        assert settings.SESSION_COOKIE_NAME in resp.headers.get("set-cookie", "")
