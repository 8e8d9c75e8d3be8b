"""Minimal smoke tests: the app boots and the documented routes exist."""

from fastapi import FastAPI
from starlette.testclient import TestClient

from scoopops.main import app


def test_app_starts():
    """The FastAPI app object can be imported and is a FastAPI instance."""
    assert isinstance(app, FastAPI)


def test_health_endpoint(client: TestClient):
    """GET / returns 200 with app info."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["app"] == "ScoopOps"
    assert data["status"] == "running"


def test_openapi_lists_routes(client: TestClient):
    paths = client.get("/openapi.json").json()["paths"]
    for path in (
        "/v1/auth/login",
        "/v1/customers/",
        "/v1/coverage/risk",
        "/v1/payments/{payment_id}/cancel-retries",
        "/v1/webhooks/{provider}",
        "/v1/cron/retry-payments",
    ):
        assert path in paths


def test_cors_exposes_total_count(client: TestClient):
    response = client.options(
        "/v1/customers/",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
