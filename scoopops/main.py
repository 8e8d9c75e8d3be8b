from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scoopops.core.config import settings
from scoopops.routers import (
    auth,
    coverage,
    coverage_areas,
    cron,
    customer_payments,
    customers,
    employees,
    notifications,
    payments,
    webhooks,
)

OPENAPI_TAGS = [
    {"name": "Auth", "description": "Sign up, log in and refresh tokens."},
    {"name": "Customers", "description": "Manage customers and their service status."},
    {"name": "Employees", "description": "Manage scoopers."},
    {"name": "Coverage", "description": "Coverage areas and coverage-gap reporting."},
    {"name": "Payments", "description": "Failed payments, retries and cancellations."},
    {"name": "Customer Portal", "description": "Endpoints for the logged-in customer."},
    {"name": "Webhooks", "description": "Signed payment-provider callbacks."},
    {"name": "Notifications", "description": "Admin notifications."},
    {"name": "Cron", "description": "Jobs triggered by an external scheduler."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Backend API for a recurring yard-service business. "
        "Tracks failed subscription payments, retries and coverage gaps."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "Retry-After"],
)


app.include_router(auth.router, prefix="/v1/auth", tags=["Auth"])
app.include_router(customers.router, prefix="/v1/customers", tags=["Customers"])
app.include_router(employees.router, prefix="/v1/employees", tags=["Employees"])
app.include_router(
    coverage_areas.router,
    prefix="/v1/coverage_areas",
    tags=["Coverage"],
)
app.include_router(coverage.router, prefix="/v1/coverage", tags=["Coverage"])
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])
app.include_router(
    customer_payments.router,
    prefix="/v1/customer/payments",
    tags=["Customer Portal"],
)
app.include_router(webhooks.router, prefix="/v1/webhooks", tags=["Webhooks"])
app.include_router(
    notifications.router,
    prefix="/v1/notifications",
    tags=["Notifications"],
)
app.include_router(cron.router, prefix="/v1/cron", tags=["Cron"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
