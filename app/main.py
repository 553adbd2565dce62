import logging

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.observability import (
    http_exception_handler,
    integrity_error_handler,
    log_event,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.db.session import engine
from app.routers import auth, customers, inventory, products, reports, sales_orders, settings as settings_router, users

app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description=(
        "Backend API for the garment factory ERP.\n\n"
        "Swagger quick test flow:\n"
        "1. Call `POST /auth/login` with the seeded admin account.\n"
        "2. Click **Authorize** and paste the returned token.\n"
        "3. Test protected endpoints (`/products`, `/customers`, `/sales-orders`, `/inventory`, `/reports`)."
    ),
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "auth", "description": "Login, logout and password management."},
        {"name": "users", "description": "Staff accounts and roles."},
        {"name": "products", "description": "Product catalog and categories."},
        {"name": "customers", "description": "Customer records and running totals."},
        {"name": "sales-orders", "description": "Sales order placement, status labels and cancellation."},
        {"name": "inventory", "description": "Stock movements, stock levels and ledger reconciliation."},
        {"name": "reports", "description": "Dashboard and sales, inventory and customer reports."},
        {"name": "settings", "description": "Key/value system settings."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:5173"]
allow_all_origins = "*" in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(products.router)
app.include_router(customers.router)
app.include_router(sales_orders.router)
app.include_router(inventory.router)
app.include_router(reports.router)
app.include_router(settings_router.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        log_event("readiness.failed", level=logging.WARNING, error=str(exc))
        return {"ok": False}
    return {"ok": True}
