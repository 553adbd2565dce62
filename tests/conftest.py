import pytest
import os
import uuid
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import app.models  # noqa: F401
from app.core.config import settings
from app.core.deps import get_db
from app.core.permissions import ALL_PERMISSIONS
from app.core.security import hash_password
from app.db.base import Base
from app.db.session import enable_sqlite_foreign_keys
from app.main import app
from app.models.user import User

ADMIN_EMAIL = "admin@sabah-alkhair.com"
ADMIN_PASSWORD = "password123"


@pytest.fixture()
def test_context():
    original_secret = settings.secret_key
    settings.secret_key = "test-secret-key"

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
    settings.secret_key = original_secret


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def login(client, email: str, password: str) -> str:
    res = client.post("/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["data"]["token"]


def create_user_row(
    session_local,
    *,
    email: str,
    password: str,
    role: str,
    permissions: list[str] | None = None,
    status: str = "active",
) -> str:
    db = session_local()
    try:
        user = User(
            id=uuid.uuid4().hex[:22],
            name=email.split("@")[0],
            email=email,
            hashed_password=hash_password(password),
            role=role,
            department="Operations",
            status=status,
            permissions=permissions or [],
        )
        db.add(user)
        db.commit()
        return user.id
    finally:
        db.close()


@pytest.fixture()
def admin_headers(test_context) -> dict[str, str]:
    client, session_local = test_context
    create_user_row(
        session_local,
        email=ADMIN_EMAIL,
        password=ADMIN_PASSWORD,
        role=settings.admin_role,
        permissions=[ALL_PERMISSIONS],
    )
    return auth_headers(login(client, ADMIN_EMAIL, ADMIN_PASSWORD))


@pytest.fixture()
def make_product(test_context, admin_headers):
    client, _ = test_context

    def _make(**overrides) -> dict:
        payload = {
            "name": "Cotton shirt",
            "category": "Shirts",
            "sku": f"SH-{uuid.uuid4().hex[:8]}",
            "price": 50.0,
            "cost": 30.0,
            "stock": 100,
            "min_stock": 10,
            "max_stock": 500,
        }
        payload.update(overrides)
        res = client.post("/products", json=payload, headers=admin_headers)
        assert res.status_code == 201, res.text
        return res.json()["data"]

    return _make


@pytest.fixture()
def make_customer(test_context, admin_headers):
    client, _ = test_context

    def _make(**overrides) -> dict:
        payload = {
            "name": "Al Noor Boutique",
            "contact": "Fatima",
            "phone": "+966 50 555 0101",
            "address": "King Fahd Road, Riyadh",
        }
        payload.update(overrides)
        res = client.post("/customers", json=payload, headers=admin_headers)
        assert res.status_code == 201, res.text
        return res.json()["data"]

    return _make
