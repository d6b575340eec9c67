"""Pytest fixtures: test client, in-memory SQLite, temporary storage, customer and admin tokens."""
import os
import tempfile
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

# Must be set before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="devsera-storage-"))
# registration limit high enough for the whole suite
os.environ.setdefault("RATE_LIMIT_REGISTER_PER_MINUTE", "1000")

from devsera.core.database import engine  # noqa: E402
from devsera.core.rate_limit import limiter  # noqa: E402
from devsera.main import app  # noqa: E402
from devsera.models import Product  # noqa: E402
from tests.helpers import register_and_login, unique_email  # noqa: E402

ADMIN_SECRET = os.environ["ADMIN_SECRET"]
SUPER_ADMIN_EMAIL = "owner@devsera.store"
SUPER_ADMIN_PASSWORD = "owner-pass-123"


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan creates the tables. Rate limit counters start empty."""
    limiter.reset()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    with Session(engine) as session:
        yield session


@pytest.fixture
def customer_headers(client):
    """A fresh customer per test so orders and points never leak between tests."""
    return register_and_login(client, unique_email())


@pytest.fixture(scope="session")
def _super_admin_token():
    with TestClient(app) as c:
        r = c.post(
            "/admin/bootstrap",
            json={"email": SUPER_ADMIN_EMAIL, "password": SUPER_ADMIN_PASSWORD, "full_name": "Owner"},
            headers={"X-Admin-Secret": ADMIN_SECRET},
        )
        assert r.status_code == 201, r.text
        r = c.post("/auth/login", data={"email": SUPER_ADMIN_EMAIL, "password": SUPER_ADMIN_PASSWORD})
        assert r.status_code == 200, r.text
        return r.json()["access_token"]


@pytest.fixture
def admin_headers(_super_admin_token):
    return {"Authorization": f"Bearer {_super_admin_token}"}


@pytest.fixture
def make_product(db):
    def _make(**kwargs) -> Product:
        data = {
            "name": f"Product {uuid.uuid4().hex[:6]}",
            "category": "streaming",
            "original_price": 500,
            "sale_price": 299,
            "delivery_type": "INSTANT_KEY",
        }
        data.update(kwargs)
        product = Product(**data)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_staff(client, admin_headers):
    """Creates an admin account (as the super admin); returns (auth headers, admin id)."""

    def _make(admin_role: str = "moderator", permissions: dict | None = None) -> tuple[dict, int]:
        email = unique_email(admin_role, "devsera.store")
        r = client.post(
            "/admin/admins",
            json={
                "email": email,
                "password": "staff-pass-1",
                "full_name": admin_role.title(),
                "admin_role": admin_role,
                "permissions": permissions or {},
            },
            headers=admin_headers,
        )
        assert r.status_code == 201, r.text
        admin_id = r.json()["id"]
        r = client.post("/auth/login", data={"email": email, "password": "staff-pass-1"})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}, admin_id

    return _make
