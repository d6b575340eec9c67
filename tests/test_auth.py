"""Auth: register, login, email policy, me."""
from fastapi.testclient import TestClient
from sqlmodel import select

from devsera.models import SecurityLog
from tests.helpers import unique_email


def test_register_success(client: TestClient):
    email = unique_email("new")
    r = client.post("/auth/register", data={"email": email, "password": "secure123", "full_name": "New User"})
    assert r.status_code == 200
    j = r.json()
    assert j["email"] == email
    assert j["full_name"] == "New User"
    assert j["role"] == "user"
    assert j["is_premium"] is False


def test_register_rejects_unknown_provider(client: TestClient):
    r = client.post(
        "/auth/register",
        data={"email": "someone@tempmail.xyz", "password": "secure123", "full_name": "Temp"},
    )
    assert r.status_code == 422
    assert "major provider" in r.json()["error"]


def test_register_accepts_edu_and_store_domain(client: TestClient):
    for email in (unique_email("student", "cs.stanford.edu"), unique_email("staff", "devsera.store")):
        r = client.post("/auth/register", data={"email": email, "password": "secure123", "full_name": "X"})
        assert r.status_code == 200, r.text


def test_register_validation(client: TestClient):
    r = client.post("/auth/register", data={"email": unique_email(), "password": "123", "full_name": "Short"})
    assert r.status_code == 422
    r = client.post("/auth/register", data={"email": unique_email(), "password": "123456", "full_name": ""})
    assert r.status_code == 422


def test_register_duplicate(client: TestClient):
    email = unique_email("dup")
    client.post("/auth/register", data={"email": email, "password": "secure123", "full_name": "Dup"})
    r = client.post("/auth/register", data={"email": email, "password": "secure123", "full_name": "Dup"})
    assert r.status_code == 400


def test_login_wrong_password_logged(client: TestClient, db):
    email = unique_email("wrong")
    client.post("/auth/register", data={"email": email, "password": "right123", "full_name": "Wrong"})
    r = client.post("/auth/login", data={"email": email, "password": "wrongpass"})
    assert r.status_code == 401
    logged = db.exec(select(SecurityLog).where(SecurityLog.event == "failed_login", SecurityLog.detail == email)).first()
    assert logged is not None


def test_me_requires_auth(client: TestClient):
    r = client.get("/auth/me")
    assert r.status_code == 401


def test_me_with_token(client: TestClient, customer_headers: dict):
    r = client.get("/auth/me", headers=customer_headers)
    assert r.status_code == 200
    assert r.json()["email"].endswith("@gmail.com")
