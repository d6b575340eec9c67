"""Shared test helpers (plain functions, not fixtures)."""
import uuid
from io import BytesIO

from fastapi.testclient import TestClient
from PIL import Image


def unique_email(prefix: str = "customer", domain: str = "gmail.com") -> str:
    return f"{prefix}.{uuid.uuid4().hex[:10]}@{domain}"


def png_bytes(size: tuple[int, int] = (4, 4)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, (20, 160, 140)).save(buf, "PNG")
    return buf.getvalue()


def register_and_login(client: TestClient, email: str, password: str = "secret123", full_name: str = "Test Customer") -> dict:
    r = client.post("/auth/register", data={"email": email, "password": password, "full_name": full_name})
    assert r.status_code == 200, r.text
    r = client.post("/auth/login", data={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}
