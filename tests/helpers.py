"""
tests/helpers.py -- Settings, seed data and request helpers shared by tests.

Named shared-memory SQLite URIs (not plain :memory:) are used for the app
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI shares one in-memory instance across all connections in
the process; the uuid suffix keeps apps apart.
"""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from auth.directory import UserDirectory
from core.config import Settings

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789"

# username, password, name, role -- admin and username01 match the original
# fixture data; alice and drbob cover owner and doctor cases.
SEED_USERS = [
    ("admin", "password1", "Administrator", "admin"),
    ("username01", "password2", "User 01", "viewer"),
    ("alice", "alice-pass", "Alice Liddell", "viewer"),
    ("drbob", "bob-pass", "Dr Bob", "doctor"),
]


def make_settings(**overrides) -> Settings:
    """Settings with a fixed secret, a private in-memory DB and bcrypt cost 4."""
    values = {
        "secret_key": TEST_SECRET,
        "database_url": f"sqlite:///file:test_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true",
        "bcrypt_rounds": 4,
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


def seed_users(directory: UserDirectory) -> None:
    for username, password, name, role in SEED_USERS:
        result = directory.create_user({"username": username, "password": password, "name": name, "role": role})
        assert result.ok, result


def login(client: TestClient, username: str, password: str) -> str:
    resp = client.post("/auth", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
