"""
tests/conftest.py -- Shared test fixtures for the hospital records tests.

This module provides:
  - store / directory: unit-level fixtures over a private :memory: DB
  - api_client: TestClient over create_app() with SEED_USERS already created

Settings and request helpers live in tests/helpers.py so test modules can
import them directly.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.directory import UserDirectory
from auth.store import UserStore
from tests.helpers import make_settings, seed_users

# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    """Private in-memory store. Same-thread use only, so plain :memory: is fine."""
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def directory(store: UserStore) -> UserDirectory:
    return UserDirectory(store, bcrypt_rounds=4)


# ---------------------------------------------------------------------------
# Module-scoped app fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over a fresh app with SEED_USERS already created.

    The real lifespan runs, so tests exercise the same startup wiring as
    production, only against an isolated in-memory database.
    """
    app = create_app(make_settings())
    with TestClient(app, raise_server_exceptions=True) as client:
        seed_users(app.state.directory)
        yield client
