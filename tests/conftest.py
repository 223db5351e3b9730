"""
tests/conftest.py -- Shared test fixtures for VerifyTrack integration tests.

This module provides:
  - _make_test_stores(): creates isolated in-memory DBs for principals + records
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus bearer tokens for one admin and two general users
  - passwords: identifier -> plaintext password for the fixture principals

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment must be set before any api/auth/core import: get_settings() is
cached on first call, and the login rate limit is bound when the auth router
module is imported.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("SEED_DEMO_DATA", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Principal, Role
from auth.store import PrincipalStore
from auth.tokens import issue_access_token
from records.store import RecordStore

ADMIN_PASSWORD = "adminpass123"  # noqa: S105
USER_PASSWORD = "userpass123"  # noqa: S105

TEST_PRINCIPALS = [
    Principal(identifier="admin001", role=Role.ADMIN, name="Test Admin", email="admin@test.local"),
    Principal(identifier="user001", role=Role.GENERAL_USER, name="User One", email="user1@test.local"),
    Principal(identifier="user002", role=Role.GENERAL_USER, name="User Two", email="user2@test.local"),
]


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[PrincipalStore, RecordStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Both stores point at the same in-memory database, as they do in
    production with a single DATABASE_URL.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_verifytrack_{db_suffix}?mode=memory&cache=shared&uri=true"
    return PrincipalStore(db_url=url), RecordStore(db_url=url, id_attempts=3)


def _patch_lifespan(principal_store: PrincipalStore, record_store: RecordStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than DATABASE_URL. Demo seeding never runs.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.principal_store = principal_store
        app.state.record_store = record_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture
def passwords() -> dict[str, str]:
    return {
        p.identifier: ADMIN_PASSWORD if p.role is Role.ADMIN else USER_PASSWORD for p in TEST_PRINCIPALS
    }


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, dict[str, str]], None, None]:
    """Yield (client, tokens) for API integration tests.

    tokens maps identifier -> bearer JWT for admin001, user001 and user002.
    Passwords are ADMIN_PASSWORD for the admin and USER_PASSWORD for users.
    Stores are reachable in tests via client.app.state.
    """
    principal_store, record_store = _make_test_stores(request.module.__name__.replace(".", "_"))

    tokens: dict[str, str] = {}
    for principal in TEST_PRINCIPALS:
        password = ADMIN_PASSWORD if principal.role is Role.ADMIN else USER_PASSWORD
        created = principal_store.create_principal(principal, password)
        tokens[created.identifier] = issue_access_token(created, expire_seconds=3600)

    app.router.lifespan_context = _patch_lifespan(principal_store, record_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, tokens

    record_store.close()
    principal_store.close()
