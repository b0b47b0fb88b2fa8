"""Shared fixtures for API route tests."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from loreboard.core.dependencies import get_current_user
from loreboard.database.supabase_client import get_service_supabase, get_supabase
from loreboard.main import app
from loreboard.modules.auth.service import clear_auth_cache

TEST_USER = {
    "id": "11111111-1111-1111-1111-111111111111",
    "email": "ada@example.com",
    "user_metadata": {"displayName": "Ada", "bio": "Counts things."},
}


def _chain(data=None):
    query = MagicMock()
    for step in ("select", "insert", "delete", "update", "eq", "order", "limit"):
        getattr(query, step).return_value = query
    query.execute.return_value = SimpleNamespace(data=data)
    return query


@pytest.fixture
def make_query():
    """Build a query builder whose every step returns itself, ending in execute()."""
    return _chain


@pytest.fixture
def test_user():
    return dict(TEST_USER)


@pytest.fixture
def mock_supabase():
    """Provide a mock Supabase client whose table() returns a chainable query."""
    supabase = MagicMock()
    supabase.table.return_value = _chain([])
    return supabase


@pytest.fixture(autouse=True)
def reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def client(mock_supabase):
    """Test client with Supabase and the current user overridden."""
    app.dependency_overrides[get_supabase] = lambda: mock_supabase
    app.dependency_overrides[get_service_supabase] = lambda: mock_supabase
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer test-token"}
