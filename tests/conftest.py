"""
Shared fixtures.

Route tests run the real FastAPI app with the Supabase client, the
database layer and the audit service swapped for mocks through
`app.dependency_overrides`; no network or database is touched.
"""

import os
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-key-not-real")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from app.core.dependencies import get_current_user  # noqa: E402
from app.database.repository import SupabaseDatabase, get_database  # noqa: E402
from app.database.supabase_client import get_supabase  # noqa: E402
from app.main import app  # noqa: E402
from app.modules.audit.routes import get_audit_service  # noqa: E402
from app.modules.audit.service import AuditService  # noqa: E402

from factories import ok  # noqa: E402


@pytest.fixture
def inspector():
    return {"id": "inspector-1", "email": "ins@example.com", "name": "Ida Inspector", "role": "INSPECTOR", "is_active": True}


@pytest.fixture
def manager():
    return {"id": "manager-1", "email": "pm@example.com", "name": "Max Manager", "role": "PROJECT_MANAGER", "is_active": True}


@pytest.fixture
def executive():
    return {"id": "exec-1", "email": "exec@example.com", "name": "Eve Executive", "role": "EXECUTIVE", "is_active": True}


@pytest.fixture
def mock_db():
    """
    A SupabaseDatabase mock. Every method returns an empty successful
    QueryResult unless a test sets its return_value.
    """
    db = MagicMock(spec=SupabaseDatabase)
    for name in dir(SupabaseDatabase):
        if not name.startswith("_"):
            getattr(db, name).return_value = ok([])
    return db


@pytest.fixture
def mock_audit():
    return MagicMock(spec=AuditService)


@pytest.fixture
def client_for(mock_db, mock_audit):
    """
    Build a TestClient acting as the given user (None = anonymous).

    Usage:
        def test_x(client_for, manager):
            client = client_for(manager)
            client.get("/api/v1/projects")
    """
    def build(user=None):
        app.dependency_overrides[get_supabase] = lambda: MagicMock()
        app.dependency_overrides[get_database] = lambda: mock_db
        app.dependency_overrides[get_audit_service] = lambda: mock_audit
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()
