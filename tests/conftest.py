import os
import tempfile
from datetime import datetime, timezone

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="ledgerly-uploads-")
os.environ["TRANSACTION_RETRY_DELAY"] = "0"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

from core.database import build_engine, get_store
from core.document_store import DocumentStore, RetryPolicy
from core.permissions import default_permissions
from models.models import COLLECTION_USERS, AppModule, SubscriptionPlan, UserRole
from schemas.tenant_schema import TenantCreate
from schemas.user_schema import UserProfile
from services.auth_service import AuthService
from services.repository import Repository
from services.session_service import SessionService
from services.storage_service import LocalFileStorage, get_file_storage
from services.tenant_service import TenantService


def fixed_clock(year, month=6, day=1):
    moment = datetime(year, month, day, 12, 0, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def store():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield DocumentStore(engine, RetryPolicy(max_attempts=5, base_delay=0))
    engine.dispose()


@pytest.fixture
def tenants(store):
    return TenantService(store)


@pytest.fixture
def make_tenant(tenants):
    def _make(name="Acme", modules=(AppModule.LEADS, AppModule.INVOICES), plan=SubscriptionPlan.MONTHLY):
        return tenants.create_tenant(TenantCreate(name=name, allowed_modules=list(modules), plan=plan))
    return _make


@pytest.fixture
def make_user(store):
    """Create an account and profile directly, bypassing the admin checks."""
    def _make(email, role=UserRole.EMPLOYEE, tenant_id=None, password="secret123", is_active=True, permissions=None):
        identity = AuthService(store).sign_up(email, password)
        Repository(store, COLLECTION_USERS, UserProfile).create(
            UserProfile(
                uid=identity.uid,
                email=identity.email,
                name=email.split("@")[0],
                role=role,
                tenant_id=tenant_id,
                permissions=default_permissions(role, permissions),
                is_active=is_active,
            ),
            doc_id=identity.uid,
        )
        return identity
    return _make


@pytest.fixture
def session_for(store):
    """Signed-in SessionContext for an existing account."""
    def _session(email, password="secret123"):
        context, _ = SessionService(store).sign_in(email, password)
        return context
    return _session


@pytest.fixture
def client(store, tmp_path):
    from main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_file_storage] = lambda: LocalFileStorage(str(tmp_path), "/static")
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Return auth headers for an account."""
    def _login(email, password="secret123"):
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login
