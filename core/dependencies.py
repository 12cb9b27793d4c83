# core/dependencies.py
"""FastAPI dependencies: the caller's session, access guards and service wiring."""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from core.access import evaluate_access
from core.database import get_store
from core.document_store import DocumentStore
from core.exceptions import PermissionDenied
from models.models import AppModule, Permission
from services.auth_service import AuthService, AuthStateListeners
from services.customer_service import CustomerService
from services.dashboard_service import DashboardService
from services.invoice_service import InvoiceService
from services.lead_service import LeadService
from services.session_service import SessionContext, SessionService
from services.settings_service import SettingsService
from services.storage_service import LocalFileStorage, get_file_storage
from services.tenant_service import TenantService
from services.user_service import UserService

import logging
logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


# ========================================
# 🧩 Services
# ========================================
def get_auth_listeners(request: Request) -> AuthStateListeners:
    """The auth state listeners registered on this app at startup."""
    return request.app.state.auth_listeners


def get_auth_service(
    store: DocumentStore = Depends(get_store),
    listeners: AuthStateListeners = Depends(get_auth_listeners),
) -> AuthService:
    return AuthService(store, listeners)


def get_session_service(
    store: DocumentStore = Depends(get_store),
    auth: AuthService = Depends(get_auth_service),
) -> SessionService:
    return SessionService(store, auth)


def get_settings_service(
    store: DocumentStore = Depends(get_store),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> SettingsService:
    return SettingsService(store, storage)


def get_invoice_service(
    store: DocumentStore = Depends(get_store),
    settings_service: SettingsService = Depends(get_settings_service),
) -> InvoiceService:
    return InvoiceService(store, settings_service=settings_service)


def get_customer_service(store: DocumentStore = Depends(get_store)) -> CustomerService:
    return CustomerService(store)


def get_lead_service(store: DocumentStore = Depends(get_store)) -> LeadService:
    return LeadService(store)


def get_tenant_service(store: DocumentStore = Depends(get_store)) -> TenantService:
    return TenantService(store)


def get_user_service(
    store: DocumentStore = Depends(get_store),
    auth: AuthService = Depends(get_auth_service),
) -> UserService:
    return UserService(store, auth)


def get_dashboard_service(store: DocumentStore = Depends(get_store)) -> DashboardService:
    return DashboardService(store)


# ========================================
# 👤 Session
# ========================================
def get_current_session(
    token: str = Depends(oauth2_scheme),
    sessions: SessionService = Depends(get_session_service),
) -> SessionContext:
    """Decode the bearer token and load profile, tenant and subscription for this request."""
    return sessions.from_token(token)


def get_optional_session(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    sessions: SessionService = Depends(get_session_service),
) -> Optional[SessionContext]:
    if not token:
        return None
    return sessions.from_token(token)


def require_access(permission: Optional[Permission] = None, module: Optional[AppModule] = None):
    """
    Dependency factory guarding an endpoint with the route gate:
    active profile, permission, tenant module and subscription.
    """

    def guard(context: SessionContext = Depends(get_current_session)) -> SessionContext:
        decision = evaluate_access(context, permission, module)
        if not decision.allowed:
            logger.info("Access denied for %s: %s", context.uid, decision.reason)
            raise PermissionDenied(decision.reason)
        return context

    return guard


def require_active_session(context: SessionContext = Depends(get_current_session)) -> SessionContext:
    """Any signed-in user with an active profile."""
    return require_access()(context)
