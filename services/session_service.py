# services/session_service.py
from dataclasses import dataclass
from typing import Optional
import logging

from core.document_store import DocumentStore, join_path
from core.exceptions import AppError, AuthError, MalformedDocumentError, PermissionDenied
from core.permissions import default_permissions
from core.security import decode_token
from models.models import (
    COLLECTION_SUBSCRIPTIONS, COLLECTION_TENANTS, COLLECTION_USERS, UserRole,
)
from schemas.common import now_json
from schemas.subscription_schema import Subscription
from schemas.tenant_schema import Tenant
from schemas.user_schema import AuthIdentity, SignupRequest, UserProfile
from services.auth_service import AuthService
from services.repository import DataScope, Repository

logger = logging.getLogger(__name__)

BOOTSTRAP_PATH = "system/bootstrap"


@dataclass
class SessionContext:
    """Everything a request knows about its caller, loaded fresh per request."""
    identity: AuthIdentity
    profile: UserProfile
    tenant: Optional[Tenant] = None
    subscription: Optional[Subscription] = None
    token_id: Optional[str] = None

    @property
    def uid(self) -> str:
        return self.identity.uid

    @property
    def tenant_id(self) -> Optional[str]:
        return self.profile.tenant_id

    @property
    def is_super_admin(self) -> bool:
        return UserRole(self.profile.role) == UserRole.SUPER_ADMIN

    @property
    def scope(self) -> DataScope:
        return DataScope(user_id=self.uid, tenant_id=self.tenant_id)


class SessionService:
    def __init__(self, store: DocumentStore, auth: Optional[AuthService] = None):
        self.store = store
        self.auth = auth or AuthService(store)
        self.profiles = Repository(store, COLLECTION_USERS, UserProfile)
        self.tenants = Repository(store, COLLECTION_TENANTS, Tenant)
        self.subscriptions = Repository(store, COLLECTION_SUBSCRIPTIONS, Subscription)

    # ========================================
    # ✅ Context loading
    # ========================================
    def build(self, identity: AuthIdentity, token_id: Optional[str] = None) -> SessionContext:
        profile = self.profiles.get(identity.uid)
        if profile is None:
            raise AuthError("No profile exists for this account.")

        tenant = self._load_tenant(profile.tenant_id)
        subscription = self._load_subscription(tenant)
        return SessionContext(
            identity=identity,
            profile=profile,
            tenant=tenant,
            subscription=subscription,
            token_id=token_id,
        )

    def _load_tenant(self, tenant_id: Optional[str]) -> Optional[Tenant]:
        if not tenant_id:
            return None
        try:
            return self.tenants.get(tenant_id)
        except MalformedDocumentError as e:
            # A broken tenant document gates the user out instead of failing the request
            logger.error("❌ %s", e.message)
            return None

    def _load_subscription(self, tenant: Optional[Tenant]) -> Optional[Subscription]:
        if tenant is None:
            return None
        try:
            if tenant.subscription_id:
                return self.subscriptions.get(tenant.subscription_id)
            latest = self.subscriptions.list(
                filters=[("tenantId", "==", tenant.id)],
                order_by=[("createdAt", "desc")],
                limit=1,
            )
            return latest[0] if latest else None
        except MalformedDocumentError as e:
            logger.error("❌ %s", e.message)
            return None

    def from_token(self, token: str) -> SessionContext:
        payload = decode_token(token)
        if self.auth.is_revoked(payload["jti"]):
            raise AuthError("This session has been signed out.")
        identity = AuthIdentity(uid=payload["sub"], email=payload.get("email"))
        return self.build(identity, token_id=payload["jti"])

    # ========================================
    # ✅ Sign in / out
    # ========================================
    def sign_in(self, email: str, password: str):
        identity = self.auth.authenticate(email, password)
        context = self.build(identity)
        if not context.profile.is_active:
            raise PermissionDenied("Your account is inactive. Contact your admin.")
        token = self.auth.issue_token(identity)
        context.token_id = token.token_id
        return context, token

    def sign_out(self, context: SessionContext) -> None:
        if context.token_id:
            self.auth.sign_out(context.token_id, context.uid)

    # ========================================
    # ✅ First-run signup
    # ========================================
    def signup_open(self) -> bool:
        if self.store.get(BOOTSTRAP_PATH).exists:
            return False
        return not self.store.query(COLLECTION_USERS, limit=1)

    def bootstrap_super_admin(self, data: SignupRequest):
        """
        Create the very first account as a platform super admin.
        Later accounts are created by administrators through the user service.
        """
        if not self.signup_open():
            raise PermissionDenied("Public sign-up is closed. Ask your administrator for an account.")

        identity = self.auth.sign_up(data.email, data.password)
        profile = UserProfile(
            uid=identity.uid,
            email=identity.email,
            name=data.name or identity.email.split("@")[0],
            role=UserRole.SUPER_ADMIN,
            permissions=default_permissions(UserRole.SUPER_ADMIN),
        )

        def claim(txn):
            if txn.get(BOOTSTRAP_PATH).exists:
                raise PermissionDenied("Public sign-up is closed. Ask your administrator for an account.")
            txn.set(BOOTSTRAP_PATH, {"uid": identity.uid, "createdAt": now_json()})
            txn.set(join_path(COLLECTION_USERS, identity.uid), profile.to_document())

        try:
            self.store.run_transaction(claim).unwrap()
        except AppError:
            # Lost the race for the first account: remove the orphaned credentials
            self.auth.delete_account(identity.email)
            raise

        logger.info("👑 Bootstrapped super admin %s", identity.email)
        return self.sign_in(data.email, data.password)
