# services/user_service.py
from typing import List, Optional
import logging

from core.document_store import DocumentStore, join_path
from core.exceptions import AppError, FormValidationError, NotFoundError, PermissionDenied
from core.permissions import default_permissions
from models.models import COLLECTION_TENANTS, COLLECTION_USERS, UserRole
from schemas.common import now_json
from schemas.user_schema import UserCreate, UserProfile, UserUpdate
from services.auth_service import AuthService
from services.repository import Repository

logger = logging.getLogger(__name__)


class UserService:
    """
    User administration. Super admins manage every profile; tenant admins only
    manage profiles of their own tenant and can never grant the super admin role.
    """

    def __init__(self, store: DocumentStore, auth: Optional[AuthService] = None):
        self.store = store
        self.auth = auth or AuthService(store)
        self.profiles = Repository(store, COLLECTION_USERS, UserProfile)

    # ------------------------
    # Scope helpers
    # ------------------------
    def _check_target_tenant(self, context, tenant_id: Optional[str]) -> Optional[str]:
        if context.is_super_admin:
            if tenant_id and not self.store.get(join_path(COLLECTION_TENANTS, tenant_id)).exists:
                raise NotFoundError("Tenant not found.")
            return tenant_id
        if tenant_id and tenant_id != context.tenant_id:
            raise PermissionDenied("You can only manage users of your own organization.")
        return context.tenant_id

    def _check_role(self, context, role: Optional[UserRole]) -> None:
        if role is not None and UserRole(role) == UserRole.SUPER_ADMIN and not context.is_super_admin:
            raise PermissionDenied("Only a super admin can grant the super admin role.")

    def _check_grants(self, context, permissions) -> None:
        if permissions is None or context.is_super_admin:
            return
        extra = set(permissions) - set(context.profile.permissions)
        if extra:
            raise PermissionDenied(
                f"You cannot grant permissions you do not hold: {', '.join(sorted(p.value for p in extra))}"
            )

    # ------------------------
    # Reads
    # ------------------------
    def list(self, context) -> List[UserProfile]:
        if context.is_super_admin:
            return self.profiles.list(order_by=[("createdAt", "desc")])
        return self.profiles.list(
            filters=[("tenantId", "==", context.tenant_id)],
            order_by=[("createdAt", "desc")],
        )

    def get(self, context, uid: str) -> UserProfile:
        profile = self.profiles.require(uid, "User not found.")
        if not context.is_super_admin and profile.tenant_id != context.tenant_id:
            raise NotFoundError("User not found.")
        return profile

    # ------------------------
    # Writes
    # ------------------------
    def create(self, context, data: UserCreate) -> UserProfile:
        self._check_role(context, data.role)
        self._check_grants(context, data.permissions)
        tenant_id = self._check_target_tenant(context, data.tenant_id)
        if data.role != UserRole.SUPER_ADMIN and not tenant_id:
            raise FormValidationError("Select the organization this user belongs to.")

        identity = self.auth.sign_up(data.email, data.password)
        profile = UserProfile(
            uid=identity.uid,
            email=identity.email,
            name=data.name or identity.email.split("@")[0],
            role=data.role,
            tenant_id=None if data.role == UserRole.SUPER_ADMIN else tenant_id,
            permissions=default_permissions(data.role, data.permissions),
            created_by=context.uid,
        )
        try:
            profile = self.profiles.create(profile, doc_id=identity.uid)
        except AppError:
            # Without a profile the account could never sign in: remove it
            logger.error("❌ Profile creation failed for %s, removing account", identity.email)
            self.auth.delete_account(identity.email)
            raise

        logger.info("👤 User %s created with role %s", profile.email, profile.role.value)
        return profile

    def update(self, context, uid: str, data: UserUpdate) -> UserProfile:
        current = self.get(context, uid)
        self._check_role(context, data.role)
        self._check_grants(context, data.permissions)
        if UserRole(current.role) == UserRole.SUPER_ADMIN and not context.is_super_admin:
            raise PermissionDenied("Only a super admin can change a super admin.")
        if uid == context.uid and data.is_active is False:
            raise FormValidationError("You cannot deactivate your own account.")

        partial = {"updatedAt": now_json()}
        if data.name is not None:
            partial["name"] = data.name
        if data.is_active is not None:
            partial["isActive"] = data.is_active
        role = UserRole(data.role or current.role)
        tenant_id = current.tenant_id
        if "tenant_id" in data.model_fields_set:
            tenant_id = self._check_target_tenant(context, data.tenant_id)
        if role == UserRole.SUPER_ADMIN:
            tenant_id = None
        elif not tenant_id:
            raise FormValidationError("Select the organization this user belongs to.")
        if tenant_id != current.tenant_id:
            partial["tenantId"] = tenant_id
        if data.role is not None:
            partial["role"] = role.value
        if data.permissions is not None:
            partial["permissions"] = [p.value for p in default_permissions(data.role or current.role, data.permissions)]
        elif data.role is not None and UserRole(data.role) != UserRole(current.role):
            # A role change without explicit permissions resets them to the role's table
            partial["permissions"] = [p.value for p in default_permissions(data.role)]

        profile = self.profiles.update(uid, partial)
        logger.info("👤 User %s updated", uid)
        return profile
