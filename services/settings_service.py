# services/settings_service.py
from pathlib import Path
import base64
import logging

from core.config import settings
from core.document_store import DocumentStore, join_path
from core.exceptions import AppError, FormValidationError
from models.models import COLLECTION_SETTINGS
from schemas.settings_schema import CompanySettings, CompanySettingsUpdate
from services.repository import DataScope, Repository
from services.storage_service import LocalFileStorage

logger = logging.getLogger(__name__)

ALLOWED_LOGO_EXTENSIONS = {".png", ".jpg", ".jpeg", ".svg"}
MAX_LOGO_SIZE_MB = 2

_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
}


def scope_key(scope: DataScope) -> str:
    """Settings are shared by a tenant, or kept per user when there is no tenant."""
    return scope.tenant_id or scope.user_id


def default_company_settings() -> CompanySettings:
    return CompanySettings(invoice_prefix=settings.DEFAULT_INVOICE_PREFIX)


class SettingsService:
    def __init__(self, store: DocumentStore, storage: LocalFileStorage = None):
        self.store = store
        self.storage = storage
        self.repo = Repository(store, COLLECTION_SETTINGS, CompanySettings)

    def get(self, scope: DataScope) -> CompanySettings:
        """Company settings for the scope, or defaults when missing or unreadable."""
        try:
            record = self.repo.get(scope_key(scope))
        except AppError as e:
            logger.warning("⚠️ Using default company settings for %s: %s", scope_key(scope), e.message)
            return default_company_settings()
        return record or default_company_settings()

    def invoice_prefix(self, scope: DataScope) -> str:
        return self.get(scope).invoice_prefix

    def update(self, scope: DataScope, data: CompanySettingsUpdate) -> CompanySettings:
        merged = self.get(scope).model_copy(update=data.model_dump(exclude_unset=True, exclude_none=True))
        self.store.set(join_path(COLLECTION_SETTINGS, scope_key(scope)), merged.to_document())
        logger.info("✅ Company settings updated for %s", scope_key(scope))
        return merged

    def upload_logo(self, scope: DataScope, filename: str, content: bytes) -> CompanySettings:
        if self.storage is None:
            raise FormValidationError("File uploads are not configured.")

        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_LOGO_EXTENSIONS:
            raise FormValidationError(
                f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_LOGO_EXTENSIONS))}"
            )
        if not content:
            raise FormValidationError("The uploaded file is empty.")
        if len(content) > MAX_LOGO_SIZE_MB * 1024 * 1024:
            raise FormValidationError(f"File too large. Maximum size is {MAX_LOGO_SIZE_MB}MB.")

        url = self.storage.upload(f"logos/{scope_key(scope)}/logo{ext}", content)
        encoded = base64.b64encode(content).decode("ascii")

        current = self.get(scope)
        updated = current.model_copy(update={
            "logo_url": url,
            "logo_base64": f"data:{_MIME_TYPES[ext]};base64,{encoded}",
        })
        self.store.set(join_path(COLLECTION_SETTINGS, scope_key(scope)), updated.to_document())
        logger.info("🖼️ Logo uploaded for %s", scope_key(scope))
        return updated
