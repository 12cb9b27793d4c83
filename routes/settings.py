# routes/settings.py
from fastapi import APIRouter, Depends, File, UploadFile

from core.dependencies import get_settings_service, require_access, require_active_session
from models.models import Permission
from schemas.settings_schema import CompanySettings, CompanySettingsUpdate
from services.session_service import SessionContext
from services.settings_service import SettingsService

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Settings"])


# ==================================================================
#  ✅  Company settings
# ==================================================================
@router.get("", response_model=CompanySettings)
def get_company_settings(
    context: SessionContext = Depends(require_active_session),
    settings_service: SettingsService = Depends(get_settings_service),
):
    """Company details used on invoices. Falls back to defaults when none are saved."""
    return settings_service.get(context.scope)


@router.put("", response_model=CompanySettings)
def update_company_settings(
    data: CompanySettingsUpdate,
    context: SessionContext = Depends(require_access(Permission.MANAGE_SETTINGS)),
    settings_service: SettingsService = Depends(get_settings_service),
):
    return settings_service.update(context.scope, data)


# ==================================================================
#  ✅  Upload Company Logo
# ==================================================================
@router.post("/logo", response_model=CompanySettings)
async def upload_logo(
    file: UploadFile = File(...),
    context: SessionContext = Depends(require_access(Permission.MANAGE_SETTINGS)),
    settings_service: SettingsService = Depends(get_settings_service),
):
    """Store the logo file and keep its URL and a base64 copy for PDF rendering."""
    content = await file.read()
    logger.info("📁 Logo upload %s (%s bytes) by %s", file.filename, len(content), context.uid)
    return settings_service.upload_logo(context.scope, file.filename, content)
