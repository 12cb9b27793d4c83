# tenant_schema.py
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from models.models import AppModule, SubscriptionPlan, utc_now
from schemas.common import DocumentModel


class TenantSettings(DocumentModel):
    # Missing settings mean no module is enabled
    allowed_modules: List[AppModule] = Field(default_factory=list)


class Tenant(DocumentModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True
    settings: TenantSettings = Field(default_factory=TenantSettings)
    subscription_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class TenantCreate(DocumentModel):
    name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True
    allowed_modules: List[AppModule] = Field(
        default_factory=lambda: [AppModule.LEADS, AppModule.INVOICES]
    )
    # A subscription on this plan is started with the tenant; None skips it
    plan: Optional[SubscriptionPlan] = SubscriptionPlan.TRIAL


class TenantUpdate(DocumentModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    allowed_modules: Optional[List[AppModule]] = None
