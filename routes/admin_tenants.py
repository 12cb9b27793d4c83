# routes/admin_tenants.py
from fastapi import APIRouter, Depends, status
from typing import List

from core.dependencies import get_tenant_service, require_access
from models.models import Permission
from schemas.subscription_schema import (
    PaymentRecord, SubscriptionCreate, SubscriptionRead, SubscriptionStatusUpdate,
)
from schemas.tenant_schema import Tenant, TenantCreate, TenantUpdate
from services.session_service import SessionContext
from services.tenant_service import TenantService

router = APIRouter(tags=["Tenants"])

can_manage_tenants = require_access(Permission.MANAGE_TENANTS)
can_manage_subscriptions = require_access(Permission.MANAGE_SUBSCRIPTIONS)


# =========================================
# 🏢 Tenants
# =========================================
@router.get("", response_model=List[Tenant])
def list_tenants(
    context: SessionContext = Depends(can_manage_tenants),
    tenants: TenantService = Depends(get_tenant_service),
):
    return tenants.list_tenants()


@router.post("", response_model=Tenant, status_code=status.HTTP_201_CREATED)
def create_tenant(
    data: TenantCreate,
    context: SessionContext = Depends(can_manage_tenants),
    tenants: TenantService = Depends(get_tenant_service),
):
    """Create an organization, starting a subscription on the chosen plan."""
    return tenants.create_tenant(data, created_by=context.uid)


@router.get("/{tenant_id}", response_model=Tenant)
def get_tenant(
    tenant_id: str,
    context: SessionContext = Depends(can_manage_tenants),
    tenants: TenantService = Depends(get_tenant_service),
):
    return tenants.get_tenant(tenant_id)


@router.put("/{tenant_id}", response_model=Tenant)
def update_tenant(
    tenant_id: str,
    data: TenantUpdate,
    context: SessionContext = Depends(can_manage_tenants),
    tenants: TenantService = Depends(get_tenant_service),
):
    return tenants.update_tenant(tenant_id, data)


# =========================================
# 💳 Subscriptions
# =========================================
@router.get("/{tenant_id}/subscriptions", response_model=List[SubscriptionRead])
def list_tenant_subscriptions(
    tenant_id: str,
    context: SessionContext = Depends(can_manage_subscriptions),
    tenants: TenantService = Depends(get_tenant_service),
):
    tenants.get_tenant(tenant_id)
    return [tenants.to_read(s) for s in tenants.list_subscriptions(tenant_id)]


@router.post("/{tenant_id}/subscriptions", response_model=SubscriptionRead, status_code=status.HTTP_201_CREATED)
def create_subscription(
    tenant_id: str,
    data: SubscriptionCreate,
    context: SessionContext = Depends(can_manage_subscriptions),
    tenants: TenantService = Depends(get_tenant_service),
):
    """Start a new subscription; it replaces the tenant's current one."""
    return tenants.to_read(tenants.create_subscription(tenant_id, data))


@router.post("/subscriptions/{subscription_id}/payments", response_model=SubscriptionRead)
def record_payment(
    subscription_id: str,
    data: PaymentRecord,
    context: SessionContext = Depends(can_manage_subscriptions),
    tenants: TenantService = Depends(get_tenant_service),
):
    return tenants.to_read(tenants.record_payment(subscription_id, data))


@router.patch("/subscriptions/{subscription_id}/status", response_model=SubscriptionRead)
def change_subscription_status(
    subscription_id: str,
    data: SubscriptionStatusUpdate,
    context: SessionContext = Depends(can_manage_subscriptions),
    tenants: TenantService = Depends(get_tenant_service),
):
    """Suspend, reactivate or expire a subscription. Invalid transitions answer 422."""
    return tenants.to_read(tenants.transition(subscription_id, data.status))
