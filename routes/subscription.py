# routes/subscription.py
from fastapi import APIRouter, Depends
from typing import List

from core.dependencies import get_tenant_service, require_active_session
from schemas.subscription_schema import SUBSCRIPTION_PLANS, PlanDefinition
from services.session_service import SessionContext
from services.tenant_service import TenantService

router = APIRouter(tags=["Subscription"])


@router.get("/plans", response_model=List[PlanDefinition])
def list_plans():
    return list(SUBSCRIPTION_PLANS.values())


@router.get("")
def my_subscription(
    context: SessionContext = Depends(require_active_session),
    tenants: TenantService = Depends(get_tenant_service),
):
    """Current subscription of the caller's organization, with its live status."""
    subscription = tenants.to_read(context.subscription) if context.subscription else None
    return {
        "tenantId": context.tenant_id,
        "subscription": subscription.model_dump(mode="json", by_alias=True) if subscription else None,
        "plans": [plan.model_dump(mode="json") for plan in SUBSCRIPTION_PLANS.values()],
    }
