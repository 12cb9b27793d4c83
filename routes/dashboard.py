# routes/dashboard.py
from fastapi import APIRouter, Depends

from core.dependencies import get_dashboard_service, require_access
from models.models import Permission
from schemas.dashboard_schema import PlatformDashboard, TenantDashboard
from services.dashboard_service import DashboardService
from services.session_service import SessionContext

router = APIRouter(tags=["Dashboard"])


@router.get("", response_model=TenantDashboard)
def tenant_dashboard(
    context: SessionContext = Depends(require_access(Permission.VIEW_DASHBOARD)),
    dashboards: DashboardService = Depends(get_dashboard_service),
):
    """Lead and invoice figures for the caller's organization."""
    return dashboards.tenant_dashboard(context.scope)


@router.get("/platform", response_model=PlatformDashboard)
def platform_dashboard(
    context: SessionContext = Depends(require_access(Permission.VIEW_ALL_ANALYTICS)),
    dashboards: DashboardService = Depends(get_dashboard_service),
):
    """Tenants, subscriptions and revenue across the platform."""
    return dashboards.platform_dashboard()
