# dashboard_schema.py
from typing import Optional, List
from decimal import Decimal

from models.models import AppModule, Permission
from schemas.common import DocumentModel
from schemas.subscription_schema import Subscription
from schemas.tenant_schema import Tenant


class TenantDashboard(DocumentModel):
    total_leads: int = 0
    new_leads: int = 0
    followup_leads: int = 0
    converted_leads: int = 0
    leads_by_status: dict = {}

    total_invoices: int = 0
    invoiced_amount: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")
    outstanding_amount: Decimal = Decimal("0.00")


class PlatformDashboard(DocumentModel):
    total_tenants: int
    active_tenants: int
    trial_tenants: int
    expired_tenants: int
    total_users: int
    total_revenue: Decimal
    monthly_revenue: Decimal
    recent_registrations: int
    recent_tenants: List[Tenant]
    recent_subscriptions: List[Subscription]


class NavigationItem(DocumentModel):
    name: str
    href: str
    permission: Optional[Permission] = None
    module: Optional[AppModule] = None
    admin: bool = False


class RouteCheck(DocumentModel):
    path: str
    allowed: bool
    reason: Optional[str] = None
    redirect_to: Optional[str] = None
