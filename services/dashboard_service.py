# services/dashboard_service.py
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable
import logging

from core.access import effective_status
from core.document_store import DocumentStore
from models.models import (
    COLLECTION_INVOICES, COLLECTION_LEADS, COLLECTION_SUBSCRIPTIONS, COLLECTION_TENANTS, COLLECTION_USERS,
    InvoiceStatus, SubscriptionPlan, SubscriptionStatus, utc_now,
)
from schemas.common import as_utc, round2
from schemas.dashboard_schema import PlatformDashboard, TenantDashboard
from schemas.invoice_schema import Invoice
from schemas.lead_schema import Lead
from schemas.subscription_schema import Subscription
from schemas.tenant_schema import Tenant
from schemas.user_schema import UserProfile
from services.repository import DataScope, Repository

logger = logging.getLogger(__name__)

RECENT_DAYS = 7
RECENT_LIMIT = 5


class DashboardService:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self.leads = Repository(store, COLLECTION_LEADS, Lead)
        self.invoices = Repository(store, COLLECTION_INVOICES, Invoice)
        self.tenants = Repository(store, COLLECTION_TENANTS, Tenant)
        self.subscriptions = Repository(store, COLLECTION_SUBSCRIPTIONS, Subscription)
        self.users = Repository(store, COLLECTION_USERS, UserProfile)

    def tenant_dashboard(self, scope: DataScope) -> TenantDashboard:
        leads = self.leads.list_scoped(scope)
        by_status = {}
        for lead in leads:
            by_status[lead.lead_status] = by_status.get(lead.lead_status, 0) + 1

        invoices = self.invoices.list_scoped(scope)
        invoiced = sum((i.total for i in invoices), Decimal("0"))
        paid = sum((i.total for i in invoices if i.status == InvoiceStatus.PAID), Decimal("0"))

        return TenantDashboard(
            total_leads=len(leads),
            new_leads=by_status.get("Created", 0),
            followup_leads=by_status.get("Followup", 0),
            converted_leads=by_status.get("Client", 0),
            leads_by_status=by_status,
            total_invoices=len(invoices),
            invoiced_amount=round2(invoiced),
            paid_amount=round2(paid),
            outstanding_amount=round2(invoiced - paid),
        )

    def platform_dashboard(self) -> PlatformDashboard:
        now = self.clock()
        tenants = self.tenants.list(order_by=[("createdAt", "desc")])
        subscriptions = self.subscriptions.list(order_by=[("createdAt", "desc")])
        users = self.users.list()

        statuses = {s.id: effective_status(s, now) for s in subscriptions}
        active = [s for s in subscriptions if statuses[s.id] == SubscriptionStatus.ACTIVE]
        this_month = [
            s for s in active
            if as_utc(s.start_date).year == now.year and as_utc(s.start_date).month == now.month
        ]
        week_ago = now - timedelta(days=RECENT_DAYS)

        return PlatformDashboard(
            total_tenants=len(tenants),
            active_tenants=sum(1 for t in tenants if t.is_active),
            trial_tenants=sum(1 for s in subscriptions if s.plan == SubscriptionPlan.TRIAL),
            expired_tenants=sum(1 for s in subscriptions if statuses[s.id] == SubscriptionStatus.EXPIRED),
            total_users=len(users),
            total_revenue=round2(sum((s.amount for s in active), Decimal("0"))),
            monthly_revenue=round2(sum((s.amount for s in this_month), Decimal("0"))),
            recent_registrations=sum(1 for t in tenants if as_utc(t.created_at) > week_ago),
            recent_tenants=tenants[:RECENT_LIMIT],
            recent_subscriptions=subscriptions[:RECENT_LIMIT],
        )
