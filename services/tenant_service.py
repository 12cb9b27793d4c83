# services/tenant_service.py
"""
Tenants and their subscriptions (platform administration).

Subscription status changes go through ``core.access.check_transition`` so that
the state machine is enforced in one place.
"""
from datetime import datetime, timedelta
from typing import Callable, List, Optional
import logging

from core.access import check_transition, days_remaining, effective_status, is_subscription_active
from core.document_store import DocumentStore, join_path, new_document_id
from core.exceptions import InvalidTransitionError, NotFoundError
from models.models import COLLECTION_SUBSCRIPTIONS, COLLECTION_TENANTS, SubscriptionStatus, utc_now
from schemas.common import now_json
from schemas.subscription_schema import (
    SUBSCRIPTION_PLANS, PaymentRecord, Subscription, SubscriptionCreate, SubscriptionRead,
)
from schemas.tenant_schema import Tenant, TenantCreate, TenantSettings, TenantUpdate
from services.repository import Repository

logger = logging.getLogger(__name__)


class TenantService:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        self.tenants = Repository(store, COLLECTION_TENANTS, Tenant)
        self.subscriptions = Repository(store, COLLECTION_SUBSCRIPTIONS, Subscription)

    # ========================================
    # 🏢 Tenants
    # ========================================
    def list_tenants(self) -> List[Tenant]:
        return self.tenants.list(order_by=[("createdAt", "desc")])

    def get_tenant(self, tenant_id: str) -> Tenant:
        return self.tenants.require(tenant_id, "Tenant not found.")

    def create_tenant(self, data: TenantCreate, created_by: Optional[str] = None) -> Tenant:
        tenant = self.tenants.create(Tenant(
            name=data.name,
            is_active=data.is_active,
            settings=TenantSettings(allowed_modules=data.allowed_modules),
            created_by=created_by,
        ))
        logger.info("🏢 Tenant %s (%s) created", tenant.id, tenant.name)

        if data.plan is not None:
            subscription = self.create_subscription(tenant.id, SubscriptionCreate(plan=data.plan))
            tenant = tenant.model_copy(update={"subscription_id": subscription.id})
        return tenant

    def update_tenant(self, tenant_id: str, data: TenantUpdate) -> Tenant:
        self.get_tenant(tenant_id)
        partial = {"updatedAt": now_json()}
        if data.name is not None:
            partial["name"] = data.name
        if data.is_active is not None:
            partial["isActive"] = data.is_active
        if data.allowed_modules is not None:
            partial["settings"] = TenantSettings(allowed_modules=data.allowed_modules).to_document()
        return self.tenants.update(tenant_id, partial)

    # ========================================
    # 💳 Subscriptions
    # ========================================
    def to_read(self, subscription: Subscription, now: Optional[datetime] = None) -> SubscriptionRead:
        now = now or self.clock()
        return SubscriptionRead(
            **subscription.model_dump(),
            effective_status=effective_status(subscription, now),
            is_active=is_subscription_active(subscription, now),
            days_remaining=days_remaining(subscription, now),
        )

    def list_subscriptions(self, tenant_id: Optional[str] = None) -> List[Subscription]:
        filters = [("tenantId", "==", tenant_id)] if tenant_id else []
        return self.subscriptions.list(filters=filters, order_by=[("createdAt", "desc")])

    def get_subscription(self, subscription_id: str) -> Subscription:
        return self.subscriptions.require(subscription_id, "Subscription not found.")

    def current_subscription(self, tenant_id: str) -> Optional[Subscription]:
        tenant = self.get_tenant(tenant_id)
        if tenant.subscription_id:
            return self.subscriptions.get(tenant.subscription_id)
        latest = self.list_subscriptions(tenant_id)
        return latest[0] if latest else None

    def create_subscription(self, tenant_id: str, data: SubscriptionCreate) -> Subscription:
        """Start a new subscription and make it the tenant's current one."""
        plan = SUBSCRIPTION_PLANS[data.plan]
        start = data.start_date or self.clock()
        subscription_id = new_document_id()
        tenant_path = join_path(COLLECTION_TENANTS, tenant_id)

        subscription = Subscription(
            id=subscription_id,
            tenant_id=tenant_id,
            plan=plan.plan,
            status=plan.initial_status,
            start_date=start,
            end_date=start + timedelta(days=plan.duration_days),
            amount=data.amount if data.amount is not None else plan.amount,
        )

        def save(txn):
            if not txn.get(tenant_path).exists:
                raise NotFoundError("Tenant not found.", path=tenant_path)
            txn.set(join_path(COLLECTION_SUBSCRIPTIONS, subscription_id), subscription.to_document())
            txn.update(tenant_path, {"subscriptionId": subscription_id, "updatedAt": now_json()})

        self.store.run_transaction(save).unwrap()
        logger.info("💳 Subscription %s (%s) started for tenant %s", subscription_id, plan.plan.value, tenant_id)
        return subscription

    def _modify(self, subscription_id: str, change: Callable[[Subscription], dict]) -> Subscription:
        path = join_path(COLLECTION_SUBSCRIPTIONS, subscription_id)

        def save(txn):
            snapshot = txn.get(path)
            if not snapshot.exists:
                raise NotFoundError("Subscription not found.", path=path)
            current = self.subscriptions.parse(snapshot)
            updated = current.model_copy(update={**change(current), "updated_at": self.clock()})
            txn.set(path, updated.to_document())
            return updated

        return self.store.run_transaction(save).unwrap()

    def transition(self, subscription_id: str, target: SubscriptionStatus) -> Subscription:
        def change(current: Subscription) -> dict:
            return {"status": check_transition(current, target, self.clock())}

        subscription = self._modify(subscription_id, change)
        logger.info("💳 Subscription %s is now %s", subscription_id, subscription.status.value)
        return subscription

    def record_payment(self, subscription_id: str, payment: PaymentRecord) -> Subscription:
        """
        Record a payment: a trial becomes active on the paid plan, an active
        subscription is extended by the plan's period.
        """
        plan = SUBSCRIPTION_PLANS[payment.plan]

        def change(current: Subscription) -> dict:
            now = self.clock()
            status = effective_status(current, now)
            if status == SubscriptionStatus.TRIAL:
                check_transition(current, SubscriptionStatus.ACTIVE, now)
                start = now
                period = {"start_date": now}
            elif status == SubscriptionStatus.ACTIVE:
                start = max(current.end_date, now)
                period = {}
            else:
                raise InvalidTransitionError(
                    f"Cannot record a payment on a '{status.value}' subscription"
                )
            return {
                **period,
                "plan": plan.plan,
                "status": SubscriptionStatus.ACTIVE,
                "end_date": start + timedelta(days=plan.duration_days),
                "amount": payment.amount if payment.amount is not None else plan.amount,
            }

        subscription = self._modify(subscription_id, change)
        logger.info("💰 Payment recorded for subscription %s", subscription_id)
        return subscription
