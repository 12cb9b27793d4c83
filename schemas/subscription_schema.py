# subscription_schema.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict
from datetime import datetime
from decimal import Decimal

from models.models import SubscriptionPlan, SubscriptionStatus, utc_now
from schemas.common import DocumentModel, as_utc


# ---------------------------
# Plans
# ---------------------------
class PlanDefinition(BaseModel):
    plan: SubscriptionPlan
    duration_days: int
    amount: Decimal
    initial_status: SubscriptionStatus
    description: str


SUBSCRIPTION_PLANS: Dict[SubscriptionPlan, PlanDefinition] = {
    SubscriptionPlan.TRIAL: PlanDefinition(
        plan=SubscriptionPlan.TRIAL,
        duration_days=14,
        amount=Decimal("0.00"),
        initial_status=SubscriptionStatus.TRIAL,
        description="14 day free trial",
    ),
    SubscriptionPlan.MONTHLY: PlanDefinition(
        plan=SubscriptionPlan.MONTHLY,
        duration_days=30,
        amount=Decimal("999.00"),
        initial_status=SubscriptionStatus.ACTIVE,
        description="Billed every month",
    ),
    SubscriptionPlan.YEARLY: PlanDefinition(
        plan=SubscriptionPlan.YEARLY,
        duration_days=365,
        amount=Decimal("9999.00"),
        initial_status=SubscriptionStatus.ACTIVE,
        description="Billed every year",
    ),
}


# ---------------------------
# Stored subscription (subscriptions/{id})
# ---------------------------
class Subscription(DocumentModel):
    id: Optional[str] = None
    tenant_id: str
    plan: SubscriptionPlan
    status: SubscriptionStatus
    start_date: datetime
    end_date: datetime
    amount: Decimal = Decimal("0.00")
    currency: str = Field(default="INR", max_length=3)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("start_date", "end_date", "created_at", "updated_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return as_utc(value)


class SubscriptionCreate(DocumentModel):
    plan: SubscriptionPlan = SubscriptionPlan.TRIAL
    start_date: Optional[datetime] = None
    amount: Optional[Decimal] = Field(default=None, ge=0)


class SubscriptionStatusUpdate(DocumentModel):
    status: SubscriptionStatus


class PaymentRecord(DocumentModel):
    """Payment received for a subscription: moves trial to active and extends the period."""
    plan: SubscriptionPlan = SubscriptionPlan.MONTHLY
    amount: Optional[Decimal] = Field(default=None, ge=0)


class SubscriptionRead(Subscription):
    effective_status: SubscriptionStatus
    is_active: bool
    days_remaining: int
