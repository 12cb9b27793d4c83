# models/models.py
from typing import Dict, Any
from datetime import datetime, timezone
from enum import Enum
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# ENUMS
# ============================================================
class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    EMPLOYEE = "employee"
    CLIENT = "client"


class Permission(str, Enum):
    VIEW_DASHBOARD = "view_dashboard"

    VIEW_LEADS = "view_leads"
    CREATE_LEADS = "create_leads"
    EDIT_LEADS = "edit_leads"
    DELETE_LEADS = "delete_leads"

    VIEW_INVOICES = "view_invoices"
    CREATE_INVOICES = "create_invoices"
    EDIT_INVOICES = "edit_invoices"
    DELETE_INVOICES = "delete_invoices"

    VIEW_CUSTOMERS = "view_customers"
    MANAGE_CUSTOMERS = "manage_customers"

    MANAGE_SETTINGS = "manage_settings"
    MANAGE_USERS = "manage_users"
    MANAGE_TENANTS = "manage_tenants"
    MANAGE_SUBSCRIPTIONS = "manage_subscriptions"
    VIEW_ALL_ANALYTICS = "view_all_analytics"


class AppModule(str, Enum):
    LEADS = "leads"
    INVOICES = "invoices"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIAL = "trial"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class SubscriptionPlan(str, Enum):
    TRIAL = "trial"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"


# ============================================================
# COLLECTION NAMES (schema-in-code)
# ============================================================
COLLECTION_USERS = "users"
COLLECTION_TENANTS = "tenants"
COLLECTION_SUBSCRIPTIONS = "subscriptions"
COLLECTION_INVOICES = "invoices"
COLLECTION_INVOICE_COUNTERS = "invoice_counters"
COLLECTION_CUSTOMERS = "customers"
COLLECTION_LEADS = "leads"
COLLECTION_STATUS_OPTIONS = "status_options"
COLLECTION_SERVICE_OPTIONS = "service_options"
COLLECTION_SETTINGS = "settings"
COLLECTION_AUTH_ACCOUNTS = "auth_accounts"
COLLECTION_REVOKED_TOKENS = "revoked_tokens"


# ============================================================
# DOCUMENT (backing table of the document store)
# ============================================================
class Document(SQLModel, table=True):
    __tablename__ = "document"

    # Full slash-separated path, e.g. "users/u1/invoice_counters/2024"
    path: str = Field(primary_key=True, max_length=512)
    collection: str = Field(index=True, max_length=512)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Bumped on every committed write; transactions compare it to detect conflicts
    version: int = Field(default=1, nullable=False)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


__all__ = [
    "Document",
    "UserRole",
    "Permission",
    "AppModule",
    "SubscriptionStatus",
    "SubscriptionPlan",
    "InvoiceStatus",
    "utc_now",
    "COLLECTION_USERS",
    "COLLECTION_TENANTS",
    "COLLECTION_SUBSCRIPTIONS",
    "COLLECTION_INVOICES",
    "COLLECTION_INVOICE_COUNTERS",
    "COLLECTION_CUSTOMERS",
    "COLLECTION_LEADS",
    "COLLECTION_STATUS_OPTIONS",
    "COLLECTION_SERVICE_OPTIONS",
    "COLLECTION_SETTINGS",
    "COLLECTION_AUTH_ACCOUNTS",
    "COLLECTION_REVOKED_TOKENS",
]
