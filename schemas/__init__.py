from .common import DocumentModel, round2, as_utc
from .customer_schema import Customer, CustomerCreate, CustomerUpdate
from .dashboard_schema import TenantDashboard, PlatformDashboard, NavigationItem, RouteCheck
from .invoice_schema import (
    CustomerSnapshot,
    InvoiceItemInput, InvoiceItem, InvoiceTotals,
    Invoice, InvoiceCreate, InvoiceUpdate, InvoiceStatusUpdate,
    InvoiceNumberPreview, TotalsRequest, TotalsResponse,
)
from .lead_schema import (
    Lead, LeadCreate, LeadUpdate,
    StatusOption, StatusOptionCreate,
    ServiceOption, ServiceOptionCreate,
)
from .settings_schema import CompanySettings, CompanySettingsUpdate
from .subscription_schema import (
    PlanDefinition, SUBSCRIPTION_PLANS,
    Subscription, SubscriptionCreate, SubscriptionStatusUpdate, PaymentRecord, SubscriptionRead,
)
from .tenant_schema import TenantSettings, Tenant, TenantCreate, TenantUpdate
from .user_schema import UserProfile, SignupRequest, UserLogin, UserCreate, UserUpdate, AuthIdentity

__all__ = [
    # Common
    "DocumentModel", "round2", "as_utc",

    # Customer
    "Customer", "CustomerCreate", "CustomerUpdate",

    # Dashboard
    "TenantDashboard", "PlatformDashboard", "NavigationItem", "RouteCheck",

    # Invoice
    "CustomerSnapshot",
    "InvoiceItemInput", "InvoiceItem", "InvoiceTotals",
    "Invoice", "InvoiceCreate", "InvoiceUpdate", "InvoiceStatusUpdate",
    "InvoiceNumberPreview", "TotalsRequest", "TotalsResponse",

    # Lead
    "Lead", "LeadCreate", "LeadUpdate",
    "StatusOption", "StatusOptionCreate",
    "ServiceOption", "ServiceOptionCreate",

    # Settings
    "CompanySettings", "CompanySettingsUpdate",

    # Subscription
    "PlanDefinition", "SUBSCRIPTION_PLANS",
    "Subscription", "SubscriptionCreate", "SubscriptionStatusUpdate", "PaymentRecord", "SubscriptionRead",

    # Tenant
    "TenantSettings", "Tenant", "TenantCreate", "TenantUpdate",

    # User
    "UserProfile", "SignupRequest", "UserLogin", "UserCreate", "UserUpdate", "AuthIdentity",
]
