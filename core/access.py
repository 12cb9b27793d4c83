# core/access.py
"""
Tenant and subscription gate.

Access to a screen or endpoint composes four checks, evaluated in this order:
  1. the profile is active,
  2. the profile holds the required permission,
  3. the tenant has the module enabled (super admins bypass),
  4. for module-gated routes, the tenant subscription is active (super admins bypass).

Everything here is recomputed from the request's session; nothing is cached.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from core.exceptions import InvalidTransitionError
from core.permissions import has_permission
from models.models import AppModule, Permission, SubscriptionStatus, UserRole, utc_now
from schemas.common import as_utc

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"
SUBSCRIPTION_PATH = "/subscription"


# ========================================
# ✅ Module gate
# ========================================
def _is_super_admin(profile) -> bool:
    return profile is not None and UserRole(profile.role) == UserRole.SUPER_ADMIN


def can_access_module(profile, tenant, module) -> bool:
    if _is_super_admin(profile):
        return True
    if tenant is None or not tenant.is_active:
        return False
    allowed = tenant.settings.allowed_modules if tenant.settings else []
    return AppModule(module) in set(allowed)


# ========================================
# ✅ Subscription state
# ========================================
_LIVE_STATUSES = {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL}


def is_subscription_active(subscription, now: Optional[datetime] = None) -> bool:
    if subscription is None:
        return False
    now = as_utc(now) if now else utc_now()
    return SubscriptionStatus(subscription.status) in _LIVE_STATUSES and now < as_utc(subscription.end_date)


def effective_status(subscription, now: Optional[datetime] = None) -> SubscriptionStatus:
    """Stored status, with trial/active reported as expired once the end date has passed."""
    stored = SubscriptionStatus(subscription.status)
    now = as_utc(now) if now else utc_now()
    if stored in _LIVE_STATUSES and now >= as_utc(subscription.end_date):
        return SubscriptionStatus.EXPIRED
    return stored


def days_remaining(subscription, now: Optional[datetime] = None) -> int:
    now = as_utc(now) if now else utc_now()
    remaining = as_utc(subscription.end_date) - now
    return max(0, remaining.days)


ALLOWED_TRANSITIONS: Dict[SubscriptionStatus, frozenset] = {
    SubscriptionStatus.TRIAL: frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.EXPIRED}),
    SubscriptionStatus.ACTIVE: frozenset({SubscriptionStatus.SUSPENDED, SubscriptionStatus.EXPIRED}),
    SubscriptionStatus.SUSPENDED: frozenset({SubscriptionStatus.ACTIVE}),
    # Expired is terminal; a new subscription replaces it
    SubscriptionStatus.EXPIRED: frozenset(),
}


def check_transition(subscription, target, now: Optional[datetime] = None) -> SubscriptionStatus:
    """
    Validate a status change against the subscription state machine.
    The current status is the effective one, so a lapsed trial cannot be revived.
    """
    target = SubscriptionStatus(target)
    current = effective_status(subscription, now)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot change subscription status from '{current.value}' to '{target.value}'"
        )
    return target


# ========================================
# ✅ Route gate
# ========================================
@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None
    redirect_to: Optional[str] = None


ALLOWED = AccessDecision(allowed=True)


def evaluate_access(context, permission: Optional[Permission] = None,
                    module: Optional[AppModule] = None) -> AccessDecision:
    if context is None or context.profile is None:
        return AccessDecision(False, "Not signed in", LOGIN_PATH)

    profile = context.profile
    if not profile.is_active:
        return AccessDecision(False, "Your account has been deactivated. Please contact your administrator.")

    if permission is not None and not has_permission(profile, permission):
        return AccessDecision(False, f"Missing permission '{Permission(permission).value}'", DASHBOARD_PATH)

    if module is not None:
        if not can_access_module(profile, context.tenant, module):
            return AccessDecision(False, f"Module '{AppModule(module).value}' is not enabled for your organization",
                                  DASHBOARD_PATH)
        if not _is_super_admin(profile) and not is_subscription_active(context.subscription):
            return AccessDecision(False, "Your subscription is not active", SUBSCRIPTION_PATH)

    return ALLOWED


# path -> (display name, permission, module, admin section)
ROUTE_RULES: Dict[str, Tuple[str, Optional[Permission], Optional[AppModule], bool]] = {
    "/dashboard": ("Dashboard", Permission.VIEW_DASHBOARD, None, False),
    "/leads": ("Leads", Permission.VIEW_LEADS, AppModule.LEADS, False),
    "/invoices": ("Invoices", Permission.VIEW_INVOICES, AppModule.INVOICES, False),
    "/customers": ("Customers", Permission.VIEW_CUSTOMERS, AppModule.INVOICES, False),
    "/settings": ("Settings", None, None, False),
    "/subscription": ("Subscription", None, None, False),
    "/admin/users": ("Users", Permission.MANAGE_USERS, None, True),
    "/admin/tenants": ("Tenants", Permission.MANAGE_TENANTS, None, True),
}

PUBLIC_PATHS = {LOGIN_PATH}


def _match_rule(path: str) -> Optional[str]:
    path = "/" + path.strip("/")
    best = None
    for prefix in ROUTE_RULES:
        if path == prefix or path.startswith(prefix + "/"):
            if best is None or len(prefix) > len(best):
                best = prefix
    return best


def evaluate_route(context, path: str) -> AccessDecision:
    normalized = "/" + path.strip("/")
    if normalized in PUBLIC_PATHS:
        return ALLOWED

    rule = _match_rule(normalized)
    if rule is None:
        # Unknown screens only need a signed-in user
        return evaluate_access(context)
    _, permission, module, _ = ROUTE_RULES[rule]
    return evaluate_access(context, permission, module)


def navigation_for(context) -> List[dict]:
    """Navigation entries the caller may open, in menu order."""
    items = []
    for href, (name, permission, module, admin) in ROUTE_RULES.items():
        if not evaluate_route(context, href).allowed:
            continue
        items.append({"name": name, "href": href, "permission": permission, "module": module, "admin": admin})
    return items
