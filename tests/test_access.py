from datetime import datetime, timedelta, timezone

import pytest

from core.access import (
    can_access_module, check_transition, effective_status, evaluate_access, evaluate_route,
    is_subscription_active, navigation_for,
)
from core.exceptions import InvalidTransitionError
from core.permissions import default_permissions
from models.models import AppModule, Permission, SubscriptionPlan, SubscriptionStatus, UserRole
from schemas.subscription_schema import Subscription
from schemas.tenant_schema import Tenant, TenantSettings
from schemas.user_schema import AuthIdentity, UserProfile
from services.session_service import SessionContext

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_profile(role=UserRole.EMPLOYEE, is_active=True, tenant_id="t1"):
    return UserProfile(uid="u1", email="user@acme.io", name="User", role=role, tenant_id=tenant_id,
                       permissions=default_permissions(role), is_active=is_active)


def make_tenant(modules=(AppModule.LEADS, AppModule.INVOICES), is_active=True):
    return Tenant(id="t1", name="Acme", is_active=is_active, settings=TenantSettings(allowed_modules=list(modules)))


def make_subscription(status=SubscriptionStatus.ACTIVE, end=NOW + timedelta(days=10)):
    return Subscription(id="s1", tenant_id="t1", plan=SubscriptionPlan.MONTHLY, status=status,
                        start_date=end - timedelta(days=30), end_date=end)


def make_context(profile=None, tenant="default", subscription="default"):
    profile = profile or make_profile()
    return SessionContext(
        identity=AuthIdentity(uid=profile.uid, email=profile.email),
        profile=profile,
        tenant=make_tenant() if tenant == "default" else tenant,
        subscription=make_subscription(end=datetime.now(timezone.utc) + timedelta(days=10))
        if subscription == "default" else subscription,
    )


# ----------------------------------------------------------------------
# Module gate
# ----------------------------------------------------------------------
def test_module_gate_follows_tenant_settings():
    tenant = make_tenant(modules=[AppModule.LEADS])
    assert can_access_module(make_profile(), tenant, AppModule.LEADS)
    assert not can_access_module(make_profile(), tenant, AppModule.INVOICES)


def test_module_gate_denies_missing_or_inactive_tenant():
    assert not can_access_module(make_profile(), None, AppModule.LEADS)
    assert not can_access_module(make_profile(), make_tenant(is_active=False), AppModule.LEADS)


def test_missing_settings_mean_no_modules():
    tenant = Tenant.model_validate({"name": "Bare"})
    assert not can_access_module(make_profile(), tenant, AppModule.LEADS)


def test_super_admin_bypasses_module_gate():
    assert can_access_module(make_profile(UserRole.SUPER_ADMIN, tenant_id=None), None, AppModule.INVOICES)


# ----------------------------------------------------------------------
# Subscription state
# ----------------------------------------------------------------------
@pytest.mark.parametrize("status,expected", [
    (SubscriptionStatus.ACTIVE, True),
    (SubscriptionStatus.TRIAL, True),
    (SubscriptionStatus.SUSPENDED, False),
    (SubscriptionStatus.EXPIRED, False),
])
def test_subscription_active_by_status(status, expected):
    assert is_subscription_active(make_subscription(status=status), now=NOW) is expected


def test_subscription_inactive_once_end_date_passes():
    subscription = make_subscription(end=NOW)
    assert is_subscription_active(subscription, now=NOW - timedelta(seconds=1))
    assert not is_subscription_active(subscription, now=NOW)
    assert effective_status(subscription, now=NOW) == SubscriptionStatus.EXPIRED


def test_missing_subscription_is_inactive():
    assert is_subscription_active(None) is False


def test_naive_end_date_is_treated_as_utc():
    subscription = Subscription.model_validate({
        "tenantId": "t1", "plan": "trial", "status": "trial",
        "startDate": "2024-05-20T00:00:00", "endDate": "2024-06-03T00:00:00",
    })
    assert is_subscription_active(subscription, now=NOW)


@pytest.mark.parametrize("current,target", [
    (SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE),
    (SubscriptionStatus.TRIAL, SubscriptionStatus.EXPIRED),
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.SUSPENDED),
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.EXPIRED),
    (SubscriptionStatus.SUSPENDED, SubscriptionStatus.ACTIVE),
])
def test_allowed_transitions(current, target):
    assert check_transition(make_subscription(status=current), target, now=NOW) == target


@pytest.mark.parametrize("current,target", [
    (SubscriptionStatus.EXPIRED, SubscriptionStatus.ACTIVE),
    (SubscriptionStatus.EXPIRED, SubscriptionStatus.TRIAL),
    (SubscriptionStatus.SUSPENDED, SubscriptionStatus.TRIAL),
    (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL),
    (SubscriptionStatus.TRIAL, SubscriptionStatus.SUSPENDED),
])
def test_invalid_transitions(current, target):
    with pytest.raises(InvalidTransitionError):
        check_transition(make_subscription(status=current), target, now=NOW)


def test_lapsed_trial_cannot_be_activated():
    lapsed = make_subscription(status=SubscriptionStatus.TRIAL, end=NOW - timedelta(days=1))
    with pytest.raises(InvalidTransitionError):
        check_transition(lapsed, SubscriptionStatus.ACTIVE, now=NOW)


# ----------------------------------------------------------------------
# Route gate
# ----------------------------------------------------------------------
def test_all_checks_pass():
    decision = evaluate_access(make_context(), Permission.VIEW_INVOICES, AppModule.INVOICES)
    assert decision.allowed


def test_inactive_profile_is_checked_first():
    context = make_context(make_profile(is_active=False), tenant=None, subscription=None)
    decision = evaluate_access(context, Permission.VIEW_INVOICES, AppModule.INVOICES)
    assert not decision.allowed
    assert "deactivated" in decision.reason


def test_permission_checked_before_module():
    context = make_context(make_profile(UserRole.CLIENT), tenant=make_tenant(modules=[]))
    decision = evaluate_access(context, Permission.DELETE_INVOICES, AppModule.INVOICES)
    assert "permission" in decision.reason.lower()


def test_module_disabled_denies_even_with_permission():
    context = make_context(tenant=make_tenant(modules=[AppModule.LEADS]))
    decision = evaluate_access(context, Permission.VIEW_INVOICES, AppModule.INVOICES)
    assert not decision.allowed
    assert "module" in decision.reason.lower()


def test_inactive_subscription_blocks_module_routes_only():
    context = make_context(subscription=None)
    assert not evaluate_access(context, Permission.VIEW_LEADS, AppModule.LEADS).allowed
    assert evaluate_access(context, Permission.VIEW_DASHBOARD).allowed


def test_super_admin_needs_no_tenant_or_subscription():
    context = make_context(make_profile(UserRole.SUPER_ADMIN, tenant_id=None), tenant=None, subscription=None)
    assert evaluate_access(context, Permission.VIEW_INVOICES, AppModule.INVOICES).allowed


def test_unauthenticated_route_redirects_to_login():
    decision = evaluate_route(None, "/invoices")
    assert not decision.allowed
    assert decision.redirect_to == "/login"
    assert evaluate_route(None, "/login").allowed


def test_nested_paths_use_the_closest_rule():
    context = make_context(make_profile(UserRole.ADMIN))
    assert evaluate_route(context, "/admin/users/abc").allowed
    assert not evaluate_route(context, "/admin/tenants").allowed


def test_settings_and_subscription_only_need_a_session():
    context = make_context(make_profile(UserRole.CLIENT), subscription=None)
    assert evaluate_route(context, "/settings").allowed
    assert evaluate_route(context, "/subscription").allowed


def test_navigation_lists_openable_routes():
    client_nav = [item["href"] for item in navigation_for(make_context(make_profile(UserRole.CLIENT)))]
    assert client_nav == ["/dashboard", "/leads", "/invoices", "/settings", "/subscription"]

    admin_nav = [item["href"] for item in navigation_for(make_context(make_profile(UserRole.ADMIN)))]
    assert "/admin/users" in admin_nav
    assert "/admin/tenants" not in admin_nav
