import pytest

from models.models import UserRole


@pytest.fixture
def owner(client):
    response = client.post("/auth/signup", json={"email": "owner@ledgerly.dev", "password": "secret123",
                                                 "name": "Owner"})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def acme(make_tenant, make_user):
    tenant = make_tenant("Acme")
    make_user("admin@acme.io", UserRole.ADMIN, tenant_id=tenant.id)
    make_user("emp@acme.io", UserRole.EMPLOYEE, tenant_id=tenant.id)
    return tenant


# ----------------------------------------------------------------------
# Auth endpoints
# ----------------------------------------------------------------------
def test_signup_only_while_platform_is_empty(client, owner):
    assert client.get("/auth/signup-status").json() == {"open": False}
    response = client.post("/auth/signup", json={"email": "late@ledgerly.dev", "password": "secret123"})
    assert response.status_code == 403


def test_me_and_logout(client, owner):
    me = client.get("/auth/me", headers=owner).json()
    assert me["user"]["role"] == "super_admin"
    assert me["tenant"] is None

    assert client.post("/auth/logout", headers=owner).status_code == 204
    response = client.get("/auth/me", headers=owner)
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_wrong_password(client, acme):
    response = client.post("/auth/login", json={"email": "emp@acme.io", "password": "nope-nope"})
    assert response.status_code == 401


def test_navigation_for_admin(client, login, acme):
    items = client.get("/auth/navigation", headers=login("admin@acme.io")).json()
    hrefs = [item["href"] for item in items]
    assert "/admin/users" in hrefs
    assert "/admin/tenants" not in hrefs


# ----------------------------------------------------------------------
# Tenants and subscriptions
# ----------------------------------------------------------------------
def test_super_admin_creates_tenant_with_trial(client, owner):
    response = client.post("/admin/tenants", json={"name": "Initech"}, headers=owner)
    assert response.status_code == 201, response.text
    tenant = response.json()
    assert tenant["settings"]["allowedModules"] == ["leads", "invoices"]

    subscriptions = client.get(f"/admin/tenants/{tenant['id']}/subscriptions", headers=owner).json()
    assert len(subscriptions) == 1
    assert subscriptions[0]["status"] == "trial"
    assert subscriptions[0]["isActive"] is True
    assert subscriptions[0]["daysRemaining"] in (13, 14)


def test_payment_activates_trial(client, owner):
    tenant = client.post("/admin/tenants", json={"name": "Initech"}, headers=owner).json()
    subscription_id = tenant["subscriptionId"]

    response = client.post(f"/admin/tenants/subscriptions/{subscription_id}/payments",
                           json={"plan": "yearly"}, headers=owner)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["status"] == "active"
    assert body["plan"] == "yearly"
    assert body["amount"] == "9999.00"


def test_invalid_transition_is_422(client, owner):
    tenant = client.post("/admin/tenants", json={"name": "Initech", "plan": "monthly"}, headers=owner).json()
    path = f"/admin/tenants/subscriptions/{tenant['subscriptionId']}/status"

    assert client.patch(path, json={"status": "expired"}, headers=owner).status_code == 200
    response = client.patch(path, json={"status": "active"}, headers=owner)
    assert response.status_code == 422


def test_tenant_admin_cannot_manage_tenants(client, login, acme):
    headers = login("admin@acme.io")
    assert client.get("/admin/tenants", headers=headers).status_code == 403
    assert client.get("/dashboard/platform", headers=headers).status_code == 403


def test_disabling_a_module(client, owner, login, acme):
    response = client.put(f"/admin/tenants/{acme.id}", json={"allowedModules": ["invoices"]}, headers=owner)
    assert response.status_code == 200
    assert client.get("/leads", headers=login("emp@acme.io")).status_code == 403


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
def test_admin_creates_users_in_own_tenant(client, login, acme):
    headers = login("admin@acme.io")
    response = client.post("/admin/users", json={
        "email": "new@acme.io", "password": "secret123", "role": "employee",
    }, headers=headers)
    assert response.status_code == 201, response.text
    assert response.json()["tenantId"] == acme.id
    assert "create_invoices" in response.json()["permissions"]

    assert client.post("/auth/login", json={"email": "new@acme.io", "password": "secret123"}).status_code == 200
    assert len(client.get("/admin/users", headers=headers).json()) == 3


def test_admin_is_confined_to_own_tenant(client, login, make_tenant, acme):
    other = make_tenant("Globex")
    headers = login("admin@acme.io")

    response = client.post("/admin/users", json={
        "email": "spy@globex.io", "password": "secret123", "role": "employee", "tenantId": other.id,
    }, headers=headers)
    assert response.status_code == 403

    response = client.post("/admin/users", json={
        "email": "boss@acme.io", "password": "secret123", "role": "super_admin",
    }, headers=headers)
    assert response.status_code == 403


def test_admin_cannot_grant_platform_permissions(client, login, acme):
    response = client.post("/admin/users", json={
        "email": "x@acme.io", "password": "secret123", "role": "employee",
        "permissions": ["view_dashboard", "manage_tenants"],
    }, headers=login("admin@acme.io"))
    assert response.status_code == 403


def test_deactivated_user_is_locked_out(client, login, acme):
    admin = login("admin@acme.io")
    employee = login("emp@acme.io")
    uid = client.get("/auth/me", headers=employee).json()["user"]["uid"]

    response = client.put(f"/admin/users/{uid}", json={"isActive": False}, headers=admin)
    assert response.status_code == 200
    assert client.get("/leads", headers=employee).status_code == 403
    assert client.post("/auth/login", json={"email": "emp@acme.io", "password": "secret123"}).status_code == 403


def test_admin_cannot_deactivate_self(client, login, acme):
    admin = login("admin@acme.io")
    uid = client.get("/auth/me", headers=admin).json()["user"]["uid"]
    assert client.put(f"/admin/users/{uid}", json={"isActive": False}, headers=admin).status_code == 422


def test_super_admin_needs_a_tenant_for_tenant_roles(client, owner):
    response = client.post("/admin/users", json={
        "email": "floating@acme.io", "password": "secret123", "role": "employee",
    }, headers=owner)
    assert response.status_code == 422


def test_demoting_super_admin_needs_a_tenant(client, login, owner, acme):
    boss = client.post("/admin/users", json={
        "email": "boss2@ledgerly.dev", "password": "secret123", "role": "super_admin",
    }, headers=owner).json()
    path = f"/admin/users/{boss['uid']}"

    assert client.put(path, json={"role": "admin"}, headers=owner).status_code == 422
    assert client.get(path, headers=owner).json()["role"] == "super_admin"

    response = client.put(path, json={"role": "admin", "tenantId": acme.id}, headers=owner)
    assert response.status_code == 200
    assert response.json()["tenantId"] == acme.id

    emails = {u["email"] for u in client.get("/admin/users", headers=login("boss2@ledgerly.dev")).json()}
    assert emails == {"admin@acme.io", "emp@acme.io", "boss2@ledgerly.dev"}


def test_promoting_to_super_admin_clears_tenant(client, login, owner, acme):
    uid = client.get("/auth/me", headers=login("emp@acme.io")).json()["user"]["uid"]

    response = client.put(f"/admin/users/{uid}", json={"role": "super_admin"}, headers=owner)
    assert response.status_code == 200
    assert response.json()["tenantId"] is None


def test_clearing_tenant_of_tenant_user_is_422(client, login, owner, acme):
    uid = client.get("/auth/me", headers=login("emp@acme.io")).json()["user"]["uid"]
    response = client.put(f"/admin/users/{uid}", json={"tenantId": None}, headers=owner)
    assert response.status_code == 422


# ----------------------------------------------------------------------
# Dashboards
# ----------------------------------------------------------------------
def test_platform_dashboard(client, owner, acme):
    client.post("/admin/tenants", json={"name": "Initech"}, headers=owner)
    body = client.get("/dashboard/platform", headers=owner).json()

    assert body["totalTenants"] == 2
    assert body["trialTenants"] == 1
    assert body["totalUsers"] == 3
    assert body["totalRevenue"] == "999.00"
    assert body["recentRegistrations"] == 2


def test_tenant_dashboard_counts(client, login, acme):
    headers = login("emp@acme.io")
    client.post("/leads", json={"leadName": "Asha", "mobileNumber": "1"}, headers=headers)
    client.post("/leads", json={"leadName": "Ravi", "mobileNumber": "2", "leadStatus": "Client"}, headers=headers)

    body = client.get("/dashboard", headers=headers).json()
    assert body["totalLeads"] == 2
    assert body["newLeads"] == 1
    assert body["convertedLeads"] == 1
