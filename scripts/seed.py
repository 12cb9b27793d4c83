# scripts/seed.py

import os
import sys
import argparse

from dotenv import load_dotenv

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables
load_dotenv()

from core.database import create_db_and_tables, document_store
from core.exceptions import FormValidationError
from core.permissions import default_permissions
from models.models import COLLECTION_USERS, AppModule, SubscriptionPlan, UserRole
from schemas.tenant_schema import TenantCreate
from schemas.user_schema import UserProfile
from services.auth_service import AuthService, account_path
from services.repository import Repository
from services.tenant_service import TenantService


def ensure_user(email: str, password: str, name: str, role: UserRole, tenant_id=None) -> None:
    """Create account + profile unless the account already exists."""
    auth = AuthService(document_store)
    if document_store.get(account_path(email)).exists:
        print(f"↪️  {email} already exists")
        return
    try:
        identity = auth.sign_up(email, password)
    except FormValidationError:
        print(f"↪️  {email} already exists")
        return

    profiles = Repository(document_store, COLLECTION_USERS, UserProfile)
    profiles.create(
        UserProfile(
            uid=identity.uid,
            email=identity.email,
            name=name,
            role=role,
            tenant_id=tenant_id,
            permissions=default_permissions(role),
        ),
        doc_id=identity.uid,
    )
    print(f"✅ Added {role.value} {email}")


def find_or_create_tenant(tenants: TenantService, name: str, plan: SubscriptionPlan) -> str:
    for tenant in tenants.list_tenants():
        if tenant.name == name:
            return tenant.id
    tenant = tenants.create_tenant(TenantCreate(
        name=name,
        allowed_modules=[AppModule.LEADS, AppModule.INVOICES],
        plan=plan,
    ))
    print(f"✅ Created tenant {name} on the {plan.value} plan")
    return tenant.id


def seed_dev_data():
    """Seed development database with a super admin, demo tenant and users."""
    print("🌱 Seeding development data...")
    create_db_and_tables()
    tenants = TenantService(document_store)

    # -----------------------------
    # 👑 Platform super admin
    # -----------------------------
    ensure_user("owner@ledgerly.dev", "owner123", "Platform Owner", UserRole.SUPER_ADMIN)

    # -----------------------------
    # 🏢 Demo tenant & users
    # -----------------------------
    tenant_id = find_or_create_tenant(tenants, "Demo Agency", SubscriptionPlan.TRIAL)
    ensure_user("admin@demo.com", "admin123", "Admin User", UserRole.ADMIN, tenant_id)
    ensure_user("employee@demo.com", "employee123", "Employee User", UserRole.EMPLOYEE, tenant_id)
    ensure_user("client@demo.com", "client123", "Client User", UserRole.CLIENT, tenant_id)

    print("🌱 Development data seeding complete.")


def seed_staging_data():
    """Seed staging database with minimal safe data."""
    print("🌱 Seeding staging data...")
    create_db_and_tables()
    tenants = TenantService(document_store)

    tenant_id = find_or_create_tenant(tenants, "Staging Org", SubscriptionPlan.MONTHLY)
    ensure_user("staging-admin@ledgerly.dev", "staging123", "Staging Admin", UserRole.ADMIN, tenant_id)

    print("🌱 Staging data seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Ledgerly database.")
    parser.add_argument(
        "--env",
        choices=["dev", "staging"],
        default="dev",
        help="Select environment to seed (dev or staging)",
    )
    args = parser.parse_args()

    if args.env == "dev":
        seed_dev_data()
    elif args.env == "staging":
        seed_staging_data()
