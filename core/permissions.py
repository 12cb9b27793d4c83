# core/permissions.py
"""
Role -> permission table.

This module is the single place where role based rules live; routes and services
ask ``has_permission`` instead of branching on roles themselves.
"""
from typing import Dict, FrozenSet, Iterable, Union

from core.exceptions import ConfigurationError
from models.models import Permission, UserRole


_ALL = frozenset(Permission)

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = {
    UserRole.SUPER_ADMIN: _ALL,
    UserRole.ADMIN: _ALL - {
        Permission.MANAGE_TENANTS,
        Permission.MANAGE_SUBSCRIPTIONS,
        Permission.VIEW_ALL_ANALYTICS,
    },
    UserRole.EMPLOYEE: frozenset({
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_LEADS,
        Permission.CREATE_LEADS,
        Permission.EDIT_LEADS,
        Permission.VIEW_INVOICES,
        Permission.CREATE_INVOICES,
        Permission.EDIT_INVOICES,
        Permission.VIEW_CUSTOMERS,
    }),
    UserRole.CLIENT: frozenset({
        Permission.VIEW_DASHBOARD,
        Permission.VIEW_LEADS,
        Permission.VIEW_INVOICES,
    }),
}

# Fail at import time if a role was added without a permission table
_missing = set(UserRole) - set(ROLE_PERMISSIONS)
if _missing:
    raise ConfigurationError(f"No permission table for roles: {sorted(r.value for r in _missing)}")


def permissions_for(role: Union[UserRole, str]) -> FrozenSet[Permission]:
    try:
        return ROLE_PERMISSIONS[UserRole(role)]
    except (ValueError, KeyError):
        raise ConfigurationError(f"Unrecognized role: {role!r}")


def default_permissions(role: Union[UserRole, str], override: Iterable[Permission] = None) -> list:
    """Permissions stored on a new profile: the role table unless explicitly overridden."""
    if override is not None:
        return sorted({Permission(p) for p in override}, key=lambda p: p.value)
    return sorted(permissions_for(role), key=lambda p: p.value)


def has_permission(profile, permission: Union[Permission, str]) -> bool:
    """True iff the profile is active and explicitly holds the permission."""
    if profile is None or not profile.is_active:
        return False
    return Permission(permission) in set(profile.permissions)
