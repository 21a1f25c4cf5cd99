# Overview: Permission system package.
# Re-exports all public APIs so callers import from one place.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    STORE_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    SUPPLIER_PERMISSIONS,
    RETURN_PERMISSIONS,
    REPORT_PERMISSIONS,
    FINANCE_PERMISSIONS,
    GAMIFICATION_PERMISSIONS,
    USER_PERMISSIONS,
    SYSTEM_PERMISSIONS,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    validate_permission_code,
)
from .roles import Role, DEFAULT_ROLE_PERMISSIONS, PROTECTED_PERMISSIONS

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "STORE_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "SUPPLIER_PERMISSIONS",
    "RETURN_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "FINANCE_PERMISSIONS",
    "GAMIFICATION_PERMISSIONS",
    "USER_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "Role",
    "DEFAULT_ROLE_PERMISSIONS",
    "PROTECTED_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "validate_permission_code",
]
