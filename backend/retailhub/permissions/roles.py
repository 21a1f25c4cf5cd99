# Overview: Roles and the default permission set each one carries.

from enum import Enum

from .helpers import get_all_permission_codes


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    SELLER = "seller"

    @classmethod
    def parse(cls, value) -> "Role | None":
        """Return the matching Role, or None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


# Admin-level permissions cannot be altered by per-user overrides.
PROTECTED_PERMISSIONS = frozenset({
    "SYSTEM_ADMIN",
    "MANAGE_PERMISSIONS",
})


DEFAULT_ROLE_PERMISSIONS = {
    # Admin gets ALL permissions
    Role.ADMIN: frozenset(get_all_permission_codes()),

    Role.MANAGER: frozenset({
        "VIEW_STORES",
        "EDIT_STORE",
        "VIEW_INVENTORY",
        "CREATE_INVENTORY",
        "COUNT_INVENTORY",
        "ADJUST_STOCK",
        "COMPLETE_INVENTORY",
        "VIEW_INVENTORY_METRICS",
        "EXPORT_INVENTORY",
        "VIEW_SUPPLIERS",
        "MANAGE_SUPPLIERS",
        "VIEW_SUPPLIER_METRICS",
        "EXPORT_SUPPLIERS",
        "VIEW_RETURNS",
        "CREATE_RETURN",
        "APPROVE_RETURN",
        "VIEW_REPORTS",
        "VIEW_TEAM_REPORTS",
        "EXPORT_REPORTS",
        "VIEW_FINANCE",
        "MANAGE_EXPENSES",
        "VIEW_GAMIFICATION",
        "AWARD_POINTS",
        "VIEW_USERS",
    }),

    # Read-mostly: sellers count nothing and approve nothing
    Role.SELLER: frozenset({
        "VIEW_STORES",
        "VIEW_INVENTORY",
        "EXPORT_INVENTORY",
        "VIEW_SUPPLIERS",
        "VIEW_RETURNS",
        "CREATE_RETURN",
        "VIEW_REPORTS",
        "VIEW_FINANCE",
        "VIEW_GAMIFICATION",
    }),
}
