# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- STORES --

STORE_PERMISSIONS = [
    (
        "VIEW_STORES",
        "View Stores",
        "View stores within the caller's scope",
        PermissionCategory.STORES,
    ),
    (
        "CREATE_STORE",
        "Create Store",
        "Create new stores",
        PermissionCategory.STORES,
    ),
    (
        "EDIT_STORE",
        "Edit Store",
        "Edit store details and toggle active status",
        PermissionCategory.STORES,
    ),
    (
        "DELETE_STORE",
        "Delete Store",
        "Delete stores",
        PermissionCategory.STORES,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View inventory sessions and counted items",
        PermissionCategory.INVENTORY,
    ),
    (
        "CREATE_INVENTORY",
        "Start Inventory",
        "Start an inventory session for a store",
        PermissionCategory.INVENTORY,
    ),
    (
        "COUNT_INVENTORY",
        "Count Inventory",
        "Record counted quantities on an active session",
        PermissionCategory.INVENTORY,
    ),
    (
        "ADJUST_STOCK",
        "Adjust Stock",
        "Write counted quantities back into the stock record",
        PermissionCategory.INVENTORY,
    ),
    (
        "COMPLETE_INVENTORY",
        "Complete Inventory",
        "Complete or cancel an active inventory session",
        PermissionCategory.INVENTORY,
    ),
    (
        "VIEW_INVENTORY_METRICS",
        "View Inventory Metrics",
        "View accuracy and progress metrics across sessions",
        PermissionCategory.INVENTORY,
    ),
    (
        "EXPORT_INVENTORY",
        "Export Inventory",
        "Export a session as CSV or JSON",
        PermissionCategory.INVENTORY,
    ),
]


# -- SUPPLIERS --

SUPPLIER_PERMISSIONS = [
    (
        "VIEW_SUPPLIERS",
        "View Suppliers",
        "View the supplier directory",
        PermissionCategory.SUPPLIERS,
    ),
    (
        "MANAGE_SUPPLIERS",
        "Manage Suppliers",
        "Create and edit suppliers",
        PermissionCategory.SUPPLIERS,
    ),
    (
        "DELETE_SUPPLIER",
        "Delete Supplier",
        "Delete suppliers without linked products",
        PermissionCategory.SUPPLIERS,
    ),
    (
        "VIEW_SUPPLIER_METRICS",
        "View Supplier Metrics",
        "View product counts and supplier activity",
        PermissionCategory.SUPPLIERS,
    ),
    (
        "EXPORT_SUPPLIERS",
        "Export Suppliers",
        "Export the supplier directory as CSV or JSON",
        PermissionCategory.SUPPLIERS,
    ),
]


# -- RETURNS --

RETURN_PERMISSIONS = [
    (
        "VIEW_RETURNS",
        "View Returns",
        "View returns within the caller's scope",
        PermissionCategory.RETURNS,
    ),
    (
        "CREATE_RETURN",
        "Create Return",
        "Create returns up to the role's amount ceiling",
        PermissionCategory.RETURNS,
    ),
    (
        "APPROVE_RETURN",
        "Approve Returns",
        "Approve or reject pending returns",
        PermissionCategory.RETURNS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "View sales reports within the caller's scope",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_TEAM_REPORTS",
        "View Team Reports",
        "View per-seller and per-store breakdowns",
        PermissionCategory.REPORTS,
    ),
    (
        "EXPORT_REPORTS",
        "Export Reports",
        "Export report and finance data",
        PermissionCategory.REPORTS,
    ),
]


# -- FINANCE --

FINANCE_PERMISSIONS = [
    (
        "VIEW_FINANCE",
        "View Finance",
        "View revenue, expenses and profit within the caller's scope",
        PermissionCategory.FINANCE,
    ),
    (
        "MANAGE_EXPENSES",
        "Manage Expenses",
        "Record expenses for assigned stores",
        PermissionCategory.FINANCE,
    ),
    (
        "DELETE_EXPENSE",
        "Delete Expense",
        "Delete recorded expenses",
        PermissionCategory.FINANCE,
    ),
]


# -- GAMIFICATION --

GAMIFICATION_PERMISSIONS = [
    (
        "VIEW_GAMIFICATION",
        "View Gamification",
        "View points, level and badges",
        PermissionCategory.GAMIFICATION,
    ),
    (
        "AWARD_POINTS",
        "Award Points",
        "Award or deduct points for other users",
        PermissionCategory.GAMIFICATION,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "View user list and details",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create users, change roles and store assignments",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_PERMISSIONS",
        "Manage Permissions",
        "Grant or deny individual permissions",
        PermissionCategory.USERS,
    ),
]


# -- SYSTEM --

SYSTEM_PERMISSIONS = [
    (
        "VIEW_AUDIT_LOG",
        "View Audit Log",
        "Access the audit trail",
        PermissionCategory.SYSTEM,
    ),
    (
        "SYSTEM_ADMIN",
        "System Administration",
        "Full system access",
        PermissionCategory.SYSTEM,
    ),
]


PERMISSION_DEFINITIONS = (
    STORE_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + SUPPLIER_PERMISSIONS
    + RETURN_PERMISSIONS
    + REPORT_PERMISSIONS
    + FINANCE_PERMISSIONS
    + GAMIFICATION_PERMISSIONS
    + USER_PERMISSIONS
    + SYSTEM_PERMISSIONS
)
