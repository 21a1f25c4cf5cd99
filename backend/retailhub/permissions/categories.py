# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    STORES = "STORES"
    INVENTORY = "INVENTORY"
    SUPPLIERS = "SUPPLIERS"
    RETURNS = "RETURNS"
    REPORTS = "REPORTS"
    FINANCE = "FINANCE"
    GAMIFICATION = "GAMIFICATION"
    USERS = "USERS"
    SYSTEM = "SYSTEM"
