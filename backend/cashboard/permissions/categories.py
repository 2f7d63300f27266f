# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    DASHBOARD = "DASHBOARD"
    DAILY_OPERATIONS = "DAILY_OPERATIONS"
    CLOSURES = "CLOSURES"
    STORES = "STORES"
    USERS = "USERS"
    REPORTS = "REPORTS"
    SETTINGS = "SETTINGS"
    STORE_ACCESS = "STORE_ACCESS"
