# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)
# Codes are flat "<domain>:<action>" strings matched exactly.

from .categories import PermissionCategory


# -- DASHBOARD --

DASHBOARD_PERMISSIONS = [
    (
        "dashboard:view",
        "View Dashboard",
        "View the sales and expenses dashboard",
        PermissionCategory.DASHBOARD,
    ),
]


# -- DAILY OPERATIONS --

DAILY_OPERATION_PERMISSIONS = [
    (
        "daily_operations:view",
        "View Daily Operations",
        "View the incomes and expenses recorded for a day",
        PermissionCategory.DAILY_OPERATIONS,
    ),
    (
        "daily_operations:create",
        "Record Operations",
        "Record incomes and expenses",
        PermissionCategory.DAILY_OPERATIONS,
    ),
    (
        "daily_operations:edit",
        "Edit Operations",
        "Edit recorded incomes and expenses",
        PermissionCategory.DAILY_OPERATIONS,
    ),
    (
        "daily_operations:delete",
        "Delete Operations",
        "Delete recorded incomes and expenses",
        PermissionCategory.DAILY_OPERATIONS,
    ),
]


# -- CLOSURES --

CLOSURE_PERMISSIONS = [
    (
        "closures:view",
        "View Closures",
        "View daily closures and their differences",
        PermissionCategory.CLOSURES,
    ),
    (
        "closures:create",
        "Create Closures",
        "Close a store day or shift",
        PermissionCategory.CLOSURES,
    ),
    (
        "closures:edit",
        "Edit Closures",
        "Edit closure notes",
        PermissionCategory.CLOSURES,
    ),
    (
        "closures:delete",
        "Delete Closures",
        "Delete closures",
        PermissionCategory.CLOSURES,
    ),
]


# -- STORES --

STORE_PERMISSIONS = [
    (
        "stores:view",
        "View Stores",
        "View store details and cash registers",
        PermissionCategory.STORES,
    ),
    (
        "stores:create",
        "Create Stores",
        "Create stores and cash registers",
        PermissionCategory.STORES,
    ),
    (
        "stores:edit",
        "Edit Stores",
        "Edit stores, activate/deactivate stores and registers",
        PermissionCategory.STORES,
    ),
    (
        "stores:delete",
        "Delete Stores",
        "Delete stores",
        PermissionCategory.STORES,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "users:view",
        "View Users",
        "View user accounts and roles",
        PermissionCategory.USERS,
    ),
    (
        "users:create",
        "Create Users",
        "Create new user accounts",
        PermissionCategory.USERS,
    ),
    (
        "users:edit",
        "Edit Users",
        "Edit user accounts, roles and extra permissions",
        PermissionCategory.USERS,
    ),
    (
        "users:delete",
        "Delete Users",
        "Delete user accounts",
        PermissionCategory.USERS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "reports:view",
        "View Reports",
        "View reports and analytics",
        PermissionCategory.REPORTS,
    ),
    (
        "reports:export",
        "Export Reports",
        "Export reports",
        PermissionCategory.REPORTS,
    ),
]


# -- SETTINGS --

SETTINGS_PERMISSIONS = [
    (
        "settings:view",
        "View Settings",
        "View company, financial, report, system and security settings",
        PermissionCategory.SETTINGS,
    ),
    (
        "settings:edit",
        "Edit Settings",
        "Change system settings (director only)",
        PermissionCategory.SETTINGS,
    ),
]


# -- STORE ACCESS --

STORE_ACCESS_PERMISSIONS = [
    (
        "all_stores:access",
        "All Stores",
        "Operate on every store",
        PermissionCategory.STORE_ACCESS,
    ),
    (
        "assigned_store:access",
        "Assigned Store",
        "Operate on the assigned store only",
        PermissionCategory.STORE_ACCESS,
    ),
]


# Combined list of all permissions (preserves original ordering)
PERMISSION_DEFINITIONS = (
    DASHBOARD_PERMISSIONS
    + DAILY_OPERATION_PERMISSIONS
    + CLOSURE_PERMISSIONS
    + STORE_PERMISSIONS
    + USER_PERMISSIONS
    + REPORT_PERMISSIONS
    + SETTINGS_PERMISSIONS
    + STORE_ACCESS_PERMISSIONS
)
