# Overview: Permission system package.
# Re-exports all public APIs for backwards-compatible imports.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    DASHBOARD_PERMISSIONS,
    DAILY_OPERATION_PERMISSIONS,
    CLOSURE_PERMISSIONS,
    STORE_PERMISSIONS,
    USER_PERMISSIONS,
    REPORT_PERMISSIONS,
    SETTINGS_PERMISSIONS,
    STORE_ACCESS_PERMISSIONS,
)
from .roles import (
    ROLE_DEFINITIONS,
    ALL_ROLES,
    STORE_SCOPED_ROLES,
    RoleDefinition,
    DIRECTOR,
    ADMIN_CONTABLE,
    GERENTE_TIENDA,
    CAJERO,
    ASISTENTE_ADMIN,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    get_role_definition,
    validate_role,
    get_role_name,
    get_role_description,
    get_all_roles,
)
from .checks import (
    PROTECTED_PERMISSIONS,
    get_extra_permissions,
    get_effective_permissions,
    has_permission,
    can_access_store,
    can_manage_users,
    can_manage_system,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "DASHBOARD_PERMISSIONS",
    "DAILY_OPERATION_PERMISSIONS",
    "CLOSURE_PERMISSIONS",
    "STORE_PERMISSIONS",
    "USER_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "SETTINGS_PERMISSIONS",
    "STORE_ACCESS_PERMISSIONS",
    "ROLE_DEFINITIONS",
    "ALL_ROLES",
    "STORE_SCOPED_ROLES",
    "RoleDefinition",
    "DIRECTOR",
    "ADMIN_CONTABLE",
    "GERENTE_TIENDA",
    "CAJERO",
    "ASISTENTE_ADMIN",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "get_role_definition",
    "validate_role",
    "get_role_name",
    "get_role_description",
    "get_all_roles",
    "PROTECTED_PERMISSIONS",
    "get_extra_permissions",
    "get_effective_permissions",
    "has_permission",
    "can_access_store",
    "can_manage_users",
    "can_manage_system",
]
