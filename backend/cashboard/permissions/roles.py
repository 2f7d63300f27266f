# Overview: Static role table mapping each role to its permissions and capability flags.

from __future__ import annotations

from dataclasses import dataclass


DIRECTOR = "director"
ADMIN_CONTABLE = "admin_contable"
GERENTE_TIENDA = "gerente_tienda"
CAJERO = "cajero"
ASISTENTE_ADMIN = "asistente_admin"


@dataclass(frozen=True)
class RoleDefinition:
    role: str
    name: str
    description: str
    permissions: frozenset[str]
    can_access_all_stores: bool
    can_manage_users: bool
    can_manage_system: bool

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "name": self.name,
            "description": self.description,
            "permissions": sorted(self.permissions),
            "can_access_all_stores": self.can_access_all_stores,
            "can_manage_users": self.can_manage_users,
            "can_manage_system": self.can_manage_system,
        }


# Loaded once at import; never mutated at runtime.
ROLE_DEFINITIONS: dict[str, RoleDefinition] = {
    DIRECTOR: RoleDefinition(
        role=DIRECTOR,
        name="Director",
        description="Acceso total al sistema. Puede gestionar todo.",
        permissions=frozenset({
            "dashboard:view",
            "daily_operations:view",
            "daily_operations:create",
            "daily_operations:edit",
            "daily_operations:delete",
            "closures:view",
            "closures:create",
            "closures:edit",
            "closures:delete",
            "stores:view",
            "stores:create",
            "stores:edit",
            "stores:delete",
            "users:view",
            "users:create",
            "users:edit",
            "users:delete",
            "reports:view",
            "reports:export",
            "settings:view",
            "settings:edit",
            "all_stores:access",
        }),
        can_access_all_stores=True,
        can_manage_users=True,
        can_manage_system=True,
    ),
    ADMIN_CONTABLE: RoleDefinition(
        role=ADMIN_CONTABLE,
        name="Administrador y Contable",
        description="Gestión administrativa y contable. Acceso a todas las tiendas.",
        permissions=frozenset({
            "dashboard:view",
            "daily_operations:view",
            "daily_operations:create",
            "daily_operations:edit",
            "daily_operations:delete",
            "closures:view",
            "closures:create",
            "closures:edit",
            "closures:delete",
            "stores:view",
            "stores:create",
            "stores:edit",
            "stores:delete",
            "users:view",
            "users:create",
            "users:edit",
            "users:delete",
            "reports:view",
            "reports:export",
            "settings:view",
            "all_stores:access",
        }),
        can_access_all_stores=True,
        can_manage_users=True,
        can_manage_system=False,
    ),
    GERENTE_TIENDA: RoleDefinition(
        role=GERENTE_TIENDA,
        name="Gerente de Tienda",
        description="Gestión completa de su tienda asignada.",
        permissions=frozenset({
            "dashboard:view",
            "daily_operations:view",
            "daily_operations:create",
            "daily_operations:edit",
            "daily_operations:delete",
            "closures:view",
            "closures:create",
            "closures:edit",
            "closures:delete",
            "stores:view",
            "reports:view",
            "assigned_store:access",
        }),
        can_access_all_stores=False,
        can_manage_users=False,
        can_manage_system=False,
    ),
    CAJERO: RoleDefinition(
        role=CAJERO,
        name="Cajero",
        description="Operaciones básicas de caja en su tienda asignada.",
        permissions=frozenset({
            "dashboard:view",
            "daily_operations:view",
            "daily_operations:create",
            "daily_operations:edit",
            "closures:view",
            "assigned_store:access",
        }),
        can_access_all_stores=False,
        can_manage_users=False,
        can_manage_system=False,
    ),
    ASISTENTE_ADMIN: RoleDefinition(
        role=ASISTENTE_ADMIN,
        name="Asistente Administrativo",
        description="Soporte administrativo. Solo consultas.",
        permissions=frozenset({
            "dashboard:view",
            "daily_operations:view",
            "closures:view",
            "reports:view",
            "all_stores:access",
        }),
        can_access_all_stores=True,
        can_manage_users=False,
        can_manage_system=False,
    ),
}

ALL_ROLES = tuple(ROLE_DEFINITIONS)

# Roles whose store access comes from User.assigned_store_id
STORE_SCOPED_ROLES = frozenset(
    role for role, definition in ROLE_DEFINITIONS.items()
    if not definition.can_access_all_stores
)
