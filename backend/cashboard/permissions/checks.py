"""
Authorization predicates over the static role table.

Pure functions: no database, no logging. Every check fails closed, so a
missing user (no session) or a role that is not in ROLE_DEFINITIONS is
denied rather than raising.

Effective permissions are the role's permission list plus the user's extra
permissions as an additive overlay. The overlay never removes a role grant,
only accepts known permission codes, and can never carry a protected
permission; those come from the role alone.
"""

from __future__ import annotations

from .helpers import get_role_definition, validate_permission_code


PROTECTED_PERMISSIONS = frozenset({
    "settings:edit",
    "all_stores:access",
})


def _role_of(user):
    if user is None:
        return None
    return get_role_definition(getattr(user, "role", None))


def get_extra_permissions(user) -> set[str]:
    """Overlay codes of `user` that may actually be granted."""
    extra = getattr(user, "extra_permissions", None) or ()
    return {
        code for code in extra
        if code not in PROTECTED_PERMISSIONS and validate_permission_code(code)
    }


def get_effective_permissions(user) -> set[str]:
    definition = _role_of(user)
    if definition is None:
        return set()
    return set(definition.permissions) | get_extra_permissions(user)


def has_permission(user, permission: str) -> bool:
    """Exact string match against role permissions plus the user overlay."""
    definition = _role_of(user)
    if definition is None:
        return False
    if permission in definition.permissions:
        return True
    return permission in get_extra_permissions(user)


def can_access_store(user, store_id) -> bool:
    definition = _role_of(user)
    if definition is None:
        return False
    if definition.can_access_all_stores:
        return True
    assigned = getattr(user, "assigned_store_id", None)
    # No assigned store means no store at all
    if assigned is None or store_id is None:
        return False
    return assigned == store_id


def can_manage_users(user) -> bool:
    definition = _role_of(user)
    return bool(definition and definition.can_manage_users)


def can_manage_system(user) -> bool:
    definition = _role_of(user)
    return bool(definition and definition.can_manage_system)
