# Overview: Utility functions for permission and role lookups and validation.

from .definitions import PERMISSION_DEFINITIONS
from .roles import ROLE_DEFINITIONS


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """Get all permissions in a category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()


def get_role_definition(role):
    """Role entry for `role`, or None when the role is unknown."""
    if not isinstance(role, str):
        return None
    return ROLE_DEFINITIONS.get(role)


def validate_role(role):
    return get_role_definition(role) is not None


def get_role_name(role):
    definition = get_role_definition(role)
    return definition.name if definition else None


def get_role_description(role):
    definition = get_role_definition(role)
    return definition.description if definition else None


def get_all_roles():
    """Roles as value/label/description triples for selection lists."""
    return [
        {
            "value": definition.role,
            "label": definition.name,
            "description": definition.description,
        }
        for definition in ROLE_DEFINITIONS.values()
    ]
