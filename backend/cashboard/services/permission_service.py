# Overview: Service-layer operations for permission; audit logging and grant management.

"""
Permission Enforcement and Security Event Logging

WHY: The role table in cashboard.permissions answers yes/no; this module
turns a "no" into an exception and an audit row, and manages the per-user
extra permission overlay.

DESIGN PRINCIPLES:
- Fail closed: Deny by default, require explicit permission grant
- Log denials only: Permission grants are not logged
- Checks themselves stay pure (cashboard.permissions.checks)
"""

from __future__ import annotations

from ..extensions import db
from ..models import User, UserPermissionGrant, SecurityEvent
from ..permissions import (
    PROTECTED_PERMISSIONS,
    has_permission,
    can_access_store,
    get_role_definition,
    validate_permission_code,
)
from cashboard.time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


class StoreAccessDeniedError(PermissionDeniedError):
    """Raised when a store-scoped user reaches for another store."""
    pass


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    store_id: int | None = None
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - STORE_ACCESS_DENIED
    - LOGIN_FAILED
    - LOGOUT
    - PERMISSION_GRANTED_TO_USER
    - PERMISSION_REVOKED_FROM_USER
    """
    event = SecurityEvent(
        user_id=user_id,
        store_id=store_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def require_permission(
    user,
    permission_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    store_id: int | None = None
) -> None:
    """
    Require user to have permission, raise PermissionDeniedError if not.

    Usage:
        require_permission(g.current_user, "closures:create", resource=request.path)
    """
    if has_permission(user, permission_code):
        return

    log_security_event(
        user_id=getattr(user, "id", None),
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=permission_code,
        reason=f"Missing permission: {permission_code}",
        ip_address=ip_address,
        user_agent=user_agent,
        store_id=store_id
    )
    raise PermissionDeniedError(f"Permission denied: {permission_code}")


def require_store_access(
    user,
    store_id: int,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None
) -> None:
    if can_access_store(user, store_id):
        return

    log_security_event(
        user_id=getattr(user, "id", None),
        event_type="STORE_ACCESS_DENIED",
        success=False,
        resource=resource,
        reason=f"No access to store {store_id}",
        ip_address=ip_address,
        user_agent=user_agent,
        store_id=store_id
    )
    raise StoreAccessDeniedError("Store access denied")


def accessible_store_ids(user) -> set[int] | None:
    """
    Store ids the user may see; None means every store.

    Returns an empty set for users with no session, an unknown role, or a
    store-scoped role without an assigned store.
    """
    definition = get_role_definition(getattr(user, "role", None)) if user is not None else None
    if definition is None:
        return set()
    if definition.can_access_all_stores:
        return None
    if user.assigned_store_id is None:
        return set()
    return {user.assigned_store_id}


def grant_extra_permission(
    *,
    user_id: int,
    permission_code: str,
    granted_by_user_id: int | None,
    reason: str | None = None,
) -> UserPermissionGrant:
    """
    Add a permission to one user on top of the role's permissions.

    Idempotent: granting twice returns the existing grant.
    """
    if permission_code in PROTECTED_PERMISSIONS:
        raise ValueError(f"Permission '{permission_code}' can only come from a role")

    if not validate_permission_code(permission_code):
        raise ValueError(f"Permission '{permission_code}' not found")

    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    existing = db.session.query(UserPermissionGrant).filter_by(
        user_id=user_id,
        permission_code=permission_code,
    ).first()
    if existing:
        return existing

    grant = UserPermissionGrant(
        user_id=user_id,
        permission_code=permission_code,
        granted_by_user_id=granted_by_user_id,
        granted_at=utcnow(),
        reason=reason,
    )
    db.session.add(grant)
    db.session.commit()

    log_security_event(
        user_id=granted_by_user_id,
        event_type="PERMISSION_GRANTED_TO_USER",
        success=True,
        resource=f"user:{user_id}",
        action=permission_code,
        reason=reason,
    )
    return grant


def revoke_extra_permission(
    *,
    user_id: int,
    permission_code: str,
    revoked_by_user_id: int | None,
) -> bool:
    """Remove an extra permission; False when the user did not have it."""
    grant = db.session.query(UserPermissionGrant).filter_by(
        user_id=user_id,
        permission_code=permission_code,
    ).first()

    if not grant:
        return False

    db.session.delete(grant)
    db.session.commit()

    log_security_event(
        user_id=revoked_by_user_id,
        event_type="PERMISSION_REVOKED_FROM_USER",
        success=True,
        resource=f"user:{user_id}",
        action=permission_code,
    )
    return True
