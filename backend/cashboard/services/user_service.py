# Overview: Service-layer operations for user accounts.

"""
User Management Service

WHY: Directors and accounting admins create the accounts that record
incomes and close days. A user's role decides what they may do; store-scoped
roles (gerente_tienda, cajero) must be tied to one store.

SECURITY NOTES:
- Passwords go through auth_service (policy from security settings, bcrypt)
- Users cannot deactivate, delete or change the role of their own account
- Role, store or active-flag changes revoke the user's open sessions
"""

from __future__ import annotations

import re

from ..extensions import db
from ..models import (
    User,
    Store,
    UserPermissionGrant,
    CashRegisterUser,
    DailyIncome,
    DailyExpense,
    DailyClosure,
)
from ..permissions import STORE_SCOPED_ROLES, validate_role, get_role_name
from ..validation import clean_text
from .auth_service import hash_password, normalize_email
from .concurrency import run_with_retry
from .session_service import revoke_all_user_sessions


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserError(Exception):
    """Raised when user operations fail."""
    pass


class UserNotFoundError(UserError):
    pass


def _get_user_or_raise(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise UserNotFoundError("User not found")
    return user


def _clean_email(email) -> str:
    value = normalize_email(email)
    if not EMAIL_RE.match(value):
        raise UserError("A valid email is required")
    return value


def _check_email_free(email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise UserError("Email already exists")


def _check_role_and_store(role, assigned_store_id) -> int | None:
    if not validate_role(role):
        raise UserError(f"Unknown role: {role}")

    if assigned_store_id is None:
        if role in STORE_SCOPED_ROLES:
            raise UserError("Store-scoped roles require an assigned store")
        return None

    if not db.session.get(Store, assigned_store_id):
        raise UserError("Assigned store not found")
    return assigned_store_id


def create_user(
    *,
    email: str,
    password: str,
    full_name: str,
    role: str,
    confirm_password: str | None = None,
    assigned_store_id: int | None = None,
    phone: str | None = None,
    is_active: bool = True,
    security: dict | None = None,
) -> User:
    """
    Create a user account.

    Raises UserError for duplicate emails, unknown roles, missing or unknown
    stores and mismatched password confirmation; PasswordValidationError
    when the password breaks the configured policy.
    """
    def _op():
        user_email = _clean_email(email)
        _check_email_free(user_email)
        store_id = _check_role_and_store(role, assigned_store_id)

        if confirm_password is not None and password != confirm_password:
            raise UserError("Passwords do not match")

        user = User(
            email=user_email,
            full_name=clean_text(full_name, "full_name", required=True),
            phone=clean_text(phone, "phone", max_length=32) or None,
            role=role,
            assigned_store_id=store_id,
            password_hash=hash_password(password, security),
            is_active=bool(is_active),
        )

        db.session.add(user)
        db.session.commit()
        return user

    return run_with_retry(_op)


def update_user(actor, user_id: int, **fields) -> User:
    """
    Update the given fields of a user; keys left out are unchanged.

    Accepted keys: email, full_name, phone, role, assigned_store_id,
    is_active, password (with optional confirm_password).
    """
    def _op():
        user = _get_user_or_raise(user_id)
        is_self = actor is not None and actor.id == user.id
        revoke = False

        if fields.get("email") is not None:
            user_email = _clean_email(fields["email"])
            _check_email_free(user_email, exclude_id=user.id)
            user.email = user_email

        if fields.get("full_name") is not None:
            user.full_name = clean_text(fields["full_name"], "full_name", required=True)

        if "phone" in fields:
            user.phone = clean_text(fields["phone"], "phone", max_length=32) or None

        role = fields.get("role") or user.role
        store_id = fields["assigned_store_id"] if "assigned_store_id" in fields else user.assigned_store_id
        if role != user.role or store_id != user.assigned_store_id:
            if is_self and role != user.role:
                raise UserError("You cannot change your own role")
            user.assigned_store_id = _check_role_and_store(role, store_id)
            user.role = role
            revoke = True

        if fields.get("is_active") is not None and bool(fields["is_active"]) != user.is_active:
            if is_self:
                raise UserError("You cannot deactivate your own user")
            user.is_active = bool(fields["is_active"])
            revoke = revoke or not user.is_active

        if fields.get("password"):
            confirm = fields.get("confirm_password")
            if confirm is not None and confirm != fields["password"]:
                raise UserError("Passwords do not match")
            user.password_hash = hash_password(fields["password"])

        db.session.commit()

        if revoke:
            revoke_all_user_sessions(user.id, reason="Account changed")
        return user

    return run_with_retry(_op)


def toggle_user(actor, user_id: int) -> User:
    user = _get_user_or_raise(user_id)
    if actor is not None and actor.id == user.id:
        raise UserError("You cannot deactivate your own user")

    user.is_active = not user.is_active
    db.session.commit()

    if not user.is_active:
        revoke_all_user_sessions(user.id, reason="User deactivated")
    return user


def delete_user(actor, user_id: int) -> None:
    """
    Delete a user that never recorded anything.

    Users who created incomes, expenses or closures must be deactivated
    instead so the records stay attributable.
    """
    user = _get_user_or_raise(user_id)
    if actor is not None and actor.id == user.id:
        raise UserError("You cannot delete your own user")

    has_records = (
        db.session.query(DailyIncome.id).filter_by(created_by=user.id).first()
        or db.session.query(DailyExpense.id).filter_by(created_by=user.id).first()
        or db.session.query(DailyClosure.id).filter_by(created_by=user.id).first()
    )
    if has_records:
        raise UserError("User has recorded operations; deactivate it instead")

    db.session.query(CashRegisterUser).filter_by(user_id=user.id).delete()
    db.session.query(UserPermissionGrant).filter_by(granted_by_user_id=user.id).update(
        {"granted_by_user_id": None}
    )
    db.session.delete(user)
    db.session.commit()


def get_user(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter_by(email=normalize_email(email)).first()


def list_users(search: str | None = None) -> list[User]:
    """
    Users ordered by full name.

    The search term matches full name, email, phone and the role's display
    name (case-insensitive).
    """
    users = db.session.query(User).order_by(User.full_name.asc(), User.id.asc()).all()

    term = (search or "").strip().lower()
    if not term:
        return users

    return [
        user for user in users
        if term in (user.full_name or "").lower()
        or term in user.email.lower()
        or term in (get_role_name(user.role) or "").lower()
        or term in (user.phone or "").lower()
    ]
