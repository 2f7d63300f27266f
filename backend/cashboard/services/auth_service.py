# Overview: Service-layer operations for auth; password hashing, policy and login.

"""
Authentication Service

WHY: Every income, expense and closure must be attributable. Uses bcrypt
for password hashing and enforces the password policy configured in the
security settings section.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, overridable via
  app config for tests)
- Minimum length, digits and special characters come from settings
- Inactive users never authenticate
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import User
from . import settings_service
from cashboard.time_utils import utcnow


BCRYPT_ROUNDS = 12

SPECIAL_CHARS_RE = re.compile(r"[!@#$%^&*(),.?'\":{}|<>_\-+=/\\\[\];~`]")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str, security: dict | None = None) -> None:
    """
    Validate password against the security settings section.

    Raises PasswordValidationError if requirements not met.
    """
    if security is None:
        security = settings_service.get_section("security")

    if not isinstance(password, str):
        raise PasswordValidationError("Password is required")

    min_length = security["min_password_length"]
    if len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long")

    if security["require_numbers"] and not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")

    if security["require_special_chars"] and not SPECIAL_CHARS_RE.search(password):
        raise PasswordValidationError("Password must contain at least one special character")


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", BCRYPT_ROUNDS))
    return BCRYPT_ROUNDS


def hash_password(password: str, security: dict | None = None) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password, security)
    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash is a failed
    verification, not an error.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
