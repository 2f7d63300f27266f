"""
Login Throttling Service

WHY: Prevent brute-force password attacks by limiting failed login attempts.
After too many failures, the account is temporarily locked.

Limits come from the security settings section:
- max_login_attempts failures within lockout_duration minutes lock the account
- the lock lasts lockout_duration minutes from the latest failure
Failed attempts are tracked as LOGIN_FAILED rows in security_events.
"""

from datetime import timedelta

from ..extensions import db
from ..models import SecurityEvent, User
from . import settings_service
from cashboard.time_utils import utcnow


def _limits(security: dict | None) -> tuple[int, timedelta]:
    if security is None:
        security = settings_service.get_section("security")
    return security["max_login_attempts"], timedelta(minutes=security["lockout_duration"])


def get_recent_failed_attempts(identifier: str, security: dict | None = None) -> int:
    """Count LOGIN_FAILED events for the identifier inside the lockout window."""
    _, window = _limits(security)
    cutoff = utcnow() - window

    # The identifier is stored in the 'action' field of security events
    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == "LOGIN_FAILED",
        SecurityEvent.action == identifier,
        SecurityEvent.occurred_at >= cutoff
    ).count()


def is_account_locked(identifier: str, security: dict | None = None) -> tuple[bool, int | None]:
    """
    Returns:
    - (True, seconds_remaining) if locked
    - (False, None) if not locked
    """
    max_attempts, duration = _limits(security)
    if get_recent_failed_attempts(identifier, security) < max_attempts:
        return False, None

    most_recent = db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == "LOGIN_FAILED",
        SecurityEvent.action == identifier
    ).order_by(SecurityEvent.occurred_at.desc()).first()

    if most_recent:
        lockout_end = most_recent.occurred_at + duration
        now = utcnow()
        if now < lockout_end:
            return True, int((lockout_end - now).total_seconds())

    return False, None


def record_failed_attempt(
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    reason: str = "Invalid credentials",
    security: dict | None = None
) -> int:
    """
    Record a failed login attempt.

    Returns the total number of recent failed attempts.
    """
    user = db.session.query(User).filter_by(email=identifier).first()

    event = SecurityEvent(
        user_id=user.id if user else None,
        event_type="LOGIN_FAILED",
        resource="/api/auth/login",
        action=identifier,
        success=False,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return get_recent_failed_attempts(identifier, security)


def record_successful_login(
    user_id: int,
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None
) -> None:
    event = SecurityEvent(
        user_id=user_id,
        event_type="LOGIN_SUCCESS",
        resource="/api/auth/login",
        action=identifier,
        success=True,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()
