# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- Login throttling driven by the security settings section
- Account lockout after repeated failed attempts
- Session management with token-based auth
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..permissions import get_effective_permissions, get_role_definition
from ..services import auth_service
from ..services import session_service
from ..services import login_throttle_service
from ..services import permission_service
from ..services import settings_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_payload(user) -> dict:
    definition = get_role_definition(user.role)
    return {
        "user": user.to_dict(),
        "role": definition.to_dict() if definition else None,
        "permissions": sorted(get_effective_permissions(user)),
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info, effective permissions and a session token.
    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = auth_service.normalize_email(data.get("email"))
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr
        security = settings_service.get_section("security")

        is_locked, seconds_remaining = login_throttle_service.is_account_locked(email, security)
        if is_locked:
            return jsonify({
                "error": "Account temporarily locked due to too many failed login attempts",
                "locked": True,
                "retry_after_seconds": seconds_remaining,
            }), 429

        user = auth_service.authenticate(email, password)

        if not user:
            failed_count = login_throttle_service.record_failed_attempt(
                identifier=email,
                ip_address=ip_address,
                user_agent=user_agent,
                security=security,
            )
            remaining = security["max_login_attempts"] - failed_count

            if remaining <= 0:
                return jsonify({
                    "error": "Account locked due to too many failed login attempts",
                    "locked": True,
                    "retry_after_minutes": security["lockout_duration"],
                }), 429
            if remaining <= 2:
                return jsonify({
                    "error": "Invalid credentials",
                    "warning": f"{remaining} attempts remaining before account lockout"
                }), 401
            return jsonify({"error": "Invalid credentials"}), 401

        login_throttle_service.record_successful_login(
            user_id=user.id,
            identifier=email,
            ip_address=ip_address,
            user_agent=user_agent
        )

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )

        payload = _user_payload(user)
        payload.update(token=token, expires_at=session.expires_at.isoformat(), message="Login successful")
        return jsonify(payload), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token used for this request."""
    try:
        session_service.revoke_session(g.token, reason="User logout")
        permission_service.log_security_event(
            user_id=g.current_user.id,
            event_type="LOGOUT",
            success=True,
            resource=request.path,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, role definition and effective permissions."""
    return jsonify(_user_payload(g.current_user)), 200
