# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError, StoreAccessDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object
    - g.token: The plaintext token (used by logout)

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, idle or expired token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        # g can outlive a request when an app context is already pushed
        g.pop("current_user", None)

        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission (role grant or extra permission).

    Denials are logged to security_events by permission_service.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    g.current_user,
                    permission_code,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def deny_store_access(store_id):
    """
    Return a 403 response when the current user cannot reach `store_id`,
    None when access is allowed.

    Store ids arrive in paths, query strings and bodies, so routes call this
    once they know which store a request targets.
    """
    try:
        permission_service.require_store_access(
            g.current_user,
            store_id,
            resource=request.path,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
    except StoreAccessDeniedError as e:
        return jsonify({"error": "Store access denied", "message": str(e)}), 403
    return None
