# Overview: Flask API routes for user management; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, current_app, g

from ..decorators import require_auth, require_permission
from ..permissions import get_all_roles, ROLE_DEFINITIONS
from ..services import user_service, permission_service
from ..services.auth_service import PasswordValidationError
from ..services.user_service import UserError, UserNotFoundError
from ..validation import ValidationError, coerce_optional_int


users_bp = Blueprint("users", __name__, url_prefix="/api/users")

_UPDATE_FIELDS = (
    "email", "full_name", "phone", "role", "assigned_store_id",
    "is_active", "password", "confirm_password",
)


def _error(exc: Exception):
    if isinstance(exc, UserNotFoundError):
        return jsonify({"error": str(exc)}), 404
    return jsonify({"error": str(exc)}), 400


@users_bp.get("")
@require_auth
@require_permission("users:view")
def list_users():
    users = user_service.list_users(request.args.get("search"))
    return jsonify([user.to_dict() for user in users]), 200


@users_bp.get("/roles")
@require_auth
@require_permission("users:view")
def list_roles():
    return jsonify({
        "roles": get_all_roles(),
        "definitions": [definition.to_dict() for definition in ROLE_DEFINITIONS.values()],
    }), 200


@users_bp.post("")
@require_auth
@require_permission("users:create")
def create_user():
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.create_user(
            email=data.get("email"),
            password=data.get("password") or "",
            confirm_password=data.get("confirm_password"),
            full_name=data.get("full_name"),
            role=data.get("role"),
            assigned_store_id=coerce_optional_int(data.get("assigned_store_id"), "assigned_store_id"),
            phone=data.get("phone"),
            is_active=data.get("is_active", True),
        )
        return jsonify(user.to_dict()), 201
    except (UserError, PasswordValidationError, ValidationError) as exc:
        return _error(exc)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("users:edit")
def update_user(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        fields = {key: data[key] for key in _UPDATE_FIELDS if key in data}
        if "assigned_store_id" in fields:
            fields["assigned_store_id"] = coerce_optional_int(fields["assigned_store_id"], "assigned_store_id")
        user = user_service.update_user(g.current_user, user_id, **fields)
        return jsonify(user.to_dict()), 200
    except (UserError, PasswordValidationError, ValidationError) as exc:
        return _error(exc)
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/<int:user_id>/toggle")
@require_auth
@require_permission("users:edit")
def toggle_user(user_id: int):
    try:
        user = user_service.toggle_user(g.current_user, user_id)
        return jsonify(user.to_dict()), 200
    except UserError as exc:
        return _error(exc)


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("users:delete")
def delete_user(user_id: int):
    try:
        user_service.delete_user(g.current_user, user_id)
        return jsonify({"message": "User deleted"}), 200
    except UserNotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except UserError as exc:
        return jsonify({"error": str(exc)}), 409


@users_bp.post("/<int:user_id>/permissions/<permission_code>")
@require_auth
@require_permission("users:edit")
def grant_permission(user_id: int, permission_code: str):
    data = request.get_json(silent=True) or {}
    try:
        permission_service.grant_extra_permission(
            user_id=user_id,
            permission_code=permission_code,
            granted_by_user_id=g.current_user.id,
            reason=data.get("reason"),
        )
    except ValueError as exc:
        status = 404 if str(exc) == "User not found" else 400
        return jsonify({"error": str(exc)}), status
    return jsonify(user_service.get_user(user_id).to_dict()), 200


@users_bp.delete("/<int:user_id>/permissions/<permission_code>")
@require_auth
@require_permission("users:edit")
def revoke_permission(user_id: int, permission_code: str):
    revoked = permission_service.revoke_extra_permission(
        user_id=user_id,
        permission_code=permission_code,
        revoked_by_user_id=g.current_user.id,
    )
    if not revoked:
        return jsonify({"error": "Permission not granted to this user"}), 404
    return jsonify(user_service.get_user(user_id).to_dict()), 200
