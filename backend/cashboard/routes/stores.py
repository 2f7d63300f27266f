# Overview: Flask API routes for stores and cash registers; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, current_app, g

from ..decorators import require_auth, require_permission, deny_store_access
from ..services import store_service
from ..services.store_service import StoreError, StoreNotFoundError
from ..validation import ValidationError, coerce_optional_int


stores_bp = Blueprint("stores", __name__, url_prefix="/api/stores")

_STORE_FIELDS = (
    "name", "location", "address", "phone", "email", "manager_id",
    "description", "opening_hours", "tax_id", "is_active",
)


def _store_fields(data: dict) -> dict:
    fields = {key: data[key] for key in _STORE_FIELDS if key in data}
    if "manager_id" in fields:
        fields["manager_id"] = coerce_optional_int(fields["manager_id"], "manager_id")
    return fields


def _error(exc: Exception):
    if isinstance(exc, StoreNotFoundError):
        return jsonify({"error": str(exc)}), 404
    return jsonify({"error": str(exc)}), 400


@stores_bp.get("")
@require_auth
@require_permission("stores:view")
def list_stores():
    stores = store_service.list_stores(
        g.current_user,
        search=request.args.get("search"),
        active_only=request.args.get("active") == "true",
    )
    return jsonify([store.to_dict() for store in stores]), 200


@stores_bp.post("")
@require_auth
@require_permission("stores:create")
def create_store():
    data = request.get_json(silent=True) or {}
    try:
        fields = _store_fields(data)
        store = store_service.create_store(
            fields.pop("name", None),
            fields.pop("location", None),
            **fields,
        )
        return jsonify(store.to_dict()), 201
    except (StoreError, ValidationError) as exc:
        return _error(exc)
    except Exception:
        current_app.logger.exception("Failed to create store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.get("/<int:store_id>")
@require_auth
@require_permission("stores:view")
def get_store(store_id: int):
    denied = deny_store_access(store_id)
    if denied:
        return denied
    store = store_service.get_store(store_id)
    if not store:
        return jsonify({"error": "Store not found"}), 404
    return jsonify(store.to_dict()), 200


@stores_bp.put("/<int:store_id>")
@require_auth
@require_permission("stores:edit")
def update_store(store_id: int):
    denied = deny_store_access(store_id)
    if denied:
        return denied
    data = request.get_json(silent=True) or {}
    try:
        store = store_service.update_store(store_id, **_store_fields(data))
        return jsonify(store.to_dict()), 200
    except (StoreError, ValidationError) as exc:
        return _error(exc)
    except Exception:
        current_app.logger.exception("Failed to update store")
        return jsonify({"error": "Internal server error"}), 500


@stores_bp.post("/<int:store_id>/toggle")
@require_auth
@require_permission("stores:edit")
def toggle_store(store_id: int):
    denied = deny_store_access(store_id)
    if denied:
        return denied
    try:
        store = store_service.toggle_store(store_id)
        return jsonify(store.to_dict()), 200
    except StoreError as exc:
        return _error(exc)


@stores_bp.delete("/<int:store_id>")
@require_auth
@require_permission("stores:delete")
def delete_store(store_id: int):
    try:
        store_service.delete_store(store_id)
        return jsonify({"message": "Store deleted"}), 200
    except StoreNotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except StoreError as exc:
        return jsonify({"error": str(exc)}), 409


# =============================================================================
# CASH REGISTERS
# =============================================================================

@stores_bp.get("/<int:store_id>/registers")
@require_auth
@require_permission("stores:view")
def list_registers(store_id: int):
    denied = deny_store_access(store_id)
    if denied:
        return denied
    registers = store_service.list_registers(store_id, active_only=request.args.get("active") == "true")
    return jsonify([register.to_dict() for register in registers]), 200


@stores_bp.post("/<int:store_id>/registers")
@require_auth
@require_permission("stores:create")
def create_register(store_id: int):
    denied = deny_store_access(store_id)
    if denied:
        return denied
    data = request.get_json(silent=True) or {}
    try:
        register = store_service.create_register(store_id, data.get("name"))
        return jsonify(register.to_dict()), 201
    except (StoreError, ValidationError) as exc:
        return _error(exc)


@stores_bp.get("/registers/visible")
@require_auth
@require_permission("daily_operations:view")
def visible_registers():
    """Registers the current user can see, grouped by store id."""
    registers = store_service.list_visible_registers(g.current_user)
    grouped = store_service.group_registers_by_store(registers)
    return jsonify({
        "registers": [register.to_dict() for register in registers],
        "by_store": {
            str(store_id): [register.to_dict() for register in items]
            for store_id, items in grouped.items()
        },
    }), 200


@stores_bp.delete("/registers/<int:register_id>")
@require_auth
@require_permission("stores:edit")
def deactivate_register(register_id: int):
    register = store_service.get_register(register_id)
    if not register:
        return jsonify({"error": "Register not found"}), 404
    denied = deny_store_access(register.store_id)
    if denied:
        return denied
    register = store_service.deactivate_register(register_id)
    return jsonify(register.to_dict()), 200


@stores_bp.post("/registers/<int:register_id>/users/<int:user_id>")
@require_auth
@require_permission("stores:edit")
def assign_cashier(register_id: int, user_id: int):
    register = store_service.get_register(register_id)
    if not register:
        return jsonify({"error": "Register not found"}), 404
    denied = deny_store_access(register.store_id)
    if denied:
        return denied
    try:
        assignment = store_service.assign_cashier(register_id, user_id)
        return jsonify(assignment.to_dict()), 200
    except StoreError as exc:
        return _error(exc)


@stores_bp.delete("/registers/<int:register_id>/users/<int:user_id>")
@require_auth
@require_permission("stores:edit")
def unassign_cashier(register_id: int, user_id: int):
    register = store_service.get_register(register_id)
    if not register:
        return jsonify({"error": "Register not found"}), 404
    denied = deny_store_access(register.store_id)
    if denied:
        return denied
    if not store_service.unassign_cashier(register_id, user_id):
        return jsonify({"error": "Assignment not found"}), 404
    return jsonify({"message": "Cashier unassigned"}), 200
