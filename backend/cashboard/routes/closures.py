# Overview: Flask API routes for daily closures; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, current_app, g

from ..decorators import require_auth, require_permission, deny_store_access
from ..repositories import SqlCashRepository
from ..services import closure_service, operations_service, report_service, settings_service
from ..services.closure_service import ClosureError, ClosureConflictError
from ..validation import ValidationError, coerce_optional_int


closures_bp = Blueprint("closures", __name__, url_prefix="/api/closures")


def _target(data: dict) -> tuple[int, int | None]:
    store_id = coerce_optional_int(data.get("store_id"), "store_id")
    if store_id is None:
        raise ValidationError("store_id required")
    return store_id, coerce_optional_int(data.get("cash_register_id"), "cash_register_id")


@closures_bp.get("")
@require_auth
@require_permission("closures:view")
def list_closures():
    try:
        store_id = coerce_optional_int(request.args.get("store_id"), "store_id")
        limit = coerce_optional_int(request.args.get("limit"), "limit") or closure_service.DEFAULT_LIST_LIMIT
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    if store_id is not None:
        denied = deny_store_access(store_id)
        if denied:
            return denied

    closures = closure_service.list_closures(
        g.current_user,
        store_id=store_id,
        search=request.args.get("search"),
        limit=min(limit, closure_service.DEFAULT_LIST_LIMIT),
    )
    serialized = [closure.to_dict() for closure in closures]

    if request.args.get("grouped") == "true":
        return jsonify(closure_service.group_closures_by_date(serialized)), 200
    return jsonify(serialized), 200


@closures_bp.post("/preview")
@require_auth
@require_permission("closures:create")
def preview_closure():
    data = request.get_json(silent=True) or {}
    try:
        store_id, register_id = _target(data)
        denied = deny_store_access(store_id)
        if denied:
            return denied
        preview = closure_service.preview_closure(
            SqlCashRepository(),
            store_id=store_id,
            date=data.get("date"),
            declared=closure_service.parse_declared(data),
            bcv_rate=data.get("bcv_rate"),
            cash_register_id=register_id,
        )
        return jsonify(preview), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@closures_bp.post("")
@require_auth
@require_permission("closures:create")
def create_closure():
    """
    Close a store day or shift.

    Send back `expected_calculated_total` from the preview; if the recorded
    incomes changed in between, the response is 409 and nothing is stored.
    """
    data = request.get_json(silent=True) or {}
    try:
        store_id, register_id = _target(data)
        denied = deny_store_access(store_id)
        if denied:
            return denied
        closure, result = closure_service.close_day(
            SqlCashRepository(),
            g.current_user,
            store_id=store_id,
            date=data.get("date"),
            declared=closure_service.parse_declared(data),
            bcv_rate=data.get("bcv_rate"),
            expected_calculated_total=data.get("expected_calculated_total"),
            cash_register_id=register_id,
        )
        return jsonify({
            "closure": closure.to_dict(),
            "reconciliation": result.to_dict(),
        }), 201
    except ClosureConflictError as exc:
        return jsonify({"error": str(exc)}), 409
    except (ClosureError, ValidationError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to create closure")
        return jsonify({"error": "Internal server error"}), 500


@closures_bp.get("/<int:closure_id>")
@require_auth
@require_permission("closures:view")
def get_closure(closure_id: int):
    closure = closure_service.get_closure(closure_id)
    if not closure:
        return jsonify({"error": "Closure not found"}), 404
    denied = deny_store_access(closure.store_id)
    if denied:
        return denied
    return jsonify(closure.to_dict()), 200


@closures_bp.get("/<int:closure_id>/message")
@require_auth
@require_permission("closures:view")
def closure_message(closure_id: int):
    closure = closure_service.get_closure(closure_id)
    if not closure:
        return jsonify({"error": "Closure not found"}), 404
    denied = deny_store_access(closure.store_id)
    if denied:
        return denied

    day = operations_service.get_day(
        closure.store_id,
        closure.date,
        cash_register_id=closure.cash_register_id,
    )
    message = report_service.render_closure_message(
        closure.to_dict(),
        incomes=day["incomes"],
        expenses=day["expenses"],
        settings=settings_service.load_settings(),
    )
    return jsonify({"closure_id": closure.id, "message": message}), 200
