# Overview: Flask API routes for daily incomes and expenses; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, current_app, g

from ..decorators import require_auth, require_permission, deny_store_access
from ..services import operations_service
from ..services.operations_service import OperationError, OperationNotFoundError
from ..validation import ValidationError, coerce_optional_int


operations_bp = Blueprint("operations", __name__, url_prefix="/api/operations")


def _store_id(value):
    store_id = coerce_optional_int(value, "store_id")
    if store_id is None:
        raise ValidationError("store_id required")
    return store_id


def _error(exc: Exception):
    if isinstance(exc, OperationNotFoundError):
        return jsonify({"error": str(exc)}), 404
    return jsonify({"error": str(exc)}), 400


@operations_bp.get("/day")
@require_auth
@require_permission("daily_operations:view")
def get_day():
    try:
        store_id = _store_id(request.args.get("store_id"))
        denied = deny_store_access(store_id)
        if denied:
            return denied
        day = operations_service.get_day(
            store_id,
            request.args.get("date"),
            cash_register_id=coerce_optional_int(request.args.get("cash_register_id"), "cash_register_id"),
            bcv_rate=request.args.get("bcv_rate"),
        )
        return jsonify(day), 200
    except ValidationError as exc:
        return _error(exc)


@operations_bp.post("/incomes")
@require_auth
@require_permission("daily_operations:create")
def add_income():
    data = request.get_json(silent=True) or {}
    try:
        store_id = _store_id(data.get("store_id"))
        denied = deny_store_access(store_id)
        if denied:
            return denied
        income = operations_service.add_income(
            g.current_user,
            store_id=store_id,
            date=data.get("date"),
            amount_usd=data.get("amount_usd"),
            payment_method=data.get("payment_method"),
            bcv_rate=data.get("bcv_rate"),
            payment_details=data.get("payment_details"),
            description=data.get("description"),
            is_opening=bool(data.get("is_opening", False)),
            cash_register_id=data.get("cash_register_id"),
        )
        return jsonify(income.to_dict()), 201
    except (OperationError, ValidationError) as exc:
        return _error(exc)
    except Exception:
        current_app.logger.exception("Failed to record income")
        return jsonify({"error": "Internal server error"}), 500


@operations_bp.post("/expenses")
@require_auth
@require_permission("daily_operations:create")
def add_expense():
    data = request.get_json(silent=True) or {}
    try:
        store_id = _store_id(data.get("store_id"))
        denied = deny_store_access(store_id)
        if denied:
            return denied
        expense = operations_service.add_expense(
            g.current_user,
            store_id=store_id,
            date=data.get("date"),
            payment_source=data.get("payment_source"),
            description=data.get("description"),
            amount_bs=data.get("amount_bs"),
            amount_usd=data.get("amount_usd"),
            bcv_rate=data.get("bcv_rate"),
            cash_register_id=data.get("cash_register_id"),
        )
        return jsonify(expense.to_dict()), 201
    except (OperationError, ValidationError) as exc:
        return _error(exc)
    except Exception:
        current_app.logger.exception("Failed to record expense")
        return jsonify({"error": "Internal server error"}), 500


@operations_bp.delete("/incomes/<int:income_id>")
@require_auth
@require_permission("daily_operations:delete")
def delete_income(income_id: int):
    income = operations_service.get_income(income_id)
    if not income:
        return jsonify({"error": "Income not found"}), 404
    denied = deny_store_access(income.store_id)
    if denied:
        return denied
    try:
        operations_service.delete_income(income_id)
        return jsonify({"message": "Income deleted"}), 200
    except OperationError as exc:
        return jsonify({"error": str(exc)}), 409


@operations_bp.delete("/expenses/<int:expense_id>")
@require_auth
@require_permission("daily_operations:delete")
def delete_expense(expense_id: int):
    expense = operations_service.get_expense(expense_id)
    if not expense:
        return jsonify({"error": "Expense not found"}), 404
    denied = deny_store_access(expense.store_id)
    if denied:
        return denied
    try:
        operations_service.delete_expense(expense_id)
        return jsonify({"message": "Expense deleted"}), 200
    except OperationError as exc:
        return jsonify({"error": str(exc)}), 409
