# Overview: Service-layer operations for daily incomes and expenses.

"""
Daily Operations Service

WHY: Incomes and expenses are the raw material of every closure. Each one
is stamped with the BCV rate in effect so bolivar and dollar amounts stay
consistent after the rate moves.

DESIGN PRINCIPLES:
- Rate resolution: an explicit rate wins, else the rate of the latest income
  already recorded for that store and day; no rate means no entry
- Expenses may be entered in bolivares or dollars; the other currency is
  derived with the resolved rate
- Entries are created and deleted, never edited
- Once a store day has a closure, its entries can no longer be deleted
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import (
    Store,
    CashRegister,
    CashRegisterUser,
    DailyIncome,
    DailyExpense,
    DailyClosure,
)
from ..permissions import CAJERO
from ..reconciliation import compute_totals
from ..validation import (
    ValidationError,
    coerce_amount,
    coerce_rate,
    coerce_payment_method,
    coerce_business_date,
    coerce_optional_int,
    clean_text,
)
from .concurrency import run_with_retry


class OperationError(Exception):
    """Raised when an income or expense cannot be recorded or removed."""
    pass


class OperationNotFoundError(OperationError):
    pass


def _check_store(store_id: int) -> Store:
    store = db.session.get(Store, store_id)
    if not store:
        raise OperationNotFoundError("Store not found")
    if not store.is_active:
        raise OperationError("Store is not active")
    return store


def _check_register(actor, store_id: int, cash_register_id: int | None) -> int | None:
    if cash_register_id is None:
        return None

    register = db.session.get(CashRegister, cash_register_id)
    if not register or register.store_id != store_id:
        raise OperationError("Cash register does not belong to this store")
    if not register.is_active:
        raise OperationError("Cash register is not active")

    if actor is not None and actor.role == CAJERO:
        assigned = db.session.query(CashRegisterUser).filter_by(
            cash_register_id=register.id,
            user_id=actor.id
        ).first()
        if not assigned:
            raise OperationError("Cashier is not assigned to this cash register")

    return register.id


def _day_is_closed(store_id: int, day: date) -> bool:
    return db.session.query(DailyClosure.id).filter_by(store_id=store_id, date=day).first() is not None


def resolve_rate(store_id: int, day: date, rate=None) -> float | None:
    """
    BCV rate for entries of `store_id` on `day`.

    An explicit rate is validated and returned as is. Otherwise the rate of
    the latest income recorded for that store and day is used; None when the
    day has no incomes yet.
    """
    if rate is not None and rate != "":
        return coerce_rate(rate)

    latest = db.session.query(DailyIncome).filter_by(
        store_id=store_id,
        date=day
    ).order_by(DailyIncome.created_at.desc(), DailyIncome.id.desc()).first()

    return latest.bcv_rate if latest else None


def _require_rate(store_id: int, day: date, rate) -> float:
    resolved = resolve_rate(store_id, day, rate)
    if not resolved or resolved <= 0:
        raise OperationError("A BCV rate greater than zero is required")
    return resolved


def add_income(
    actor,
    *,
    store_id: int,
    date,
    amount_usd,
    payment_method,
    bcv_rate=None,
    payment_details: str | None = None,
    description: str | None = None,
    is_opening: bool = False,
    cash_register_id=None,
) -> DailyIncome:
    """
    Record an income. amount_bs is derived as amount_usd * bcv_rate.

    `is_opening` marks the opening float of the day or shift; it is shown
    at closure but never counted as revenue.
    """
    def _op():
        day = coerce_business_date(date)
        _check_store(store_id)
        register_id = _check_register(actor, store_id, coerce_optional_int(cash_register_id, "cash_register_id"))
        amount = coerce_amount(amount_usd, "amount_usd", allow_zero=False)
        method = coerce_payment_method(payment_method)
        rate = _require_rate(store_id, day, bcv_rate)

        income = DailyIncome(
            store_id=store_id,
            cash_register_id=register_id,
            date=day,
            amount_usd=amount,
            payment_method=method,
            payment_details=clean_text(payment_details, "payment_details") or None,
            description=clean_text(description, "description") or None,
            is_opening=bool(is_opening),
            bcv_rate=rate,
            amount_bs=amount * rate,
            created_by=getattr(actor, "id", None),
        )

        db.session.add(income)
        db.session.commit()
        return income

    return run_with_retry(_op)


def add_expense(
    actor,
    *,
    store_id: int,
    date,
    payment_source,
    description: str,
    amount_bs=None,
    amount_usd=None,
    bcv_rate=None,
    cash_register_id=None,
) -> DailyExpense:
    """
    Record an expense entered in bolivares or dollars.

    When only one amount is given the other is derived with the resolved
    rate (usd = bs / rate, bs = usd * rate). When both are given they are
    stored as entered.
    """
    def _op():
        day = coerce_business_date(date)
        _check_store(store_id)
        register_id = _check_register(actor, store_id, coerce_optional_int(cash_register_id, "cash_register_id"))
        source = coerce_payment_method(payment_source, "payment_source")
        text = clean_text(description, "description", required=True)
        rate = _require_rate(store_id, day, bcv_rate)

        has_bs = amount_bs not in (None, "")
        has_usd = amount_usd not in (None, "")
        if not has_bs and not has_usd:
            raise ValidationError("amount_bs or amount_usd required")

        if has_bs:
            bs = coerce_amount(amount_bs, "amount_bs", allow_zero=False)
            usd = coerce_amount(amount_usd, "amount_usd", allow_zero=False) if has_usd else bs / rate
        else:
            usd = coerce_amount(amount_usd, "amount_usd", allow_zero=False)
            bs = usd * rate

        expense = DailyExpense(
            store_id=store_id,
            cash_register_id=register_id,
            date=day,
            amount_bs=bs,
            amount_usd=usd,
            payment_source=source,
            description=text,
            bcv_rate=rate,
            created_by=getattr(actor, "id", None),
        )

        db.session.add(expense)
        db.session.commit()
        return expense

    return run_with_retry(_op)


def get_income(income_id: int) -> DailyIncome | None:
    return db.session.get(DailyIncome, income_id)


def get_expense(expense_id: int) -> DailyExpense | None:
    return db.session.get(DailyExpense, expense_id)


def delete_income(income_id: int) -> None:
    income = db.session.get(DailyIncome, income_id)
    if not income:
        raise OperationNotFoundError("Income not found")
    if _day_is_closed(income.store_id, income.date):
        raise OperationError("Day already has a closure; incomes can no longer be deleted")

    db.session.delete(income)
    db.session.commit()


def delete_expense(expense_id: int) -> None:
    expense = db.session.get(DailyExpense, expense_id)
    if not expense:
        raise OperationNotFoundError("Expense not found")
    if _day_is_closed(expense.store_id, expense.date):
        raise OperationError("Day already has a closure; expenses can no longer be deleted")

    db.session.delete(expense)
    db.session.commit()


def get_day(store_id: int, day, *, cash_register_id: int | None = None, bcv_rate=None) -> dict:
    """
    Everything recorded for one store day: incomes and expenses (newest
    first), the effective BCV rate, the calculated summary and the closures
    already made for that day.
    """
    day = coerce_business_date(day)

    incomes_query = db.session.query(DailyIncome).filter_by(store_id=store_id, date=day)
    expenses_query = db.session.query(DailyExpense).filter_by(store_id=store_id, date=day)
    if cash_register_id is not None:
        incomes_query = incomes_query.filter_by(cash_register_id=cash_register_id)
        expenses_query = expenses_query.filter_by(cash_register_id=cash_register_id)

    incomes = incomes_query.order_by(DailyIncome.created_at.desc(), DailyIncome.id.desc()).all()
    expenses = expenses_query.order_by(DailyExpense.created_at.desc(), DailyExpense.id.desc()).all()
    closures = db.session.query(DailyClosure).filter_by(
        store_id=store_id,
        date=day
    ).order_by(DailyClosure.id.asc()).all()

    summary = compute_totals(
        [income.to_record() for income in incomes],
        [expense.to_record() for expense in expenses],
    )

    return {
        "store_id": store_id,
        "date": day.isoformat(),
        "cash_register_id": cash_register_id,
        "bcv_rate": resolve_rate(store_id, day, bcv_rate),
        "incomes": [income.to_dict() for income in incomes],
        "expenses": [expense.to_dict() for expense in expenses],
        "summary": summary.to_dict(),
        "closures": [closure.to_dict() for closure in closures],
    }
