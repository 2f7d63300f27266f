"""
Record access for the closure workflow.

closure_service depends on the CashRepository protocol, not on SQLAlchemy,
so the reconciliation flow runs the same against the database or against
plain in-memory lists.
"""

from __future__ import annotations

from datetime import date
from itertools import count
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.exc import IntegrityError

from .extensions import db
from .models import DailyIncome, DailyExpense, DailyClosure
from .reconciliation import IncomeRecord, ExpenseRecord, ClosureDraft
from .time_utils import parse_business_date
from .validation import ConflictError


@runtime_checkable
class CashRepository(Protocol):
    """Storage operations the closure workflow needs."""

    def list_incomes(self, store_id: int, day: date, cash_register_id: int | None = None) -> list[IncomeRecord]:
        ...

    def list_expenses(self, store_id: int, day: date, cash_register_id: int | None = None) -> list[ExpenseRecord]:
        ...

    def find_closure(self, store_id: int, day: date, shift_name: str) -> Any | None:
        ...

    def insert_closure(self, draft: ClosureDraft, *, created_by: int | None, cash_register_id: int | None = None) -> Any:
        ...


class SqlCashRepository:
    """CashRepository backed by the Flask-SQLAlchemy session."""

    def list_incomes(self, store_id, day, cash_register_id=None):
        query = db.session.query(DailyIncome).filter_by(store_id=store_id, date=day)
        if cash_register_id is not None:
            query = query.filter_by(cash_register_id=cash_register_id)
        return [row.to_record() for row in query.order_by(DailyIncome.id.asc()).all()]

    def list_expenses(self, store_id, day, cash_register_id=None):
        query = db.session.query(DailyExpense).filter_by(store_id=store_id, date=day)
        if cash_register_id is not None:
            query = query.filter_by(cash_register_id=cash_register_id)
        return [row.to_record() for row in query.order_by(DailyExpense.id.asc()).all()]

    def find_closure(self, store_id, day, shift_name):
        return db.session.query(DailyClosure).filter_by(
            store_id=store_id,
            date=day,
            shift_name=shift_name,
        ).first()

    def insert_closure(self, draft, *, created_by, cash_register_id=None):
        values = draft.to_dict()
        values["date"] = parse_business_date(values["date"])
        closure = DailyClosure(
            **values,
            created_by=created_by,
            cash_register_id=cash_register_id,
        )
        db.session.add(closure)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError("Closure already exists for this store, date and shift") from exc
        return closure


class InMemoryCashRepository:
    """
    CashRepository over plain lists, standing in for the database.

    Closures are stored as dicts shaped like DailyClosure.to_dict().
    """

    def __init__(self, incomes=None, expenses=None):
        self.incomes: list[IncomeRecord] = list(incomes or [])
        self.expenses: list[ExpenseRecord] = list(expenses or [])
        self.closures: list[dict] = []
        self._ids = count(1)

    @staticmethod
    def _matches(record, store_id, day, cash_register_id) -> bool:
        if record.store_id != store_id or record.date != day.isoformat():
            return False
        return cash_register_id is None or record.cash_register_id == cash_register_id

    def list_incomes(self, store_id, day, cash_register_id=None):
        return [r for r in self.incomes if self._matches(r, store_id, day, cash_register_id)]

    def list_expenses(self, store_id, day, cash_register_id=None):
        return [r for r in self.expenses if self._matches(r, store_id, day, cash_register_id)]

    def find_closure(self, store_id, day, shift_name):
        for closure in self.closures:
            if (
                closure["store_id"] == store_id
                and closure["date"] == day.isoformat()
                and closure["shift_name"] == shift_name
            ):
                return closure
        return None

    def insert_closure(self, draft, *, created_by, cash_register_id=None):
        if self.find_closure(draft.store_id, parse_business_date(draft.date), draft.shift_name):
            raise ConflictError("Closure already exists for this store, date and shift")
        closure = draft.to_dict()
        closure.update(
            id=next(self._ids),
            created_by=created_by,
            cash_register_id=cash_register_id,
        )
        self.closures.append(closure)
        return closure
