"""
Daily Reconciliation Engine

WHY: A cashier or manager closing a shift needs the per-payment-method
totals the system recorded, the day's expenses and net profit, and a signal
when the amounts they counted by hand do not match what was recorded.

DESIGN PRINCIPLES:
- Pure functions over in-memory records: no database, no logging, no clock
- Missing numbers (None) count as 0; that is the only coalescing rule
- Opening float is reported per method but is never revenue
- A record with an unknown payment method still counts toward the overall
  totals, it just lands in no per-method bucket
- No rounding: amounts are floats, summed with math.fsum so record order
  never changes a total; only the presentation layer rounds
- A discrepancy is a result, not an error; nothing here raises for it
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Iterable, Mapping


class PaymentMethod(str, Enum):
    """Payment methods with a declared/calculated bucket at closure."""
    CASH = "cash"
    ZELLE = "zelle"
    MOBILE_PAYMENT = "mobile_payment"
    PDV_BANESCO = "pdv_banesco"
    CASHEA = "cashea"


PAYMENT_METHODS = tuple(method.value for method in PaymentMethod)

# One cent: float sums of balanced shifts rarely land on exactly zero.
BALANCE_TOLERANCE = 0.01


def _money(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def _method(value: Any) -> str | None:
    if isinstance(value, PaymentMethod):
        return value.value
    return value


def _empty_buckets() -> dict[str, float]:
    return {method: 0.0 for method in PAYMENT_METHODS}


def _day(value: Any) -> str | None:
    if isinstance(value, date):
        return value.isoformat()
    return value


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class IncomeRecord:
    store_id: Any
    date: str
    amount_usd: float | None
    payment_method: str
    is_opening: bool = False
    bcv_rate: float | None = None
    cash_register_id: Any = None

    @property
    def amount_bs(self) -> float:
        return _money(self.amount_usd) * _money(self.bcv_rate)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "IncomeRecord":
        return cls(
            store_id=data.get("store_id"),
            date=_day(data.get("date")),
            amount_usd=data.get("amount_usd"),
            payment_method=_method(data.get("payment_method")),
            is_opening=bool(data.get("is_opening", False)),
            bcv_rate=data.get("bcv_rate"),
            cash_register_id=data.get("cash_register_id"),
        )


@dataclass(frozen=True)
class ExpenseRecord:
    store_id: Any
    date: str
    amount_usd: float | None
    payment_source: str
    description: str = ""
    amount_bs: float | None = None
    bcv_rate: float | None = None
    cash_register_id: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ExpenseRecord":
        return cls(
            store_id=data.get("store_id"),
            date=_day(data.get("date")),
            amount_usd=data.get("amount_usd"),
            payment_source=_method(data.get("payment_source")),
            description=data.get("description") or "",
            amount_bs=data.get("amount_bs"),
            bcv_rate=data.get("bcv_rate"),
            cash_register_id=data.get("cash_register_id"),
        )


# =============================================================================
# SUMMARY / DECLARED / RESULT
# =============================================================================

@dataclass(frozen=True)
class ClosureSummary:
    """
    Calculated figures for one store/date/shift. Recomputed on every change,
    never persisted on its own.
    """
    totals_by_method: dict[str, float]
    total_income: float
    total_expenses: float
    net_profit: float
    opening_by_method: dict[str, float] = field(default_factory=_empty_buckets)
    opening_total: float = 0.0
    expenses_by_source: dict[str, float] = field(default_factory=_empty_buckets)

    @property
    def cash_total(self) -> float:
        return self.totals_by_method[PaymentMethod.CASH.value]

    @property
    def zelle_total(self) -> float:
        return self.totals_by_method[PaymentMethod.ZELLE.value]

    @property
    def mobile_payment_total(self) -> float:
        return self.totals_by_method[PaymentMethod.MOBILE_PAYMENT.value]

    @property
    def pdv_banesco_total(self) -> float:
        return self.totals_by_method[PaymentMethod.PDV_BANESCO.value]

    @property
    def cashea_total(self) -> float:
        return self.totals_by_method[PaymentMethod.CASHEA.value]

    def to_dict(self) -> dict:
        return {
            "totals_by_method": dict(self.totals_by_method),
            "total_income": self.total_income,
            "total_expenses": self.total_expenses,
            "net_profit": self.net_profit,
            "opening_by_method": dict(self.opening_by_method),
            "opening_total": self.opening_total,
            "expenses_by_source": dict(self.expenses_by_source),
        }


@dataclass(frozen=True)
class DeclaredAmounts:
    """Hand-counted amounts entered once per closure attempt."""
    cash: float | None = 0.0
    zelle: float | None = 0.0
    mobile_payment: float | None = 0.0
    pdv_banesco: float | None = 0.0
    cashea: float | None = 0.0
    petty_cash: float | None = 0.0
    stored_cash: float | None = 0.0
    observations: str = ""
    surplus_notes: str = ""
    shift_name: str = ""

    def amount_for(self, method: str) -> float:
        return _money(getattr(self, method))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DeclaredAmounts":
        return cls(
            cash=data.get("declared_cash_usd", data.get("cash")),
            zelle=data.get("declared_zelle_usd", data.get("zelle")),
            mobile_payment=data.get("declared_mobile_payment_usd", data.get("mobile_payment")),
            pdv_banesco=data.get("declared_pdv_banesco_usd", data.get("pdv_banesco")),
            cashea=data.get("declared_cashea_usd", data.get("cashea")),
            petty_cash=data.get("petty_cash_usd", data.get("petty_cash")),
            stored_cash=data.get("stored_cash_usd", data.get("stored_cash")),
            observations=data.get("observations") or "",
            surplus_notes=data.get("surplus_notes") or "",
            shift_name=(data.get("shift_name") or "").strip(),
        )


@dataclass(frozen=True)
class Reconciliation:
    difference: float
    is_balanced: bool

    def to_dict(self) -> dict:
        return {"difference": self.difference, "is_balanced": self.is_balanced}


@dataclass(frozen=True)
class ClosureDraft:
    """Column values of a DailyClosure, assembled before it is persisted."""
    store_id: Any
    date: str
    bcv_rate: float
    shift_name: str

    total_cash_usd: float
    total_zelle_usd: float
    total_mobile_payment_usd: float
    total_pdv_banesco_usd: float
    total_cashea_usd: float

    declared_cash_usd: float
    declared_zelle_usd: float
    declared_mobile_payment_usd: float
    declared_pdv_banesco_usd: float
    declared_cashea_usd: float

    observations: str
    surplus_notes: str
    petty_cash_usd: float
    stored_cash_usd: float
    opening_total_usd: float

    calculated_total_usd: float
    declared_total_usd: float
    difference_usd: float
    total_expenses_usd: float
    net_profit_usd: float

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# OPERATIONS
# =============================================================================

def _fsum_buckets(amounts: dict[str, list[float]]) -> dict[str, float]:
    return {method: math.fsum(values) for method, values in amounts.items()}


def compute_totals(
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
) -> ClosureSummary:
    # fsum is correctly rounded, so totals do not depend on record order.
    regular = {method: [] for method in PAYMENT_METHODS}
    opening = {method: [] for method in PAYMENT_METHODS}
    by_source = {method: [] for method in PAYMENT_METHODS}
    regular_all: list[float] = []
    opening_all: list[float] = []
    expenses_all: list[float] = []

    for income in incomes:
        amount = _money(income.amount_usd)
        method = _method(income.payment_method)
        if income.is_opening:
            opening_all.append(amount)
            if method in opening:
                opening[method].append(amount)
            continue
        regular_all.append(amount)
        if method in regular:
            regular[method].append(amount)

    for expense in expenses:
        amount = _money(expense.amount_usd)
        expenses_all.append(amount)
        source = _method(expense.payment_source)
        if source in by_source:
            by_source[source].append(amount)

    total_income = math.fsum(regular_all)
    total_expenses = math.fsum(expenses_all)
    return ClosureSummary(
        totals_by_method=_fsum_buckets(regular),
        total_income=total_income,
        total_expenses=total_expenses,
        net_profit=total_income - total_expenses,
        opening_by_method=_fsum_buckets(opening),
        opening_total=math.fsum(opening_all),
        expenses_by_source=_fsum_buckets(by_source),
    )


def compute_declared_total(declared: DeclaredAmounts) -> float:
    return math.fsum(declared.amount_for(method) for method in PAYMENT_METHODS)


def reconcile(summary: ClosureSummary, declared: DeclaredAmounts) -> Reconciliation:
    difference = compute_declared_total(declared) - summary.total_income
    return Reconciliation(
        difference=difference,
        is_balanced=abs(difference) <= BALANCE_TOLERANCE,
    )


def build_closure(
    store_id,
    date,
    rate: float,
    summary: ClosureSummary,
    declared: DeclaredAmounts,
) -> ClosureDraft:
    """
    Assemble closure values from an already computed summary.

    The summary is used as given so the persisted calculated total is the
    one the user confirmed.
    """
    declared_total = compute_declared_total(declared)
    calculated_total = summary.total_income

    return ClosureDraft(
        store_id=store_id,
        date=_day(date),
        bcv_rate=_money(rate),
        shift_name=declared.shift_name or "",
        total_cash_usd=summary.cash_total,
        total_zelle_usd=summary.zelle_total,
        total_mobile_payment_usd=summary.mobile_payment_total,
        total_pdv_banesco_usd=summary.pdv_banesco_total,
        total_cashea_usd=summary.cashea_total,
        declared_cash_usd=declared.amount_for("cash"),
        declared_zelle_usd=declared.amount_for("zelle"),
        declared_mobile_payment_usd=declared.amount_for("mobile_payment"),
        declared_pdv_banesco_usd=declared.amount_for("pdv_banesco"),
        declared_cashea_usd=declared.amount_for("cashea"),
        observations=declared.observations or "",
        surplus_notes=declared.surplus_notes or "",
        petty_cash_usd=_money(declared.petty_cash),
        stored_cash_usd=_money(declared.stored_cash),
        opening_total_usd=summary.opening_total,
        calculated_total_usd=calculated_total,
        declared_total_usd=declared_total,
        difference_usd=declared_total - calculated_total,
        total_expenses_usd=summary.total_expenses,
        net_profit_usd=summary.net_profit,
    )
