# Overview: Service-layer operations for daily closures; drives the reconciliation engine.

"""
Daily Closure Service

WHY: Closing a store day (or shift) freezes what the system calculated next
to what was counted by hand. The figures a user confirmed in the preview are
the figures that get stored.

DESIGN PRINCIPLES:
- Records are read through a CashRepository, so the flow is the same for the
  database and for in-memory stand-ins
- One computation per close: the summary that is checked is the summary
  that is persisted
- A stale preview (calculated total moved since it was shown) is a conflict,
  not a silent recompute
- One closure per (store, date, shift); shift "" is the whole day of every
  register, so a single-register closure names its own shift
- A discrepancy is logged and stored, never rejected
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..extensions import db
from ..models import DailyClosure, Store
from ..reconciliation import (
    BALANCE_TOLERANCE,
    ClosureSummary,
    DeclaredAmounts,
    Reconciliation,
    build_closure,
    compute_declared_total,
    compute_totals,
    reconcile,
)
from ..repositories import CashRepository
from ..validation import (
    ConflictError,
    coerce_business_date,
    coerce_optional_amount,
    coerce_rate,
    clean_text,
)
from .permission_service import accessible_store_ids


logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100

_DECLARED_FIELDS = {
    "cash": "declared_cash_usd",
    "zelle": "declared_zelle_usd",
    "mobile_payment": "declared_mobile_payment_usd",
    "pdv_banesco": "declared_pdv_banesco_usd",
    "cashea": "declared_cashea_usd",
    "petty_cash": "petty_cash_usd",
    "stored_cash": "stored_cash_usd",
}


class ClosureError(Exception):
    """Raised when a closure cannot be computed or stored."""
    pass


class ClosureConflictError(ClosureError):
    """Duplicate closure, or the day changed since the preview."""
    pass


class ClosureNotFoundError(ClosureError):
    pass


def parse_declared(data: Mapping[str, Any] | None) -> DeclaredAmounts:
    """
    Validated DeclaredAmounts from request data.

    Accepts the column names (declared_cash_usd, petty_cash_usd, ...) or the
    short names (cash, petty_cash, ...). Blank amounts mean 0; negative or
    non-numeric amounts raise ValidationError.
    """
    data = data or {}
    values = {}
    for short, column in _DECLARED_FIELDS.items():
        raw = data.get(column, data.get(short))
        values[short] = coerce_optional_amount(raw, column)

    return DeclaredAmounts(
        **values,
        observations=clean_text(data.get("observations"), "observations", max_length=2000) or "",
        surplus_notes=clean_text(data.get("surplus_notes"), "surplus_notes", max_length=2000) or "",
        shift_name=clean_text(data.get("shift_name"), "shift_name", max_length=64) or "",
    )


def _load_summary(repo: CashRepository, store_id, day, cash_register_id) -> tuple[ClosureSummary, list]:
    incomes = repo.list_incomes(store_id, day, cash_register_id)
    expenses = repo.list_expenses(store_id, day, cash_register_id)
    return compute_totals(incomes, expenses), incomes


def _resolve_rate(bcv_rate, incomes) -> float | None:
    if bcv_rate is not None and bcv_rate != "":
        return coerce_rate(bcv_rate)
    # Latest income of the day carries the rate in effect
    for income in reversed(incomes):
        if income.bcv_rate:
            return float(income.bcv_rate)
    return None


def preview_closure(
    repo: CashRepository,
    *,
    store_id: int,
    date,
    declared: DeclaredAmounts | None = None,
    bcv_rate=None,
    cash_register_id: int | None = None,
) -> dict:
    """
    Summary and reconciliation for a store day without writing anything.

    `calculated_total` in the result is what close_day expects back as
    `expected_calculated_total`.
    """
    day = coerce_business_date(date)
    declared = declared or DeclaredAmounts()
    summary, incomes = _load_summary(repo, store_id, day, cash_register_id)
    result = reconcile(summary, declared)

    return {
        "store_id": store_id,
        "date": day.isoformat(),
        "shift_name": declared.shift_name,
        "bcv_rate": _resolve_rate(bcv_rate, incomes),
        "summary": summary.to_dict(),
        "calculated_total": summary.total_income,
        "declared_total": compute_declared_total(declared),
        "difference": result.difference,
        "is_balanced": result.is_balanced,
        "already_closed": repo.find_closure(store_id, day, declared.shift_name) is not None,
    }


def close_day(
    repo: CashRepository,
    actor,
    *,
    store_id: int,
    date,
    declared: DeclaredAmounts,
    bcv_rate=None,
    expected_calculated_total=None,
    cash_register_id: int | None = None,
) -> tuple[Any, Reconciliation]:
    """
    Create the closure for one store day or shift.

    Returns (closure, reconciliation). Raises ClosureConflictError when the
    closure already exists or when `expected_calculated_total` (the total the
    user saw in the preview) no longer matches the records; ClosureError
    when no BCV rate can be resolved.

    Shift names are unique per store and date, whichever register closes
    them. A closure limited to one cash register must name its own shift;
    the whole-day closure (shift "") always covers every register.
    """
    day = coerce_business_date(date)

    if cash_register_id is not None and not declared.shift_name:
        raise ClosureError("A cash register closure needs a shift name")

    if repo.find_closure(store_id, day, declared.shift_name) is not None:
        raise ClosureConflictError("Closure already exists for this store, date and shift")

    summary, incomes = _load_summary(repo, store_id, day, cash_register_id)

    if expected_calculated_total is not None and expected_calculated_total != "":
        expected = coerce_optional_amount(expected_calculated_total, "expected_calculated_total")
        if abs(summary.total_income - expected) > BALANCE_TOLERANCE:
            raise ClosureConflictError(
                "Recorded incomes changed since the preview; review the closure again"
            )

    rate = _resolve_rate(bcv_rate, incomes)
    if not rate:
        raise ClosureError("A BCV rate greater than zero is required")

    draft = build_closure(store_id, day, rate, summary, declared)
    result = reconcile(summary, declared)

    try:
        closure = repo.insert_closure(
            draft,
            created_by=getattr(actor, "id", None),
            cash_register_id=cash_register_id,
        )
    except ConflictError as exc:
        raise ClosureConflictError(str(exc)) from exc

    if not result.is_balanced:
        logger.warning(
            "Closure for store %s on %s (shift %r) has a difference of %.2f USD",
            store_id, draft.date, draft.shift_name, result.difference,
        )
    logger.info(
        "Closure created for store %s on %s (shift %r) by user %s",
        store_id, draft.date, draft.shift_name, getattr(actor, "id", None),
    )
    return closure, result


def get_closure(closure_id: int) -> DailyClosure | None:
    return db.session.get(DailyClosure, closure_id)


def list_closures(
    user,
    *,
    store_id: int | None = None,
    search: str | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
) -> list[DailyClosure]:
    """
    Closures the user can see, newest date first.

    The search term matches store name, the YYYY-MM-DD date and the
    observations (case-insensitive). At most `limit` closures are returned.
    """
    query = db.session.query(DailyClosure).join(Store, Store.id == DailyClosure.store_id)

    allowed = accessible_store_ids(user)
    if allowed is not None:
        if not allowed:
            return []
        query = query.filter(DailyClosure.store_id.in_(allowed))

    if store_id is not None:
        query = query.filter(DailyClosure.store_id == store_id)

    query = query.order_by(DailyClosure.date.desc(), DailyClosure.id.desc())

    term = (search or "").strip().lower()
    if not term:
        return query.limit(limit).all()

    matches = [
        closure for closure in query.all()
        if term in (closure.store.name or "").lower()
        or term in closure.date.isoformat()
        or term in (closure.observations or "").lower()
    ]
    return matches[:limit]


def group_closures_by_date(closures: list[dict]) -> list[dict]:
    """Serialized closures grouped by date, keeping the incoming order."""
    groups: dict[str, list[dict]] = {}
    for closure in closures:
        groups.setdefault(closure["date"], []).append(closure)
    return [{"date": day, "closures": items} for day, items in groups.items()]
