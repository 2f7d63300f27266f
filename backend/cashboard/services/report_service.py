# Overview: Service-layer operations for reporting; closure message and dashboard figures.

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Iterable

from sqlalchemy import func

from cashboard.extensions import db
from cashboard.models import DailyClosure, Store
from cashboard.reconciliation import BALANCE_TOLERANCE, PaymentMethod
from cashboard.services.permission_service import accessible_store_ids
from cashboard.services import settings_service
from cashboard.time_utils import utcnow


PAYMENT_LABELS = {
    PaymentMethod.CASH.value: "Efectivo",
    PaymentMethod.ZELLE.value: "Zelle",
    PaymentMethod.MOBILE_PAYMENT.value: "Pago Móvil",
    PaymentMethod.PDV_BANESCO.value: "PDV Banesco",
    PaymentMethod.CASHEA.value: "Cashea",
}

DATE_RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

NO_DATA = "Sin datos"


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


class ReportAccessError(ReportError):
    pass


def _fmt(value, places: int) -> str:
    return f"{float(value or 0):.{places}f}"


def _first_details(incomes: Iterable[dict], method: str) -> str:
    for income in incomes:
        if income.get("payment_method") == method and income.get("payment_details"):
            return income["payment_details"]
    return NO_DATA


def _expense_lines(expenses: Iterable[dict], places: int) -> str:
    lines = [
        f"Bs {_fmt(expense['amount_bs'], places)} para {expense['description']} - "
        f"pagado desde {PAYMENT_LABELS.get(expense['payment_source'], expense['payment_source'])}"
        for expense in expenses
        if (expense.get("amount_bs") or 0) > 0 and expense.get("description") and expense.get("payment_source")
    ]
    return "\n".join(lines) if lines else "Sin gastos registrados"


def render_closure_message(
    closure: dict,
    *,
    incomes: Iterable[dict] = (),
    expenses: Iterable[dict] = (),
    settings: dict | None = None,
) -> str:
    """
    Plain-text daily closure message, ready to paste into a chat.

    `closure` is DailyClosure.to_dict(); `incomes` and `expenses` are the
    serialized records of the same store day. Account, bank and terminal come
    from the first income of each method carrying payment_details. A
    discrepancy line is appended only when |difference| > 0.01.
    """
    financial = settings_service.get_section("financial", settings)
    places = financial["decimal_places"]
    incomes = list(incomes)
    expenses = list(expenses)

    shift = f" ({closure['shift_name']})" if closure.get("shift_name") else ""
    rate = closure.get("bcv_rate")

    message = (
        f"📍 Cierre Diario – {closure.get('store_name') or NO_DATA} {closure.get('date') or NO_DATA}{shift}\n"
        f"Tasa BCV: {_fmt(rate, places) if rate else NO_DATA} Bs\n"
        f"\n"
        f"Ventas Totales: {_fmt(closure['calculated_total_usd'], places)} $\n"
        f"\n"
        f"▫ Efectivo: {_fmt(closure['total_cash_usd'], places)} $\n"
        f"▫ Zelle: {_fmt(closure['total_zelle_usd'], places)} $ (Cuenta: {_first_details(incomes, 'zelle')})\n"
        f"▫ PM: {_fmt(closure['total_mobile_payment_usd'], places)} $ (Banco: {_first_details(incomes, 'mobile_payment')})\n"
        f"▫ PDV Banesco: {_fmt(closure['total_pdv_banesco_usd'], places)} $ (Terminal: {_first_details(incomes, 'pdv_banesco')})\n"
        f"▫ Cashea: {_fmt(closure['total_cashea_usd'], places)} $\n"
        f"\n"
        f"✅ Total declarado: {_fmt(closure['declared_total_usd'], places)} $\n"
        f"\n"
        f"⭕ Observaciones:\n"
        f"{closure.get('observations') or 'Sin observaciones'}\n"
        f"\n"
        f"⭕ Sobrantes:\n"
        f"{closure.get('surplus_notes') or 'Sin sobrantes'}\n"
        f"\n"
        f"✅ Efectivo caja chica: {_fmt(closure['petty_cash_usd'], places)} $\n"
        f"✅ Efectivo guardado: {_fmt(closure['stored_cash_usd'], places)} $\n"
        f"\n"
        f"🧾 Gastos registrados hoy:\n"
        f"{_expense_lines(expenses, places)}"
    )

    difference = float(closure.get("difference_usd") or 0)
    if abs(difference) > BALANCE_TOLERANCE:
        sign = "+" if difference > 0 else ""
        message += (
            f"\n\n⚠️ DIFERENCIA DETECTADA: {sign}{_fmt(difference, places)} $ "
            f"entre total declarado y calculado."
        )

    return message


def _window(days: int | None, end: date | None, settings: dict | None) -> tuple[date, date, int]:
    if days is None:
        reports = settings_service.get_section("reports", settings)
        days = DATE_RANGE_DAYS.get(reports["default_date_range"], 30)
    if days < 1 or days > 366:
        raise ReportError("days must be between 1 and 366")
    end = end or utcnow().date()
    return end - timedelta(days=days - 1), end, days


def dashboard_stats(
    user,
    *,
    days: int | None = None,
    end: date | None = None,
    store_id: int | None = None,
    settings: dict | None = None,
) -> dict:
    """
    Sales and expense figures from stored closures over a window of days
    ending at `end` (today by default), limited to stores the user can see.

    Sales are closure calculated totals; the daily chart carries every day
    of the window, zero-filled.
    """
    start, end, days = _window(days, end, settings)

    allowed = accessible_store_ids(user)
    store_ids = None if allowed is None else set(allowed)
    if store_id is not None:
        if store_ids is not None and store_id not in store_ids:
            raise ReportAccessError("Store access denied")
        store_ids = {store_id}

    def _scoped(query, column):
        if store_ids is not None:
            query = query.filter(column.in_(store_ids or {-1}))
        return query

    daily_rows = _scoped(
        db.session.query(
            DailyClosure.date.label("day"),
            func.coalesce(func.sum(DailyClosure.calculated_total_usd), 0.0).label("sales"),
            func.coalesce(func.sum(DailyClosure.total_expenses_usd), 0.0).label("expenses"),
        ).filter(DailyClosure.date >= start, DailyClosure.date <= end),
        DailyClosure.store_id,
    ).group_by(DailyClosure.date).all()
    by_day = {row.day: (float(row.sales), float(row.expenses)) for row in daily_rows}

    chart = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        sales, expenses = by_day.get(day, (0.0, 0.0))
        chart.append({
            "date": day.isoformat(),
            "label": day.strftime("%d/%m"),
            "sales": sales,
            "expenses": expenses,
            "profit": sales - expenses,
        })

    total_sales = math.fsum(point["sales"] for point in chart)
    total_expenses = math.fsum(point["expenses"] for point in chart)

    top = _scoped(
        db.session.query(
            Store.name,
            func.sum(DailyClosure.calculated_total_usd).label("sales"),
        ).join(Store, Store.id == DailyClosure.store_id)
        .filter(DailyClosure.date >= start, DailyClosure.date <= end),
        DailyClosure.store_id,
    ).group_by(Store.id, Store.name).order_by(func.sum(DailyClosure.calculated_total_usd).desc()).first()

    store_count = _scoped(
        db.session.query(func.count(Store.id)).filter(Store.is_active.is_(True)),
        Store.id,
    ).scalar()

    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "days": days,
        "total_sales": total_sales,
        "total_expenses": total_expenses,
        "net_profit": total_sales - total_expenses,
        "average_daily_sales": total_sales / days,
        "store_count": int(store_count or 0),
        "top_performing_store": top.name if top else None,
        "chart": chart,
    }
