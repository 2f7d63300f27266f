"""
Tests for the daily reconciliation engine.

Pure functions only: no app, no database.
"""

import itertools
import random

import pytest

from cashboard.reconciliation import (
    ClosureSummary,
    DeclaredAmounts,
    ExpenseRecord,
    IncomeRecord,
    PaymentMethod,
    build_closure,
    compute_declared_total,
    compute_totals,
    reconcile,
)


def income(method, amount, *, opening=False, rate=36.5):
    return IncomeRecord(
        store_id="S1",
        date="2024-06-01",
        amount_usd=amount,
        payment_method=method,
        is_opening=opening,
        bcv_rate=rate,
    )


def expense(source, amount):
    return ExpenseRecord(
        store_id="S1",
        date="2024-06-01",
        amount_usd=amount,
        payment_source=source,
        description="Limpieza",
    )


@pytest.fixture
def store_day():
    incomes = [
        income("cash", 40),
        income("zelle", 10),
        income("cash", 100, opening=True),
    ]
    expenses = [expense("cash", 5)]
    return incomes, expenses


class TestComputeTotals:
    def test_store_day_totals(self, store_day):
        summary = compute_totals(*store_day)

        assert summary.total_income == 50
        assert summary.cash_total == 40
        assert summary.zelle_total == 10
        assert summary.mobile_payment_total == 0
        assert summary.pdv_banesco_total == 0
        assert summary.cashea_total == 0
        assert summary.total_expenses == 5
        assert summary.net_profit == 45

    def test_opening_float_reported_separately(self, store_day):
        summary = compute_totals(*store_day)

        assert summary.opening_total == 100
        assert summary.opening_by_method["cash"] == 100
        assert summary.totals_by_method["cash"] == 40

    def test_empty_day(self):
        summary = compute_totals([], [])

        assert summary.total_income == 0
        assert summary.total_expenses == 0
        assert summary.net_profit == 0
        assert set(summary.totals_by_method) == {m.value for m in PaymentMethod}

    def test_missing_amount_counts_as_zero(self):
        summary = compute_totals([income("cash", None), income("cash", 12.5)], [expense("cash", None)])

        assert summary.cash_total == 12.5
        assert summary.total_expenses == 0

    def test_unknown_method_counts_toward_total_only(self):
        summary = compute_totals([income("bitcoin", 20), income("cash", 5)], [])

        assert summary.total_income == 25
        assert sum(summary.totals_by_method.values()) == 5

    def test_accepts_enum_methods(self):
        summary = compute_totals([income(PaymentMethod.CASHEA, 7)], [expense(PaymentMethod.ZELLE, 2)])

        assert summary.cashea_total == 7
        assert summary.expenses_by_source["zelle"] == 2

    def test_negative_net_profit(self):
        summary = compute_totals([income("cash", 10)], [expense("cash", 25)])

        assert summary.net_profit == -15

    def test_income_amount_bs_uses_rate(self):
        assert income("cash", 10, rate=36.5).amount_bs == pytest.approx(365.0)

    def test_records_from_mapping(self):
        record = IncomeRecord.from_mapping({
            "store_id": 1,
            "date": "2024-06-01",
            "amount_usd": 3,
            "payment_method": "pdv_banesco",
        })
        summary = compute_totals([record], [])

        assert record.is_opening is False
        assert summary.pdv_banesco_total == 3


class TestReconcile:
    def _summary(self, total):
        return compute_totals([income("cash", total)], [])

    def test_store_day_is_balanced(self, store_day):
        summary = compute_totals(*store_day)
        declared = DeclaredAmounts(cash=40, zelle=10)

        result = reconcile(summary, declared)

        assert compute_declared_total(declared) == 50
        assert result.difference == 0
        assert result.is_balanced is True

    def test_within_one_cent_is_balanced(self):
        result = reconcile(self._summary(100), DeclaredAmounts(cash=100.009))

        assert result.is_balanced is True

    def test_over_one_cent_is_not_balanced(self):
        result = reconcile(self._summary(100), DeclaredAmounts(cash=100.02))

        assert result.is_balanced is False
        assert result.difference == pytest.approx(0.02)

    def test_shortfall_is_negative(self):
        result = reconcile(self._summary(100), DeclaredAmounts(cash=90))

        assert result.difference == -10
        assert result.is_balanced is False

    def test_declared_none_counts_as_zero(self):
        declared = DeclaredAmounts(cash=None, zelle=5)

        assert compute_declared_total(declared) == 5

    def test_petty_and_stored_cash_not_declared_revenue(self):
        declared = DeclaredAmounts(cash=10, petty_cash=50, stored_cash=70)

        assert compute_declared_total(declared) == 10

    def test_declared_from_mapping_accepts_column_names(self):
        declared = DeclaredAmounts.from_mapping({
            "declared_cash_usd": 40,
            "zelle": 10,
            "shift_name": "  Mañana ",
        })

        assert compute_declared_total(declared) == 50
        assert declared.shift_name == "Mañana"


class TestBuildClosure:
    def test_closure_values(self, store_day):
        summary = compute_totals(*store_day)
        declared = DeclaredAmounts(cash=40, zelle=12, petty_cash=20, observations="Todo bien")

        draft = build_closure("S1", "2024-06-01", 36.5, summary, declared)

        assert draft.calculated_total_usd == 50
        assert draft.declared_total_usd == 52
        assert draft.difference_usd == 2
        assert draft.total_expenses_usd == 5
        assert draft.net_profit_usd == 45
        assert draft.opening_total_usd == 100
        assert draft.petty_cash_usd == 20
        assert draft.declared_zelle_usd == 12
        assert draft.total_zelle_usd == 10
        assert draft.shift_name == ""
        assert draft.observations == "Todo bien"

    def test_uses_summary_as_given(self):
        # The confirmed summary is persisted even if it does not match any records
        summary = ClosureSummary(
            totals_by_method={m.value: 0.0 for m in PaymentMethod} | {"cash": 80.0},
            total_income=80.0,
            total_expenses=0.0,
            net_profit=80.0,
        )

        draft = build_closure(1, "2024-06-01", 36.5, summary, DeclaredAmounts(cash=80))

        assert draft.calculated_total_usd == 80
        assert draft.difference_usd == 0


class TestOrderIndependence:
    """Reordering the records never changes any total, not even in the last bit."""

    INCOMES = [
        income("cash", 0.1),
        income("cash", 0.2),
        income("zelle", 10.07),
        income("cash", 0.3),
        income("mobile_payment", 3.33),
        income("bitcoin", 0.7),
        income("cash", 20.01, opening=True),
        income("zelle", 0.1, opening=True),
    ]
    EXPENSES = [
        expense("cash", 0.1),
        expense("cash", 0.2),
        expense("pdv_banesco", 1.11),
        expense("cash", 0.3),
    ]

    def test_fractional_cash_sums_exactly(self):
        forward = compute_totals([income("cash", 0.1), income("cash", 0.2), income("cash", 0.3)], [])
        backward = compute_totals([income("cash", 0.3), income("cash", 0.2), income("cash", 0.1)], [])

        assert forward.total_income == backward.total_income == 0.6
        assert forward.cash_total == backward.cash_total == 0.6

    def test_reversed(self):
        forward = compute_totals(self.INCOMES, self.EXPENSES)
        backward = compute_totals(list(reversed(self.INCOMES)), list(reversed(self.EXPENSES)))

        assert backward.to_dict() == forward.to_dict()

    @pytest.mark.parametrize("seed", range(20))
    def test_shuffled(self, seed):
        rng = random.Random(seed)
        incomes = list(self.INCOMES)
        expenses = list(self.EXPENSES)
        rng.shuffle(incomes)
        rng.shuffle(expenses)

        assert compute_totals(incomes, expenses).to_dict() == compute_totals(self.INCOMES, self.EXPENSES).to_dict()

    def test_every_permutation_of_regular_incomes(self):
        regular = [record for record in self.INCOMES if not record.is_opening][:5]
        expected = compute_totals(regular, []).to_dict()

        for ordering in itertools.permutations(regular):
            assert compute_totals(list(ordering), []).to_dict() == expected

    def test_reconciliation_follows_order_free_totals(self):
        declared = DeclaredAmounts(cash=0.6)
        forward = reconcile(compute_totals([income("cash", 0.1), income("cash", 0.2), income("cash", 0.3)], []), declared)
        backward = reconcile(compute_totals([income("cash", 0.3), income("cash", 0.2), income("cash", 0.1)], []), declared)

        assert forward == backward
        assert forward.difference == 0
