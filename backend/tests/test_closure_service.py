"""
Tests for the daily closure workflow.

The same flow runs against InMemoryCashRepository (no database) and
SqlCashRepository (Flask-SQLAlchemy session).
"""

import logging
from types import SimpleNamespace

import pytest

from cashboard.models import DailyClosure, DailyIncome
from cashboard.reconciliation import DeclaredAmounts, ExpenseRecord, IncomeRecord
from cashboard.repositories import CashRepository, InMemoryCashRepository, SqlCashRepository
from cashboard.services import closure_service, operations_service, store_service
from cashboard.services.closure_service import ClosureConflictError, ClosureError
from cashboard.validation import ValidationError


DAY = "2024-06-01"
ACTOR = SimpleNamespace(id=7, role="gerente_tienda", assigned_store_id="S1")


@pytest.fixture
def memory_repo():
    return InMemoryCashRepository(
        incomes=[
            IncomeRecord(store_id="S1", date=DAY, amount_usd=40, payment_method="cash", bcv_rate=36.5),
            IncomeRecord(store_id="S1", date=DAY, amount_usd=10, payment_method="zelle", bcv_rate=36.6),
            IncomeRecord(store_id="S1", date=DAY, amount_usd=100, payment_method="cash", is_opening=True, bcv_rate=36.5),
            IncomeRecord(store_id="S2", date=DAY, amount_usd=999, payment_method="cash", bcv_rate=36.5),
            IncomeRecord(store_id="S1", date="2024-06-02", amount_usd=999, payment_method="cash", bcv_rate=36.5),
        ],
        expenses=[
            ExpenseRecord(store_id="S1", date=DAY, amount_usd=5, payment_source="cash", description="Limpieza"),
        ],
    )


class TestParseDeclared:
    def test_short_and_column_names(self):
        declared = closure_service.parse_declared({
            "cash": "40",
            "declared_zelle_usd": 10,
            "petty_cash": "",
            "shift_name": " Tarde ",
        })

        assert declared.cash == 40
        assert declared.zelle == 10
        assert declared.petty_cash == 0
        assert declared.shift_name == "Tarde"

    def test_empty_payload(self):
        assert closure_service.parse_declared(None) == DeclaredAmounts()

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            closure_service.parse_declared({"cash": -1})

    def test_non_numeric_amount_rejected(self):
        with pytest.raises(ValidationError):
            closure_service.parse_declared({"zelle": "diez"})


class TestInMemoryClosure:
    def test_repository_satisfies_protocol(self, memory_repo):
        assert isinstance(memory_repo, CashRepository)

    def test_preview(self, memory_repo):
        preview = closure_service.preview_closure(
            memory_repo,
            store_id="S1",
            date=DAY,
            declared=DeclaredAmounts(cash=40, zelle=10),
        )

        assert preview["calculated_total"] == 50
        assert preview["declared_total"] == 50
        assert preview["difference"] == 0
        assert preview["is_balanced"] is True
        assert preview["already_closed"] is False
        assert preview["summary"]["opening_total"] == 100
        assert preview["summary"]["total_expenses"] == 5
        # Rate of the latest income carrying one
        assert preview["bcv_rate"] == 36.5

    def test_preview_writes_nothing(self, memory_repo):
        closure_service.preview_closure(memory_repo, store_id="S1", date=DAY)

        assert memory_repo.closures == []

    def test_close_day(self, memory_repo):
        closure, result = closure_service.close_day(
            memory_repo,
            ACTOR,
            store_id="S1",
            date=DAY,
            declared=DeclaredAmounts(cash=40, zelle=10, stored_cash=100),
            bcv_rate=36.7,
            expected_calculated_total=50,
        )

        assert result.is_balanced
        assert closure["calculated_total_usd"] == 50
        assert closure["net_profit_usd"] == 45
        assert closure["stored_cash_usd"] == 100
        assert closure["bcv_rate"] == 36.7
        assert closure["created_by"] == 7
        assert memory_repo.closures == [closure]

    def test_discrepancy_is_stored_and_logged(self, memory_repo, caplog):
        with caplog.at_level(logging.WARNING, logger="cashboard.services.closure_service"):
            closure, result = closure_service.close_day(
                memory_repo,
                ACTOR,
                store_id="S1",
                date=DAY,
                declared=DeclaredAmounts(cash=30, zelle=10),
            )

        assert result.is_balanced is False
        assert closure["difference_usd"] == -10
        assert "difference" in caplog.text

    def test_duplicate_closure_conflict(self, memory_repo):
        closure_service.close_day(memory_repo, ACTOR, store_id="S1", date=DAY, declared=DeclaredAmounts(cash=50))

        with pytest.raises(ClosureConflictError):
            closure_service.close_day(memory_repo, ACTOR, store_id="S1", date=DAY, declared=DeclaredAmounts(cash=50))
        assert len(memory_repo.closures) == 1

    def test_shifts_close_separately(self, memory_repo):
        closure_service.close_day(
            memory_repo, ACTOR, store_id="S1", date=DAY,
            declared=DeclaredAmounts(cash=50, shift_name="Mañana"),
        )
        closure_service.close_day(
            memory_repo, ACTOR, store_id="S1", date=DAY,
            declared=DeclaredAmounts(cash=50, shift_name="Tarde"),
        )

        assert {c["shift_name"] for c in memory_repo.closures} == {"Mañana", "Tarde"}

    def test_stale_preview_conflict(self, memory_repo):
        preview = closure_service.preview_closure(memory_repo, store_id="S1", date=DAY)
        memory_repo.incomes.append(
            IncomeRecord(store_id="S1", date=DAY, amount_usd=20, payment_method="cash", bcv_rate=36.5)
        )

        with pytest.raises(ClosureConflictError):
            closure_service.close_day(
                memory_repo,
                ACTOR,
                store_id="S1",
                date=DAY,
                declared=DeclaredAmounts(cash=70),
                expected_calculated_total=preview["calculated_total"],
            )
        assert memory_repo.closures == []

    def test_rate_required(self):
        repo = InMemoryCashRepository()

        with pytest.raises(ClosureError):
            closure_service.close_day(repo, ACTOR, store_id="S1", date=DAY, declared=DeclaredAmounts())

    def test_invalid_date(self, memory_repo):
        with pytest.raises(ValidationError):
            closure_service.close_day(
                memory_repo, ACTOR, store_id="S1", date="01/06/2024", declared=DeclaredAmounts(),
            )


class TestSqlClosure:
    def _seed_day(self, store):
        operations_service.add_income(
            None, store_id=store.id, date=DAY, amount_usd=40, payment_method="cash", bcv_rate=36.5,
        )
        operations_service.add_income(
            None, store_id=store.id, date=DAY, amount_usd=10, payment_method="zelle",
        )
        operations_service.add_income(
            None, store_id=store.id, date=DAY, amount_usd=100, payment_method="cash", is_opening=True,
        )
        operations_service.add_expense(
            None, store_id=store.id, date=DAY, payment_source="cash", description="Limpieza", amount_usd=5,
        )

    def test_close_day_persists(self, db_session, store_centro, director):
        self._seed_day(store_centro)
        repo = SqlCashRepository()

        preview = closure_service.preview_closure(repo, store_id=store_centro.id, date=DAY)
        closure, result = closure_service.close_day(
            repo,
            director,
            store_id=store_centro.id,
            date=DAY,
            declared=DeclaredAmounts(cash=40, zelle=10),
            expected_calculated_total=preview["calculated_total"],
        )

        assert isinstance(closure, DailyClosure)
        assert closure.id is not None
        assert closure.calculated_total_usd == 50
        assert closure.opening_total_usd == 100
        assert closure.total_expenses_usd == 5
        assert closure.bcv_rate == 36.5
        assert closure.created_by == director.id
        assert result.is_balanced

        again = closure_service.preview_closure(repo, store_id=store_centro.id, date=DAY)
        assert again["already_closed"] is True

    def test_duplicate_closure_conflict(self, db_session, store_centro, director):
        self._seed_day(store_centro)
        repo = SqlCashRepository()
        closure_service.close_day(repo, director, store_id=store_centro.id, date=DAY, declared=DeclaredAmounts())

        with pytest.raises(ClosureConflictError):
            closure_service.close_day(repo, director, store_id=store_centro.id, date=DAY, declared=DeclaredAmounts())
        assert db_session.query(DailyClosure).count() == 1

    def test_stale_preview_conflict(self, db_session, store_centro, director):
        self._seed_day(store_centro)
        repo = SqlCashRepository()
        preview = closure_service.preview_closure(repo, store_id=store_centro.id, date=DAY)

        operations_service.add_income(
            None, store_id=store_centro.id, date=DAY, amount_usd=15, payment_method="cashea",
        )

        with pytest.raises(ClosureConflictError):
            closure_service.close_day(
                repo,
                director,
                store_id=store_centro.id,
                date=DAY,
                declared=DeclaredAmounts(cash=40, zelle=10),
                expected_calculated_total=preview["calculated_total"],
            )
        assert db_session.query(DailyClosure).count() == 0

    def test_register_scoped_totals(self, db_session, store_centro, register_centro, director):
        operations_service.add_income(
            None, store_id=store_centro.id, date=DAY, amount_usd=30, payment_method="cash",
            bcv_rate=36.5, cash_register_id=register_centro.id,
        )
        operations_service.add_income(
            None, store_id=store_centro.id, date=DAY, amount_usd=70, payment_method="cash",
        )

        preview = closure_service.preview_closure(
            SqlCashRepository(), store_id=store_centro.id, date=DAY, cash_register_id=register_centro.id,
        )

        assert preview["calculated_total"] == 30

    def test_register_closure_needs_shift(self, db_session, store_centro, register_centro, director):
        with pytest.raises(ClosureError):
            closure_service.close_day(
                SqlCashRepository(), director, store_id=store_centro.id, date=DAY,
                declared=DeclaredAmounts(cash=30), bcv_rate=36.5, cash_register_id=register_centro.id,
            )
        assert db_session.query(DailyClosure).count() == 0

    def test_registers_close_their_own_shifts(self, db_session, store_centro, register_centro, director):
        caja_2 = store_service.create_register(store_centro.id, "Caja 2")
        for register, amount in ((register_centro, 30), (caja_2, 20)):
            operations_service.add_income(
                None, store_id=store_centro.id, date=DAY, amount_usd=amount, payment_method="cash",
                bcv_rate=36.5, cash_register_id=register.id,
            )
        repo = SqlCashRepository()

        first, _ = closure_service.close_day(
            repo, director, store_id=store_centro.id, date=DAY,
            declared=DeclaredAmounts(cash=30, shift_name="Caja 1 Mañana"), cash_register_id=register_centro.id,
        )
        second, _ = closure_service.close_day(
            repo, director, store_id=store_centro.id, date=DAY,
            declared=DeclaredAmounts(cash=20, shift_name="Caja 2 Mañana"), cash_register_id=caja_2.id,
        )

        assert (first.cash_register_id, first.calculated_total_usd) == (register_centro.id, 30)
        assert (second.cash_register_id, second.calculated_total_usd) == (caja_2.id, 20)

        # Shift names are per store day, not per register
        with pytest.raises(ClosureConflictError):
            closure_service.close_day(
                repo, director, store_id=store_centro.id, date=DAY,
                declared=DeclaredAmounts(cash=20, shift_name="Caja 1 Mañana"), cash_register_id=caja_2.id,
            )

    def test_no_incomes_means_rate_must_be_given(self, db_session, store_centro, director):
        with pytest.raises(ClosureError):
            closure_service.close_day(
                SqlCashRepository(), director, store_id=store_centro.id, date=DAY, declared=DeclaredAmounts(),
            )

        closure, _ = closure_service.close_day(
            SqlCashRepository(), director, store_id=store_centro.id, date=DAY,
            declared=DeclaredAmounts(), bcv_rate="36,5",
        )
        assert closure.bcv_rate == 36.5
        assert db_session.query(DailyIncome).count() == 0


class TestListClosures:
    def _close(self, store, day, actor, observations=""):
        operations_service.add_income(
            None, store_id=store.id, date=day, amount_usd=10, payment_method="cash", bcv_rate=36.5,
        )
        closure, _ = closure_service.close_day(
            SqlCashRepository(), actor, store_id=store.id, date=day,
            declared=DeclaredAmounts(cash=10, observations=observations),
        )
        return closure

    def test_newest_first_and_scoped(self, db_session, store_centro, store_norte, director, gerente_centro):
        self._close(store_centro, "2024-06-01", director)
        self._close(store_centro, "2024-06-02", director)
        self._close(store_norte, "2024-06-02", director)

        all_closures = closure_service.list_closures(director)
        assert [c.date.isoformat() for c in all_closures][:2] == ["2024-06-02", "2024-06-02"]
        assert len(all_closures) == 3

        own = closure_service.list_closures(gerente_centro)
        assert {c.store_id for c in own} == {store_centro.id}
        assert [c.date.isoformat() for c in own] == ["2024-06-02", "2024-06-01"]

    def test_search(self, db_session, store_centro, store_norte, director):
        self._close(store_centro, "2024-06-01", director, observations="Faltó cambio")
        self._close(store_norte, "2024-06-03", director)

        assert len(closure_service.list_closures(director, search="norte")) == 1
        assert len(closure_service.list_closures(director, search="2024-06-01")) == 1
        assert len(closure_service.list_closures(director, search="FALTÓ")) == 1
        assert closure_service.list_closures(director, search="nada") == []

    def test_limit(self, db_session, store_centro, director):
        for day in ("2024-06-01", "2024-06-02", "2024-06-03"):
            self._close(store_centro, day, director)

        assert len(closure_service.list_closures(director, limit=2)) == 2

    def test_group_by_date(self):
        groups = closure_service.group_closures_by_date([
            {"id": 3, "date": "2024-06-02"},
            {"id": 2, "date": "2024-06-02"},
            {"id": 1, "date": "2024-06-01"},
        ])

        assert [g["date"] for g in groups] == ["2024-06-02", "2024-06-01"]
        assert [c["id"] for c in groups[0]["closures"]] == [3, 2]
