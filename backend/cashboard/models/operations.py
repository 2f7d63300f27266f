from __future__ import annotations

from ..extensions import db
from cashboard.reconciliation import IncomeRecord, ExpenseRecord
from cashboard.time_utils import to_utc_z, format_business_date


class DailyIncome(db.Model):
    """
    One income entry for a store day, optionally tied to a cash register.

    `is_opening` marks the shift's opening float: reported at closure but
    never counted as revenue. amount_bs = amount_usd * bcv_rate at entry time.

    IMMUTABLE: created and deleted, never edited.
    """
    __tablename__ = "daily_incomes"
    __table_args__ = (
        db.Index("ix_daily_incomes_store_date", "store_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    cash_register_id = db.Column(db.Integer, db.ForeignKey("cash_registers.id"), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False)

    amount_usd = db.Column(db.Float, nullable=False, default=0.0)
    payment_method = db.Column(db.String(32), nullable=False)
    payment_details = db.Column(db.String(255), nullable=True)  # Account, terminal, bank
    description = db.Column(db.String(255), nullable=True)
    is_opening = db.Column(db.Boolean, nullable=False, default=False)

    bcv_rate = db.Column(db.Float, nullable=False)
    amount_bs = db.Column(db.Float, nullable=False, default=0.0)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("incomes", lazy=True))

    def to_record(self) -> IncomeRecord:
        return IncomeRecord(
            store_id=self.store_id,
            date=format_business_date(self.date),
            amount_usd=self.amount_usd,
            payment_method=self.payment_method,
            is_opening=bool(self.is_opening),
            bcv_rate=self.bcv_rate,
            cash_register_id=self.cash_register_id,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "cash_register_id": self.cash_register_id,
            "date": format_business_date(self.date),
            "amount_usd": self.amount_usd,
            "payment_method": self.payment_method,
            "payment_details": self.payment_details,
            "description": self.description,
            "is_opening": self.is_opening,
            "bcv_rate": self.bcv_rate,
            "amount_bs": self.amount_bs,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class DailyExpense(db.Model):
    """
    One expense for a store day, paid from one of the payment sources.

    Entered in bolivares or USD; the other amount is derived with the day's
    BCV rate.
    """
    __tablename__ = "daily_expenses"
    __table_args__ = (
        db.Index("ix_daily_expenses_store_date", "store_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    cash_register_id = db.Column(db.Integer, db.ForeignKey("cash_registers.id"), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False)

    amount_bs = db.Column(db.Float, nullable=False, default=0.0)
    amount_usd = db.Column(db.Float, nullable=False, default=0.0)
    payment_source = db.Column(db.String(32), nullable=False)
    description = db.Column(db.String(255), nullable=False, default="")
    bcv_rate = db.Column(db.Float, nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("expenses", lazy=True))

    def to_record(self) -> ExpenseRecord:
        return ExpenseRecord(
            store_id=self.store_id,
            date=format_business_date(self.date),
            amount_usd=self.amount_usd,
            payment_source=self.payment_source,
            description=self.description or "",
            amount_bs=self.amount_bs,
            bcv_rate=self.bcv_rate,
            cash_register_id=self.cash_register_id,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "cash_register_id": self.cash_register_id,
            "date": format_business_date(self.date),
            "amount_bs": self.amount_bs,
            "amount_usd": self.amount_usd,
            "payment_source": self.payment_source,
            "description": self.description,
            "bcv_rate": self.bcv_rate,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class DailyClosure(db.Model):
    """
    Closed store day or shift.

    WHY: Freezes what the system calculated next to what the cashier counted,
    so differences stay visible after the fact.

    LIFECYCLE: created once per (store, date, shift_name); never edited.
    INVARIANT: net_profit_usd == calculated_total_usd - total_expenses_usd.
    """
    __tablename__ = "closures"
    __table_args__ = (
        db.UniqueConstraint("store_id", "date", "shift_name", name="uq_closures_store_date_shift"),
        db.Index("ix_closures_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    cash_register_id = db.Column(db.Integer, db.ForeignKey("cash_registers.id"), nullable=True)
    date = db.Column(db.Date, nullable=False)
    bcv_rate = db.Column(db.Float, nullable=False)
    shift_name = db.Column(db.String(64), nullable=False, default="")  # "" = whole day

    # Calculated totals from individual incomes
    total_cash_usd = db.Column(db.Float, nullable=False, default=0.0)
    total_zelle_usd = db.Column(db.Float, nullable=False, default=0.0)
    total_mobile_payment_usd = db.Column(db.Float, nullable=False, default=0.0)
    total_pdv_banesco_usd = db.Column(db.Float, nullable=False, default=0.0)
    total_cashea_usd = db.Column(db.Float, nullable=False, default=0.0)

    # Manual verification amounts
    declared_cash_usd = db.Column(db.Float, nullable=False, default=0.0)
    declared_zelle_usd = db.Column(db.Float, nullable=False, default=0.0)
    declared_mobile_payment_usd = db.Column(db.Float, nullable=False, default=0.0)
    declared_pdv_banesco_usd = db.Column(db.Float, nullable=False, default=0.0)
    declared_cashea_usd = db.Column(db.Float, nullable=False, default=0.0)

    observations = db.Column(db.Text, nullable=False, default="")
    surplus_notes = db.Column(db.Text, nullable=False, default="")
    petty_cash_usd = db.Column(db.Float, nullable=False, default=0.0)
    stored_cash_usd = db.Column(db.Float, nullable=False, default=0.0)
    opening_total_usd = db.Column(db.Float, nullable=False, default=0.0)

    calculated_total_usd = db.Column(db.Float, nullable=False, default=0.0)
    declared_total_usd = db.Column(db.Float, nullable=False, default=0.0)
    difference_usd = db.Column(db.Float, nullable=False, default=0.0)
    total_expenses_usd = db.Column(db.Float, nullable=False, default=0.0)
    net_profit_usd = db.Column(db.Float, nullable=False, default=0.0)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    store = db.relationship("Store", backref=db.backref("closures", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "store_name": self.store.name if self.store else None,
            "store_location": self.store.location if self.store else None,
            "cash_register_id": self.cash_register_id,
            "date": format_business_date(self.date),
            "bcv_rate": self.bcv_rate,
            "shift_name": self.shift_name,
            "total_cash_usd": self.total_cash_usd,
            "total_zelle_usd": self.total_zelle_usd,
            "total_mobile_payment_usd": self.total_mobile_payment_usd,
            "total_pdv_banesco_usd": self.total_pdv_banesco_usd,
            "total_cashea_usd": self.total_cashea_usd,
            "declared_cash_usd": self.declared_cash_usd,
            "declared_zelle_usd": self.declared_zelle_usd,
            "declared_mobile_payment_usd": self.declared_mobile_payment_usd,
            "declared_pdv_banesco_usd": self.declared_pdv_banesco_usd,
            "declared_cashea_usd": self.declared_cashea_usd,
            "observations": self.observations,
            "surplus_notes": self.surplus_notes,
            "petty_cash_usd": self.petty_cash_usd,
            "stored_cash_usd": self.stored_cash_usd,
            "opening_total_usd": self.opening_total_usd,
            "calculated_total_usd": self.calculated_total_usd,
            "declared_total_usd": self.declared_total_usd,
            "difference_usd": self.difference_usd,
            "total_expenses_usd": self.total_expenses_usd,
            "net_profit_usd": self.net_profit_usd,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
