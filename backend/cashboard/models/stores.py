from __future__ import annotations

from ..extensions import db
from cashboard.time_utils import to_utc_z


class Store(db.Model):
    """
    Physical store whose cash is tracked day by day.

    DESIGN: Stores are usually deactivated rather than deleted so their
    incomes, expenses and closures keep pointing at a real row.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_stores_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    location = db.Column(db.String(120), nullable=False, default="")
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    # users.id of the manager; not a FK because users also point at stores
    manager_id = db.Column(db.Integer, nullable=True, index=True)

    description = db.Column(db.Text, nullable=True)
    opening_hours = db.Column(db.String(255), nullable=True)
    tax_id = db.Column(db.String(32), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "manager_id": self.manager_id,
            "description": self.description,
            "opening_hours": self.opening_hours,
            "tax_id": self.tax_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CashRegister(db.Model):
    """
    Cash register (caja) inside a store.

    Incomes and expenses can optionally be scoped to a register; cashiers only
    see the registers they are assigned to.
    """
    __tablename__ = "cash_registers"
    __table_args__ = (
        db.UniqueConstraint("store_id", "name", name="uq_cash_registers_store_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("cash_registers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class CashRegisterUser(db.Model):
    """Cashier assignment to a cash register."""
    __tablename__ = "cash_register_users"
    __table_args__ = (
        db.UniqueConstraint("cash_register_id", "user_id", name="uq_cash_register_users"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cash_register_id = db.Column(db.Integer, db.ForeignKey("cash_registers.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    cash_register = db.relationship("CashRegister", backref=db.backref("assignments", lazy=True, cascade="all, delete-orphan"))
    user = db.relationship("User", backref=db.backref("cash_register_assignments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cash_register_id": self.cash_register_id,
            "user_id": self.user_id,
            "assigned_at": to_utc_z(self.assigned_at),
        }
