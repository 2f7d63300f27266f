# Overview: Service-layer operations for stores and cash registers.

"""
Store and Cash Register Service

WHY: Every income, expense and closure belongs to a store, optionally to a
cash register inside it. Stores carry contact data and an optional manager;
registers carry cashier assignments that decide what a cajero sees.

DESIGN PRINCIPLES:
- Stores with recorded activity cannot be deleted, only deactivated
- Registers are never deleted while in use, only deactivated
- Cashiers may only be assigned to registers of their own store
"""

from __future__ import annotations

from ..extensions import db
from ..models import (
    Store,
    CashRegister,
    CashRegisterUser,
    User,
    DailyIncome,
    DailyExpense,
    DailyClosure,
)
from ..permissions import CAJERO, GERENTE_TIENDA, DIRECTOR
from ..validation import clean_text
from .concurrency import run_with_retry
from .permission_service import accessible_store_ids


class StoreError(Exception):
    """Raised when store or register operations fail."""
    pass


class StoreNotFoundError(StoreError):
    pass


# Text columns a store accepts, with their max lengths
_STORE_TEXT_FIELDS = {
    "location": 120,
    "address": 255,
    "phone": 32,
    "email": 255,
    "description": 2000,
    "opening_hours": 255,
    "tax_id": 32,
}


def _get_store_or_raise(store_id: int) -> Store:
    store = db.session.get(Store, store_id)
    if not store:
        raise StoreNotFoundError("Store not found")
    return store


def _check_manager(manager_id: int | None) -> int | None:
    if manager_id is None:
        return None
    manager = db.session.get(User, manager_id)
    if not manager:
        raise StoreError("Manager not found")
    if manager.role not in (GERENTE_TIENDA, DIRECTOR):
        raise StoreError("Manager must be a store manager")
    return manager.id


def _check_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Store).filter(db.func.lower(Store.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Store.id != exclude_id)
    if query.first():
        raise StoreError(f"Store '{name}' already exists")


# =============================================================================
# STORES
# =============================================================================

def create_store(
    name: str,
    location: str,
    *,
    manager_id: int | None = None,
    is_active: bool = True,
    **fields,
) -> Store:
    def _op():
        store_name = clean_text(name, "name", max_length=120, required=True)
        store_location = clean_text(location, "location", max_length=120, required=True)
        _check_unique_name(store_name)

        store = Store(
            name=store_name,
            location=store_location,
            manager_id=_check_manager(manager_id),
            is_active=bool(is_active),
        )
        for key, max_length in _STORE_TEXT_FIELDS.items():
            if key in fields and key != "location":
                setattr(store, key, clean_text(fields[key], key, max_length=max_length) or None)

        db.session.add(store)
        db.session.commit()
        return store

    return run_with_retry(_op)


def update_store(store_id: int, **fields) -> Store:
    """
    Update the given store fields; keys left out are unchanged.

    `manager_id` may be set to None to clear the manager.
    """
    def _op():
        store = _get_store_or_raise(store_id)

        if fields.get("name") is not None:
            store_name = clean_text(fields["name"], "name", max_length=120, required=True)
            _check_unique_name(store_name, exclude_id=store.id)
            store.name = store_name

        if fields.get("location") is not None:
            store.location = clean_text(fields["location"], "location", max_length=120, required=True)

        for key, max_length in _STORE_TEXT_FIELDS.items():
            if key in fields and key != "location":
                setattr(store, key, clean_text(fields[key], key, max_length=max_length) or None)

        if "manager_id" in fields:
            store.manager_id = _check_manager(fields["manager_id"])

        if fields.get("is_active") is not None:
            store.is_active = bool(fields["is_active"])

        db.session.commit()
        return store

    return run_with_retry(_op)


def toggle_store(store_id: int) -> Store:
    def _op():
        store = _get_store_or_raise(store_id)
        store.is_active = not store.is_active
        db.session.commit()
        return store

    return run_with_retry(_op)


def delete_store(store_id: int) -> None:
    """
    Delete a store that has never been used.

    Stores with incomes, expenses, closures, registers or assigned users
    must be deactivated instead, so history keeps its store.
    """
    store = _get_store_or_raise(store_id)

    in_use = (
        db.session.query(DailyIncome.id).filter_by(store_id=store_id).first()
        or db.session.query(DailyExpense.id).filter_by(store_id=store_id).first()
        or db.session.query(DailyClosure.id).filter_by(store_id=store_id).first()
        or db.session.query(CashRegister.id).filter_by(store_id=store_id).first()
        or db.session.query(User.id).filter_by(assigned_store_id=store_id).first()
    )
    if in_use:
        raise StoreError("Store has recorded activity; deactivate it instead")

    db.session.delete(store)
    db.session.commit()


def get_store(store_id: int) -> Store | None:
    return db.session.get(Store, store_id)


def list_stores(user=None, *, search: str | None = None, active_only: bool = False) -> list[Store]:
    """
    Stores ordered by name.

    With a user, only stores that user can access are returned. The search
    term matches name, location, address, phone and email (case-insensitive).
    """
    query = db.session.query(Store)

    if user is not None:
        allowed = accessible_store_ids(user)
        if allowed is not None:
            if not allowed:
                return []
            query = query.filter(Store.id.in_(allowed))

    if active_only:
        query = query.filter(Store.is_active.is_(True))

    term = (search or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(db.or_(
            db.func.lower(Store.name).like(pattern),
            db.func.lower(Store.location).like(pattern),
            db.func.lower(Store.address).like(pattern),
            Store.phone.like(pattern),
            db.func.lower(Store.email).like(pattern),
        ))

    return query.order_by(Store.name.asc()).all()


# =============================================================================
# CASH REGISTERS
# =============================================================================

def create_register(store_id: int, name: str) -> CashRegister:
    store = _get_store_or_raise(store_id)
    register_name = clean_text(name, "name", max_length=128, required=True)

    existing = db.session.query(CashRegister).filter_by(
        store_id=store.id,
        name=register_name
    ).first()
    if existing:
        raise StoreError(f"Register '{register_name}' already exists in this store")

    register = CashRegister(store_id=store.id, name=register_name, is_active=True)
    db.session.add(register)
    db.session.commit()
    return register


def get_register(register_id: int) -> CashRegister | None:
    return db.session.get(CashRegister, register_id)


def list_registers(store_id: int, *, active_only: bool = False) -> list[CashRegister]:
    query = db.session.query(CashRegister).filter_by(store_id=store_id)
    if active_only:
        query = query.filter(CashRegister.is_active.is_(True))
    return query.order_by(CashRegister.name.asc()).all()


def group_registers_by_store(registers) -> dict[int, list[CashRegister]]:
    grouped: dict[int, list[CashRegister]] = {}
    for register in registers:
        grouped.setdefault(register.store_id, []).append(register)
    return grouped


def deactivate_register(register_id: int) -> CashRegister:
    """Deactivate a register (soft delete); its history is preserved."""
    register = db.session.get(CashRegister, register_id)
    if not register:
        raise StoreNotFoundError("Register not found")

    register.is_active = False
    db.session.commit()
    return register


def assign_cashier(register_id: int, user_id: int) -> CashRegisterUser:
    """
    Assign a cajero to a register of their own store.

    Idempotent: assigning twice returns the existing assignment.
    """
    register = db.session.get(CashRegister, register_id)
    if not register:
        raise StoreNotFoundError("Register not found")
    if not register.is_active:
        raise StoreError("Register is not active")

    user = db.session.get(User, user_id)
    if not user:
        raise StoreNotFoundError("User not found")
    if user.role != CAJERO:
        raise StoreError("Only cashiers can be assigned to a register")
    if user.assigned_store_id != register.store_id:
        raise StoreError("Cashier belongs to a different store")

    existing = db.session.query(CashRegisterUser).filter_by(
        cash_register_id=register_id,
        user_id=user_id
    ).first()
    if existing:
        return existing

    assignment = CashRegisterUser(cash_register_id=register_id, user_id=user_id)
    db.session.add(assignment)
    db.session.commit()
    return assignment


def unassign_cashier(register_id: int, user_id: int) -> bool:
    assignment = db.session.query(CashRegisterUser).filter_by(
        cash_register_id=register_id,
        user_id=user_id
    ).first()
    if not assignment:
        return False

    db.session.delete(assignment)
    db.session.commit()
    return True


def list_visible_registers(user) -> list[CashRegister]:
    """
    Registers the user can see.

    Cashiers see only the registers they are assigned to; everyone else sees
    the registers of the stores they can access.
    """
    if user is None:
        return []

    if user.role == CAJERO:
        return (
            db.session.query(CashRegister)
            .join(CashRegisterUser, CashRegisterUser.cash_register_id == CashRegister.id)
            .filter(CashRegisterUser.user_id == user.id)
            .order_by(CashRegister.store_id.asc(), CashRegister.name.asc())
            .all()
        )

    query = db.session.query(CashRegister)
    allowed = accessible_store_ids(user)
    if allowed is not None:
        if not allowed:
            return []
        query = query.filter(CashRegister.store_id.in_(allowed))
    return query.order_by(CashRegister.store_id.asc(), CashRegister.name.asc()).all()
