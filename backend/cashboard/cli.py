# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--password "Cashboard2024!"]
#   Idempotent bootstrap: creates tables, the two default stores, one cash
#   register per store and one user per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role cajero]
#   List all users with role, store and active status.
# - python -m flask users create --email a@b.com --full-name "Ana" --password "..." --role cajero --store-id 1
#   Create a user (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms list [--role gerente_tienda]
#   List permissions (optionally only those of one role).
# - python -m flask perms check gerente.centro@financehub.com closures:create
#   Check whether a user has a permission.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Store, User, CashRegister
from .permissions import (
    ALL_ROLES,
    PERMISSION_DEFINITIONS,
    get_effective_permissions,
    get_role_definition,
    get_role_name,
    has_permission,
)
from .services import store_service, user_service
from .services.auth_service import PasswordValidationError
from .services.store_service import StoreError
from .services.user_service import UserError
from .validation import ValidationError


DEFAULT_PASSWORD = "Cashboard2024!"

DEFAULT_STORES = [
    {
        "name": "Tienda Centro",
        "location": "Centro Comercial",
        "address": "Av. Principal, Centro Comercial Plaza Mayor, Local 15",
        "phone": "+58 212-555-0101",
        "email": "centro@empresa.com",
        "description": "Tienda principal en el centro de la ciudad",
        "opening_hours": "Lun-Vie: 8:00 AM - 6:00 PM, Sáb: 9:00 AM - 2:00 PM",
        "tax_id": "J-12345678-9",
    },
    {
        "name": "Tienda Norte",
        "location": "Zona Norte",
        "address": "Calle Comercial Norte, Centro Comercial Norte, Local 8",
        "phone": "+58 212-555-0202",
        "email": "norte@empresa.com",
        "description": "Tienda en la zona norte de la ciudad",
        "opening_hours": "Lun-Vie: 8:00 AM - 6:00 PM, Sáb: 9:00 AM - 2:00 PM",
        "tax_id": "J-87654321-0",
    },
]

# (email, full name, role, phone, index into DEFAULT_STORES or None)
DEFAULT_USERS = [
    ("admin@financehub.com", "Super Administrador", "director", "+58 412-123-4567", None),
    ("contable@financehub.com", "Contador General", "admin_contable", "+58 412-234-5678", None),
    ("gerente.centro@financehub.com", "María González", "gerente_tienda", "+58 412-345-6789", 0),
    ("gerente.norte@financehub.com", "Carlos Rodríguez", "gerente_tienda", "+58 412-456-7890", 1),
    ("cajero.centro@financehub.com", "Ana López", "cajero", "+58 412-567-8901", 0),
    ("asistente@financehub.com", "Pedro Martínez", "asistente_admin", "+58 412-678-9012", None),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default=DEFAULT_PASSWORD, help='Password for the default users')
@with_appcontext
def init_system(password):
    """
    Initialize Cashboard: tables, default stores, registers and users.

    Creates:
    - Stores: Tienda Centro, Tienda Norte (each with register "Caja 1")
    - One user per role; store managers and the cashier are tied to a store
    - The cashier is assigned to the "Caja 1" register of their store

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Cashboard...")
    db.create_all()

    stores = []
    for data in DEFAULT_STORES:
        store = db.session.query(Store).filter_by(name=data["name"]).first()
        if store:
            click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")
        else:
            fields = dict(data)
            store = store_service.create_store(fields.pop("name"), fields.pop("location"), **fields)
            click.echo(f"PASS Created store: {store.name} (ID: {store.id})")

        register = db.session.query(CashRegister).filter_by(store_id=store.id, name="Caja 1").first()
        if not register:
            register = store_service.create_register(store.id, "Caja 1")
            click.echo(f"PASS Created register: {register.name} in {store.name}")
        stores.append((store, register))

    click.echo("\nUSERS Creating default users...")
    for email, full_name, role, phone, store_index in DEFAULT_USERS:
        store, register = stores[store_index] if store_index is not None else (None, None)

        user = user_service.get_user_by_email(email)
        if user:
            click.echo(f"WARN  User '{email}' already exists, skipping...")
        else:
            try:
                user = user_service.create_user(
                    email=email,
                    password=password,
                    full_name=full_name,
                    role=role,
                    assigned_store_id=store.id if store else None,
                    phone=phone,
                )
            except (UserError, PasswordValidationError, ValidationError) as e:
                click.echo(f"FAIL Failed to create user '{email}': {str(e)}")
                continue
            click.echo(f"PASS Created user: {email} with role '{role}'")

        if role == "cajero" and register is not None:
            store_service.assign_cashier(register.id, user.id)

    managers = {store_index: email for email, _, role, _, store_index in DEFAULT_USERS if role == "gerente_tienda"}
    for index, (store, _) in enumerate(stores):
        manager = user_service.get_user_by_email(managers.get(index, ""))
        if manager and store.manager_id is None:
            store_service.update_store(store.id, manager_id=manager.id)

    click.echo("\n" + "=" * 60)
    click.echo("DONE Cashboard initialized")
    click.echo("=" * 60)
    click.echo(f"\nDefault password for every user: {password}")
    click.echo("SECURITY WARNING: change all passwords immediately in production!\n")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--role', type=click.Choice(ALL_ROLES), help='Only users with this role')
@with_appcontext
def list_users(role):
    """List all users with role, store and active status."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 100)
    click.echo(f"{'ID':<5} {'Email':<36} {'Name':<24} {'Role':<26} {'Store':<6} {'Active'}")
    click.echo("=" * 100)
    for user in users:
        active_str = "yes" if user.is_active else "no"
        store_str = str(user.assigned_store_id) if user.assigned_store_id else "-"
        click.echo(
            f"{user.id:<5} {user.email:<36} {user.full_name:<24} "
            f"{get_role_name(user.role) or user.role:<26} {store_str:<6} {active_str}"
        )
    click.echo("=" * 100 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ALL_ROLES), prompt=True, help='Role')
@click.option('--store-id', type=int, default=None, help='Assigned store (required for store-scoped roles)')
@click.option('--phone', default=None, help='Phone number')
@with_appcontext
def create_user_cli(email, full_name, password, role, store_id, phone):
    """Create a new user."""
    try:
        user = user_service.create_user(
            email=email,
            password=password,
            full_name=full_name,
            role=role,
            assigned_store_id=store_id,
            phone=phone,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except (UserError, StoreError, ValidationError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(ALL_ROLES), help='Only permissions granted to this role')
def list_permissions(role):
    """List permission codes with their category and description."""
    definition = get_role_definition(role) if role else None

    for code, name, description, category in PERMISSION_DEFINITIONS:
        if definition is not None and code not in definition.permissions:
            continue
        click.echo(f"{code:<26} {category:<18} {name:<22} {description}")


@perms_group.command('check')
@click.argument('email')
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(email, permission_code):
    """Check if a user has a specific permission."""
    user = user_service.get_user_by_email(email)

    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    if has_permission(user, permission_code):
        click.echo(f"PASS User '{email}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL User '{email}' DOES NOT HAVE permission '{permission_code}'")

    click.echo(f"\nUser role: {get_role_name(user.role) or user.role}")
    click.echo(f"Total permissions: {len(get_effective_permissions(user))}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
