"""
Pytest fixtures for Cashboard backend tests.

Provides test database setup, two stores with one user per role, and
helpers to log in through the API.
"""

import pytest
from cashboard import create_app
from cashboard.extensions import db
from cashboard.models import Store, User, CashRegister, CashRegisterUser
from cashboard.services.auth_service import hash_password


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store_centro(db_session):
    store = Store(name="Tienda Centro", location="Centro Comercial")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_norte(db_session):
    store = Store(name="Tienda Norte", location="Zona Norte")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def register_centro(db_session, store_centro):
    register = CashRegister(store_id=store_centro.id, name="Caja 1")
    db_session.add(register)
    db_session.commit()
    return register


def _make_user(db_session, email, role, store=None):
    user = User(
        email=email,
        full_name=email.split("@")[0],
        role=role,
        assigned_store_id=store.id if store else None,
        password_hash=hash_password(PASSWORD),
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def director(db_session):
    return _make_user(db_session, "director@test.com", "director")


@pytest.fixture(scope='function')
def contable(db_session):
    return _make_user(db_session, "contable@test.com", "admin_contable")


@pytest.fixture(scope='function')
def asistente(db_session):
    return _make_user(db_session, "asistente@test.com", "asistente_admin")


@pytest.fixture(scope='function')
def gerente_centro(db_session, store_centro):
    return _make_user(db_session, "gerente.centro@test.com", "gerente_tienda", store_centro)


@pytest.fixture(scope='function')
def cajero_centro(db_session, store_centro, register_centro):
    """Cashier of Tienda Centro, assigned to its "Caja 1" register."""
    user = _make_user(db_session, "cajero.centro@test.com", "cajero", store_centro)
    db_session.add(CashRegisterUser(cash_register_id=register_centro.id, user_id=user.id))
    db_session.commit()
    return user


def get_auth_token(client, email, password=PASSWORD):
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    assert response.status_code == 200, response.get_json()
    return response.get_json()['token']


def auth_headers(token):
    """Helper to create auth headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def director_headers(client, director):
    return auth_headers(get_auth_token(client, director.email))


@pytest.fixture(scope='function')
def contable_headers(client, contable):
    return auth_headers(get_auth_token(client, contable.email))


@pytest.fixture(scope='function')
def asistente_headers(client, asistente):
    return auth_headers(get_auth_token(client, asistente.email))


@pytest.fixture(scope='function')
def gerente_headers(client, gerente_centro):
    return auth_headers(get_auth_token(client, gerente_centro.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cajero_centro):
    return auth_headers(get_auth_token(client, cajero_centro.email))
