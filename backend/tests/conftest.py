"""
Pytest fixtures for warehouse backend tests.

Provides an in-memory database shared by the session, a per-test table
wipe, entity factories and authenticated headers for each role.
"""

import pytest
from warehouse import create_app
from warehouse.extensions import db
from warehouse.models import Product, DebtCustomer, User
from warehouse.models.auth import ROLE_ADMIN, ROLE_ASSISTANT_ADMIN, ROLE_USER
from warehouse.services import session_service
from warehouse.services.auth_service import hash_password


DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    data_dir = tmp_path_factory.mktemp("warehouse-data")
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'WAREHOUSE_DATA_DIR': str(data_dir),
        'BACKUP_DIR': str(data_dir / "backups"),
        'EXPORT_DIR': str(data_dir / "exports"),
        'AUTO_MIGRATE': False,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture
def file_app(tmp_path):
    """Separate app on a file-backed SQLite database with an empty schema."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'warehouse.db'}",
        'WAREHOUSE_DATA_DIR': str(tmp_path),
        'BACKUP_DIR': str(tmp_path / "backups"),
        'EXPORT_DIR': str(tmp_path / "exports"),
        'AUTO_MIGRATE': False,
        'BCRYPT_ROUNDS': 4,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.engine.dispose()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    db.session.rollback()
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture
def make_product(db_session):
    """Factory: quantity product by default; pass measurement_type='weight' for weighed goods."""
    def _make(**overrides):
        fields = {
            "name": "Rice 1kg",
            "measurement_type": "quantity",
            "wholesale_price": 100.0,
            "sale_price": 150.0,
            "quantity": 10,
            "min_quantity": 5,
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def make_customer(db_session):
    def _make(name="Abu Ali", phone="07700000000"):
        customer = DebtCustomer(name=name, phone=phone)
        db_session.add(customer)
        db_session.commit()
        return customer
    return _make


@pytest.fixture
def make_user(db_session):
    def _make(username, role=ROLE_USER, password=DEFAULT_PASSWORD, is_active=True):
        user = User(
            username=username,
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
    """Login and return session token."""
    resp = client.post('/api/auth/login', json={
        'username': username,
        'password': password,
    })
    assert resp.status_code == 200, f"Login failed for {username}: {resp.get_json()}"
    return resp.get_json()['token']


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def login(client):
    """Log in through the API; returns Authorization headers."""
    def _login(username, password=DEFAULT_PASSWORD):
        return auth_headers(get_auth_token(client, username, password))
    return _login


def _headers_for(user) -> dict:
    _, token = session_service.create_session(user_id=user.id)
    return auth_headers(token)


@pytest.fixture
def admin_user(make_user):
    return make_user("admin", role=ROLE_ADMIN)


@pytest.fixture
def admin_headers(admin_user):
    return _headers_for(admin_user)


@pytest.fixture
def assistant_headers(make_user):
    return _headers_for(make_user("assistant", role=ROLE_ASSISTANT_ADMIN))


@pytest.fixture
def cashier_headers(make_user):
    return _headers_for(make_user("cashier", role=ROLE_USER))
