"""
Pytest fixtures for stockroom backend tests.

Provides test database setup, users per role with session tokens,
catalog/party records and the test client.
"""

from datetime import date
from decimal import Decimal

import pytest
from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Customer, Product, ProductCategory, Supplier, Warehouse
from stockroom.models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER
from stockroom.services import user_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'BULK_BATCH_SIZE': 2,
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


def make_user(role: str, email: str, name: str | None = None):
    return user_service.create_user({
        "name": name or role.title(),
        "email": email,
        "password": PASSWORD,
        "role": role,
    })


@pytest.fixture(scope='function')
def admin_user(db_session):
    return make_user(ROLE_ADMIN, "admin@inventory.com")


@pytest.fixture(scope='function')
def staff_user(db_session):
    return make_user(ROLE_STAFF, "staff@inventory.com")


@pytest.fixture(scope='function')
def viewer_user(db_session):
    return make_user(ROLE_VIEWER, "viewer@inventory.com")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str | None:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def staff_headers(client, staff_user):
    return auth_headers(get_auth_token(client, staff_user.email))


@pytest.fixture(scope='function')
def viewer_headers(client, viewer_user):
    return auth_headers(get_auth_token(client, viewer_user.email))


@pytest.fixture(scope='function')
def category(db_session):
    """Create category "Hardware"."""
    record = ProductCategory(name="Hardware", description="Nuts, bolts and tools")
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope='function')
def supplier(db_session):
    record = Supplier(name="Acme Supply", phone="555-0100", address="1 Industrial Way", status="active")
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope='function')
def customer(db_session):
    record = Customer(name="Beta Builders", phone="555-0200", address="2 Site Road", status="active")
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope='function')
def warehouse(db_session):
    record = Warehouse(name="Main Warehouse", address="3 Depot Lane")
    db_session.add(record)
    db_session.commit()
    return record


def make_product(session, name: str, **kwargs) -> Product:
    kwargs.setdefault("unit_price", Decimal("2.50"))
    kwargs.setdefault("stock", 0)
    product = Product(name=name, **kwargs)
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def product(db_session, category, supplier):
    """Create product "Steel bolt" with 10 in stock."""
    return make_product(
        db_session,
        "Steel bolt",
        part_number="BOLT-001",
        stock=10,
        unit_price=Decimal("2.50"),
        reorder_level=5,
        category_id=category.id,
        supplier_id=supplier.id,
    )


MARCH_5 = date(2024, 3, 5)
