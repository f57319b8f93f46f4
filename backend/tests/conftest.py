"""
Pytest fixtures for posledger backend tests.

Provides test database setup, users per role, catalog/party fixtures and
the test client.
"""

import pytest
from posledger import create_app
from posledger.extensions import db
from posledger.models import Product, Customer, Supplier
from posledger.services.auth_service import create_user


DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'ALLOW_NEGATIVE_STOCK': True,
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


def _make_user(username: str, role: str):
    return create_user(username=username, password=DEFAULT_PASSWORD, role=role)


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user("admin", "admin")


@pytest.fixture(scope='function')
def sales_user(db_session):
    return _make_user("seller", "sales")


@pytest.fixture(scope='function')
def accountant_user(db_session):
    return _make_user("accountant", "accountant")


@pytest.fixture(scope='function')
def warehouse_user(db_session):
    return _make_user("keeper", "warehouse")


@pytest.fixture(scope='function')
def product_a(db_session):
    """Price 100, cost 60, 10 on hand."""
    product = Product(
        sku="PROD-A-001",
        barcode="1000000000001",
        name="Product A",
        price_cents=100,
        cost_cents=60,
        quantity=10,
        min_quantity=2,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session):
    """Price 50, cost 20, 5 on hand (already below its minimum of 10)."""
    product = Product(
        sku="PROD-B-001",
        name="Product B",
        price_cents=50,
        cost_cents=20,
        quantity=5,
        min_quantity=10,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def customer(db_session):
    c = Customer(name="Ali Hassan", phone="07700000000")
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def supplier(db_session):
    s = Supplier(name="Baghdad Wholesale")
    db_session.add(s)
    db_session.commit()
    return s


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def sales_headers(client, sales_user):
    return auth_headers(get_auth_token(client, sales_user.username))


@pytest.fixture(scope='function')
def accountant_headers(client, accountant_user):
    return auth_headers(get_auth_token(client, accountant_user.username))


@pytest.fixture(scope='function')
def warehouse_headers(client, warehouse_user):
    return auth_headers(get_auth_token(client, warehouse_user.username))


def sale_payload(*items, **header):
    """Build an invoice payload; items are (product_id, quantity, price_cents) tuples."""
    payload = {
        "type": header.pop("type", "sale"),
        "payment_method": header.pop("payment_method", "cash"),
        "items": [
            {"product_id": pid, "quantity": qty, "price_cents": price}
            for pid, qty, price in items
        ],
    }
    payload.update(header)
    return payload
