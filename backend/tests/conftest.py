"""
Pytest fixtures for storefront backend tests.

Provides the test app (in-memory SQLite), a clean database per test, one
account per role with bearer tokens, and a product factory.
"""

import pytest
from storefront import create_app
from storefront.extensions import db
from storefront.models import Product
from storefront.services import auth_service, session_service


PASSWORD = "Password123"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BCRYPT_ROUNDS': 4,
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function', autouse=True)
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    db.session.rollback()
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.expunge_all()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def admin(db_session):
    user, _ = auth_service.ensure_admin(email="admin@admin.com", password=PASSWORD)
    return user


@pytest.fixture(scope='function')
def seller(db_session):
    return auth_service.create_seller(
        email="seller@shop.test",
        password=PASSWORD,
        name="Sam Seller",
        username="seller1",
    )


@pytest.fixture(scope='function')
def customer(db_session):
    return auth_service.register_customer(
        email="customer@shop.test",
        password=PASSWORD,
        name="Casey Customer",
    )


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(session_service.issue(admin))


@pytest.fixture(scope='function')
def seller_headers(seller):
    return auth_headers(session_service.issue(seller))


@pytest.fixture(scope='function')
def customer_headers(customer):
    return auth_headers(session_service.issue(customer))


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name="Mug", price_cents=1200, stock=5)."""
    def _make(name="Mug", price_cents=1200, stock=5, description=None):
        product = Product(name=name, price_cents=price_cents, stock=stock, description=description)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


def checkout_payload(*items, **overrides) -> dict:
    """Build a POST /api/orders body from (product_id, quantity) pairs."""
    payload = {
        "customer_name": "Guest Shopper",
        "customer_email": "guest@shop.test",
        "items": [{"product_id": pid, "quantity": qty} for pid, qty in items],
        "shipping_address": {"line1": "1 Main St", "city": "Springfield", "postal_code": "12345"},
    }
    payload.update(overrides)
    return payload


def get_auth_token(client, identifier: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for an account."""
    response = client.post('/api/auth/login', json={
        'email': identifier,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
