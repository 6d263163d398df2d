"""
Pytest fixtures for shopadmin backend tests.

Provides a fresh in-memory application per test, account/product factories
and auth header helpers.
"""

import pytest

from shopadmin import create_app
from shopadmin.extensions import db
from shopadmin.models import Category, Product, User
from shopadmin.services import auth_service


TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    "CREATE_SCHEMA_ON_STARTUP": True,
    "BCRYPT_ROUNDS": 4,
    "JWT_SECRET": "test-secret",
    "BOOTSTRAP_ADMIN_ENABLED": True,
    "ADMIN_EMAIL": "admin@localhost",
    "ADMIN_PASSWORD": "admin123",
    "ADMIN_NAME": "Admin",
    "SMTP_HOST": None,
}

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope='function')
def app():
    """Create application for testing (schema + RBAC bootstrap run in the factory)."""
    app = create_app(dict(TEST_CONFIG))

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: make_user(email, role="USER", name="Test User", password=DEFAULT_PASSWORD)."""
    def _make(email, role="USER", name="Test User", password=DEFAULT_PASSWORD) -> User:
        user = auth_service.create_user(name, email, password)
        if role != user.role:
            user.role = role
            db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def make_category(db_session):
    def _make(name="Shirts") -> Category:
        category = Category(name=name)
        db_session.add(category)
        db_session.commit()
        return category
    return _make


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name, price=100, stock=5, status="ACTIVE")."""
    def _make(name="Linen Shirt", price=100, stock=5, status="ACTIVE", category=None) -> Product:
        product = Product(
            name=name,
            price_cents=int(price * 100),
            stock=stock,
            status=status,
            category_id=category.id if category is not None else None,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


def get_auth_token(client, email: str, password: str) -> str:
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
def admin_headers(client):
    """Bootstrap admin session."""
    token = get_auth_token(client, TEST_CONFIG["ADMIN_EMAIL"], TEST_CONFIG["ADMIN_PASSWORD"])
    assert token
    return auth_headers(token)


@pytest.fixture(scope='function')
def staff_headers(client, make_user):
    """Session for a USER-role account (no grants by default)."""
    make_user("staff@example.com")
    token = get_auth_token(client, "staff@example.com", DEFAULT_PASSWORD)
    assert token
    return auth_headers(token)


def guest_order_payload(product_id: int, quantity: int = 1, price=100, **overrides) -> dict:
    payload = {
        "items": [{"product_id": product_id, "quantity": quantity, "price": price}],
        "payment_method": "INSTAPAY",
        "shipping_address": {"address": "12 Nile St", "city": "Cairo"},
        "delivery_fee": 0,
        "guest_name": "Guest Buyer",
        "guest_email": "guest@example.com",
        "guest_phone": "+201000000000",
    }
    payload.update(overrides)
    return payload
