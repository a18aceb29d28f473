"""
Pytest fixtures for LojaRoupa backend tests.

Provides test database setup, users, catalog fixtures, and test client.
"""

from decimal import Decimal

import pytest
from lojaroupa import create_app
from lojaroupa.extensions import db
from lojaroupa.models import Category, Product, User
from lojaroupa.models.inventory import DIRECTION_IN
from lojaroupa.services.auth_service import hash_password
from lojaroupa.services.inventory_ledger import InventoryLedger

ADMIN_PASSWORD = "admin123"
USER_PASSWORD = "user123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret',
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


def _make_user(db_session, *, name, email, password, access_level):
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        access_level=access_level,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(
        db_session,
        name="Admin Loja",
        email="admin@lojaroupa.test",
        password=ADMIN_PASSWORD,
        access_level="admin",
    )


@pytest.fixture(scope='function')
def regular_user(db_session):
    return _make_user(
        db_session,
        name="Vendedora",
        email="vendas@lojaroupa.test",
        password=USER_PASSWORD,
        access_level="user",
    )


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Camisetas")
    db_session.add(cat)
    db_session.commit()
    return cat


def make_product(db_session, *, name, price, size="M", color="Preto", alert_threshold=5, category=None):
    """Helper to create a product with a Decimal price."""
    product = Product(
        name=name,
        brand="Marca",
        price=Decimal(price),
        size=size,
        color=color,
        alert_threshold=alert_threshold,
        category=category,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def shirt(db_session, category):
    """Product priced 100.00."""
    return make_product(db_session, name="Camiseta Basica", price="100.00", category=category)


@pytest.fixture(scope='function')
def jacket(db_session):
    """Product priced 150.00."""
    return make_product(db_session, name="Jaqueta Jeans", price="150.00")


@pytest.fixture(scope='function')
def scarf(db_session):
    """Product priced 149.99."""
    return make_product(db_session, name="Cachecol", price="149.99")


def stock_up(db_session, product, quantity: int) -> None:
    """Seed on-hand stock without journaling it."""
    InventoryLedger(db_session).apply_movement(product.id, quantity, DIRECTION_IN)
    db_session.commit()


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
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
    return auth_headers(get_auth_token(client, admin_user.email, ADMIN_PASSWORD))


@pytest.fixture(scope='function')
def user_headers(client, regular_user):
    return auth_headers(get_auth_token(client, regular_user.email, USER_PASSWORD))


def post_movement(client, headers, product, *, type, quantity, price, party="Cliente"):
    """Register a movement through the API and return the response."""
    return client.post('/api/stock/movements', headers=headers, json={
        'product_id': product.id,
        'quantity': quantity,
        'type': type,
        'transaction_price': price,
        'supplier_or_buyer': party,
    })
