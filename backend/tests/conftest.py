"""
Pytest fixtures for shopledger backend tests.

Provides test database setup, two shops for tenant isolation, users with
bearer tokens, and item/supplier factories.
"""

import pytest
from shopledger import create_app
from shopledger.extensions import db
from shopledger.models import Shop, User
from shopledger.services import item_service, session_service
from shopledger.services.tenant_service import ShopScope


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
def shop_a(db_session):
    """Create Shop A (first tenant)."""
    shop = Shop(name="Shop A - Main Street Auto", code="MAIN", is_active=True)
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def shop_b(db_session):
    """Create Shop B (second tenant)."""
    shop = Shop(name="Shop B - Harbour Spares", code="HARB", is_active=True)
    db_session.add(shop)
    db_session.commit()
    return shop


@pytest.fixture(scope='function')
def user_a(db_session, shop_a):
    """Create cashier in Shop A."""
    user = User(shop_id=shop_a.id, username="cashier_a", full_name="Alice Cashier", role="cashier")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def user_b(db_session, shop_b):
    """Create cashier in Shop B."""
    user = User(shop_id=shop_b.id, username="cashier_b", full_name="Bob Cashier", role="cashier")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def scope_a(shop_a, user_a):
    return ShopScope(shop_id=shop_a.id, user_id=user_a.id)


@pytest.fixture(scope='function')
def scope_b(shop_b, user_b):
    return ShopScope(shop_id=shop_b.id, user_id=user_b.id)


@pytest.fixture(scope='function')
def token_a(user_a):
    _, token = session_service.create_session(user_a.id)
    return token


@pytest.fixture(scope='function')
def token_b(user_b):
    _, token = session_service.create_session(user_b.id)
    return token


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory: make_item(scope, name, quantity=..., buying=..., selling=...)."""
    def _make(scope, name, *, quantity=10, buying=1000, selling=1500, **extra):
        return item_service.create_item(
            scope,
            name=name,
            buying_price_cents=buying,
            selling_price_cents=selling,
            quantity=quantity,
            **extra,
        )
    return _make


@pytest.fixture(scope='function')
def oil_filter(scope_a, make_item):
    """Item "Oil Filter" with quantity 5 in Shop A (buy 8.00, sell 12.00)."""
    return make_item(scope_a, "Oil Filter", quantity=5, buying=800, selling=1200)


@pytest.fixture(scope='function')
def brake_pads(scope_a, make_item):
    """Item "Brake Pads" with quantity 20 in Shop A (buy 30.00, sell 45.00)."""
    return make_item(scope_a, "Brake Pads", quantity=20, buying=3000, selling=4500)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
