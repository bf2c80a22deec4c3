"""
Pytest fixtures for SmartSeller backend tests.

Provides the application on an in-memory SQLite database, a per-test clean
schema, catalogue factories and an authenticated test client.
"""

import pytest
from smartseller import create_app
from smartseller.extensions import db
from smartseller.models import Product
from smartseller.services import combo_service, session_service
from smartseller.services.requirements_service import Ingredient

VENDOR_PASSWORD = "test-vendor-pass"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'VENDOR_PASSWORD': VENDOR_PASSWORD,
        'DEFAULT_DELIVERY_FEE': 100.0,
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
        db.session.expunge_all()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product("Bun", price=50, cost_price=20, stock=10)."""
    def _make(name, price=0, cost_price=0, stock=0, low_stock_threshold=5):
        product = Product(
            name=name,
            price=price,
            cost_price=cost_price,
            stock=stock,
            low_stock_threshold=low_stock_threshold,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def make_combo(db_session):
    """Factory: make_combo("Burger Menu", [(product, qty), ...])."""
    def _make(name, parts):
        ingredients = [Ingredient(product_id=p.id, quantity=qty) for p, qty in parts]
        return combo_service.create_combo(name, ingredients)
    return _make


@pytest.fixture(scope='function')
def auth_headers(db_session):
    """Authorization header for a fresh vendor session."""
    _, token = session_service.login(VENDOR_PASSWORD)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def stock_of(db_session):
    """stock_of(product_id): current stock straight from the database."""
    def _stock(product_id: int) -> int:
        db_session.expire_all()
        return db_session.get(Product, product_id).stock
    return _stock
