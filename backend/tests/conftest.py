"""
Pytest fixtures for scanpos backend tests.

Provides an in-memory database, a per-test table wipe, staff principals with
bearer tokens, catalog products, and the shop scan flag.
"""

import pytest
from scanpos import create_app
from scanpos.extensions import db
from scanpos.models import Product, Sale, SaleItem
from scanpos.models.auth import ROLE_ADMIN, ROLE_STAFF
from scanpos.models.sales import SOURCE_CUSTOMER_SCAN, STATUS_PENDING
from scanpos.services import settings_service, staff_service, token_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SALE_CODE_MAX_ATTEMPTS': 6,
        'SCAN_POLL_INTERVAL_MS': 2500,
        'DB_RETRY_BACKOFF_SECONDS': 0,
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
def scan_enabled(db_session):
    settings_service.set_scan_enabled(True)


@pytest.fixture(scope='function')
def scan_disabled(db_session):
    settings_service.set_scan_enabled(False)


@pytest.fixture(scope='function')
def admin(db_session):
    return staff_service.create_staff("admin", role=ROLE_ADMIN, display_name="Admin")


@pytest.fixture(scope='function')
def cashier(db_session):
    return staff_service.create_staff("Ama K", role=ROLE_STAFF, display_name="Ama")


@pytest.fixture(scope='function')
def admin_headers(admin):
    _, token = token_service.issue_token(admin.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def cashier_headers(cashier):
    _, token = token_service.issue_token(cashier.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def product_a(db_session):
    """Product A at 10.00."""
    product = Product(sku="PROD-A", name="Product A", price_cents=1000)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session):
    """Product B at 2.50."""
    product = Product(sku="PROD-B", name="Product B", price_cents=250)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def retired_product(db_session):
    product = Product(sku="OLD-1", name="Retired", price_cents=500, is_active=False)
    db_session.add(product)
    db_session.commit()
    return product


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def add_pending_scan_sale(code: str, **overrides) -> Sale:
    """Insert a PENDING scan sale directly, bypassing the service."""
    values = dict(
        public_code=code,
        source=SOURCE_CUSTOMER_SCAN,
        status=STATUS_PENDING,
        payment_method="CASH",
        total_cents=0,
    )
    values.update(overrides)
    sale = Sale(**values)
    db.session.add(sale)
    db.session.commit()
    return sale


def sequence_generator(*codes):
    """Stand-in for generate_code returning `codes` in order; counts calls."""
    calls = []

    def _generate():
        calls.append(1)
        return codes[min(len(calls), len(codes)) - 1]

    _generate.calls = calls
    return _generate


def sale_count() -> int:
    return db.session.query(Sale).count()


def item_count() -> int:
    return db.session.query(SaleItem).count()
