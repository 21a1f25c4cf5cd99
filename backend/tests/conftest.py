"""
Pytest fixtures for RetailHub backend tests.

Provides the test database, one store pair, users per role with their
RoleContext, a small catalogue with stock, and helpers for sales and auth.
"""

from datetime import timedelta

import pytest

from retailhub import create_app
from retailhub.extensions import db, cache
from retailhub.models import User, UserStore, Store, Product, Stock, Sale, SaleItem
from retailhub.services.auth_service import hash_password
from retailhub.services.context_service import load_context
from retailhub.time_utils import utcnow


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CACHE_TYPE': 'SimpleCache',
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
    """Create fresh database (and empty cache) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        cache.clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(db_session, *, email, role, store_ids=(), name=None, is_active=True) -> User:
    """Insert a user directly (low bcrypt cost keeps the suite fast)."""
    user = User(
        email=email,
        name=name or email.split("@")[0].title(),
        password_hash=hash_password(PASSWORD, rounds=4),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.flush()
    for store_id in store_ids:
        db_session.add(UserStore(user_id=user.id, store_id=store_id))
    db_session.commit()
    return user


def make_sale(db_session, *, store, seller, total, status="completed", created_at=None,
              items=(), tax_amount=0, discount_amount=0, customer_name=None) -> Sale:
    """items: iterable of (product, quantity, unit_price)."""
    count = db_session.query(Sale).count()
    sale = Sale(
        sale_number=f"S-{count + 1:05d}",
        store_id=store.id,
        seller_id=seller.id,
        customer_name=customer_name,
        status=status,
        total=total,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        created_at=created_at or utcnow() - timedelta(hours=1),
    )
    db_session.add(sale)
    db_session.flush()
    for product, quantity, unit_price in items:
        db_session.add(SaleItem(
            sale_id=sale.id,
            product_id=product.id,
            quantity=quantity,
            unit_price=unit_price,
            total_price=quantity * unit_price,
        ))
    db_session.commit()
    return sale


@pytest.fixture(scope='function')
def store_a(db_session):
    store = Store(name="Dakar Plateau", address="12 Avenue Pompidou", is_active=True)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session):
    store = Store(name="Thiès Centre", address="3 Rue de la Gare", is_active=True)
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def admin_user(db_session):
    return make_user(db_session, email="admin@retailhub.test", role="admin", name="Awa Admin")


@pytest.fixture(scope='function')
def manager_user(db_session, store_a):
    return make_user(db_session, email="manager@retailhub.test", role="manager",
                     store_ids=[store_a.id], name="Moussa Manager")


@pytest.fixture(scope='function')
def seller_user(db_session, store_a):
    return make_user(db_session, email="seller@retailhub.test", role="seller",
                     store_ids=[store_a.id], name="Fatou Seller")


@pytest.fixture(scope='function')
def seller_b(db_session, store_b):
    return make_user(db_session, email="seller.b@retailhub.test", role="seller",
                     store_ids=[store_b.id], name="Ibrahima Seller")


@pytest.fixture(scope='function')
def admin_ctx(admin_user):
    return load_context(admin_user.id)


@pytest.fixture(scope='function')
def manager_ctx(manager_user):
    return load_context(manager_user.id)


@pytest.fixture(scope='function')
def seller_ctx(seller_user):
    return load_context(seller_user.id)


@pytest.fixture(scope='function')
def products(db_session, store_a):
    """Three products stocked in store A: 10, 0 and 5 units."""
    rows = [
        Product(sku="RIZ-25KG", name="Riz parfumé 25kg", category="Épicerie", price=18000),
        Product(sku="HUILE-5L", name="Huile, arachide 5L", category="Épicerie", price=7500),
        Product(sku="SUCRE-1KG", name="Sucre 1kg", category="Épicerie", price=800),
    ]
    db_session.add_all(rows)
    db_session.flush()
    for product, quantity in zip(rows, (10, 0, 5)):
        db_session.add(Stock(store_id=store_a.id, product_id=product.id, quantity=quantity))
    db_session.commit()
    return rows


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
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
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, manager_user.email))


@pytest.fixture(scope='function')
def seller_headers(client, seller_user):
    return auth_headers(get_auth_token(client, seller_user.email))
