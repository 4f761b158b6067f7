"""
Pytest fixtures for StockPro backend tests.

Provides test database setup, tenant fixtures, and test client.
"""

import pytest

from stockpro import create_app
from stockpro.extensions import db
from stockpro.models import Company, Product, User
from stockpro.services.auth_service import hash_password


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret',
        'PASSWORD_HASH_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
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
def company_a(db_session):
    """Company A (first tenant)."""
    company = Company(name="Mercado Alfa", email="contato@alfa.com", plan="BASICO", status="ACTIVE")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def company_b(db_session):
    """Company B (second tenant)."""
    company = Company(name="Loja Beta", email="contato@beta.com", plan="PROFISSIONAL", status="ACTIVE")
    db_session.add(company)
    db_session.commit()
    return company


def _make_user(db_session, company, email, *, role="ADMIN", is_platform_admin=False):
    user = User(
        company_id=company.id,
        name=email.split("@")[0],
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        is_platform_admin=is_platform_admin,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def user_a(db_session, company_a):
    """ADMIN user of Company A."""
    return _make_user(db_session, company_a, "admin@alfa.com")


@pytest.fixture(scope='function')
def clerk_a(db_session, company_a):
    """Plain USER of Company A."""
    return _make_user(db_session, company_a, "caixa@alfa.com", role="USER")


@pytest.fixture(scope='function')
def user_b(db_session, company_b):
    """ADMIN user of Company B."""
    return _make_user(db_session, company_b, "admin@beta.com")


@pytest.fixture(scope='function')
def platform_admin(db_session, company_a):
    """Platform operator (company lifecycle management)."""
    return _make_user(db_session, company_a, "ops@stockpro.com", is_platform_admin=True)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for products; keyword arguments override the defaults."""
    def _make(company, code, **overrides):
        fields = {
            "name": f"Product {code}",
            "category": "General",
            "cost_price_cents": 1000,
            "sale_price_cents": 1500,
            "quantity_on_hand": 10,
            "reorder_threshold": 2,
        }
        fields.update(overrides)
        product = Product(company_id=company.id, code=code, **fields)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def headers_a(client, user_a):
    return auth_headers(get_auth_token(client, user_a.email, PASSWORD))


@pytest.fixture(scope='function')
def headers_b(client, user_b):
    return auth_headers(get_auth_token(client, user_b.email, PASSWORD))


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
