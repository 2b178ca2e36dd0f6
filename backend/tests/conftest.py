"""
Pytest fixtures for dealer-ops backend tests.

Provides the application, a per-test clean database, seeded roles and
profiles (admin / seller / transporter) and authenticated headers.
"""

from datetime import date

import pytest
from dealerops import create_app
from dealerops.extensions import db
from dealerops.models import Profile, Role, Vehicle
from dealerops.permissions import ADMIN_ROLE_NAME
from dealerops.services.auth_service import hash_password, create_default_roles


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp("uploads")),
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


def _profile(db_session, *, username: str, role: str, role_name: str, status: str = "active") -> Profile:
    role_row = db_session.query(Role).filter_by(name=role_name).first()
    profile = Profile(
        username=username,
        email=f"{username}@dealerops.test",
        password_hash=hash_password(PASSWORD),
        role=role,
        role_id=role_row.id if role_row else None,
        status=status,
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture(scope='function')
def seed(db_session):
    """Default roles plus one admin, seller and transporter profile."""
    create_default_roles()
    return {
        "admin": _profile(db_session, username="admin", role="admin", role_name=ADMIN_ROLE_NAME),
        "seller": _profile(db_session, username="seller", role="seller", role_name="Seller"),
        "transporter": _profile(db_session, username="transporter", role="transporter", role_name="Transporter"),
    }


@pytest.fixture(scope='function')
def admin_headers(client, seed):
    return auth_headers(get_auth_token(client, "admin", PASSWORD))


@pytest.fixture(scope='function')
def seller_headers(client, seed):
    return auth_headers(get_auth_token(client, "seller", PASSWORD))


@pytest.fixture(scope='function')
def transporter_headers(client, seed):
    return auth_headers(get_auth_token(client, "transporter", PASSWORD))


@pytest.fixture(scope='function')
def make_vehicle(db_session, seed):
    """Factory: insert a vehicle directly and return it."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "year": 2020,
            "make": "Honda",
            "model": "Accord",
            "status": "Pending",
            "vin": f"1HGCV1F3{counter['n']:09d}",
            "created_by": seed["admin"].id,
        }
        data.update(overrides)
        vehicle = Vehicle(**data)
        db_session.add(vehicle)
        db_session.commit()
        return vehicle

    return _make


@pytest.fixture(scope='function')
def sold_vehicle(make_vehicle):
    return make_vehicle(
        status="Sold",
        bought_price=10000,
        buy_fee=500,
        other_charges=100,
        sale_invoice=15000,
        sale_date=date(2025, 3, 12),
        buyer_contact_name="Jane Buyer",
        vehicle_location="Dallas Lot",
    )


def get_auth_token(client, username: str, password: str) -> str:
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
def login(client, seed):
    """Factory: log in a seeded profile and return its bearer token."""
    def _login(username: str, password: str = PASSWORD) -> str:
        return get_auth_token(client, username, password)
    return _login
