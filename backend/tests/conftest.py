"""
Pytest fixtures for back-office tests.

Provides the app (SQLite in-memory), test client, per-test table cleanup,
an in-memory record store for service tests, and admin login helpers.
"""

import bcrypt
import pytest

from backoffice import create_app
from backoffice.extensions import db
from backoffice.services.blob_store import MemoryBlobStore


ADMIN_USERNAME = "SaiSiddha333"
ADMIN_PASSWORD = "Pallets#2024"


@pytest.fixture(scope='session')
def admin_password_hash():
    """bcrypt hash of ADMIN_PASSWORD at a low cost factor so tests stay fast."""
    return bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(scope='session')
def app(admin_password_hash):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_USERNAME': ADMIN_USERNAME,
        'ADMIN_PASSWORD_HASH': admin_password_hash,
        'CORS_ALLOWED_ORIGINS': ['http://localhost:5173', 'https://saisiddhafurniture.com'],
        'CORS_ALLOWED_ORIGIN_SUFFIX': '.lovable.app',
        'CORS_DEFAULT_ORIGIN': 'https://saisiddhafurniture.com',
        'INVOICE_FONT_PATH': None,
        'INVOICE_FONT_BOLD_PATH': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client on a clean database."""
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
def memory_store():
    """Record store for service tests that need no database."""
    return MemoryBlobStore()


@pytest.fixture
def pallet_data():
    """48" x 40" x 9" pallet: 10 CFT per piece, Rs 500 per piece at Rs 50/CFT."""
    return {
        "name": "Euro Pallet 48x40",
        "category": "Industrial Wooden Pallets",
        "woodType": "Pine Wood",
        "length": 48,
        "width": 40,
        "height": 9,
        "pricePerCft": 50,
        "quantity": 20,
        "minOrderQuantity": 5,
    }


@pytest.fixture
def customer_data():
    return {
        "name": "Ravi Patil",
        "companyName": "Konkan Exports Pvt Ltd",
        "phone": "9800000001",
        "address": "Plot 12, MIDC, Ratnagiri",
        "state": "Maharashtra",
    }


@pytest.fixture
def admin_credentials():
    return {"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}


@pytest.fixture
def login(client):
    """POST the login action from a given client IP."""
    def _login(username: str = ADMIN_USERNAME, password: str = ADMIN_PASSWORD, ip: str = "203.0.113.10"):
        return client.post(
            '/api/admin-auth/login',
            json={"username": username, "password": password},
            headers={"X-Forwarded-For": ip, "User-Agent": "pytest"},
        )
    return _login


@pytest.fixture
def admin_token(login):
    response = login()
    assert response.status_code == 200, response.get_json()
    return response.get_json()["sessionToken"]


@pytest.fixture
def admin_headers(admin_token):
    """Authorization headers for a logged-in admin."""
    return {"Authorization": f"Bearer {admin_token}"}
