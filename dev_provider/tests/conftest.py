"""
Pytest configuration for dev_provider. In-memory SQLite and a temp signing key so tests don't touch the working tree.
"""
import json
import os
import tempfile

# database.py uses StaticPool for in-memory SQLite so all connections share the same DB
os.environ["DEV_PROVIDER_DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault(
    "DEV_PROVIDER_SIGNING_KEY_PATH",
    os.path.join(tempfile.gettempdir(), "dev_provider_test_signing_key.pem"),
)
for var in ("DEV_PROVIDER_SEED_USER", "DEV_PROVIDER_SEED_PASSWORD"):
    os.environ.pop(var, None)

import pytest
from fastapi.testclient import TestClient

from dev_provider.database import SessionLocal, init_db
from dev_provider.main import app
from dev_provider.models import User
from dev_provider.seed import ensure_client, hash_password

REDIRECT_URI = "http://127.0.0.1:4200"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seeded(client):
    """Tables plus one user and the demo client (lifespan only runs inside a TestClient context)."""
    init_db()
    db = SessionLocal()
    try:
        if db.query(User).filter(User.username == "testuser").first() is None:
            db.add(
                User(
                    username="testuser",
                    password_hash=hash_password("testpass"),
                    name="Test User",
                    given_name="Test",
                    family_name="User",
                    email="test@example.com",
                    phone_number="+1 555 0100",
                    address=json.dumps({"formatted": "1 Main St", "country": "US"}),
                )
            )
            db.commit()
        ensure_client(db, "demoapp", [REDIRECT_URI])
        yield db
    finally:
        db.close()


@pytest.fixture
def authorize_params():
    return {
        "response_type": "id_token token",
        "client_id": "demoapp",
        "redirect_uri": REDIRECT_URI,
        "scope": "openid profile email address phone",
        "state": "st-123",
        "nonce": "n-456",
    }
