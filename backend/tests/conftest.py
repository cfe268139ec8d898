import os
import tempfile

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

# Signing key standing in for the Clerk instance key
_private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
PRIVATE_KEY_PEM = _private_key.private_bytes(
    serialization.Encoding.PEM,
    serialization.PrivateFormat.PKCS8,
    serialization.NoEncryption(),
).decode()
PUBLIC_KEY_PEM = _private_key.public_key().public_bytes(
    serialization.Encoding.PEM,
    serialization.PublicFormat.SubjectPublicKeyInfo,
).decode()

_db_dir = tempfile.mkdtemp(prefix="storefront-tests-")

# Settings are read at import time, so the environment must be ready first
os.environ.update({
    "SANITY_PROJECT_ID": "testproj",
    "SANITY_DATASET": "test",
    "SANITY_API_TOKEN": "sanity-token",
    "STRIPE_SECRET_KEY": "sk_test_123",
    "CLERK_JWT_KEY": PUBLIC_KEY_PEM,
    "CLERK_SECRET_KEY": "clerk-secret",
    "CLERK_AUTHORIZED_PARTIES": "http://localhost:3000",
    "BASE_URL": "https://shop.example.com",
    "DATABASE_URL": f"sqlite:///{_db_dir}/audit.db",
})

import pytest
from fastapi.testclient import TestClient
from jose import jwt


@pytest.fixture
def client():
    from main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_token():
    def _make(user_id="user_1", azp="http://localhost:3000", key=PRIVATE_KEY_PEM):
        return jwt.encode({"sub": user_id, "azp": azp}, key, algorithm="RS256")
    return _make
