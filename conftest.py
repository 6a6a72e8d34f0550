"""
Common test fixtures for the StudyShare API tests.

Bearer tokens are real RS256 JWTs signed with a key pair generated once
per session; its public half is primed into the Cognito JWKS cache so
verification runs unchanged.  Object storage is replaced by an
in-memory backend that records what was saved and deleted.
"""
import json
import time
import uuid

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from django.apps import apps
from django.conf import settings
from jwt.algorithms import RSAAlgorithm

from resources.storage import ObjectStorage, StorageError, StoredObject

TEST_KID = "test-key"


class InMemoryObjectStorage(ObjectStorage):
    """Object storage double that keeps bytes in a dict."""

    def __init__(self):
        self.objects = {}
        self.saved = []
        self.deleted = []
        self.fail_save = False
        self.fail_delete = False

    def save(self, upload):
        if self.fail_save:
            raise StorageError("storage unavailable")
        public_id = f"resources/{uuid.uuid4().hex[:8]}_{upload.name}"
        upload.seek(0)
        self.objects[f"raw:{public_id}"] = upload.read()
        self.saved.append(f"raw:{public_id}")
        return StoredObject(
            url=f"https://res.cloudinary.com/demo/raw/upload/v1712345678/{public_id}",
            object_id=f"raw:{public_id}",
            size=upload.size,
            content_type=upload.content_type,
        )

    def delete(self, object_id):
        if self.fail_delete:
            raise StorageError("delete refused")
        self.objects.pop(object_id, None)
        self.deleted.append(object_id)


@pytest.fixture(scope="session")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(autouse=True)
def cognito_jwks(signing_key, monkeypatch):
    """Serve the test public key from the JWKS cache."""
    from common import cognito_auth

    jwk = json.loads(RSAAlgorithm.to_jwk(signing_key.public_key()))
    jwk.update({"kid": TEST_KID, "alg": "RS256", "use": "sig"})
    monkeypatch.setitem(cognito_auth._JWKS_CACHE, "keys", [jwk])
    monkeypatch.setitem(cognito_auth._JWKS_CACHE, "fetched_at", int(time.time()))
    return jwk


@pytest.fixture
def make_token(signing_key):
    """Build a signed Cognito id token; keyword args override claims."""
    def _make(sub="user-1", name="Ada Lovelace", email="ada@example.com", **overrides):
        now = int(time.time())
        claims = {
            "sub": sub,
            "name": name,
            "email": email,
            "cognito:username": sub,
            "token_use": "id",
            "aud": settings.COGNITO_APP_CLIENT_ID,
            "iss": f"https://cognito-idp.{settings.COGNITO_REGION}.amazonaws.com/{settings.COGNITO_USER_POOL_ID}",
            "iat": now,
            "exp": now + 3600,
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        return jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": TEST_KID})
    return _make


@pytest.fixture
def auth_header(make_token):
    """HTTP_AUTHORIZATION kwargs for the Django test client."""
    def _header(sub="user-1", **claims):
        return {"HTTP_AUTHORIZATION": f"Bearer {make_token(sub=sub, **claims)}"}
    return _header


@pytest.fixture
def storage(monkeypatch):
    """Inject an in-memory object store into the resources app."""
    fake = InMemoryObjectStorage()
    monkeypatch.setattr(apps.get_app_config("resources"), "storage", fake)
    return fake


@pytest.fixture
def make_resource(db):
    from resources.models import Resource

    def _make(**kwargs):
        defaults = dict(
            title="Calc Notes",
            description="Limits and derivatives",
            subject="Math",
            category=Resource.CATEGORY_NOTES,
            file_url="https://res.cloudinary.com/demo/raw/upload/v1712345678/resources/calc.pdf",
            file_name="calc.pdf",
            file_type="application/pdf",
            file_size=2048,
            storage_id="raw:resources/calc.pdf",
            uploader_id="user-1",
            uploader_name="Ada Lovelace",
        )
        defaults.update(kwargs)
        return Resource.objects.create(**defaults)
    return _make
