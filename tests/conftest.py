"""Root conftest for all tests - provides shared fixtures."""

import base64
import json
import os
import time

# Keep module-level config deterministic (must be set before module import)
os.environ.setdefault("APP_DOMAIN", "")
os.environ.setdefault("NEYNAR_API_KEY", "")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from degendogs.auth.jwks import QuickAuthJWKClient, reset_jwks_client
from degendogs.core.config import QUICK_AUTH_ISSUER
from degendogs.store import Board, create_db_engine, init_database, make_session_factory, reset_board

TEST_DOMAIN = "dogs.example.com"
TEST_KID = "test-key-1"
TEST_JWKS_URL = "https://auth.test/.well-known/jwks.json"


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_json(data: dict) -> str:
    return b64url(json.dumps(data).encode("utf-8"))


def public_jwk(private_key: Ed25519PrivateKey, kid: str = TEST_KID) -> dict:
    raw = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return {"kty": "OKP", "crv": "Ed25519", "kid": kid, "x": b64url(raw)}


# =============================================================================
# Signing key / token fixtures
# =============================================================================

@pytest.fixture
def signing_key():
    """Fresh Ed25519 private key."""
    return Ed25519PrivateKey.generate()


@pytest.fixture
def jwks_document(signing_key):
    return {"keys": [public_jwk(signing_key)]}


@pytest.fixture
def jwks_client(jwks_document):
    """Signing key client served from an in-process transport."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=jwks_document)

    return QuickAuthJWKClient(url=TEST_JWKS_URL, transport=httpx.MockTransport(handler))


@pytest.fixture
def token_factory(signing_key):
    """Build signed Quick Auth tokens.

    Keyword overrides replace payload claims; a value of None removes the
    claim. `header` overrides header fields; `key` signs with another key.
    """
    def make(header=None, key=None, **claims):
        now = int(time.time())
        payload = {
            "iss": QUICK_AUTH_ISSUER,
            "sub": 1234,
            "aud": TEST_DOMAIN,
            "iat": now,
            "exp": now + 3600,
        }
        for name, value in claims.items():
            if value is None:
                payload.pop(name, None)
            else:
                payload[name] = value

        token_header = {"alg": "EdDSA", "typ": "JWT", "kid": TEST_KID}
        token_header.update(header or {})

        raw_header = b64url_json(token_header)
        raw_payload = b64url_json(payload)
        signing_input = f"{raw_header}.{raw_payload}".encode("ascii")
        signature = (key or signing_key).sign(signing_input)
        return f"{raw_header}.{raw_payload}.{b64url(signature)}"

    return make


# =============================================================================
# Store fixtures
# =============================================================================

@pytest.fixture
def board():
    """Board on a fresh in-memory SQLite database."""
    engine = create_db_engine("sqlite://")
    init_database(engine)
    yield Board(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def file_board(tmp_path):
    """Board on a file-backed SQLite database (real cross-connection locking)."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'board.db'}")
    init_database(engine)
    yield Board(make_session_factory(engine))
    engine.dispose()


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset process-wide caches before each test to ensure isolation."""
    reset_jwks_client()
    reset_board()
    yield
    reset_jwks_client()
    reset_board()
