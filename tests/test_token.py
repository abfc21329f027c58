"""
Unit tests for Quick Auth token verification.

Covers:
- Malformed tokens (missing, wrong segment count, invalid JSON)
- Algorithm allow-list
- Ed25519 signature against published keys
- Issuer and audience (domain binding)
- Validity window with clock skew
"""

import base64
import json
import time
from unittest.mock import MagicMock

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from degendogs.api_models import ErrorCode
from degendogs.auth.exceptions import InvalidTokenError, KeyResolutionError, MalformedTokenError
from degendogs.auth.jwks import QuickAuthJWKClient
from degendogs.auth.token import verify_token
from degendogs.core.config import CLOCK_SKEW_SECONDS, QUICK_AUTH_ISSUER

DOMAIN = "dogs.example.com"


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_json(data) -> str:
    return b64url(json.dumps(data).encode())


def signed(key: Ed25519PrivateKey, header: dict, payload) -> str:
    signing_input = f"{b64url_json(header)}.{b64url_json(payload)}"
    return f"{signing_input}.{b64url(key.sign(signing_input.encode('ascii')))}"


def untouched_keys() -> MagicMock:
    keys = MagicMock(spec=QuickAuthJWKClient)
    keys.get_signing_key.side_effect = AssertionError("keys must not be fetched")
    return keys


# =============================================================================
# Malformed Token Tests
# =============================================================================

class TestMalformed:
    """Tokens that cannot be parsed."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "   "])
    async def test_missing_token(self, token):
        with pytest.raises(MalformedTokenError) as exc:
            await verify_token(token, DOMAIN, keys=untouched_keys())
        assert exc.value.code == ErrorCode.MALFORMED_TOKEN

    @pytest.mark.asyncio
    async def test_two_segments(self):
        with pytest.raises(MalformedTokenError):
            await verify_token("part1.part2", DOMAIN, keys=untouched_keys())

    @pytest.mark.asyncio
    async def test_garbage(self, jwks_client):
        with pytest.raises(MalformedTokenError):
            await verify_token("garbage", DOMAIN, keys=jwks_client)

    @pytest.mark.asyncio
    async def test_header_not_json(self):
        token = f"{b64url(b'not json')}.{b64url_json({})}.c2ln"
        with pytest.raises(MalformedTokenError):
            await verify_token(token, DOMAIN, keys=untouched_keys())

    @pytest.mark.asyncio
    async def test_payload_must_be_object(self, signing_key, jwks_client):
        token = signed(signing_key, {"alg": "EdDSA", "kid": "test-key-1"}, [1, 2])
        with pytest.raises(MalformedTokenError):
            await verify_token(token, DOMAIN, keys=jwks_client)


# =============================================================================
# Algorithm Tests
# =============================================================================

class TestAlgorithm:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("alg", ["none", "HS256", "RS256"])
    async def test_disallowed_alg_rejected_before_key_lookup(self, token_factory, alg):
        keys = untouched_keys()
        with pytest.raises(InvalidTokenError) as exc:
            await verify_token(token_factory(header={"alg": alg}), DOMAIN, keys=keys)
        assert "algorithm" in exc.value.message
        keys.get_signing_key.assert_not_called()

    @pytest.mark.asyncio
    async def test_header_without_alg(self, signing_key):
        token = signed(signing_key, {"typ": "JWT"}, {"sub": 1})
        with pytest.raises(InvalidTokenError):
            await verify_token(token, DOMAIN, keys=untouched_keys())


# =============================================================================
# Claims Tests
# =============================================================================

class TestClaims:
    """Issuer, audience and validity window checks on signed tokens."""

    @pytest.mark.asyncio
    async def test_valid_token(self, token_factory, jwks_client):
        claims = await verify_token(token_factory(), DOMAIN, keys=jwks_client)
        assert claims.subject == 1234
        assert claims.issuer == QUICK_AUTH_ISSUER
        assert claims.audience == DOMAIN

    @pytest.mark.asyncio
    async def test_string_subject_passed_through(self, token_factory, jwks_client):
        claims = await verify_token(token_factory(sub="1234"), DOMAIN, keys=jwks_client)
        assert claims.subject == "1234"

    @pytest.mark.asyncio
    async def test_audience_list_containing_domain(self, token_factory, jwks_client):
        token = token_factory(aud=["other.example", DOMAIN])
        claims = await verify_token(token, DOMAIN, keys=jwks_client)
        assert claims.audience == ["other.example", DOMAIN]

    @pytest.mark.asyncio
    async def test_wrong_audience(self, token_factory, jwks_client):
        with pytest.raises(InvalidTokenError) as exc:
            await verify_token(token_factory(aud="evil.example"), DOMAIN, keys=jwks_client)
        assert exc.value.code == ErrorCode.INVALID_TOKEN
        assert "audience" in exc.value.message
        assert "evil.example" in exc.value.message

    @pytest.mark.asyncio
    async def test_empty_domain_never_matches(self, token_factory):
        with pytest.raises(InvalidTokenError):
            await verify_token(token_factory(aud=""), "", keys=untouched_keys())

    @pytest.mark.asyncio
    async def test_wrong_issuer(self, token_factory, jwks_client):
        with pytest.raises(InvalidTokenError) as exc:
            await verify_token(token_factory(iss="https://evil.example"), DOMAIN, keys=jwks_client)
        assert "issuer" in exc.value.message

    @pytest.mark.asyncio
    async def test_expired_beyond_skew(self, token_factory, jwks_client):
        now = int(time.time())
        token = token_factory(iat=now - 7200, exp=now - CLOCK_SKEW_SECONDS - 5)
        with pytest.raises(InvalidTokenError) as exc:
            await verify_token(token, DOMAIN, keys=jwks_client)
        assert "expired" in exc.value.message

    @pytest.mark.asyncio
    async def test_expired_within_skew_accepted(self, token_factory, jwks_client):
        now = int(time.time())
        exp = now - CLOCK_SKEW_SECONDS + 10
        claims = await verify_token(token_factory(iat=now - 7200, exp=exp), DOMAIN, keys=jwks_client)
        assert claims.expires_at == exp

    @pytest.mark.asyncio
    async def test_issued_in_future(self, token_factory, jwks_client):
        now = int(time.time())
        token = token_factory(iat=now + CLOCK_SKEW_SECONDS + 30, exp=now + 7200)
        with pytest.raises(InvalidTokenError):
            await verify_token(token, DOMAIN, keys=jwks_client)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("claim", ["exp", "iat", "sub", "aud", "iss"])
    async def test_missing_required_claim(self, token_factory, jwks_client, claim):
        with pytest.raises(InvalidTokenError):
            await verify_token(token_factory(**{claim: None}), DOMAIN, keys=jwks_client)


# =============================================================================
# Signature Tests
# =============================================================================

class TestSignature:
    """End-to-end verification with a real Ed25519 key."""

    @pytest.mark.asyncio
    async def test_signed_by_other_key_rejected(self, token_factory, jwks_client):
        token = token_factory(key=Ed25519PrivateKey.generate())
        with pytest.raises(InvalidTokenError) as exc:
            await verify_token(token, DOMAIN, keys=jwks_client)
        assert "signature" in exc.value.message

    @pytest.mark.asyncio
    async def test_tampered_payload_rejected(self, token_factory, jwks_client):
        header, payload, signature = token_factory().split(".")
        claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
        claims["sub"] = 1
        forged = f"{header}.{b64url_json(claims)}.{signature}"
        with pytest.raises(InvalidTokenError):
            await verify_token(forged, DOMAIN, keys=jwks_client)

    @pytest.mark.asyncio
    async def test_unknown_kid_rejected(self, token_factory, jwks_client):
        with pytest.raises(InvalidTokenError):
            await verify_token(token_factory(header={"kid": "rotated-away"}), DOMAIN, keys=jwks_client)

    @pytest.mark.asyncio
    async def test_rotated_key_picked_up(self, token_factory, jwks_document):
        rotated = Ed25519PrivateKey.generate()
        rotated_jwk = dict(jwks_document["keys"][0])
        rotated_jwk["kid"] = "test-key-2"
        rotated_jwk["x"] = b64url(rotated.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw))
        documents = [jwks_document, {"keys": [jwks_document["keys"][0], rotated_jwk]}]
        served = iter(documents + documents[-1:] * 5)
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=next(served)))
        keys = QuickAuthJWKClient(url="https://auth.test/jwks", transport=transport)

        await verify_token(token_factory(), DOMAIN, keys=keys)
        token = token_factory(header={"kid": "test-key-2"}, key=rotated)
        claims = await verify_token(token, DOMAIN, keys=keys)
        assert claims.subject == 1234
        assert keys.fetch_count == 2

    @pytest.mark.asyncio
    async def test_key_fetch_failure_is_not_invalid_token(self, token_factory):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        keys = QuickAuthJWKClient(url="https://auth.test/jwks", transport=transport)
        with pytest.raises(KeyResolutionError) as exc:
            await verify_token(token_factory(), DOMAIN, keys=keys)
        assert exc.value.code == ErrorCode.VERIFICATION_FAILED
