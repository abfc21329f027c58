"""Tests for the client-side verification call."""

import httpx
import pytest

from degendogs.api_models import ErrorCode
from degendogs.client.exceptions import AuthEndpointNotFound, AuthFailedError, VerifyUnavailableError
from degendogs.client.verify_client import (
    VerifiedIdentity,
    VerifyClient,
    candidate_endpoints,
    resolve_api_base,
)

PRIMARY = "https://app.test/api/verify"
FALLBACK = "https://fallback.test/api/verify"

IDENTITY_BODY = {
    "fid": 1234,
    "issuedAt": 1700000000,
    "expiresAt": 1700003600,
    "username": "alice",
    "custodyAddress": "0xDEF0000000000000000000000000000000000002",
    "verifiedEthAddresses": ["0xabc0000000000000000000000000000000000001"],
}


def routed(routes):
    """MockTransport answering per URL; records the request order."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        seen.append((url, request.headers.get("authorization")))
        response = routes[url]
        if isinstance(response, Exception):
            raise response
        return response

    return httpx.MockTransport(handler), seen


class TestEndpointResolution:

    @pytest.mark.parametrize("raw,expected", [
        ("https://app.test", "https://app.test"),
        ("https://app.test/", "https://app.test"),
        ("https://app.test/api/verify", "https://app.test"),
        ("https://app.test/api/verify/", "https://app.test"),
        ("  ", ""),
    ])
    def test_resolve_api_base(self, raw, expected):
        assert resolve_api_base(raw) == expected

    def test_candidates_deduplicated(self):
        urls = candidate_endpoints("https://app.test/", "", "https://app.test/api/verify", "https://b.test")
        assert urls == ["https://app.test/api/verify", "https://b.test/api/verify"]

    def test_no_endpoints(self):
        with pytest.raises(ValueError):
            VerifyClient(endpoints=[])


class TestVerify:

    @pytest.mark.asyncio
    async def test_success_on_primary(self):
        transport, seen = routed({PRIMARY: httpx.Response(200, json=IDENTITY_BODY)})
        client = VerifyClient([PRIMARY, FALLBACK], transport=transport)

        identity = await client.verify("tok")
        assert identity.fid == 1234
        assert identity.username == "alice"
        assert seen == [(PRIMARY, "Bearer tok")]

    @pytest.mark.asyncio
    async def test_custody_merged_into_addresses(self):
        transport, _ = routed({PRIMARY: httpx.Response(200, json=IDENTITY_BODY)})
        identity = await VerifyClient([PRIMARY], transport=transport).verify("tok")
        assert identity.verified_eth_addresses == [
            "0xabc0000000000000000000000000000000000001",
            "0xdef0000000000000000000000000000000000002",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 405])
    async def test_missing_endpoint_advances(self, status):
        transport, seen = routed({
            PRIMARY: httpx.Response(status, text="Not Found"),
            FALLBACK: httpx.Response(200, json=IDENTITY_BODY),
        })
        identity = await VerifyClient([PRIMARY, FALLBACK], transport=transport).verify("tok")
        assert identity.fid == 1234
        assert [url for url, _ in seen] == [PRIMARY, FALLBACK]

    @pytest.mark.asyncio
    async def test_unreachable_advances(self):
        request = httpx.Request("POST", PRIMARY)
        transport, seen = routed({
            PRIMARY: httpx.ConnectError("refused", request=request),
            FALLBACK: httpx.Response(200, json=IDENTITY_BODY),
        })
        identity = await VerifyClient([PRIMARY, FALLBACK], transport=transport).verify("tok")
        assert identity.fid == 1234

    @pytest.mark.asyncio
    async def test_auth_failure_is_final(self):
        transport, seen = routed({
            PRIMARY: httpx.Response(401, json={"error": "invalid_token"}),
            FALLBACK: httpx.Response(200, json=IDENTITY_BODY),
        })
        with pytest.raises(AuthFailedError) as exc:
            await VerifyClient([PRIMARY, FALLBACK], transport=transport).verify("tok")
        assert exc.value.server_error == "invalid_token"
        assert exc.value.status == 401
        assert exc.value.retryable is False
        assert [url for url, _ in seen] == [PRIMARY]

    @pytest.mark.asyncio
    async def test_server_failure_is_retryable(self):
        transport, _ = routed({PRIMARY: httpx.Response(500, json={"error": "verification_failed"})})
        with pytest.raises(AuthFailedError) as exc:
            await VerifyClient([PRIMARY], transport=transport).verify("tok")
        assert exc.value.retryable is True

    @pytest.mark.asyncio
    async def test_all_missing(self):
        transport, _ = routed({
            PRIMARY: httpx.Response(404),
            FALLBACK: httpx.Response(405, text="Method Not Allowed"),
        })
        with pytest.raises(AuthEndpointNotFound) as exc:
            await VerifyClient([PRIMARY, FALLBACK], transport=transport).verify("tok")
        assert exc.value.code == ErrorCode.AUTH_ENDPOINT_NOT_FOUND
        assert exc.value.url == FALLBACK
        assert exc.value.status == 405

    @pytest.mark.asyncio
    async def test_all_unreachable(self):
        request = httpx.Request("POST", PRIMARY)
        transport, _ = routed({PRIMARY: httpx.ConnectError("refused", request=request)})
        with pytest.raises(VerifyUnavailableError) as exc:
            await VerifyClient([PRIMARY], transport=transport).verify("tok")
        assert exc.value.retryable is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>ok</html>"),
        httpx.Response(200, json={"ok": True}),
        httpx.Response(200, json={"fid": "1234"}),
    ])
    async def test_unusable_success_body(self, response):
        transport, _ = routed({PRIMARY: response})
        with pytest.raises(AuthFailedError):
            await VerifyClient([PRIMARY], transport=transport).verify("tok")


def test_identity_label():
    assert VerifiedIdentity(fid=7).label == "FID 7"
    assert VerifiedIdentity(fid=7, username="bob").label == "@bob (FID 7)"
