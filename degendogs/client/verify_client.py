"""Client for the /api/verify endpoint.

Candidate endpoints are tried in order. A 404/405 (the deployment does
not serve the endpoint) or a transport error advances to the next
candidate; any other response, success or failure, is final.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from degendogs.chain.address import merge_addresses
from degendogs.core.config import API_BASE, FALLBACK_API_BASE, VERIFY_CALL_TIMEOUT_SECONDS
from .exceptions import AuthEndpointNotFound, AuthFailedError, VerifyUnavailableError

log = logging.getLogger(__name__)

VERIFY_PATH = "/api/verify"
ADVANCE_STATUSES = frozenset({404, 405})


@dataclass
class VerifiedIdentity:
    """Identity held by a client session for its lifetime."""

    fid: int
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    custody_address: Optional[str] = None
    verified_eth_addresses: List[str] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: dict) -> "VerifiedIdentity":
        fid = data.get("fid")
        if isinstance(fid, bool) or not isinstance(fid, int):
            raise AuthFailedError("Auth failed: invalid response body")
        verified = data.get("verifiedEthAddresses")
        custody = data.get("custodyAddress") if isinstance(data.get("custodyAddress"), str) else None
        return cls(
            fid=fid,
            issued_at=data.get("issuedAt"),
            expires_at=data.get("expiresAt"),
            username=data.get("username"),
            display_name=data.get("displayName"),
            custody_address=custody,
            verified_eth_addresses=merge_addresses(
                verified if isinstance(verified, list) else [],
                [custody] if custody else [],
            ),
        )

    @property
    def label(self) -> str:
        return f"@{self.username} (FID {self.fid})" if self.username else f"FID {self.fid}"


def resolve_api_base(raw: str) -> str:
    """Strip a trailing /api/verify and trailing slashes from a base URL."""
    base = (raw or "").strip()
    if base.endswith(VERIFY_PATH) or base.endswith(VERIFY_PATH + "/"):
        base = base[: base.rfind(VERIFY_PATH)]
    return base.rstrip("/")


def candidate_endpoints(*bases: str) -> List[str]:
    """Verify URLs for each non-empty base, deduplicated, in order."""
    urls: List[str] = []
    for base in bases:
        resolved = resolve_api_base(base)
        if not resolved:
            continue
        url = f"{resolved}{VERIFY_PATH}"
        if url not in urls:
            urls.append(url)
    return urls


@dataclass
class _Attempt:
    url: str
    status: int
    body_text: str
    parsed: Optional[dict]


class VerifyClient:
    """Send a Quick Auth token to the verification endpoint."""

    def __init__(
        self,
        endpoints: Optional[List[str]] = None,
        timeout: float = VERIFY_CALL_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoints = endpoints if endpoints is not None else candidate_endpoints(
            API_BASE, FALLBACK_API_BASE
        )
        if not self.endpoints:
            raise ValueError("No verification endpoint configured")
        self.timeout = timeout
        self._transport = transport

    async def verify(self, token: str) -> VerifiedIdentity:
        """Verify `token` and return the resulting identity.

        Raises:
            AuthEndpointNotFound: Every candidate answered 404/405.
            VerifyUnavailableError: No candidate could be reached.
            AuthFailedError: The endpoint rejected the token or answered
                with an unusable body.
        """
        last_missing: Optional[_Attempt] = None
        last_transport_error: Optional[Exception] = None

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for url in self.endpoints:
                try:
                    attempt = await self._post(client, url, token)
                except httpx.HTTPError as e:
                    log.warning(f"Auth: {url} unreachable: {e}")
                    last_transport_error = e
                    continue

                if attempt.status in ADVANCE_STATUSES:
                    log.info(f"Auth: {url} answered {attempt.status}, trying next candidate")
                    last_missing = attempt
                    continue

                return self._finish(attempt)

        if last_missing is not None:
            raise AuthEndpointNotFound(last_missing.status, last_missing.url, last_missing.body_text)
        raise VerifyUnavailableError(f"Auth server not reachable: {last_transport_error}")

    async def _post(self, client: httpx.AsyncClient, url: str, token: str) -> _Attempt:
        response = await client.post(
            url,
            headers={"authorization": f"Bearer {token}"},
        )
        body_text = response.text
        parsed = None
        if body_text:
            try:
                data = json.loads(body_text)
                parsed = data if isinstance(data, dict) else None
            except json.JSONDecodeError:
                log.debug(f"Auth: non-JSON response from {url}")
        return _Attempt(url=url, status=response.status_code, body_text=body_text, parsed=parsed)

    def _finish(self, attempt: _Attempt) -> VerifiedIdentity:
        if attempt.status < 200 or attempt.status >= 300:
            server_error = attempt.parsed.get("error") if attempt.parsed else None
            detail = server_error or attempt.body_text[:260] or f"HTTP {attempt.status}"
            raise AuthFailedError(
                f"Auth failed: {detail}", status=attempt.status, server_error=server_error
            )
        if not attempt.parsed or "fid" not in attempt.parsed:
            raise AuthFailedError("Auth failed: invalid response body", status=attempt.status)

        identity = VerifiedIdentity.from_response(attempt.parsed)
        log.info(
            f"Auth: verified via {attempt.url} addresses={len(identity.verified_eth_addresses)}",
            extra={"fid": identity.fid},
        )
        return identity
