"""
Verification endpoint state machine.

Transport-independent: takes the method, headers and raw body of an
inbound request and returns the status, JSON body and headers to send.
degendogs.main mounts it on FastAPI; tests drive it directly.

Outcomes:
    204  OPTIONS preflight
    200  VerifiedIdentity-shaped JSON
    400  missing_token | invalid_json | invalid_fid
    401  invalid_token
    405  method_not_allowed
    500  missing_domain | verification_failed
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from degendogs.api_models import ErrorCode, ErrorResponse, VerifyResponse
from degendogs.chain.address import merge_addresses
from degendogs.core.config import APP_DOMAIN, CORS_ORIGIN, MAX_BODY_BYTES
from .domain import resolve_domain
from .exceptions import InvalidTokenError, MalformedTokenError
from .profile import Profile, enrich
from .token import TokenClaims, verify_token

log = logging.getLogger(__name__)

ALLOWED_METHODS = "GET, POST, OPTIONS"
ALLOWED_HEADERS = "content-type, authorization"

TokenVerifier = Callable[[str, str], Awaitable[TokenClaims]]
ProfileEnricher = Callable[[int], Awaitable[Optional[Profile]]]


@dataclass
class VerifyOutcome:
    """Response to send for one verification request."""
    status: int
    body: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = field(default_factory=dict)


class _InvalidBody(Exception):
    pass


def cors_headers(request_origin: str, configured_origin: str = "") -> Dict[str, str]:
    """Permissive CORS headers attached to every response."""
    origin = configured_origin or request_origin
    headers = {
        "Access-Control-Allow-Origin": origin or "*",
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }
    if origin:
        headers["Vary"] = "Origin"
    return headers


def read_token(method: str, headers: Mapping[str, str], body: bytes) -> str:
    """Extract the token from a JSON body or an Authorization header.

    The body field wins when both are present.

    Raises:
        _InvalidBody: POST body present but not JSON.
    """
    token = ""
    if method == "POST" and body and body.strip():
        if len(body) > MAX_BODY_BYTES:
            raise _InvalidBody("body too large")
        try:
            parsed = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise _InvalidBody(str(e))
        if isinstance(parsed, dict) and isinstance(parsed.get("token"), str):
            token = parsed["token"]

    if not token:
        auth = headers.get("authorization") or ""
        if auth.startswith("Bearer "):
            token = auth[7:].strip()

    return token


def coerce_fid(subject: Any) -> Optional[int]:
    """Turn a token subject into an integer FID, or None if unusable."""
    if isinstance(subject, bool) or subject is None:
        return None
    if isinstance(subject, int):
        return subject
    if isinstance(subject, float):
        if math.isfinite(subject) and subject.is_integer():
            return int(subject)
        return None
    if isinstance(subject, str):
        text = subject.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return None
        if math.isfinite(value) and value.is_integer():
            return int(value)
    return None


def build_identity(claims: TokenClaims, fid: int, profile: Optional[Profile]) -> VerifyResponse:
    """Assemble the success body from verified claims and enrichment."""
    if profile is None:
        return VerifyResponse(
            fid=fid,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
            verified_eth_addresses=[],
        )

    custody = [profile.custody_address] if profile.custody_address else []
    return VerifyResponse(
        fid=fid,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
        username=profile.username,
        display_name=profile.display_name,
        custody_address=profile.custody_address,
        verified_eth_addresses=merge_addresses(
            profile.verified_addresses, profile.verifications, custody
        ),
    )


async def handle_verify(
    method: str,
    headers: Mapping[str, str],
    body: bytes = b"",
    verifier: Optional[TokenVerifier] = None,
    enricher: Optional[ProfileEnricher] = None,
    app_domain: Optional[str] = None,
    cors_origin: Optional[str] = None,
) -> VerifyOutcome:
    """Run one verification request through the state machine.

    Args:
        method: HTTP method (upper-case).
        headers: Case-insensitive header mapping (lower-case keys for dicts).
        body: Raw request body.
        verifier: Token verifier (defaults to verify_token).
        enricher: Profile enricher (defaults to profile.enrich).
        app_domain: Fixed domain override (defaults to APP_DOMAIN).
        cors_origin: Fixed CORS origin (defaults to CORS_ORIGIN).
    """
    verifier = verifier or verify_token
    enricher = enricher or enrich
    app_domain = APP_DOMAIN if app_domain is None else app_domain
    cors_origin = CORS_ORIGIN if cors_origin is None else cors_origin

    cors = cors_headers(headers.get("origin") or "", cors_origin)

    def fail(status: int, code: str) -> VerifyOutcome:
        return VerifyOutcome(status=status, body=ErrorResponse(error=code).model_dump(), headers=cors)

    if method == "OPTIONS":
        return VerifyOutcome(status=204, headers=cors)

    if method not in ("GET", "POST"):
        return fail(405, ErrorCode.METHOD_NOT_ALLOWED)

    try:
        token = read_token(method, headers, body)
    except _InvalidBody as e:
        log.info(f"verify: invalid body ({e})")
        return fail(400, ErrorCode.INVALID_JSON)

    if not token:
        return fail(400, ErrorCode.MISSING_TOKEN)

    domain = resolve_domain(headers, app_domain)
    if not domain:
        log.error("verify: no domain configured or derivable from headers")
        return fail(500, ErrorCode.MISSING_DOMAIN)

    try:
        claims = await verifier(token, domain)
    except (InvalidTokenError, MalformedTokenError) as e:
        log.info(f"verify: token rejected for domain={domain}: {e.message}")
        return fail(401, ErrorCode.INVALID_TOKEN)
    except Exception:
        log.exception("Verification failed")
        return fail(500, ErrorCode.VERIFICATION_FAILED)

    fid = coerce_fid(claims.subject)
    if fid is None:
        log.info(f"verify: token subject is not a usable fid: {claims.subject!r}")
        return fail(400, ErrorCode.INVALID_FID)

    profile = None
    try:
        profile = await enricher(fid)
    except Exception as e:
        log.warning(f"Profile lookup failed for fid={fid}: {e}")

    identity = build_identity(claims, fid, profile)
    log.info(
        f"verify: ok addresses={len(identity.verified_eth_addresses)}",
        extra={"fid": fid},
    )
    return VerifyOutcome(status=200, body=identity.to_wire(), headers=cors)
