"""
Quick Auth identity token verifier.

Verifies the token's Ed25519 signature against the issuer's published keys
and checks the issuer, audience (domain binding) and validity window with
PyJWT. Pure with respect to the caller: nothing is stored beyond the
signing key cache.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional, Union

import jwt
from jwt.exceptions import PyJWKClientConnectionError, PyJWKClientError, PyJWKSetError

from degendogs.core.config import ALLOWED_ALGORITHMS, CLOCK_SKEW_SECONDS, QUICK_AUTH_ISSUER
from .exceptions import InvalidTokenError, KeyResolutionError, MalformedTokenError
from .jwks import QuickAuthJWKClient, get_jwks_client

REQUIRED_CLAIMS = ["exp", "iat", "sub", "aud", "iss"]


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims.

    `subject` is passed through as issued; callers decide whether it is a
    usable FID.
    """
    subject: Union[int, str, None]
    issued_at: int
    expires_at: int
    audience: Union[str, List[str], None]
    issuer: Optional[str]


async def verify_token(
    token: Optional[str],
    domain: str,
    keys: Optional[QuickAuthJWKClient] = None,
) -> TokenClaims:
    """Verify a Quick Auth token for `domain`.

    Args:
        token: Compact JWT.
        domain: Expected audience; a token minted for another deployment
            is rejected.
        keys: Signing key client (defaults to the process client).

    Returns:
        TokenClaims with the raw subject, iat and exp.

    Raises:
        MalformedTokenError: Token is not parseable.
        InvalidTokenError: Signature, algorithm, issuer, audience or expiry
            check failed.
        KeyResolutionError: Signing keys unavailable.
    """
    if not token or not token.strip():
        raise MalformedTokenError.parse_failed("token is empty")
    token = token.strip()
    if not domain:
        raise InvalidTokenError("no domain to bind the token audience to")

    try:
        header = jwt.get_unverified_header(token)
    except jwt.DecodeError as e:
        raise MalformedTokenError.parse_failed(str(e))

    alg = header.get("alg")
    if alg not in ALLOWED_ALGORITHMS:
        raise InvalidTokenError(f"algorithm not allowed: {alg}")

    client = keys or get_jwks_client()
    kid = header.get("kid")
    try:
        signing_key = await asyncio.to_thread(client.get_signing_key, kid)
    except (PyJWKClientConnectionError, PyJWKSetError) as e:
        raise KeyResolutionError(f"JWKS unavailable: {e}") from e
    except PyJWKClientError as e:
        raise InvalidTokenError(f"no signing key for kid={kid}: {e}")

    try:
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=sorted(ALLOWED_ALGORITHMS),
            audience=domain,
            issuer=QUICK_AUTH_ISSUER,
            leeway=CLOCK_SKEW_SECONDS,
            options={
                "require": REQUIRED_CLAIMS,
                "verify_exp": True,
                "verify_iat": True,
                # Quick Auth subjects are numeric FIDs
                "verify_sub": False,
            },
        )
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError("token expired")
    except jwt.InvalidAudienceError:
        raise InvalidTokenError.wrong_audience(_unverified_audience(token), domain)
    except jwt.InvalidIssuerError:
        raise InvalidTokenError("issuer mismatch")
    except jwt.InvalidSignatureError:
        raise InvalidTokenError("Ed25519 signature verification failed")
    except jwt.DecodeError as e:
        raise MalformedTokenError.parse_failed(str(e))
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(f"token rejected: {e}")

    return TokenClaims(
        subject=payload.get("sub"),
        issued_at=int(payload["iat"]),
        expires_at=int(payload["exp"]),
        audience=payload.get("aud"),
        issuer=payload.get("iss"),
    )


def _unverified_audience(token: str):
    try:
        return jwt.decode(token, options={"verify_signature": False}).get("aud")
    except jwt.PyJWTError:
        return None
