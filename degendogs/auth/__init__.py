"""Farcaster Quick Auth verification and profile enrichment."""

from .exceptions import TokenError, InvalidTokenError, MalformedTokenError, KeyResolutionError
from .token import TokenClaims, verify_token
from .jwks import QuickAuthJWKClient, get_jwks_client, reset_jwks_client
from .domain import host_from_headers, resolve_domain
from .profile import Profile, enrich, parse_directory_response
from .endpoint import VerifyOutcome, handle_verify, cors_headers

__all__ = [
    # Exceptions
    "TokenError",
    "InvalidTokenError",
    "MalformedTokenError",
    "KeyResolutionError",
    # Token verifier
    "TokenClaims",
    "verify_token",
    "QuickAuthJWKClient",
    "get_jwks_client",
    "reset_jwks_client",
    # Domain binding
    "host_from_headers",
    "resolve_domain",
    # Profile enricher
    "Profile",
    "enrich",
    "parse_directory_response",
    # Endpoint
    "VerifyOutcome",
    "handle_verify",
    "cors_headers",
]
