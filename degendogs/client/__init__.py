"""Client-side verification call and per-user session state."""

from .exceptions import AuthError, AuthEndpointNotFound, AuthFailedError, VerifyUnavailableError
from .verify_client import VerifiedIdentity, VerifyClient, candidate_endpoints, resolve_api_base
from .session import HolderSession

__all__ = [
    # Exceptions
    "AuthError",
    "AuthEndpointNotFound",
    "AuthFailedError",
    "VerifyUnavailableError",
    # Verification call
    "VerifiedIdentity",
    "VerifyClient",
    "candidate_endpoints",
    "resolve_api_base",
    # Session
    "HolderSession",
]
