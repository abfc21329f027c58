"""Signing key client for Quick Auth tokens.

Quick Auth publishes its Ed25519 verification keys as a JWKS document.
PyJWT's PyJWKClient owns the key set cache (JWKS_CACHE_TTL_SECONDS) and
refetches once when a token names a kid the cached set does not contain.
The document itself is fetched with httpx so timeouts and test transports
match every other outbound call.
"""

import logging
from typing import Any, Optional

import httpx
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientConnectionError

from degendogs.core.config import (
    JWKS_CACHE_TTL_SECONDS,
    JWKS_FETCH_TIMEOUT_SECONDS,
    QUICK_AUTH_JWKS_URL,
)

log = logging.getLogger(__name__)


class QuickAuthJWKClient(PyJWKClient):
    """PyJWKClient whose key set fetch goes through httpx."""

    def __init__(
        self,
        url: str = QUICK_AUTH_JWKS_URL,
        ttl_seconds: int = JWKS_CACHE_TTL_SECONDS,
        timeout: float = JWKS_FETCH_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(url, cache_jwk_set=True, lifespan=ttl_seconds, timeout=timeout)
        self._transport = transport
        self.fetch_count = 0

    def fetch_data(self) -> Any:
        """Fetch the JWKS document and store it in the key set cache.

        Raises:
            PyJWKClientConnectionError: Unreachable, non-2xx or non-JSON
                response. Callers map this to a key resolution failure.
        """
        self.fetch_count += 1
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(self.uri, headers={"accept": "application/json"})
                response.raise_for_status()
                jwk_set = response.json()
        except httpx.HTTPError as e:
            raise PyJWKClientConnectionError(f"JWKS fetch failed: {e}") from e
        except ValueError as e:
            raise PyJWKClientConnectionError(f"JWKS response is not JSON: {e}") from e

        if not isinstance(jwk_set, dict):
            raise PyJWKClientConnectionError("JWKS response is not a JSON object")

        if self.jwk_set_cache is not None:
            self.jwk_set_cache.put(jwk_set)
        log.debug(f"JWKS fetched from {self.uri}")
        return jwk_set


_jwks_client: Optional[QuickAuthJWKClient] = None


def get_jwks_client() -> QuickAuthJWKClient:
    """Get the process-wide signing key client."""
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = QuickAuthJWKClient()
    return _jwks_client


def reset_jwks_client() -> None:
    """Reset the signing key client singleton (for testing)."""
    global _jwks_client
    _jwks_client = None
