"""
Degen Dogs API models and error code registry.

Error codes are the machine-readable `error` values returned by the
verification endpoint and carried by every domain exception.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode:
    """Error code registry."""
    # Verification endpoint (HTTP contract)
    MISSING_TOKEN = "missing_token"
    INVALID_JSON = "invalid_json"
    INVALID_FID = "invalid_fid"
    INVALID_TOKEN = "invalid_token"
    MALFORMED_TOKEN = "malformed_token"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    MISSING_DOMAIN = "missing_domain"
    VERIFICATION_FAILED = "verification_failed"

    # Holdings
    INVALID_ADDRESS = "invalid_address"
    RPC_FAILED = "rpc_failed"
    PROVIDER_ERROR = "provider_error"
    WALLET_UNAVAILABLE = "wallet_unavailable"

    # Gated writes
    NOT_SIGNED_IN = "not_signed_in"
    NOT_HOLDER = "not_holder"
    STORE_UNAVAILABLE = "store_unavailable"
    EMPTY_CONTENT = "empty_content"
    CONTENT_TOO_LONG = "content_too_long"
    POST_NOT_FOUND = "post_not_found"
    WRITE_FAILED = "write_failed"

    # Client-side verification call
    AUTH_ENDPOINT_NOT_FOUND = "auth_endpoint_not_found"
    AUTH_UNREACHABLE = "auth_unreachable"
    AUTH_FAILED = "auth_failed"


# Retry mapping: client input and trust errors are never retried;
# transport and dependency failures are.
ERROR_RETRYABLE: Dict[str, bool] = {
    ErrorCode.MISSING_TOKEN: False,
    ErrorCode.INVALID_JSON: False,
    ErrorCode.INVALID_FID: False,
    ErrorCode.INVALID_TOKEN: False,
    ErrorCode.MALFORMED_TOKEN: False,
    ErrorCode.METHOD_NOT_ALLOWED: False,
    ErrorCode.MISSING_DOMAIN: False,
    ErrorCode.VERIFICATION_FAILED: True,     # Retryable
    ErrorCode.INVALID_ADDRESS: False,
    ErrorCode.RPC_FAILED: True,              # Retryable
    ErrorCode.PROVIDER_ERROR: False,
    ErrorCode.WALLET_UNAVAILABLE: False,
    ErrorCode.NOT_SIGNED_IN: False,
    ErrorCode.NOT_HOLDER: False,
    ErrorCode.STORE_UNAVAILABLE: True,       # Retryable
    ErrorCode.EMPTY_CONTENT: False,
    ErrorCode.CONTENT_TOO_LONG: False,
    ErrorCode.POST_NOT_FOUND: False,
    ErrorCode.WRITE_FAILED: True,            # Retryable
    ErrorCode.AUTH_ENDPOINT_NOT_FOUND: False,
    ErrorCode.AUTH_UNREACHABLE: True,        # Retryable
    ErrorCode.AUTH_FAILED: False,
}


# =============================================================================
# Response Models
# =============================================================================

class VerifyResponse(BaseModel):
    """Successful /api/verify body.

    Optional profile fields are omitted from the wire when absent.
    """
    model_config = ConfigDict(populate_by_name=True)

    fid: int
    issued_at: Optional[int] = Field(default=None, alias="issuedAt")
    expires_at: Optional[int] = Field(default=None, alias="expiresAt")
    username: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    custody_address: Optional[str] = Field(default=None, alias="custodyAddress")
    verified_eth_addresses: List[str] = Field(
        default_factory=list, alias="verifiedEthAddresses"
    )

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping unset optional fields."""
        data = self.model_dump(by_alias=True)
        for key in ("username", "displayName", "custodyAddress"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class ErrorResponse(BaseModel):
    """Error body: a single machine-readable code."""
    error: str
