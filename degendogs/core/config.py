"""
Degen Dogs holder-gate configuration constants.

Constants are organized into:
- NORMATIVE: Fixed by the chain, contract and identity provider we bind to
- CONFIGURABLE: Defaults that may be overridden by deployment policy
- POLICY: Implementation choices (timeouts, size limits, cache lifetimes)
- OPERATIONAL: Deployment-specific settings (env vars)
"""

import os

# =============================================================================
# NORMATIVE CONSTANTS
# =============================================================================

# ERC-721 balanceOf(address) selector
BALANCE_OF_SELECTOR: str = "0x70a08231"

# Degen Dogs collection on Base
DOGS_CONTRACT: str = "0x09154248fFDbaF8aA877aE8A4bf8cE1503596428"

# Base mainnet, canonical 0x-prefixed lower-case hex
BASE_CHAIN_ID: str = "0x2105"

# Quick Auth tokens are Ed25519-signed JWTs
ALLOWED_ALGORITHMS: frozenset[str] = frozenset({"EdDSA"})

# Issuer claim every Quick Auth token must carry
QUICK_AUTH_ISSUER: str = os.getenv("QUICK_AUTH_ISSUER", "https://auth.farcaster.xyz")

# =============================================================================
# CONFIGURABLE DEFAULTS
# =============================================================================

# Clock skew tolerated when checking iat/exp
CLOCK_SKEW_SECONDS: int = int(os.getenv("DD_CLOCK_SKEW_SECONDS", "60"))

# Content limits for gated writes
POST_TITLE_MAX: int = 120
POST_BODY_MAX: int = 1200
THREAD_BODY_MAX: int = 800

# Read limits
POSTS_LIMIT: int = 25
THREADS_LIMIT: int = 8

# =============================================================================
# POLICY CONSTANTS
# =============================================================================

# Largest request body the verify endpoint will read
MAX_BODY_BYTES: int = 1_000_000

# Outbound call timeouts
JWKS_FETCH_TIMEOUT_SECONDS: float = 5.0
DIRECTORY_TIMEOUT_SECONDS: float = 10.0
RPC_TIMEOUT_SECONDS: float = 10.0
VERIFY_CALL_TIMEOUT_SECONDS: float = 15.0

# Signing keys rotate rarely; refresh on kid miss regardless of TTL
JWKS_CACHE_TTL_SECONDS: int = 3600

# =============================================================================
# OPERATIONAL SETTINGS (deployment-specific, via environment variables)
# =============================================================================

# Fixed domain for token audience binding; empty means derive from headers
APP_DOMAIN: str = os.getenv("APP_DOMAIN", "").strip()

# Fixed CORS origin; empty means echo the request Origin (or "*")
CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "").strip()

QUICK_AUTH_JWKS_URL: str = os.getenv(
    "QUICK_AUTH_JWKS_URL", "https://auth.farcaster.xyz/.well-known/jwks.json"
)

# Profile directory (Neynar); enrichment is skipped without a key
NEYNAR_API_KEY: str = os.getenv("NEYNAR_API_KEY", "")
NEYNAR_API_BASE: str = os.getenv("NEYNAR_API_BASE", "https://api.neynar.com").rstrip("/")

BASE_RPC_URL: str = os.getenv("BASE_RPC_URL", "https://base.publicnode.com")

# Parameters for wallet_addEthereumChain
BASE_CHAIN_PARAMS: dict = {
    "chainId": BASE_CHAIN_ID,
    "chainName": "Base",
    "nativeCurrency": {"name": "Ether", "symbol": "ETH", "decimals": 18},
    "rpcUrls": [BASE_RPC_URL],
    "blockExplorerUrls": ["https://basescan.org"],
}

# Verification endpoint bases used by the client session, tried in order
API_BASE: str = os.getenv("DD_API_BASE", "").strip()
FALLBACK_API_BASE: str = os.getenv(
    "DD_FALLBACK_API_BASE", "https://degendogs-dao.ael-dev3.deno.net"
).strip()

# Admin endpoint visibility
# Default: True for dev, set to False in production deployments
ADMIN_ENDPOINT_ENABLED: bool = os.getenv("ADMIN_ENDPOINT_ENABLED", "true").lower() == "true"


def _get_database_url() -> str:
    """Get database URL from environment.

    Priority:
    1. DATABASE_URL - explicit full connection string
    2. SQLite file in the working directory for local development
    """
    if url := os.getenv("DATABASE_URL"):
        return url
    return "sqlite:///./degendogs.db"


DATABASE_URL: str = _get_database_url()
