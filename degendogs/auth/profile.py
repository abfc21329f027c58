"""Farcaster profile directory client (Neynar bulk user lookup).

Enrichment is strictly additive: any failure yields None and the caller
proceeds with an FID-only identity.

The directory has returned users in three shapes over time:
- {"users": [...]}              flat list
- {"result": {"users": [...]}}  nested result object
- {"user": {...}}               single record
parse_directory_response() normalizes all of them to one Profile.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import httpx

from degendogs.core.config import (
    DIRECTORY_TIMEOUT_SECONDS,
    NEYNAR_API_BASE,
    NEYNAR_API_KEY,
)

log = logging.getLogger(__name__)


@dataclass
class Profile:
    """Directory record for a Farcaster user.

    Attributes:
        fid: Farcaster ID the record belongs to.
        username: Handle without the leading '@'.
        display_name: Human-readable name.
        custody_address: Address that owns the FID on-chain.
        verified_addresses: verified_addresses.eth_addresses as reported.
        verifications: Alternate flat verification list, when exposed.
    """

    fid: Optional[int] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    custody_address: Optional[str] = None
    verified_addresses: List[str] = field(default_factory=list)
    verifications: List[str] = field(default_factory=list)


class ResponseShape(str, Enum):
    """Recognized directory response layouts."""
    FLAT = "flat"
    NESTED = "nested"
    SINGLE = "single"
    EMPTY = "empty"


def classify_response(data) -> Tuple[ResponseShape, List[dict]]:
    """Identify the response layout and return its user records."""
    if not isinstance(data, dict):
        return ResponseShape.EMPTY, []

    users = data.get("users")
    if isinstance(users, list) and users:
        return ResponseShape.FLAT, [u for u in users if isinstance(u, dict)]

    result = data.get("result")
    if isinstance(result, dict) and isinstance(result.get("users"), list) and result["users"]:
        return ResponseShape.NESTED, [u for u in result["users"] if isinstance(u, dict)]

    user = data.get("user")
    if isinstance(user, dict):
        return ResponseShape.SINGLE, [user]

    return ResponseShape.EMPTY, []


def parse_directory_response(data, fid: int) -> Optional[Profile]:
    """Extract the record for `fid` from any supported response layout.

    Records carrying a different fid are skipped; when no record carries a
    fid at all, the first record is taken as the match.
    """
    shape, records = classify_response(data)
    if shape is ResponseShape.EMPTY or not records:
        return None

    match = None
    for record in records:
        if record.get("fid") == fid:
            match = record
            break
    if match is None:
        if any("fid" in r for r in records):
            log.debug(f"Directory returned {len(records)} users, none for fid={fid}")
            return None
        match = records[0]

    return _to_profile(match, fid)


def _to_profile(record: dict, fid: int) -> Profile:
    verified = record.get("verified_addresses")
    eth_addresses = verified.get("eth_addresses") if isinstance(verified, dict) else None
    verifications = record.get("verifications")
    custody = record.get("custody_address")
    display_name = record.get("display_name") or record.get("displayName")

    return Profile(
        fid=fid,
        username=record.get("username") if isinstance(record.get("username"), str) else None,
        display_name=display_name if isinstance(display_name, str) else None,
        custody_address=custody if isinstance(custody, str) and custody else None,
        verified_addresses=_string_list(eth_addresses),
        verifications=_string_list(verifications),
    )


def _string_list(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


async def enrich(
    fid: int,
    api_key: Optional[str] = None,
    api_base: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[Profile]:
    """Look up profile data for a verified FID.

    Args:
        fid: Verified Farcaster ID.
        api_key: Directory API key (defaults to NEYNAR_API_KEY).
        api_base: Directory base URL (defaults to NEYNAR_API_BASE).
        transport: Optional httpx transport (tests).

    Returns:
        Profile if found, None if not configured, not found or on error.
    """
    api_key = api_key if api_key is not None else NEYNAR_API_KEY
    if not api_key:
        return None

    url = f"{(api_base or NEYNAR_API_BASE).rstrip('/')}/v2/farcaster/user/bulk"
    headers = {
        "accept": "application/json",
        "content-type": "application/json",
        "x-api-key": api_key,
    }

    try:
        async with httpx.AsyncClient(
            timeout=DIRECTORY_TIMEOUT_SECONDS, transport=transport
        ) as client:
            response = await client.get(url, params={"fids": str(fid)}, headers=headers)
            response.raise_for_status()
            data = response.json()
    except httpx.TimeoutException:
        log.warning(f"Directory lookup timeout for fid={fid}")
        return None
    except httpx.HTTPStatusError as e:
        log.warning(f"Directory lookup HTTP error for fid={fid}: {e}")
        return None
    except Exception as e:
        log.warning(f"Directory lookup failed for fid={fid}: {e}")
        return None

    profile = parse_directory_response(data, fid)
    if profile is None:
        log.debug(f"Directory has no user for fid={fid}")
    return profile
