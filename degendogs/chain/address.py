"""Address and amount helpers for ERC-721 balance reads."""

import re
from typing import Iterable, List, Optional

from degendogs.core.config import BALANCE_OF_SELECTOR
from .exceptions import AddressError

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(value) -> Optional[str]:
    """Lower-case and validate an address; None if it is not one."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip().lower()
    if not _ADDRESS_RE.match(trimmed):
        return None
    return trimmed


def unique_addresses(values: Iterable) -> List[str]:
    """Valid addresses, lower-cased and deduplicated, in first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        normalized = normalize_address(value)
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def merge_addresses(*groups: Iterable) -> List[str]:
    """Case-insensitive union of address lists, first-seen order.

    Unlike unique_addresses() this keeps entries that do not validate, so
    directory data is reported as-is (lower-cased) rather than filtered.
    """
    seen: dict[str, None] = {}
    for group in groups:
        for value in group or ():
            if not isinstance(value, str):
                continue
            lowered = value.strip().lower()
            if lowered:
                seen.setdefault(lowered, None)
    return list(seen)


def encode_balance_of(address: str) -> str:
    """ABI-encode balanceOf(address) call data.

    Raises:
        AddressError: Address is not 40 hex characters after the 0x prefix.
    """
    clean = address.strip().lower()
    if clean.startswith("0x"):
        clean = clean[2:]
    if len(clean) != 40 or not re.fullmatch(r"[0-9a-f]{40}", clean):
        raise AddressError(address)
    return BALANCE_OF_SELECTOR + clean.rjust(64, "0")


def parse_hex_to_int(value: Optional[str]) -> int:
    """Decode a big-endian hex quantity; empty or bare '0x' is zero."""
    if not value or value in ("0x", "0X"):
        return 0
    return int(value, 16)


def format_address(value: Optional[str]) -> str:
    """Shorten an address for log lines: 0x1234...abcd."""
    if not value or len(value) < 10:
        return value or ""
    return f"{value[:6]}...{value[-4:]}"
