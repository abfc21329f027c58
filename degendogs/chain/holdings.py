"""ERC-721 holdings aggregation across candidate addresses.

Each address is queried concurrently; the batch settles only once every
query has settled. Failed lookups are counted, never guessed, so
`checked + failed` always equals the number of distinct addresses queried.
Entries that are not addresses are never queried; they are counted in
`skipped` instead.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List

from degendogs.core.config import DOGS_CONTRACT
from .address import (
    encode_balance_of,
    format_address,
    normalize_address,
    parse_hex_to_int,
    unique_addresses,
)
from .rpc import RpcTransport

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoldingsSummary:
    """Result of one aggregation pass.

    Attributes:
        total: Sum of successfully read balances (uint256).
        checked: Addresses whose balance was read.
        failed: Addresses whose lookup failed.
        addresses: The deduplicated addresses that were queried.
        skipped: Input entries rejected as malformed addresses.
    """

    total: int = 0
    checked: int = 0
    failed: int = 0
    addresses: tuple = ()
    skipped: int = 0

    @property
    def queried(self) -> int:
        return self.checked + self.failed

    def to_dict(self) -> dict:
        return {
            "total": str(self.total),
            "checked": self.checked,
            "failed": self.failed,
            "skipped": self.skipped,
        }


async def balance_of(
    transport: RpcTransport,
    address: str,
    contract: str = DOGS_CONTRACT,
) -> int:
    """Read balanceOf(address) on `contract` at the latest block.

    Raises:
        AddressError: Address is malformed (no call is made).
        RpcError / ProviderError: The read call failed.
    """
    data = encode_balance_of(address)
    result = await transport.call("eth_call", [{"to": contract, "data": data}, "latest"])
    return parse_hex_to_int(result)


async def aggregate(
    transport: RpcTransport,
    addresses: Iterable[str],
    contract: str = DOGS_CONTRACT,
) -> HoldingsSummary:
    """Sum balances over the distinct valid addresses in `addresses`.

    Malformed entries are not queried; they are logged and reported in
    `skipped`, outside `checked + failed`.
    """
    entries = list(addresses)
    candidates: List[str] = unique_addresses(entries)
    skipped = sum(1 for entry in entries if normalize_address(entry) is None)
    if skipped:
        log.warning(f"holdings: skipped {skipped} malformed address entries")
    if not candidates:
        return HoldingsSummary(skipped=skipped)

    results = await asyncio.gather(
        *(balance_of(transport, address, contract) for address in candidates),
        return_exceptions=True,
    )

    total = 0
    checked = 0
    failed = 0
    for address, result in zip(candidates, results):
        if isinstance(result, BaseException):
            failed += 1
            log.warning(f"balanceOf failed for {format_address(address)}: {result}")
        else:
            total += result
            checked += 1

    log.info(f"holdings: total={total} checked={checked} failed={failed} skipped={skipped}")
    return HoldingsSummary(
        total=total,
        checked=checked,
        failed=failed,
        addresses=tuple(candidates),
        skipped=skipped,
    )
