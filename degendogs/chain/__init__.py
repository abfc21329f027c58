"""On-chain holdings reads and wallet network reconciliation."""

from .exceptions import (
    ChainError,
    AddressError,
    RpcError,
    ProviderError,
    WalletUnavailableError,
)
from .address import (
    normalize_address,
    unique_addresses,
    merge_addresses,
    encode_balance_of,
    parse_hex_to_int,
)
from .rpc import EthereumProvider, RpcTransport, JsonRpcTransport, ProviderTransport
from .holdings import HoldingsSummary, balance_of, aggregate
from .reconciler import ChainStatus, ensure_chain, normalize_chain_id, request_accounts

__all__ = [
    # Exceptions
    "ChainError",
    "AddressError",
    "RpcError",
    "ProviderError",
    "WalletUnavailableError",
    # Address utilities
    "normalize_address",
    "unique_addresses",
    "merge_addresses",
    "encode_balance_of",
    "parse_hex_to_int",
    # Transports
    "EthereumProvider",
    "RpcTransport",
    "JsonRpcTransport",
    "ProviderTransport",
    # Holdings
    "HoldingsSummary",
    "balance_of",
    "aggregate",
    # Reconciler
    "ChainStatus",
    "ensure_chain",
    "normalize_chain_id",
    "request_accounts",
]
