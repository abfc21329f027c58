"""Wallet network reconciliation.

Not every mini-app host implements network switching. When the wallet
cannot or will not move to Base, holdings are still read through the
public RPC transport, so rejection and "unsupported" signals produce a
fallback result instead of an error.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from degendogs.core.config import BASE_CHAIN_ID, BASE_CHAIN_PARAMS
from .exceptions import ProviderError, WalletUnavailableError
from .rpc import EthereumProvider

log = logging.getLogger(__name__)

# EIP-1193 / JSON-RPC provider error codes
USER_REJECTED_CODES = {4001, "4001", "ACTION_REJECTED"}
UNSUPPORTED_CODES = {-32601, "-32601", "METHOD_NOT_FOUND", 4200, "4200"}
UNRECOGNIZED_CHAIN_CODES = {4902, "4902"}


@dataclass(frozen=True)
class ChainStatus:
    """Outcome of ensure_chain().

    Attributes:
        chain_id: Wallet network as 0x-prefixed lower-case hex, or None.
        use_rpc_fallback: True when holdings must be read via public RPC.
    """

    chain_id: Optional[str]
    use_rpc_fallback: bool

    @property
    def label(self) -> str:
        if self.chain_id == BASE_CHAIN_ID:
            return f"Base ({BASE_CHAIN_ID})"
        if self.chain_id:
            return f"Chain {self.chain_id} (rpc)" if self.use_rpc_fallback else f"Chain {self.chain_id}"
        return "Unknown (rpc)"


def normalize_chain_id(value: Any) -> Optional[str]:
    """Canonicalize a chain id from int, hex string or decimal string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return hex(value)
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return None
        if trimmed[:2] in ("0x", "0X"):
            digits = trimmed[2:].lower()
            try:
                int(digits, 16)
            except ValueError:
                return None
            return f"0x{digits}"
        try:
            return hex(int(trimmed))
        except ValueError:
            return None
    return None


def _error_code(err: BaseException) -> Any:
    if isinstance(err, ProviderError):
        return err.provider_code
    return getattr(err, "code", None)


def is_method_unsupported(err: BaseException) -> bool:
    """Provider does not implement the requested method."""
    message = str(err).lower()
    return (
        "not support" in message
        or "unsupported" in message
        or _error_code(err) in UNSUPPORTED_CODES
    )


def is_user_rejected(err: BaseException) -> bool:
    return _error_code(err) in USER_REJECTED_CODES or "user rejected" in str(err).lower()


def is_unrecognized_chain(err: BaseException) -> bool:
    return _error_code(err) in UNRECOGNIZED_CHAIN_CODES


async def read_chain_id(provider: EthereumProvider) -> Optional[str]:
    return normalize_chain_id(await provider.request("eth_chainId"))


async def ensure_chain(provider: EthereumProvider, allow_switch: bool = False) -> ChainStatus:
    """Make sure the wallet is on Base, or report that RPC fallback is needed.

    Args:
        provider: Injected wallet provider.
        allow_switch: Request a network switch (and add) on mismatch.

    Returns:
        ChainStatus with the final chain id and fallback flag.

    Raises:
        Exception: Any provider error other than unrecognized-chain,
            user-rejected or method-unsupported during the switch.
    """
    try:
        chain_id = await read_chain_id(provider)
        log.debug(f"Wallet chainId {chain_id}")
    except Exception as e:
        log.warning(f"eth_chainId failed: {e}")
        return ChainStatus(chain_id=None, use_rpc_fallback=True)

    if allow_switch and chain_id != BASE_CHAIN_ID:
        try:
            await provider.request(
                "wallet_switchEthereumChain", [{"chainId": BASE_CHAIN_ID}]
            )
            chain_id = await read_chain_id(provider)
        except Exception as e:
            log.info(f"wallet_switchEthereumChain failed: code={_error_code(e)} message={e}")
            if is_unrecognized_chain(e):
                try:
                    await provider.request("wallet_addEthereumChain", [BASE_CHAIN_PARAMS])
                    chain_id = await read_chain_id(provider)
                except Exception as add_err:
                    log.warning(f"wallet_addEthereumChain failed: {add_err}")
                    return ChainStatus(chain_id=chain_id, use_rpc_fallback=True)
            elif is_method_unsupported(e) or is_user_rejected(e):
                return ChainStatus(chain_id=chain_id, use_rpc_fallback=True)
            else:
                raise

    return ChainStatus(chain_id=chain_id, use_rpc_fallback=chain_id != BASE_CHAIN_ID)


async def request_accounts(provider: EthereumProvider) -> List[str]:
    """Return the wallet's accounts.

    Tries eth_requestAccounts, then eth_accounts; "unsupported" on either is
    tolerated, any other error propagates.

    Raises:
        WalletUnavailableError: Neither method yielded an account.
    """
    for method in ("eth_requestAccounts", "eth_accounts"):
        try:
            accounts = await provider.request(method)
        except Exception as e:
            if not is_method_unsupported(e):
                raise
            log.debug(f"Wallet: {method} unsupported ({e})")
            continue
        if accounts:
            return list(accounts)

    raise WalletUnavailableError(
        "Wallet provider does not expose accounts. "
        "Open the mini app in a Farcaster client with a connected wallet."
    )
