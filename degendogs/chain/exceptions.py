"""
Chain access exceptions.

AddressError is a local validation failure and never reaches the network;
RpcError and ProviderError are transport failures.
"""

from typing import Optional, Union

from degendogs.api_models import ErrorCode


class ChainError(Exception):
    """Base exception for on-chain reads and wallet interaction.

    Carries an error code that maps to ErrorCode constants.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class AddressError(ChainError):
    """Address is not 0x + 40 hex characters."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(ErrorCode.INVALID_ADDRESS, f"Invalid address: {address!r}")


class RpcError(ChainError):
    """JSON-RPC call failed (HTTP status, transport, or error member).

    rpc_code holds the JSON-RPC error code when the node returned one.
    """

    def __init__(self, message: str, rpc_code: Optional[int] = None):
        self.rpc_code = rpc_code
        super().__init__(ErrorCode.RPC_FAILED, message)


class ProviderError(ChainError):
    """Error raised by an injected wallet provider.

    provider_code mirrors EIP-1193 error codes (4001, 4200, 4902, -32601)
    and may also be a string such as "ACTION_REJECTED".
    """

    def __init__(self, message: str, provider_code: Union[int, str, None] = None):
        self.provider_code = provider_code
        super().__init__(ErrorCode.PROVIDER_ERROR, message)


class WalletUnavailableError(ChainError):
    """No provider, or the provider exposes no accounts."""

    def __init__(self, message: str = "No wallet provider available"):
        super().__init__(ErrorCode.WALLET_UNAVAILABLE, message)
