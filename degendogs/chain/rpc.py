"""Read-call transports for on-chain queries.

Two interchangeable transports implement RpcTransport:
- JsonRpcTransport: direct JSON-RPC POST to a public endpoint
- ProviderTransport: the read-call method of an injected wallet provider

Wallet providers follow the EIP-1193 request shape, expressed here as
`await provider.request(method, params)`.
"""

import itertools
import logging
from typing import Any, List, Optional, Protocol, runtime_checkable

import httpx

from degendogs.core.config import BASE_RPC_URL, RPC_TIMEOUT_SECONDS
from .exceptions import RpcError

log = logging.getLogger(__name__)


@runtime_checkable
class EthereumProvider(Protocol):
    """Injected wallet provider (EIP-1193 style)."""

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        ...


class RpcTransport(Protocol):
    """Anything that can perform a JSON-RPC read call."""

    async def call(self, method: str, params: List[Any]) -> Any:
        ...


class JsonRpcTransport:
    """JSON-RPC 2.0 over HTTP POST."""

    _ids = itertools.count(1)

    def __init__(
        self,
        url: str = BASE_RPC_URL,
        timeout: float = RPC_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url:
            raise RpcError("RPC URL is not configured")
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def call(self, method: str, params: List[Any]) -> Any:
        """POST one request and return its `result` member.

        Raises:
            RpcError: Transport failure, non-2xx status, non-JSON body or a
                JSON-RPC error member.
        """
        request_body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.url,
                    json=request_body,
                    headers={"content-type": "application/json"},
                )
        except httpx.HTTPError as e:
            raise RpcError(f"RPC transport error: {e}") from e

        if response.status_code < 200 or response.status_code >= 300:
            raise RpcError(f"RPC HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(f"RPC response is not JSON: {e}") from e

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            code = error.get("code") if isinstance(error, dict) else None
            raise RpcError(message or "RPC error", rpc_code=code)

        result = data.get("result") if isinstance(data, dict) else None
        return result if result is not None else ""


class ProviderTransport:
    """Route read calls through an injected wallet provider."""

    def __init__(self, provider: EthereumProvider):
        self.provider = provider

    async def call(self, method: str, params: List[Any]) -> Any:
        return await self.provider.request(method, params)
