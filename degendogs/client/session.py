"""Per-user session controller.

Holds the verified identity, the last holdings reads and the wallet
provider for one signed-in user. The holder flag is never stored; it is
recomputed from the holdings state through degendogs.gate on every read,
so it cannot drift from what was actually observed on chain.
"""

import asyncio
import logging
from typing import List, Optional

from degendogs.chain.address import format_address, normalize_address
from degendogs.chain.holdings import HoldingsSummary, aggregate, balance_of
from degendogs.chain.reconciler import ChainStatus, ensure_chain, request_accounts
from degendogs.chain.rpc import EthereumProvider, JsonRpcTransport, ProviderTransport, RpcTransport
from degendogs.core.config import DOGS_CONTRACT
from degendogs.gate import is_holder
from degendogs.store.board import Board, VoteResult, Writer
from degendogs.store.exceptions import WriteRejected
from degendogs.store.models import Post, Reply
from .verify_client import VerifiedIdentity, VerifyClient

log = logging.getLogger(__name__)


class HolderSession:
    """State machine: signed out -> signed in -> holdings checked.

    Args:
        verify_client: Client for the verification endpoint.
        board: Gated store; None means the store is not configured.
        rpc: Public read-only transport for holdings reads.
        contract: NFT contract whose balance decides holder status.
    """

    def __init__(
        self,
        verify_client: VerifyClient,
        board: Optional[Board] = None,
        rpc: Optional[RpcTransport] = None,
        contract: str = DOGS_CONTRACT,
    ):
        self.verify_client = verify_client
        self.board = board
        self.rpc = rpc if rpc is not None else JsonRpcTransport()
        self.contract = contract

        self.identity: Optional[VerifiedIdentity] = None
        self.uid: Optional[str] = None
        self.profile_holdings: Optional[HoldingsSummary] = None
        self.provider: Optional[EthereumProvider] = None
        self.chain_status: Optional[ChainStatus] = None
        self.wallet_address: Optional[str] = None
        self.wallet_balance: Optional[int] = None

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def signed_in(self) -> bool:
        return self.identity is not None

    @property
    def is_holder(self) -> bool:
        return is_holder(self.profile_holdings, self.wallet_balance)

    @property
    def wallet_linked(self) -> bool:
        """Connected wallet is one of the profile's verified addresses."""
        if not self.identity or not self.wallet_address:
            return False
        return self.wallet_address in self.identity.verified_eth_addresses

    def writer(self) -> Writer:
        identity = self.identity
        return Writer(
            fid=identity.fid if identity else None,
            uid=self.uid,
            is_holder=self.is_holder,
            username=identity.username if identity else None,
            display_name=identity.display_name if identity else None,
        )

    # -------------------------------------------------------------------------
    # Sign-in and holdings
    # -------------------------------------------------------------------------

    async def sign_in(self, token: str, uid: Optional[str] = None) -> VerifiedIdentity:
        """Verify `token` and adopt the resulting identity.

        Any failure returns the session to the signed-out state before the
        error propagates.
        """
        try:
            identity = await self.verify_client.verify(token)
        except Exception:
            self.reset()
            raise

        self.reset()
        self.identity = identity
        self.uid = uid or f"fid:{identity.fid}"
        log.info(f"Session: signed in as {identity.label}", extra={"fid": identity.fid})
        return identity

    async def check_profile_holdings(self) -> HoldingsSummary:
        """Read holdings across the profile's verified addresses via public RPC."""
        if not self.identity:
            raise WriteRejected.not_signed_in()
        summary = await aggregate(self.rpc, self.identity.verified_eth_addresses, self.contract)
        self.profile_holdings = summary
        return summary

    async def connect_wallet(
        self,
        provider: EthereumProvider,
        allow_switch: bool = False,
    ) -> int:
        """Reconcile the wallet network, pick its first account, read its balance.

        When the wallet is not on Base (and could not be moved there) the
        balance is read through public RPC instead of the provider.
        """
        if not self.identity:
            raise WriteRejected.not_signed_in()

        self.provider = provider
        self.chain_status = await ensure_chain(provider, allow_switch=allow_switch)
        accounts: List[str] = await request_accounts(provider)
        address = normalize_address(accounts[0]) or str(accounts[0]).lower()

        transport = self.rpc if self.chain_status.use_rpc_fallback else ProviderTransport(provider)
        try:
            balance = await balance_of(transport, address, self.contract)
        except Exception:
            self.wallet_address = None
            self.wallet_balance = None
            raise

        self.wallet_address = address
        self.wallet_balance = balance
        log.info(
            f"Session: wallet {format_address(address)} on {self.chain_status.label} balance={balance}",
            extra={"fid": self.identity.fid},
        )
        return balance

    def reset(self) -> None:
        """Return to the signed-out state."""
        self.identity = None
        self.uid = None
        self.profile_holdings = None
        self.provider = None
        self.chain_status = None
        self.wallet_address = None
        self.wallet_balance = None

    # -------------------------------------------------------------------------
    # Gated writes
    # -------------------------------------------------------------------------

    async def create_post(self, title: str, body: str) -> Post:
        return await asyncio.to_thread(self._board().create_post, self.writer(), title, body)

    async def create_reply(self, post_id: str, body: str) -> Reply:
        return await asyncio.to_thread(self._board().create_reply, self.writer(), post_id, body)

    async def cast_vote(self, post_id: str) -> VoteResult:
        return await asyncio.to_thread(self._board().cast_vote, self.writer(), post_id)

    def _board(self) -> Board:
        if self.board is None:
            raise WriteRejected.store_unavailable()
        return self.board
