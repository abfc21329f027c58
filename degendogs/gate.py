"""Holder gate.

The single place holder status is derived. Profile-only and
wallet-connected users go through the same rule.
"""

from typing import Optional

from degendogs.chain.holdings import HoldingsSummary


def is_holder(
    profile_holdings: Optional[HoldingsSummary],
    wallet_balance: Optional[int],
) -> bool:
    """True iff verified-profile holdings or the wallet balance is positive.

    None means "not yet checked" and counts as zero.
    """
    profile_total = profile_holdings.total if profile_holdings is not None else 0
    wallet_total = wallet_balance if wallet_balance is not None else 0
    return profile_total > 0 or wallet_total > 0
