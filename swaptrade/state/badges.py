"""
Achievement badges.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Tuple


@unique
class Badge(Enum):
    """One-time, non-revocable achievements."""

    FIRST_TRADE = "FirstTrade"
    TRADER = "Trader"
    WEALTH_BUILDER = "WealthBuilder"
    LIQUIDITY_PROVIDER = "LiquidityProvider"
    DIVERSIFIER = "Diversifier"
    CONSISTENCY = "Consistency"


# Display / reporting order.
BADGE_ORDER: Tuple[Badge, ...] = (
    Badge.FIRST_TRADE,
    Badge.TRADER,
    Badge.WEALTH_BUILDER,
    Badge.LIQUIDITY_PROVIDER,
    Badge.DIVERSIFIER,
    Badge.CONSISTENCY,
)
