"""
State management for the SwapTrade venue
"""

from .badges import BADGE_ORDER, Badge
from .balances import MAX_AMOUNT, Account, Amount, Asset, AssetKind, BalanceTable
from .leaderboard import LEADERBOARD_SIZE, RankedPnl
from .lp import LPPosition, LPPositionTable
from .pools import PoolState
from .portfolio import Metrics, Portfolio
from .rate_limits import OperationKind, RateLimitBucket, RateLimitTable
from .transactions import RATE_SCALE, Transaction

__all__ = [
    "BADGE_ORDER",
    "Badge",
    "MAX_AMOUNT",
    "Account",
    "Amount",
    "Asset",
    "AssetKind",
    "BalanceTable",
    "LEADERBOARD_SIZE",
    "RankedPnl",
    "LPPosition",
    "LPPositionTable",
    "PoolState",
    "Metrics",
    "Portfolio",
    "OperationKind",
    "RateLimitBucket",
    "RateLimitTable",
    "RATE_SCALE",
    "Transaction",
]
