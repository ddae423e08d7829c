"""
Core SwapTrade accounting algorithms
"""

from .cpmm import (
    isqrt_bounded,
    swap_exact_in,
    compute_lp_mint,
    compute_lp_burn,
)
from .errors import SwapTradeError
from .config import ExecutionContext, PoolConfig, TradingConfig
from .ledger import balance_of, credit, debit, mint, transfer_asset
from .trading import SwapResult, perform_swap, try_perform_swap, get_user_transactions
from .liquidity import (
    PoolStats,
    add_liquidity,
    remove_liquidity,
    get_lp_positions,
    get_pool_stats,
)
from .tiers import TierInfo, TierSchedule, TierThreshold, UserTier, classify_tier, get_tier_info, get_user_tier
from .rate_limit import RateLimitConfig, RateLimitStatus
from .achievements import BadgeProgress, PairKeyMode, check_and_award_badges, get_badge_progress
from .leaderboard import AdminStats, get_top_traders, get_admin_stats
from .batch import (
    BatchOperation,
    BatchOperationKind,
    BatchOutcome,
    BatchResult,
    OperationResult,
    execute_batch_atomic,
    execute_batch_best_effort,
)

__all__ = [
    "isqrt_bounded",
    "swap_exact_in",
    "compute_lp_mint",
    "compute_lp_burn",
    "SwapTradeError",
    "ExecutionContext",
    "PoolConfig",
    "TradingConfig",
    "balance_of",
    "credit",
    "debit",
    "mint",
    "transfer_asset",
    "SwapResult",
    "perform_swap",
    "try_perform_swap",
    "get_user_transactions",
    "PoolStats",
    "add_liquidity",
    "remove_liquidity",
    "get_lp_positions",
    "get_pool_stats",
    "TierInfo",
    "TierSchedule",
    "TierThreshold",
    "UserTier",
    "classify_tier",
    "get_tier_info",
    "get_user_tier",
    "RateLimitConfig",
    "RateLimitStatus",
    "BadgeProgress",
    "PairKeyMode",
    "check_and_award_badges",
    "get_badge_progress",
    "AdminStats",
    "get_top_traders",
    "get_admin_stats",
    "BatchOperation",
    "BatchOperationKind",
    "BatchOutcome",
    "BatchResult",
    "OperationResult",
    "execute_batch_atomic",
    "execute_batch_best_effort",
]
