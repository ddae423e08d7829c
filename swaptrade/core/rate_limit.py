"""
Sliding-window rate limiting per (account, operation kind).

Checking never mutates: an elapsed window is treated as reset when read, and
the bucket is only rewritten by `record_op`. Callers check first, perform the
operation, then record it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from ..state.balances import Account
from ..state.portfolio import Portfolio
from ..state.rate_limits import OperationKind, RateLimitBucket
from .errors import RateLimitExceeded
from .tiers import TIER_ORDER, UserTier


DEFAULT_WINDOW_SECONDS = 3600


def default_swap_limits() -> Dict[UserTier, int]:
    return {UserTier.NOVICE: 10, UserTier.TRADER: 20, UserTier.EXPERT: 50, UserTier.WHALE: 100}


def default_lp_limits() -> Dict[UserTier, int]:
    return {UserTier.NOVICE: 5, UserTier.TRADER: 10, UserTier.EXPERT: 20, UserTier.WHALE: 50}


@dataclass(frozen=True)
class RateLimitConfig:
    window_seconds: int = DEFAULT_WINDOW_SECONDS
    swap_limits: Dict[UserTier, int] = field(default_factory=default_swap_limits)
    lp_limits: Dict[UserTier, int] = field(default_factory=default_lp_limits)

    def __post_init__(self) -> None:
        if not isinstance(self.window_seconds, int) or isinstance(self.window_seconds, bool):
            raise TypeError("window_seconds must be an int")
        if self.window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive: {self.window_seconds}")
        for name, limits in (("swap_limits", self.swap_limits), ("lp_limits", self.lp_limits)):
            missing = [t.value for t in TIER_ORDER if t not in limits]
            if missing:
                raise ValueError(f"{name} missing tiers: {missing}")
            for tier, limit in limits.items():
                if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
                    raise ValueError(f"{name}[{tier.value}] must be a non-negative int: {limit!r}")

    def limit_for(self, kind: OperationKind, tier: UserTier) -> int:
        if kind is OperationKind.SWAP:
            return self.swap_limits[tier]
        return self.lp_limits[tier]


DEFAULT_RATE_LIMIT_CONFIG = RateLimitConfig()


@dataclass(frozen=True)
class RateLimitStatus:
    used: int
    limit: int
    remaining: int
    window_resets_at: int


def get_status(
    portfolio: Portfolio,
    account: Account,
    kind: OperationKind,
    tier: UserTier,
    now: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> RateLimitStatus:
    """Quota snapshot for the window containing `now`. Does not mutate."""
    window = config.window_seconds
    limit = config.limit_for(kind, tier)
    bucket = portfolio.rate_limits.get(account, kind)
    if bucket is None or bucket.is_expired(now, window):
        used, resets_at = 0, now + window
    else:
        used, resets_at = bucket.count, bucket.window_start + window
    return RateLimitStatus(used=used, limit=limit, remaining=max(limit - used, 0), window_resets_at=resets_at)


def check_limit(
    portfolio: Portfolio,
    account: Account,
    kind: OperationKind,
    tier: UserTier,
    now: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> None:
    """
    Raises:
        RateLimitExceeded: If the live window already holds the tier's maximum
    """
    status = get_status(portfolio, account, kind, tier, now, config)
    if status.used >= status.limit:
        raise RateLimitExceeded(
            f"{kind.value} limit reached for {tier.value}: {status.used}/{status.limit} "
            f"until {status.window_resets_at}",
            status=status,
        )


def record_op(
    portfolio: Portfolio,
    account: Account,
    kind: OperationKind,
    timestamp: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> RateLimitBucket:
    """Count one operation, opening a new window if the current one elapsed."""
    bucket = portfolio.rate_limits.get(account, kind)
    if bucket is None or bucket.is_expired(timestamp, config.window_seconds):
        bucket = RateLimitBucket(count=1, window_start=timestamp)
    else:
        bucket = RateLimitBucket(count=bucket.count + 1, window_start=bucket.window_start)
    portfolio.rate_limits.set(account, kind, bucket)
    return bucket


def check_swap_limit(
    portfolio: Portfolio,
    account: Account,
    tier: UserTier,
    now: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> None:
    check_limit(portfolio, account, OperationKind.SWAP, tier, now, config)


def check_lp_limit(
    portfolio: Portfolio,
    account: Account,
    tier: UserTier,
    now: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> None:
    check_limit(portfolio, account, OperationKind.LIQUIDITY, tier, now, config)


def record_swap_op(
    portfolio: Portfolio,
    account: Account,
    timestamp: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> RateLimitBucket:
    return record_op(portfolio, account, OperationKind.SWAP, timestamp, config)


def record_lp_op(
    portfolio: Portfolio,
    account: Account,
    timestamp: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> RateLimitBucket:
    return record_op(portfolio, account, OperationKind.LIQUIDITY, timestamp, config)


def get_swap_status(
    portfolio: Portfolio,
    account: Account,
    tier: UserTier,
    now: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> RateLimitStatus:
    return get_status(portfolio, account, OperationKind.SWAP, tier, now, config)


def get_lp_status(
    portfolio: Portfolio,
    account: Account,
    tier: UserTier,
    now: int,
    config: RateLimitConfig = DEFAULT_RATE_LIMIT_CONFIG,
) -> RateLimitStatus:
    return get_status(portfolio, account, OperationKind.LIQUIDITY, tier, now, config)
