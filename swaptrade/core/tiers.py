"""User tier classification and fee policy.

A tier is a pure function of an account's trade count and cumulative swap
volume; it is recomputed whenever needed and never stored.

Tier semantics (defaults; fees are configurable per `TierSchedule`):
  Novice → 30 bps fee
  Trader → 25 bps fee (10+ trades)
  Expert → 20 bps fee (50+ trades, 100k+ volume)
  Whale  → 15 bps fee (200+ trades, 1M+ volume)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict

from ..state.balances import Account
from ..state.portfolio import Portfolio
from .fees import MAX_FEE_BPS


@unique
class UserTier(Enum):
    NOVICE = "Novice"
    TRADER = "Trader"
    EXPERT = "Expert"
    WHALE = "Whale"


# Ascending order; classification picks the last tier whose thresholds are met.
TIER_ORDER = (UserTier.NOVICE, UserTier.TRADER, UserTier.EXPERT, UserTier.WHALE)


@dataclass(frozen=True)
class TierThreshold:
    min_trades: int
    min_volume: int = 0

    def __post_init__(self) -> None:
        for name, v in (("min_trades", self.min_trades), ("min_volume", self.min_volume)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

    def met_by(self, trade_count: int, volume: int) -> bool:
        return trade_count >= self.min_trades and volume >= self.min_volume


_DEFAULT_FEE_BPS = (30, 25, 20, 15)


def default_tier_fees() -> Dict[UserTier, int]:
    return dict(zip(TIER_ORDER, _DEFAULT_FEE_BPS))


@dataclass(frozen=True)
class TierInfo:
    """A classified tier paired with the fee its schedule charges."""

    tier: UserTier
    fee_bps: int
    base_fee_bps: int

    def effective_fee_bps(self) -> int:
        return self.fee_bps

    def fee_discount_bps(self) -> int:
        return self.base_fee_bps - self.fee_bps


@dataclass(frozen=True)
class TierSchedule:
    trader: TierThreshold = TierThreshold(min_trades=10)
    expert: TierThreshold = TierThreshold(min_trades=50, min_volume=100_000)
    whale: TierThreshold = TierThreshold(min_trades=200, min_volume=1_000_000)
    fees: Dict[UserTier, int] = field(default_factory=default_tier_fees)

    def __post_init__(self) -> None:
        ordered = (self.trader, self.expert, self.whale)
        for lower, upper in zip(ordered, ordered[1:]):
            if upper.min_trades < lower.min_trades or upper.min_volume < lower.min_volume:
                raise ValueError("tier thresholds must be non-decreasing")
        for tier in TIER_ORDER:
            fee = self.fees.get(tier)
            if not isinstance(fee, int) or isinstance(fee, bool):
                raise ValueError(f"{tier.value} fee must be an int, got {fee!r}")
            if not (0 <= fee <= MAX_FEE_BPS):
                raise ValueError(f"{tier.value} fee must be in [0, {MAX_FEE_BPS}] bps: {fee}")
        charged = [self.fees[tier] for tier in TIER_ORDER]
        if any(upper > lower for lower, upper in zip(charged, charged[1:])):
            raise ValueError(f"tier fees must be non-increasing: {charged}")

    def fee_bps_for(self, tier: UserTier) -> int:
        return self.fees[tier]

    def info_for(self, tier: UserTier) -> TierInfo:
        """Discounts are measured against the Novice fee."""
        return TierInfo(tier=tier, fee_bps=self.fees[tier], base_fee_bps=self.fees[UserTier.NOVICE])

    def threshold_for(self, tier: UserTier) -> TierThreshold:
        if tier is UserTier.NOVICE:
            return TierThreshold(min_trades=0)
        return {UserTier.TRADER: self.trader, UserTier.EXPERT: self.expert, UserTier.WHALE: self.whale}[tier]


DEFAULT_TIER_SCHEDULE = TierSchedule()


def classify_tier(trade_count: int, volume: int = 0, schedule: TierSchedule = DEFAULT_TIER_SCHEDULE) -> UserTier:
    """Highest tier whose trade-count and volume thresholds are both met."""
    if trade_count < 0 or volume < 0:
        raise ValueError(f"counters must be non-negative: ({trade_count}, {volume})")
    result = UserTier.NOVICE
    for tier in TIER_ORDER[1:]:
        if schedule.threshold_for(tier).met_by(trade_count, volume):
            result = tier
    return result


def get_user_tier(portfolio: Portfolio, account: Account, schedule: TierSchedule = DEFAULT_TIER_SCHEDULE) -> UserTier:
    return classify_tier(portfolio.trade_count(account), portfolio.volume_of(account), schedule)


def get_tier_info(portfolio: Portfolio, account: Account, schedule: TierSchedule = DEFAULT_TIER_SCHEDULE) -> TierInfo:
    return schedule.info_for(get_user_tier(portfolio, account, schedule))
