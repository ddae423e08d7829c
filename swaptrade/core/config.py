"""Runtime configuration and per-invocation context for the core operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..state.balances import Asset
from ..state.pools import DEFAULT_ASSET_A, DEFAULT_ASSET_B, PoolState
from ..state.portfolio import Portfolio
from .achievements import PairKeyMode
from .rate_limit import RateLimitConfig
from .tiers import TierSchedule


DEFAULT_MAX_BATCH_SIZE = 20


@dataclass(frozen=True)
class ExecutionContext:
    """Ledger clock values for one invocation, supplied by the caller."""

    height: int = 0
    timestamp: int = 0

    def __post_init__(self) -> None:
        for name, v in (("height", self.height), ("timestamp", self.timestamp)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")


@dataclass(frozen=True)
class PoolConfig:
    asset_a: Asset = DEFAULT_ASSET_A
    asset_b: Asset = DEFAULT_ASSET_B

    def __post_init__(self) -> None:
        if not isinstance(self.asset_a, Asset) or not isinstance(self.asset_b, Asset):
            raise TypeError("pool assets must be Asset values")
        if self.asset_a == self.asset_b:
            raise ValueError(f"pool assets must differ: {self.asset_a}")

    def new_pool(self) -> PoolState:
        return PoolState(asset_a=self.asset_a, asset_b=self.asset_b)


@dataclass(frozen=True)
class TradingConfig:
    """Runtime config shared by the swap, liquidity and batch operations."""

    tiers: TierSchedule = field(default_factory=TierSchedule)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)
    pair_key_mode: PairKeyMode = PairKeyMode.ASSET_PAIR
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE

    def __post_init__(self) -> None:
        if not isinstance(self.pair_key_mode, PairKeyMode):
            raise TypeError("pair_key_mode must be a PairKeyMode")
        if not isinstance(self.max_batch_size, int) or isinstance(self.max_batch_size, bool):
            raise TypeError("max_batch_size must be an int")
        if self.max_batch_size <= 0:
            raise ValueError(f"max_batch_size must be positive: {self.max_batch_size}")

    def new_portfolio(self) -> Portfolio:
        """Default-initialized aggregate for a venue using this pool."""
        return Portfolio(pool=self.pool.new_pool())


DEFAULT_CONFIG = TradingConfig()
