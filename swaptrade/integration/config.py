"""
YAML configuration loader.

Reads a venue config file into `SwapTradeSettings`. Unknown keys and wrong
types are rejected (fail-closed); anything omitted keeps its default.

Example::

    log_level: INFO
    trading:
      max_batch_size: 20
      pair_key_mode: asset_pair
      pool: {asset_a: XLM, asset_b: USDCSIM}
      tiers:
        trader: {min_trades: 10}
        expert: {min_trades: 50, min_volume: 100000}
        whale:  {min_trades: 200, min_volume: 1000000}
        fees:   {Novice: 30, Trader: 25, Expert: 20, Whale: 15}
      rate_limits:
        window_seconds: 3600
        swap:      {Novice: 10, Trader: 20, Expert: 50, Whale: 100}
        liquidity: {Novice: 5,  Trader: 10, Expert: 20, Whale: 50}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Set

import yaml

from ..core.achievements import PairKeyMode
from ..core.config import DEFAULT_MAX_BATCH_SIZE, PoolConfig, TradingConfig
from ..core.rate_limit import DEFAULT_WINDOW_SECONDS, RateLimitConfig, default_lp_limits, default_swap_limits
from ..core.tiers import TierSchedule, TierThreshold, UserTier, default_tier_fees
from ..state.balances import Asset


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapTradeSettings:
    trading: TradingConfig = field(default_factory=TradingConfig)
    log_level: str = "INFO"


def _require_mapping(raw: Any, *, name: str, allowed: Set[str]) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"{name} must be a mapping")
    unknown = sorted(set(raw) - allowed)
    if unknown:
        raise ValueError(f"unknown keys in {name}: {unknown}")
    return raw


def _require_int(raw: Any, *, name: str) -> int:
    if not isinstance(raw, int) or isinstance(raw, bool):
        raise ValueError(f"{name} must be an int, got {raw!r}")
    return raw


def _build_threshold(raw: Any, default: TierThreshold, *, name: str) -> TierThreshold:
    raw = _require_mapping(raw, name=name, allowed={"min_trades", "min_volume"})
    return TierThreshold(
        min_trades=_require_int(raw.get("min_trades", default.min_trades), name=f"{name}.min_trades"),
        min_volume=_require_int(raw.get("min_volume", default.min_volume), name=f"{name}.min_volume"),
    )


def _build_tiers(raw: Any) -> TierSchedule:
    raw = _require_mapping(raw, name="trading.tiers", allowed={"trader", "expert", "whale", "fees"})
    default = TierSchedule()
    return TierSchedule(
        trader=_build_threshold(raw.get("trader"), default.trader, name="trading.tiers.trader"),
        expert=_build_threshold(raw.get("expert"), default.expert, name="trading.tiers.expert"),
        whale=_build_threshold(raw.get("whale"), default.whale, name="trading.tiers.whale"),
        fees=_build_per_tier(raw.get("fees"), default_tier_fees(), name="trading.tiers.fees"),
    )


def _build_per_tier(raw: Any, defaults: Dict[UserTier, int], *, name: str) -> Dict[UserTier, int]:
    raw = _require_mapping(raw, name=name, allowed={t.value for t in UserTier})
    values = dict(defaults)
    for tier_name, value in raw.items():
        values[UserTier(tier_name)] = _require_int(value, name=f"{name}.{tier_name}")
    return values


def _build_rate_limits(raw: Any) -> RateLimitConfig:
    raw = _require_mapping(raw, name="trading.rate_limits", allowed={"window_seconds", "swap", "liquidity"})
    return RateLimitConfig(
        window_seconds=_require_int(
            raw.get("window_seconds", DEFAULT_WINDOW_SECONDS), name="trading.rate_limits.window_seconds"
        ),
        swap_limits=_build_per_tier(raw.get("swap"), default_swap_limits(), name="trading.rate_limits.swap"),
        lp_limits=_build_per_tier(raw.get("liquidity"), default_lp_limits(), name="trading.rate_limits.liquidity"),
    )


def _build_pool(raw: Any) -> PoolConfig:
    raw = _require_mapping(raw, name="trading.pool", allowed={"asset_a", "asset_b"})
    default = PoolConfig()
    assets = []
    for key, fallback in (("asset_a", default.asset_a), ("asset_b", default.asset_b)):
        symbol = raw.get(key)
        if symbol is None:
            assets.append(fallback)
        elif isinstance(symbol, str) and symbol:
            assets.append(Asset.from_symbol(symbol))
        else:
            raise ValueError(f"trading.pool.{key} must be a non-empty string")
    return PoolConfig(asset_a=assets[0], asset_b=assets[1])


def build_trading_config(raw: Any) -> TradingConfig:
    raw = _require_mapping(
        raw,
        name="trading",
        allowed={"tiers", "rate_limits", "pool", "pair_key_mode", "max_batch_size"},
    )
    mode = raw.get("pair_key_mode", PairKeyMode.ASSET_PAIR.value)
    try:
        pair_key_mode = PairKeyMode(mode)
    except ValueError as exc:
        raise ValueError(f"trading.pair_key_mode must be one of {[m.value for m in PairKeyMode]}") from exc
    return TradingConfig(
        tiers=_build_tiers(raw.get("tiers")),
        rate_limits=_build_rate_limits(raw.get("rate_limits")),
        pool=_build_pool(raw.get("pool")),
        pair_key_mode=pair_key_mode,
        max_batch_size=_require_int(raw.get("max_batch_size", DEFAULT_MAX_BATCH_SIZE), name="trading.max_batch_size"),
    )


def load_config(path: Path) -> SwapTradeSettings:
    """
    Load settings from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On malformed YAML structure, unknown keys or invalid values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    root = _require_mapping(raw, name="config", allowed={"trading", "log_level"})

    log_level = root.get("log_level", "INFO")
    if not isinstance(log_level, str):
        raise ValueError("log_level must be a string")

    settings = SwapTradeSettings(trading=build_trading_config(root.get("trading")), log_level=log_level)
    logger.info("Configuration loaded from %s", path)
    return settings
