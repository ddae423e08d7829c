"""
Pool state for the single constant-product pool.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

from .balances import Amount, Asset


DEFAULT_ASSET_A = Asset.native()
DEFAULT_ASSET_B = Asset.custom("USDCSIM")


@dataclass
class PoolState:
    """
    State of the SwapTrade liquidity pool.

    Attributes:
        asset_a: First reserve asset
        asset_b: Second reserve asset
        reserve_a: Reserve amount for asset_a
        reserve_b: Reserve amount for asset_b
        total_lp_supply: Sum of all LP positions' shares
        lp_fees_accumulated: Swap fees set aside for LP distribution (not distributed yet)
    """
    asset_a: Asset = DEFAULT_ASSET_A
    asset_b: Asset = DEFAULT_ASSET_B
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    total_lp_supply: Amount = 0
    lp_fees_accumulated: Amount = 0

    def __post_init__(self) -> None:
        """Validate pool state invariants."""
        if self.asset_a == self.asset_b:
            raise ValueError(f"Pool assets must differ: {self.asset_a}")
        if self.reserve_a < 0 or self.reserve_b < 0:
            raise ValueError(
                f"Reserves must be non-negative: ({self.reserve_a}, {self.reserve_b})"
            )
        if self.total_lp_supply < 0:
            raise ValueError(f"LP supply must be non-negative: {self.total_lp_supply}")
        if self.lp_fees_accumulated < 0:
            raise ValueError(f"LP fees must be non-negative: {self.lp_fees_accumulated}")

    def has_asset(self, asset: Asset) -> bool:
        return asset == self.asset_a or asset == self.asset_b

    def get_reserve(self, asset: Asset) -> Amount:
        """
        Get reserve for a specific asset.

        Raises:
            ValueError: If asset is not in this pool
        """
        if asset == self.asset_a:
            return self.reserve_a
        elif asset == self.asset_b:
            return self.reserve_b
        else:
            raise ValueError(f"Asset {asset} not in pool")

    def set_reserve(self, asset: Asset, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Reserve cannot be negative: {amount}")
        if asset == self.asset_a:
            self.reserve_a = amount
        elif asset == self.asset_b:
            self.reserve_b = amount
        else:
            raise ValueError(f"Asset {asset} not in pool")

    def reserves_for(self, from_asset: Asset, to_asset: Asset) -> Tuple[Amount, Amount]:
        """Return (reserve_in, reserve_out) for a swap direction."""
        return self.get_reserve(from_asset), self.get_reserve(to_asset)

    def get_constant_product(self) -> int:
        """Compute k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b

    def verify_invariant(self) -> bool:
        return (
            self.reserve_a >= 0
            and self.reserve_b >= 0
            and self.total_lp_supply >= 0
            and self.lp_fees_accumulated >= 0
        )

    def copy(self) -> "PoolState":
        return replace(self)

    def __repr__(self) -> str:
        return (
            f"PoolState(assets=({self.asset_a}, {self.asset_b}), "
            f"reserves=({self.reserve_a}, {self.reserve_b}), "
            f"lp_supply={self.total_lp_supply})"
        )
