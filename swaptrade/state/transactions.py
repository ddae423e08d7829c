"""
Per-account swap history records.
"""

from __future__ import annotations

from dataclasses import dataclass

from .balances import Amount, Asset


# Exchange rates are stored as fixed-point integers with 7 decimal digits.
RATE_SCALE = 10**7


def compute_rate(from_amount: Amount, to_amount: Amount) -> int:
    """Achieved rate `to_amount / from_amount` in units of 1e-7 (floor)."""
    if from_amount <= 0:
        return 0
    return (to_amount * RATE_SCALE) // from_amount


@dataclass(frozen=True)
class Transaction:
    timestamp: int
    from_asset: Asset
    to_asset: Asset
    from_amount: Amount
    to_amount: Amount
    rate_achieved: int

    def __post_init__(self) -> None:
        for name, v in (
            ("timestamp", self.timestamp),
            ("from_amount", self.from_amount),
            ("to_amount", self.to_amount),
            ("rate_achieved", self.rate_achieved),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
