"""
Swap fee computation (deterministic, integer-only).

Fees are charged on the gross input with floor rounding and may never exceed
1% of the amount.
"""

from __future__ import annotations

from ..state.balances import Amount
from ..state.portfolio import Portfolio


BPS_DENOM = 10_000
MAX_FEE_BPS = 100  # 1%


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def compute_fee(amount: Amount, fee_bps: int) -> Amount:
    """
    `fee = floor(amount * fee_bps / 10_000)`.

    Raises ValueError for a negative amount or a rate outside [0, MAX_FEE_BPS].
    """
    _require_int("amount", amount)
    _require_int("fee_bps", fee_bps)
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
    if not (0 <= fee_bps <= MAX_FEE_BPS):
        raise ValueError(f"fee_bps must be in [0, {MAX_FEE_BPS}]: {fee_bps}")
    return (amount * fee_bps) // BPS_DENOM


def fee_within_bounds(amount: Amount, fee: Amount) -> bool:
    """0 <= fee <= amount * 1%; zero amount admits only a zero fee."""
    if fee < 0:
        return False
    if amount > 0:
        return fee <= (amount * MAX_FEE_BPS) // BPS_DENOM
    return fee == 0


def collect_fee(portfolio: Portfolio, fee: Amount) -> None:
    """Book a withheld swap fee into the venue and LP fee accumulators."""
    if fee < 0:
        raise ValueError(f"fee must be non-negative: {fee}")
    if fee == 0:
        return
    portfolio.total_fees_collected += fee
    portfolio.pool.lp_fees_accumulated += fee
