"""
Constant Product Market Maker (CPMM) math for the single SwapTrade pool.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per swap, O(log log n) for the initial LP square root
- Invariant: reserve product after a swap never exceeds the product before it

Fees are withheld before the pool sees the input (see `core/trading.py`), so
every function here works on fee-exclusive amounts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..state.balances import Amount


# Newton's method from an upper bound converges in well under this many steps
# for any product of two i128 amounts.
MAX_ISQRT_ITERATIONS = 64


def isqrt_bounded(n: int, max_iterations: int = MAX_ISQRT_ITERATIONS) -> int:
    """
    floor(sqrt(n)) by Newton/Babylonian iteration with a hard iteration cap.

    The starting guess is a power of two >= sqrt(n), so the sequence decreases
    monotonically and stops at the first non-decreasing step.

    Raises:
        ValueError: If n is negative
        ArithmeticError: If the iteration cap is reached before convergence
    """
    if not isinstance(n, int) or isinstance(n, bool):
        raise TypeError("n must be an int")
    if n < 0:
        raise ValueError(f"n must be non-negative: {n}")
    if n < 2:
        return n

    x = 1 << ((n.bit_length() + 1) // 2)
    for _ in range(max_iterations):
        y = (x + n // x) // 2
        if y >= x:
            return x
        x = y
    raise ArithmeticError(f"isqrt did not converge within {max_iterations} iterations")


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int
    k_before: int
    k_after: int


def swap_exact_in(reserve_in: Amount, reserve_out: Amount, amount_in: Amount) -> SwapQuote:
    """
    Quote an exact-in swap of a fee-exclusive `amount_in`.

        amount_out = ceil(reserve_out * amount_in / (reserve_in + amount_in))

    Rounding the output up keeps `(reserve_in + amount_in) * (reserve_out - amount_out)`
    at or below `reserve_in * reserve_out`. A swap whose exact output is below one
    unit is refused rather than rounded up to a whole unit.

    Raises:
        ValueError: On invalid inputs, an empty reserve, a sub-unit output, or an
            output that would drain the whole reserve
    """
    for name, v in (("reserve_in", reserve_in), ("reserve_out", reserve_out), ("amount_in", amount_in)):
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError(f"{name} must be an int")
    if reserve_in < 0 or reserve_out < 0:
        raise ValueError(f"Reserves must be non-negative: ({reserve_in}, {reserve_out})")
    if reserve_in == 0 or reserve_out == 0:
        raise ValueError("cannot swap against an empty reserve")
    if amount_in <= 0:
        raise ValueError(f"amount_in must be positive: {amount_in}")

    k_before = reserve_in * reserve_out
    denominator = reserve_in + amount_in
    floor_out, remainder = divmod(reserve_out * amount_in, denominator)
    if floor_out == 0:
        raise ValueError(f"amount_in ({amount_in}) buys less than one unit of reserve_out")
    amount_out = floor_out + (1 if remainder else 0)

    if amount_out >= reserve_out:
        raise ValueError(f"amount_out ({amount_out}) would drain reserve_out ({reserve_out})")

    new_reserve_in = reserve_in + amount_in
    new_reserve_out = reserve_out - amount_out
    k_after = new_reserve_in * new_reserve_out
    if k_after > k_before:
        raise ValueError(f"Invariant violation: new_k ({k_after}) > old_k ({k_before})")

    return SwapQuote(
        amount_in=amount_in,
        amount_out=amount_out,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=k_before,
        k_after=k_after,
    )


def compute_lp_mint(
    reserve_a: Amount,
    reserve_b: Amount,
    amount_a: Amount,
    amount_b: Amount,
    lp_supply: Amount,
) -> Amount:
    """
    Compute LP shares to mint for a liquidity deposit.

    For first deposit (lp_supply == 0):
        lp = isqrt(amount_a * amount_b)

    For subsequent deposits:
        lp = min(floor(amount_a * lp_supply / reserve_a), floor(amount_b * lp_supply / reserve_b))

    Raises:
        ValueError: If inputs are invalid or the result is non-positive
    """
    if reserve_a < 0 or reserve_b < 0:
        raise ValueError(f"Reserves must be non-negative: ({reserve_a}, {reserve_b})")
    if amount_a <= 0 or amount_b <= 0:
        raise ValueError(f"Deposit amounts must be positive: ({amount_a}, {amount_b})")
    if lp_supply < 0:
        raise ValueError(f"LP supply must be non-negative: {lp_supply}")

    if lp_supply == 0:
        product = amount_a * amount_b
        if product == 0:
            raise ValueError("Product must be positive")
        lp = isqrt_bounded(product)
    else:
        if reserve_a == 0 or reserve_b == 0:
            raise ValueError("Cannot add liquidity to empty pool")
        lp_a = (amount_a * lp_supply) // reserve_a
        lp_b = (amount_b * lp_supply) // reserve_b
        lp = min(lp_a, lp_b)

    if lp <= 0:
        raise ValueError(f"Computed LP amount is non-positive: {lp}")

    return lp


def compute_lp_burn(
    lp_amount: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    lp_supply: Amount,
) -> Tuple[Amount, Amount]:
    """
    Compute asset amounts returned for burning `lp_amount` shares.

        amount_a = floor(lp_amount * reserve_a / lp_supply)
        amount_b = floor(lp_amount * reserve_b / lp_supply)
    """
    if lp_amount <= 0:
        raise ValueError(f"LP amount must be positive: {lp_amount}")
    if lp_supply <= 0:
        raise ValueError(f"LP supply must be positive: {lp_supply}")
    if lp_amount > lp_supply:
        raise ValueError(f"Cannot burn more LP than supply: {lp_amount} > {lp_supply}")
    if reserve_a < 0 or reserve_b < 0:
        raise ValueError(f"Reserves must be non-negative: ({reserve_a}, {reserve_b})")

    amount_a = (lp_amount * reserve_a) // lp_supply
    amount_b = (lp_amount * reserve_b) // lp_supply
    return amount_a, amount_b


def constant_product_holds(
    reserve_a_before: Amount,
    reserve_b_before: Amount,
    reserve_a_after: Amount,
    reserve_b_after: Amount,
) -> bool:
    """True iff reserves stay non-negative and the product did not increase."""
    if reserve_a_after < 0 or reserve_b_after < 0:
        return False
    return reserve_a_after * reserve_b_after <= reserve_a_before * reserve_b_before
