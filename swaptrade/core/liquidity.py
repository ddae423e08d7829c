"""
Liquidity management: add/remove liquidity on the single pool.

LP minting:
    first deposit:   shares = isqrt(amount_a * amount_b)
    later deposits:  shares = min(floor(amount_a * supply / reserve_a),
                                  floor(amount_b * supply / reserve_b))
LP burning:
    amount_x = floor(shares * reserve_x / supply)

Both operations check every precondition before touching the Portfolio.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..state.balances import MAX_AMOUNT, Account, Amount
from ..state.lp import LPPosition
from ..state.portfolio import Portfolio
from .achievements import check_and_award_badges, record_lp_deposit
from .config import DEFAULT_CONFIG, ExecutionContext, TradingConfig
from .cpmm import compute_lp_burn, compute_lp_mint
from .errors import (
    AmountOverflow,
    InsufficientBalance,
    InvalidAmount,
    NoLiquidity,
    PositionNotFound,
    WithdrawalExceedsDeposit,
)
from .ledger import credit, debit, require_amount_in_range
from .rate_limit import check_lp_limit, record_lp_op
from .tiers import get_user_tier
from .trading import require_trading_active


# Withdrawals may exceed the recorded deposit by at most 1% (rounding slack).
WITHDRAWAL_TOLERANCE_NUM = 101
WITHDRAWAL_TOLERANCE_DEN = 100


@dataclass(frozen=True)
class PoolStats:
    asset_a: str
    asset_b: str
    reserve_a: Amount
    reserve_b: Amount
    total_lp_supply: Amount
    lp_fees_accumulated: Amount
    total_fees_collected: Amount


def _require_positive(amount: Amount, name: str) -> None:
    require_amount_in_range(amount, name=name)
    if amount <= 0:
        raise InvalidAmount(f"{name} must be positive: {amount}")


def add_liquidity(
    portfolio: Portfolio,
    amount_a: Amount,
    amount_b: Amount,
    account: Account,
    ctx: ExecutionContext = ExecutionContext(),
    config: TradingConfig = DEFAULT_CONFIG,
) -> Amount:
    """
    Deposit `amount_a` of the pool's asset_a and `amount_b` of asset_b.

    Returns:
        LP shares minted

    Raises:
        InvalidAmount: Non-positive amounts, or a deposit too small to mint a share
        InsufficientBalance: The account cannot fund either leg
        NoLiquidity: The pool has LP supply but an empty reserve
        RateLimitExceeded: The account's liquidity quota for this window is used up
    """
    _require_positive(amount_a, "amount_a")
    _require_positive(amount_b, "amount_b")
    require_trading_active(portfolio)

    pool = portfolio.pool
    tier = get_user_tier(portfolio, account, config.tiers)
    check_lp_limit(portfolio, account, tier, ctx.timestamp, config.rate_limits)

    for asset, amount in ((pool.asset_a, amount_a), (pool.asset_b, amount_b)):
        held = portfolio.balances.get(account, asset)
        if held < amount:
            raise InsufficientBalance(f"Insufficient funds: {asset} balance {held} < {amount}")

    if pool.total_lp_supply > 0 and (pool.reserve_a == 0 or pool.reserve_b == 0):
        raise NoLiquidity("cannot add liquidity to a pool with an empty reserve")
    try:
        shares = compute_lp_mint(pool.reserve_a, pool.reserve_b, amount_a, amount_b, pool.total_lp_supply)
    except ValueError as exc:
        raise InvalidAmount(str(exc)) from exc

    if (
        pool.reserve_a + amount_a > MAX_AMOUNT
        or pool.reserve_b + amount_b > MAX_AMOUNT
        or pool.total_lp_supply + shares > MAX_AMOUNT
    ):
        raise AmountOverflow("pool reserves or LP supply would overflow")

    debit(portfolio, pool.asset_a, account, amount_a)
    debit(portfolio, pool.asset_b, account, amount_b)
    pool.reserve_a += amount_a
    pool.reserve_b += amount_b
    pool.total_lp_supply += shares

    position = portfolio.lp_positions.get(account) or LPPosition(account, 0, 0, 0)
    portfolio.lp_positions.set(position.with_deposit(amount_a, amount_b, shares))

    record_lp_deposit(portfolio, account)
    check_and_award_badges(portfolio, account)
    record_lp_op(portfolio, account, ctx.timestamp, config.rate_limits)
    return shares


def remove_liquidity(
    portfolio: Portfolio,
    shares: Amount,
    account: Account,
    ctx: ExecutionContext = ExecutionContext(),
    config: TradingConfig = DEFAULT_CONFIG,
) -> Tuple[Amount, Amount]:
    """
    Burn `shares` of the account's LP position.

    Returns:
        (amount_a, amount_b) credited back to the account

    Raises:
        InvalidAmount: Non-positive shares, or a burn that would return nothing
        PositionNotFound: The account holds no LP position
        InsufficientBalance: The position holds fewer shares than requested
        NoLiquidity: The pool has no LP supply
        WithdrawalExceedsDeposit: Either amount exceeds 101% of the recorded deposit
        RateLimitExceeded: The account's liquidity quota for this window is used up
    """
    _require_positive(shares, "shares")
    require_trading_active(portfolio)

    position = portfolio.lp_positions.get(account)
    if position is None:
        raise PositionNotFound(f"{account} has no LP position")
    if shares > position.lp_shares:
        raise InsufficientBalance(f"Insufficient LP shares: {position.lp_shares} < {shares}")

    pool = portfolio.pool
    if pool.total_lp_supply <= 0:
        raise NoLiquidity("pool has no LP supply")

    tier = get_user_tier(portfolio, account, config.tiers)
    check_lp_limit(portfolio, account, tier, ctx.timestamp, config.rate_limits)

    amount_a, amount_b = compute_lp_burn(shares, pool.reserve_a, pool.reserve_b, pool.total_lp_supply)
    if amount_a <= 0 or amount_b <= 0:
        raise InvalidAmount(f"withdrawal amounts must be positive: ({amount_a}, {amount_b})")

    max_a = position.asset_a_deposited * WITHDRAWAL_TOLERANCE_NUM // WITHDRAWAL_TOLERANCE_DEN
    max_b = position.asset_b_deposited * WITHDRAWAL_TOLERANCE_NUM // WITHDRAWAL_TOLERANCE_DEN
    if amount_a > max_a or amount_b > max_b:
        raise WithdrawalExceedsDeposit(
            f"withdrawal ({amount_a}, {amount_b}) exceeds deposit "
            f"({position.asset_a_deposited}, {position.asset_b_deposited}) by more than 1%"
        )

    for asset, amount in ((pool.asset_a, amount_a), (pool.asset_b, amount_b)):
        if portfolio.balances.get(account, asset) + amount > MAX_AMOUNT:
            raise AmountOverflow(f"balance of {asset} for {account} would overflow")

    pool.reserve_a = max(pool.reserve_a - amount_a, 0)
    pool.reserve_b = max(pool.reserve_b - amount_b, 0)
    pool.total_lp_supply = max(pool.total_lp_supply - shares, 0)
    portfolio.lp_positions.set(position.with_withdrawal(amount_a, amount_b, shares))

    credit(portfolio, pool.asset_a, account, amount_a)
    credit(portfolio, pool.asset_b, account, amount_b)
    record_lp_op(portfolio, account, ctx.timestamp, config.rate_limits)
    return amount_a, amount_b


def get_lp_positions(portfolio: Portfolio, account: Account) -> List[LPPosition]:
    """The account's position as a 0- or 1-element list."""
    position = portfolio.lp_positions.get(account)
    return [position] if position is not None else []


def get_pool_stats(portfolio: Portfolio) -> PoolStats:
    pool = portfolio.pool
    return PoolStats(
        asset_a=str(pool.asset_a),
        asset_b=str(pool.asset_b),
        reserve_a=pool.reserve_a,
        reserve_b=pool.reserve_b,
        total_lp_supply=pool.total_lp_supply,
        lp_fees_accumulated=pool.lp_fees_accumulated,
        total_fees_collected=portfolio.total_fees_collected,
    )
