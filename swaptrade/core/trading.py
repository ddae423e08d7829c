"""
Swap execution against the single constant-product pool.

`perform_swap` validates everything (pair, amount, pause flag, rate limit,
balance, pool depth, overflow) before the first mutation, then applies the
debit, reserve update, fee booking and credit as one unit. A raised error
therefore always leaves the Portfolio untouched.

Fee flow:
    fee = floor(amount_in * tier_fee_bps / 10_000)
    net_in = amount_in - fee            (enters the pool)
    fee                                 (booked to total_fees_collected / lp_fees_accumulated)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..state.balances import MAX_AMOUNT, Account, Amount, Asset
from ..state.portfolio import Portfolio
from ..state.transactions import Transaction, compute_rate
from .achievements import check_and_award_badges, record_trade, track_trade_for_badges
from .config import DEFAULT_CONFIG, ExecutionContext, TradingConfig
from .cpmm import SwapQuote, swap_exact_in
from .errors import (
    AmountOverflow,
    InsufficientBalance,
    InvalidSwapPair,
    NoLiquidity,
    SwapTradeError,
    TradingPaused,
    ZeroAmountSwap,
)
from .fees import collect_fee, compute_fee
from .leaderboard import update_stats_on_trade
from .ledger import credit, debit, require_amount_in_range
from .rate_limit import check_swap_limit, record_swap_op
from .tiers import UserTier, get_user_tier


@dataclass(frozen=True)
class SwapResult:
    amount_in: Amount
    fee: Amount
    amount_out: Amount
    tier: UserTier
    k_before: int
    k_after: int


def require_trading_active(portfolio: Portfolio) -> None:
    if portfolio.paused:
        raise TradingPaused("trading is paused")


def validate_pair(portfolio: Portfolio, from_asset: Asset, to_asset: Asset) -> None:
    if from_asset == to_asset:
        raise InvalidSwapPair(f"cannot swap {from_asset} for itself")
    pool = portfolio.pool
    for asset in (from_asset, to_asset):
        if not pool.has_asset(asset):
            raise InvalidSwapPair(f"asset {asset} is not traded by this pool")


def validate_swap_amount(amount: Amount) -> None:
    require_amount_in_range(amount)
    if amount <= 0:
        raise ZeroAmountSwap(f"swap amount must be positive: {amount}")


def quote_swap(portfolio: Portfolio, from_asset: Asset, to_asset: Asset, net_in: Amount) -> SwapQuote:
    """
    Raises:
        NoLiquidity: If either reserve is empty or the output would drain the pool
    """
    reserve_in, reserve_out = portfolio.pool.reserves_for(from_asset, to_asset)
    if reserve_in == 0 or reserve_out == 0:
        raise NoLiquidity("pool has no liquidity")
    try:
        quote = swap_exact_in(reserve_in, reserve_out, net_in)
    except ValueError as exc:
        raise NoLiquidity(str(exc)) from exc
    if quote.new_reserve_in > MAX_AMOUNT:
        raise AmountOverflow(f"reserve of {from_asset} would overflow")
    return quote


def perform_swap(
    portfolio: Portfolio,
    from_asset: Asset,
    to_asset: Asset,
    amount: Amount,
    account: Account,
    ctx: ExecutionContext = ExecutionContext(),
    config: TradingConfig = DEFAULT_CONFIG,
) -> SwapResult:
    """
    Swap `amount` of `from_asset` held by `account` into `to_asset`.

    Raises:
        InvalidSwapPair: Same asset, or an asset outside the pool
        InvalidAmount / ZeroAmountSwap / AmountOverflow: Amount out of range
        TradingPaused: Trading is paused by the admin
        RateLimitExceeded: The account's swap quota for this window is used up
        InsufficientBalance: The account holds less than `amount`
        NoLiquidity: The pool cannot serve the swap
    """
    validate_pair(portfolio, from_asset, to_asset)
    validate_swap_amount(amount)
    require_trading_active(portfolio)

    tier = get_user_tier(portfolio, account, config.tiers)
    check_swap_limit(portfolio, account, tier, ctx.timestamp, config.rate_limits)

    held = portfolio.balances.get(account, from_asset)
    if held < amount:
        raise InsufficientBalance(f"Insufficient funds: {from_asset} balance {held} < {amount}")

    fee = compute_fee(amount, config.tiers.fee_bps_for(tier))
    quote = quote_swap(portfolio, from_asset, to_asset, amount - fee)
    if portfolio.balances.get(account, to_asset) + quote.amount_out > MAX_AMOUNT:
        raise AmountOverflow(f"balance of {to_asset} for {account} would overflow")

    debit(portfolio, from_asset, account, amount)
    portfolio.pool.set_reserve(from_asset, quote.new_reserve_in)
    portfolio.pool.set_reserve(to_asset, quote.new_reserve_out)
    collect_fee(portfolio, fee)
    credit(portfolio, to_asset, account, quote.amount_out)

    record_swap_op(portfolio, account, ctx.timestamp, config.rate_limits)
    record_trade(portfolio, account)
    portfolio.volume[account] = portfolio.volume_of(account) + amount
    update_stats_on_trade(portfolio, account, amount)
    track_trade_for_badges(portfolio, account, from_asset, to_asset, ctx.height, config.pair_key_mode)
    portfolio.transactions.setdefault(account, []).append(
        Transaction(
            timestamp=ctx.timestamp,
            from_asset=from_asset,
            to_asset=to_asset,
            from_amount=amount,
            to_amount=quote.amount_out,
            rate_achieved=compute_rate(amount, quote.amount_out),
        )
    )
    check_and_award_badges(portfolio, account)

    return SwapResult(
        amount_in=amount,
        fee=fee,
        amount_out=quote.amount_out,
        tier=tier,
        k_before=quote.k_before,
        k_after=quote.k_after,
    )


def try_perform_swap(
    portfolio: Portfolio,
    from_asset: Asset,
    to_asset: Asset,
    amount: Amount,
    account: Account,
    ctx: ExecutionContext = ExecutionContext(),
    config: TradingConfig = DEFAULT_CONFIG,
) -> Amount:
    """Non-raising swap: returns the output amount, or 0 and counts a failed order."""
    try:
        return perform_swap(portfolio, from_asset, to_asset, amount, account, ctx, config).amount_out
    except SwapTradeError:
        portfolio.metrics.failed_orders += 1
        return 0


def get_user_transactions(portfolio: Portfolio, account: Account, limit: int) -> List[Transaction]:
    """Most recent swaps of `account`, newest first, at most `limit` entries."""
    if limit < 0:
        raise ValueError(f"limit must be non-negative: {limit}")
    history = portfolio.transactions.get(account, [])
    return list(reversed(history[-limit:])) if limit else []
