"""
Balance ledger: credit/debit primitives over the Portfolio aggregate.

Every balance change also moves the account's PnL accumulator (credit adds,
debit subtracts). This is a coarse proxy for realized profit/loss, not cost
accounting.
"""

from __future__ import annotations

from ..state.balances import MAX_AMOUNT, Account, Amount, Asset
from ..state.portfolio import Portfolio
from .achievements import record_initial_balance
from .errors import AmountOverflow, InsufficientBalance, InvalidAmount, InvalidSwapPair
from .leaderboard import update_stats_on_trade, update_top_traders


def require_amount_in_range(amount: Amount, *, name: str = "amount") -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidAmount(f"{name} must be an int")
    if amount > MAX_AMOUNT:
        raise AmountOverflow(f"{name} exceeds the maximum amount: {amount}")


def balance_of(portfolio: Portfolio, asset: Asset, account: Account) -> Amount:
    """Balance of `asset` held by `account`; 0 when never credited."""
    return portfolio.balances.get(account, asset)


def _adjust_pnl(portfolio: Portfolio, account: Account, delta: int) -> None:
    portfolio.pnl[account] = portfolio.pnl.get(account, 0) + delta
    update_top_traders(portfolio, account)


def credit(portfolio: Portfolio, asset: Asset, account: Account, amount: Amount) -> None:
    """
    Add `amount` to a balance. Zero is a no-op.

    Raises:
        InvalidAmount: If amount is negative
        AmountOverflow: If the resulting balance exceeds MAX_AMOUNT
    """
    require_amount_in_range(amount)
    if amount < 0:
        raise InvalidAmount(f"Amount must be non-negative: {amount}")
    if amount == 0:
        return
    current = portfolio.balances.get(account, asset)
    if current + amount > MAX_AMOUNT:
        raise AmountOverflow(f"balance of {asset} for {account} would overflow")
    portfolio.balances.set(account, asset, current + amount)
    _adjust_pnl(portfolio, account, amount)
    portfolio.metrics.balances_updated += 1


def debit(portfolio: Portfolio, asset: Asset, account: Account, amount: Amount) -> None:
    """
    Subtract `amount` from a balance. The balance is unchanged on failure.

    Raises:
        InvalidAmount: If amount is not positive
        InsufficientBalance: If the balance is below amount
    """
    require_amount_in_range(amount)
    if amount <= 0:
        raise InvalidAmount(f"Amount must be positive: {amount}")
    current = portfolio.balances.get(account, asset)
    if current < amount:
        raise InsufficientBalance(f"Insufficient funds: {asset} balance {current} < {amount}")
    portfolio.balances.set(account, asset, current - amount)
    _adjust_pnl(portfolio, account, -amount)
    portfolio.metrics.balances_updated += 1


def mint(portfolio: Portfolio, asset: Asset, account: Account, amount: Amount) -> None:
    """Credit newly issued `amount` and capture the WealthBuilder baseline."""
    credit(portfolio, asset, account, amount)
    record_initial_balance(portfolio, account, portfolio.balances.get(account, asset))


def transfer_asset(
    portfolio: Portfolio,
    from_asset: Asset,
    to_asset: Asset,
    account: Account,
    amount: Amount,
) -> None:
    """
    Move `amount` of an account's balance from one asset to another.

    All preconditions are checked before either leg is applied, so a failure
    leaves the portfolio untouched.
    """
    require_amount_in_range(amount)
    if amount <= 0:
        raise InvalidAmount(f"Amount must be positive: {amount}")
    if from_asset == to_asset:
        raise InvalidSwapPair(f"Cannot transfer {from_asset} into itself")
    current = portfolio.balances.get(account, from_asset)
    if current < amount:
        raise InsufficientBalance(f"Insufficient funds: {from_asset} balance {current} < {amount}")
    if portfolio.balances.get(account, to_asset) + amount > MAX_AMOUNT:
        raise AmountOverflow(f"balance of {to_asset} for {account} would overflow")

    debit(portfolio, from_asset, account, amount)
    credit(portfolio, to_asset, account, amount)
    update_stats_on_trade(portfolio, account, amount)
