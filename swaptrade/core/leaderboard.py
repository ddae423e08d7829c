"""
Leaderboard and aggregate venue statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..state.balances import Account, Amount
from ..state.leaderboard import LEADERBOARD_SIZE
from ..state.portfolio import Portfolio


@dataclass(frozen=True)
class AdminStats:
    total_users: int
    total_trading_volume: int
    active_users: int


def update_top_traders(portfolio: Portfolio, account: Account) -> None:
    """Re-rank `account` after its PnL changed."""
    portfolio.leaderboard.update(account, portfolio.pnl_of(account))


def get_top_traders(portfolio: Portfolio, limit: int = LEADERBOARD_SIZE) -> List[Tuple[Account, int]]:
    """Top traders by PnL descending; `limit` is capped at 100."""
    if limit < 0:
        raise ValueError(f"limit must be non-negative: {limit}")
    return portfolio.leaderboard.top(limit)


def observe_user(portfolio: Portfolio, account: Account) -> bool:
    """Register `account` as an active user. Returns True the first time it is seen."""
    if account in portfolio.active_users:
        return False
    portfolio.active_users.add(account)
    portfolio.total_users += 1
    return True


def update_stats_on_trade(portfolio: Portfolio, account: Account, amount: Amount) -> None:
    """Count a new user on first sight and add `amount` to the traded volume."""
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
    observe_user(portfolio, account)
    portfolio.total_trading_volume += amount


def get_admin_stats(portfolio: Portfolio) -> AdminStats:
    return AdminStats(
        total_users=portfolio.total_users,
        total_trading_volume=portfolio.total_trading_volume,
        active_users=len(portfolio.active_users),
    )
