"""
Achievement tracking.

Badges are evaluated on demand after a triggering event (trade, LP deposit).
Awarding is idempotent: a badge already held is never re-awarded and the
evaluation itself never fails.

| Badge             | Condition                                         |
|-------------------|---------------------------------------------------|
| FirstTrade        | trade count >= 1                                  |
| Trader            | trade count >= 10                                 |
| WealthBuilder     | PnL proxy >= 10 x first recorded positive balance |
| LiquidityProvider | LP deposit count >= 1                             |
| Diversifier       | distinct traded pairs >= 5                        |
| Consistency       | distinct traded ledger heights >= 7               |
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import List

from ..state.badges import BADGE_ORDER, Badge
from ..state.balances import Account, Amount, Asset
from ..state.portfolio import Portfolio


FIRST_TRADE_THRESHOLD = 1
TRADER_THRESHOLD = 10
WEALTH_MULTIPLIER_THRESHOLD = 10
LIQUIDITY_PROVIDER_THRESHOLD = 1
DIVERSIFIER_THRESHOLD = 5
CONSISTENCY_THRESHOLD = 7


@unique
class PairKeyMode(Enum):
    """How a traded pair is identified for the Diversifier badge."""

    # Unordered (from, to) pair: XLM->USDC and USDC->XLM are the same pair.
    ASSET_PAIR = "asset_pair"
    # Legacy identity: only the source asset counts.
    SOURCE_ASSET = "source_asset"


@dataclass(frozen=True)
class BadgeProgress:
    badge: Badge
    current: int
    threshold: int

    @property
    def achieved(self) -> bool:
        return self.current >= self.threshold


def pair_key(from_asset: Asset, to_asset: Asset, mode: PairKeyMode = PairKeyMode.ASSET_PAIR) -> str:
    if mode is PairKeyMode.SOURCE_ASSET:
        return from_asset.key
    lo, hi = sorted((from_asset.key, to_asset.key))
    return f"{lo}/{hi}"


def has_badge(portfolio: Portfolio, account: Account, badge: Badge) -> bool:
    return badge in portfolio.badges.get(account, ())


def award_badge(portfolio: Portfolio, account: Account, badge: Badge) -> bool:
    """Grant `badge`. Returns False if the account already held it."""
    held = portfolio.badges.setdefault(account, set())
    if badge in held:
        return False
    held.add(badge)
    return True


def get_user_badges(portfolio: Portfolio, account: Account) -> List[Badge]:
    held = portfolio.badges.get(account, set())
    return [b for b in BADGE_ORDER if b in held]


def record_trade(portfolio: Portfolio, account: Account) -> int:
    """Count a completed trade; awards FirstTrade on the first one. Returns the new count."""
    count = portfolio.trades.get(account, 0) + 1
    portfolio.trades[account] = count
    portfolio.metrics.trades_executed += 1
    if count == FIRST_TRADE_THRESHOLD:
        award_badge(portfolio, account, Badge.FIRST_TRADE)
    return count


def track_trade_for_badges(
    portfolio: Portfolio,
    account: Account,
    from_asset: Asset,
    to_asset: Asset,
    ledger_height: int,
    mode: PairKeyMode = PairKeyMode.ASSET_PAIR,
) -> None:
    """Remember the traded pair and ledger height for the diversity badges."""
    if ledger_height < 0:
        raise ValueError(f"ledger_height must be non-negative: {ledger_height}")
    pairs = portfolio.traded_pairs.setdefault(account, {})
    pairs.setdefault(pair_key(from_asset, to_asset, mode), None)
    heights = portfolio.traded_heights.setdefault(account, {})
    heights.setdefault(ledger_height, None)


def record_lp_deposit(portfolio: Portfolio, account: Account) -> None:
    portfolio.lp_deposits[account] = portfolio.lp_deposits.get(account, 0) + 1


def record_initial_balance(portfolio: Portfolio, account: Account, amount: Amount) -> None:
    """Set the WealthBuilder baseline once, on the first positive balance."""
    if account not in portfolio.initial_balances and amount > 0:
        portfolio.initial_balances[account] = amount


def wealth_proxy(portfolio: Portfolio, account: Account) -> int:
    """Current "total balance" used for WealthBuilder (the PnL accumulator)."""
    return portfolio.pnl_of(account)


def _wealth_multiplier(portfolio: Portfolio, account: Account) -> int:
    initial = portfolio.initial_balances.get(account, 0)
    if initial <= 0:
        return 0
    return max(wealth_proxy(portfolio, account) // initial, 0)


def check_and_award_badges(portfolio: Portfolio, account: Account) -> List[Badge]:
    """Award every badge whose condition now holds. Returns the newly awarded ones."""
    trades = portfolio.trade_count(account)
    conditions = (
        (Badge.FIRST_TRADE, trades >= FIRST_TRADE_THRESHOLD),
        (Badge.TRADER, trades >= TRADER_THRESHOLD),
        (Badge.WEALTH_BUILDER, _wealth_multiplier(portfolio, account) >= WEALTH_MULTIPLIER_THRESHOLD),
        (
            Badge.LIQUIDITY_PROVIDER,
            portfolio.lp_deposits.get(account, 0) >= LIQUIDITY_PROVIDER_THRESHOLD,
        ),
        (Badge.DIVERSIFIER, len(portfolio.traded_pairs.get(account, ())) >= DIVERSIFIER_THRESHOLD),
        (Badge.CONSISTENCY, len(portfolio.traded_heights.get(account, ())) >= CONSISTENCY_THRESHOLD),
    )
    awarded = []
    for badge, met in conditions:
        if met and award_badge(portfolio, account, badge):
            awarded.append(badge)
    return awarded


def get_badge_progress(portfolio: Portfolio, account: Account) -> List[BadgeProgress]:
    trades = portfolio.trade_count(account)
    return [
        BadgeProgress(Badge.FIRST_TRADE, trades, FIRST_TRADE_THRESHOLD),
        BadgeProgress(Badge.TRADER, trades, TRADER_THRESHOLD),
        BadgeProgress(Badge.WEALTH_BUILDER, _wealth_multiplier(portfolio, account), WEALTH_MULTIPLIER_THRESHOLD),
        BadgeProgress(
            Badge.LIQUIDITY_PROVIDER,
            portfolio.lp_deposits.get(account, 0),
            LIQUIDITY_PROVIDER_THRESHOLD,
        ),
        BadgeProgress(Badge.DIVERSIFIER, len(portfolio.traded_pairs.get(account, ())), DIVERSIFIER_THRESHOLD),
        BadgeProgress(Badge.CONSISTENCY, len(portfolio.traded_heights.get(account, ())), CONSISTENCY_THRESHOLD),
    ]
