"""
The Portfolio aggregate: every piece of venue state, loaded and stored whole.

Core operations take a Portfolio explicitly and mutate it in place; the
imperative shell (`swaptrade/integration/engine.py`) loads it from a state
store before an operation and writes it back afterwards.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .badges import Badge
from .balances import Account, BalanceTable
from .leaderboard import RankedPnl
from .lp import LPPositionTable
from .pools import PoolState
from .rate_limits import RateLimitTable
from .transactions import Transaction


PORTFOLIO_SCHEMA_VERSION = 1


@dataclass
class Metrics:
    """Lightweight operational counters. All are non-decreasing."""

    trades_executed: int = 0
    failed_orders: int = 0
    balances_updated: int = 0


@dataclass
class Portfolio:
    balances: BalanceTable = field(default_factory=BalanceTable)
    trades: Dict[Account, int] = field(default_factory=dict)
    pnl: Dict[Account, int] = field(default_factory=dict)
    volume: Dict[Account, int] = field(default_factory=dict)
    badges: Dict[Account, Set[Badge]] = field(default_factory=dict)
    metrics: Metrics = field(default_factory=Metrics)

    # Aggregate stats
    total_users: int = 0
    total_trading_volume: int = 0
    active_users: Set[Account] = field(default_factory=set)
    leaderboard: RankedPnl = field(default_factory=RankedPnl)
    total_fees_collected: int = 0

    # Achievement tracking. Pair/height trackers are insertion-ordered sets (dict keys).
    initial_balances: Dict[Account, int] = field(default_factory=dict)
    traded_pairs: Dict[Account, Dict[str, None]] = field(default_factory=dict)
    traded_heights: Dict[Account, Dict[int, None]] = field(default_factory=dict)
    lp_deposits: Dict[Account, int] = field(default_factory=dict)
    transactions: Dict[Account, List[Transaction]] = field(default_factory=dict)

    # Pool + LP positions
    pool: PoolState = field(default_factory=PoolState)
    lp_positions: LPPositionTable = field(default_factory=LPPositionTable)

    rate_limits: RateLimitTable = field(default_factory=RateLimitTable)

    # Admin controls
    admin: Optional[Account] = None
    paused: bool = False

    version: int = PORTFOLIO_SCHEMA_VERSION

    def copy(self) -> "Portfolio":
        """Independent deep copy (used as the transient working state of atomic batches)."""
        return copy.deepcopy(self)

    def trade_count(self, account: Account) -> int:
        return self.trades.get(account, 0)

    def pnl_of(self, account: Account) -> int:
        return self.pnl.get(account, 0)

    def volume_of(self, account: Account) -> int:
        return self.volume.get(account, 0)

    def get_portfolio(self, account: Account) -> tuple[int, int]:
        """(trade_count, pnl) for an account."""
        return self.trade_count(account), self.pnl_of(account)

    def verify_invariants(self) -> List[str]:
        """Return the names of violated invariants (empty when consistent)."""
        violations: List[str] = []
        if not self.balances.verify_non_negative():
            violations.append("non_negative_balances")
        if not self.pool.verify_invariant():
            violations.append("pool_non_negative")
        if self.lp_positions.total_shares() != self.pool.total_lp_supply:
            violations.append("lp_supply_conservation")
        if any(len(b) > len(Badge) for b in self.badges.values()):
            violations.append("badge_uniqueness")
        return violations
