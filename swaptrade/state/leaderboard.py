"""
Ranked PnL index backing the top-traders leaderboard.

Every observed account is indexed, so the exposed top slice is always the true
top-K even after a listed account's PnL falls.
"""

from __future__ import annotations

import bisect
from typing import Dict, List, Tuple

from .balances import Account


LEADERBOARD_SIZE = 100


class RankedPnl:
    """
    Sorted index of (account, pnl), highest PnL first.

    Entries are kept as `(-pnl, account)` keys in a sorted list so insertion
    and removal are a binary search plus a list shift. Ties are ordered by
    account id.
    """

    def __init__(self) -> None:
        self._scores: Dict[Account, int] = {}
        self._keys: List[Tuple[int, Account]] = []

    def update(self, account: Account, pnl: int) -> None:
        old = self._scores.get(account)
        if old is not None:
            if old == pnl:
                return
            idx = bisect.bisect_left(self._keys, (-old, account))
            del self._keys[idx]
        self._scores[account] = pnl
        bisect.insort(self._keys, (-pnl, account))

    def top(self, limit: int = LEADERBOARD_SIZE) -> List[Tuple[Account, int]]:
        """Top `limit` entries (capped at LEADERBOARD_SIZE), sorted by PnL descending."""
        n = max(0, min(int(limit), LEADERBOARD_SIZE))
        return [(account, -neg) for neg, account in self._keys[:n]]

    def rank_of(self, account: Account) -> int:
        """1-based rank among all indexed accounts, or 0 if unknown."""
        pnl = self._scores.get(account)
        if pnl is None:
            return 0
        return bisect.bisect_left(self._keys, (-pnl, account)) + 1

    def copy(self) -> "RankedPnl":
        out = RankedPnl()
        out._scores = dict(self._scores)
        out._keys = list(self._keys)
        return out

    def __contains__(self, account: object) -> bool:
        return account in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RankedPnl):
            return NotImplemented
        return self._scores == other._scores
