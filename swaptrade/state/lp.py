"""
LP position tracking for the single SwapTrade pool.

A position records what an account deposited and how many LP shares it holds.
Positions are removed from the table once their share balance reaches zero,
so "has a position" is equivalent to "has an entry".
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from .balances import Account, Amount


@dataclass(frozen=True)
class LPPosition:
    account: Account
    asset_a_deposited: Amount
    asset_b_deposited: Amount
    lp_shares: Amount

    def __post_init__(self) -> None:
        for name, v in (
            ("asset_a_deposited", self.asset_a_deposited),
            ("asset_b_deposited", self.asset_b_deposited),
            ("lp_shares", self.lp_shares),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

    def with_deposit(self, amount_a: Amount, amount_b: Amount, shares: Amount) -> "LPPosition":
        return replace(
            self,
            asset_a_deposited=self.asset_a_deposited + amount_a,
            asset_b_deposited=self.asset_b_deposited + amount_b,
            lp_shares=self.lp_shares + shares,
        )

    def with_withdrawal(self, amount_a: Amount, amount_b: Amount, shares: Amount) -> "LPPosition":
        """Deduct a withdrawal; deposited amounts floor at zero (withdrawals may include earned fees)."""
        if shares > self.lp_shares:
            raise ValueError(f"Insufficient LP shares: {shares} > {self.lp_shares}")
        return replace(
            self,
            asset_a_deposited=max(self.asset_a_deposited - amount_a, 0),
            asset_b_deposited=max(self.asset_b_deposited - amount_b, 0),
            lp_shares=self.lp_shares - shares,
        )


class LPPositionTable:
    """
    Mapping account -> LPPosition.

    Notes:
    - Share balances are always non-negative.
    - Zero-share positions are dropped to keep the table sparse.
    """

    def __init__(self) -> None:
        self._positions: Dict[Account, LPPosition] = {}

    def get(self, account: Account) -> Optional[LPPosition]:
        return self._positions.get(account)

    def shares_of(self, account: Account) -> Amount:
        pos = self._positions.get(account)
        return pos.lp_shares if pos is not None else 0

    def set(self, position: LPPosition) -> None:
        if position.lp_shares == 0:
            self._positions.pop(position.account, None)
        else:
            self._positions[position.account] = position

    def all_positions(self) -> List[LPPosition]:
        """All live positions ordered by account."""
        return [self._positions[k] for k in sorted(self._positions)]

    def total_shares(self) -> Amount:
        return sum(p.lp_shares for p in self._positions.values())

    def copy(self) -> "LPPositionTable":
        out = LPPositionTable()
        out._positions = dict(self._positions)
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LPPositionTable):
            return NotImplemented
        return self._positions == other._positions

    def __len__(self) -> int:
        return len(self._positions)

    def __repr__(self) -> str:
        return f"LPPositionTable({len(self._positions)} positions)"
