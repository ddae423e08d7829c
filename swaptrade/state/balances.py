"""
Multi-asset balance tracking with deterministic ordering.

Implements BalanceTable[Account, Asset] -> Amount
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


# Type aliases
Account = str  # opaque caller identity (hex BLS public key when signatures are used)
Amount = int  # Non-negative integer (arbitrary precision, bounded by MAX_AMOUNT at entry points)

# Amounts are i128 in the ledger wire format; anything above is treated as overflow.
MAX_AMOUNT = (1 << 127) - 1

NATIVE_SYMBOL = "XLM"


class AssetKind(Enum):
    NATIVE = "native"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Asset:
    """
    Tagged asset identifier.

    Equality is by (kind, name): the native asset and a custom asset that
    happens to share its symbol are distinct.
    """

    kind: AssetKind
    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.kind, AssetKind):
            raise TypeError("kind must be an AssetKind")
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("asset name must be a non-empty string")

    @classmethod
    def native(cls) -> "Asset":
        return cls(AssetKind.NATIVE, NATIVE_SYMBOL)

    @classmethod
    def custom(cls, name: str) -> "Asset":
        return cls(AssetKind.CUSTOM, name)

    @classmethod
    def from_symbol(cls, symbol: str) -> "Asset":
        """Map a token symbol onto an asset: the native symbol is the native asset."""
        if symbol == NATIVE_SYMBOL:
            return cls.native()
        return cls.custom(symbol)

    @classmethod
    def from_key(cls, key: str) -> "Asset":
        """Inverse of `key`."""
        if not isinstance(key, str) or ":" not in key:
            raise ValueError(f"invalid asset key: {key!r}")
        kind, name = key.split(":", 1)
        return cls(AssetKind(kind), name)

    @property
    def key(self) -> str:
        """Stable string form used in snapshots and pair identifiers."""
        return f"{self.kind.value}:{self.name}"

    def __str__(self) -> str:
        return self.name


class BalanceTable:
    """
    Deterministic balance table mapping (account, asset) -> amount.

    Note: this class stores balances in a plain dict. Do not rely on dict
    iteration order; callers sort keys explicitly at serialization boundaries
    (see `swaptrade/integration/snapshot.py`).
    """

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Account, Asset], Amount] = {}

    def get(self, account: Account, asset: Asset) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Account, asset: Asset, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def add(self, account: Account, asset: Asset, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, asset, new_balance)

    def subtract(self, account: Account, asset: Asset, delta: Amount) -> None:
        """Subtract a non-negative amount from a balance."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(account, asset, -delta)

    def get_all_balances(self) -> Dict[Tuple[Account, Asset], Amount]:
        """Return all balances as a dictionary."""
        return dict(self._balances)

    def get_balances_for_account(self, account: Account) -> Dict[Asset, Amount]:
        """Return all non-zero balances held by `account`."""
        return {asset: amount for (acct, asset), amount in self._balances.items() if acct == account}

    def total_supply(self, asset: Asset) -> Amount:
        """Sum of all account balances of `asset`."""
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def verify_non_negative(self) -> bool:
        """Verify all balances are non-negative."""
        return all(amount >= 0 for amount in self._balances.values())

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BalanceTable):
            return NotImplemented
        return self._balances == other._balances

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
