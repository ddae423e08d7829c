"""
Per-account request counters for rate limiting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Dict, ItemsView, Optional, Tuple

from .balances import Account


@unique
class OperationKind(Enum):
    SWAP = "swap"
    LIQUIDITY = "liquidity"


@dataclass(frozen=True)
class RateLimitBucket:
    """Operations counted since `window_start` (seconds)."""

    count: int
    window_start: int

    def __post_init__(self) -> None:
        for name, v in (("count", self.count), ("window_start", self.window_start)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")

    def is_expired(self, now: int, window_seconds: int) -> bool:
        return now >= self.window_start + window_seconds


class RateLimitTable:
    """Mapping (account, kind) -> RateLimitBucket."""

    def __init__(self) -> None:
        self._buckets: Dict[Tuple[Account, OperationKind], RateLimitBucket] = {}

    def get(self, account: Account, kind: OperationKind) -> Optional[RateLimitBucket]:
        return self._buckets.get((account, kind))

    def set(self, account: Account, kind: OperationKind, bucket: RateLimitBucket) -> None:
        self._buckets[(account, kind)] = bucket

    def items(self) -> ItemsView[Tuple[Account, OperationKind], RateLimitBucket]:
        return self._buckets.items()

    def copy(self) -> "RateLimitTable":
        out = RateLimitTable()
        out._buckets = dict(self._buckets)
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RateLimitTable):
            return NotImplemented
        return self._buckets == other._buckets

    def __repr__(self) -> str:
        return f"RateLimitTable({len(self._buckets)} buckets)"
