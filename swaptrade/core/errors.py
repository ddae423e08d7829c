"""Exception types for the SwapTrade core.

Every error carries a stable integer ``code`` so that callers at the
entry-point boundary can report failures without matching on class names.
"""

from __future__ import annotations

from typing import Any, Optional


class SwapTradeError(Exception):
    """Base class for all domain failures of a single operation."""

    code: int = 0


class InvalidAmount(SwapTradeError):
    """Zero or negative amount where a positive one is required."""

    code = 6


class ZeroAmountSwap(InvalidAmount):
    """Swap attempted with a non-positive amount."""

    code = 4


class InsufficientBalance(SwapTradeError):
    code = 2


class InvalidSwapPair(SwapTradeError):
    """Same asset on both sides, or an asset the pool does not hold."""

    code = 3


class Unauthorized(SwapTradeError):
    """The invoking identity does not match the account acted upon."""

    code = 5


class AmountOverflow(SwapTradeError):
    """An amount or a resulting balance exceeds MAX_AMOUNT."""

    code = 7


class RateLimitExceeded(SwapTradeError):
    code = 12

    def __init__(self, message: str, status: Optional[Any] = None) -> None:
        self.status = status
        super().__init__(message)


class NoLiquidity(SwapTradeError):
    """Operation requires pool liquidity that is not there."""

    code = 13


class PositionNotFound(SwapTradeError):
    code = 14


class WithdrawalExceedsDeposit(SwapTradeError):
    """LP withdrawal would return more than 101% of the recorded deposit."""

    code = 15


class InvalidBatch(SwapTradeError):
    code = 16


class TradingPaused(SwapTradeError):
    code = 17


class NotAdmin(SwapTradeError):
    code = 18
