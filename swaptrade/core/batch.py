"""
Batch execution of heterogeneous operations against one Portfolio.

Atomic mode runs every operation on a transient copy and hands the copy back
only when all of them succeed; on the first failure the caller keeps the
original aggregate. Best-effort mode applies operations one by one to the
given Portfolio and records each outcome. Every single operation validates
before it mutates, so a failed operation leaves no partial effect behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, unique
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..state.balances import Account, Amount, Asset
from ..state.portfolio import Portfolio
from .config import DEFAULT_CONFIG, ExecutionContext, TradingConfig
from .errors import InvalidBatch, SwapTradeError
from .ledger import mint, transfer_asset
from .liquidity import add_liquidity, remove_liquidity
from .trading import perform_swap


logger = logging.getLogger(__name__)


@unique
class BatchOperationKind(Enum):
    MINT = "mint"
    SWAP = "swap"
    TRANSFER = "transfer"
    ADD_LIQUIDITY = "add_liquidity"
    REMOVE_LIQUIDITY = "remove_liquidity"


@dataclass(frozen=True)
class BatchOperation:
    """
    One queued operation.

    Field use per kind:
      MINT:             asset, amount
      SWAP / TRANSFER:  asset (from), to_asset, amount
      ADD_LIQUIDITY:    amount (asset_a), amount_b
      REMOVE_LIQUIDITY: amount (LP shares)
    """

    kind: BatchOperationKind
    account: Account
    amount: Amount
    asset: Optional[Asset] = None
    to_asset: Optional[Asset] = None
    amount_b: Amount = 0

    def __post_init__(self) -> None:
        if not isinstance(self.kind, BatchOperationKind):
            raise TypeError("kind must be a BatchOperationKind")
        if not isinstance(self.account, str) or not self.account:
            raise TypeError("account must be a non-empty string")
        needs_asset = self.kind in (
            BatchOperationKind.MINT,
            BatchOperationKind.SWAP,
            BatchOperationKind.TRANSFER,
        )
        if needs_asset and self.asset is None:
            raise ValueError(f"{self.kind.value} requires an asset")
        if self.kind in (BatchOperationKind.SWAP, BatchOperationKind.TRANSFER) and self.to_asset is None:
            raise ValueError(f"{self.kind.value} requires a to_asset")

    @classmethod
    def mint(cls, asset: Asset, account: Account, amount: Amount) -> "BatchOperation":
        return cls(BatchOperationKind.MINT, account, amount, asset=asset)

    @classmethod
    def swap(cls, from_asset: Asset, to_asset: Asset, amount: Amount, account: Account) -> "BatchOperation":
        return cls(BatchOperationKind.SWAP, account, amount, asset=from_asset, to_asset=to_asset)

    @classmethod
    def transfer(cls, from_asset: Asset, to_asset: Asset, account: Account, amount: Amount) -> "BatchOperation":
        return cls(BatchOperationKind.TRANSFER, account, amount, asset=from_asset, to_asset=to_asset)

    @classmethod
    def add_liquidity(cls, amount_a: Amount, amount_b: Amount, account: Account) -> "BatchOperation":
        return cls(BatchOperationKind.ADD_LIQUIDITY, account, amount_a, amount_b=amount_b)

    @classmethod
    def remove_liquidity(cls, shares: Amount, account: Account) -> "BatchOperation":
        return cls(BatchOperationKind.REMOVE_LIQUIDITY, account, shares)


@dataclass(frozen=True)
class OperationResult:
    index: int
    kind: BatchOperationKind
    success: bool
    amount: Amount = 0
    amount_b: Amount = 0
    error: Optional[str] = None
    error_code: Optional[int] = None


@dataclass(frozen=True)
class BatchResult:
    results: Tuple[OperationResult, ...]
    operations_succeeded: int
    operations_failed: int

    @property
    def ok(self) -> bool:
        return self.operations_failed == 0


@dataclass(frozen=True)
class BatchOutcome:
    """A batch result together with the Portfolio the caller should keep."""

    result: BatchResult
    portfolio: Portfolio


_Handler = Callable[[Portfolio, BatchOperation, ExecutionContext, TradingConfig], Tuple[Amount, Amount]]


def _apply_mint(
    portfolio: Portfolio, op: BatchOperation, ctx: ExecutionContext, config: TradingConfig
) -> Tuple[Amount, Amount]:
    mint(portfolio, op.asset, op.account, op.amount)
    return op.amount, 0


def _apply_swap(
    portfolio: Portfolio, op: BatchOperation, ctx: ExecutionContext, config: TradingConfig
) -> Tuple[Amount, Amount]:
    result = perform_swap(portfolio, op.asset, op.to_asset, op.amount, op.account, ctx, config)
    return result.amount_out, 0


def _apply_transfer(
    portfolio: Portfolio, op: BatchOperation, ctx: ExecutionContext, config: TradingConfig
) -> Tuple[Amount, Amount]:
    transfer_asset(portfolio, op.asset, op.to_asset, op.account, op.amount)
    return op.amount, 0


def _apply_add_liquidity(
    portfolio: Portfolio, op: BatchOperation, ctx: ExecutionContext, config: TradingConfig
) -> Tuple[Amount, Amount]:
    return add_liquidity(portfolio, op.amount, op.amount_b, op.account, ctx, config), 0


def _apply_remove_liquidity(
    portfolio: Portfolio, op: BatchOperation, ctx: ExecutionContext, config: TradingConfig
) -> Tuple[Amount, Amount]:
    return remove_liquidity(portfolio, op.amount, op.account, ctx, config)


_HANDLERS: Dict[BatchOperationKind, _Handler] = {
    BatchOperationKind.MINT: _apply_mint,
    BatchOperationKind.SWAP: _apply_swap,
    BatchOperationKind.TRANSFER: _apply_transfer,
    BatchOperationKind.ADD_LIQUIDITY: _apply_add_liquidity,
    BatchOperationKind.REMOVE_LIQUIDITY: _apply_remove_liquidity,
}


def validate_batch(operations: Sequence[BatchOperation], config: TradingConfig = DEFAULT_CONFIG) -> None:
    if not operations:
        raise InvalidBatch("batch is empty")
    if len(operations) > config.max_batch_size:
        raise InvalidBatch(f"batch has {len(operations)} operations, max is {config.max_batch_size}")
    for op in operations:
        if not isinstance(op, BatchOperation):
            raise InvalidBatch(f"not a BatchOperation: {op!r}")


def apply_operation(
    portfolio: Portfolio,
    op: BatchOperation,
    ctx: ExecutionContext = ExecutionContext(),
    config: TradingConfig = DEFAULT_CONFIG,
) -> Tuple[Amount, Amount]:
    """Run one operation in place; returns its (amount, amount_b) outputs."""
    return _HANDLERS[op.kind](portfolio, op, ctx, config)


def _run(
    portfolio: Portfolio, index: int, op: BatchOperation, ctx: ExecutionContext, config: TradingConfig
) -> OperationResult:
    try:
        amount, amount_b = apply_operation(portfolio, op, ctx, config)
    except SwapTradeError as exc:
        logger.debug("batch op %d (%s) failed: %s", index, op.kind.value, exc)
        return OperationResult(index, op.kind, False, error=str(exc), error_code=exc.code)
    return OperationResult(index, op.kind, True, amount=amount, amount_b=amount_b)


def execute_batch_atomic(
    portfolio: Portfolio,
    operations: Sequence[BatchOperation],
    ctx: ExecutionContext = ExecutionContext(),
    config: TradingConfig = DEFAULT_CONFIG,
) -> BatchOutcome:
    """
    All-or-nothing execution.

    On success the outcome carries the mutated working copy. On the first
    failure it reports 0 successes, every operation failed, and hands back
    the untouched `portfolio`.

    Raises:
        InvalidBatch: Empty or oversized batch (nothing is attempted)
    """
    validate_batch(operations, config)
    working = portfolio.copy()
    results: List[OperationResult] = []
    for index, op in enumerate(operations):
        outcome = _run(working, index, op, ctx, config)
        if not outcome.success:
            logger.info("atomic batch aborted at op %d/%d: %s", index, len(operations), outcome.error)
            aborted = tuple(
                outcome
                if i == index
                else OperationResult(i, o.kind, False, error=f"batch aborted at operation {index}")
                for i, o in enumerate(operations)
            )
            return BatchOutcome(
                result=BatchResult(aborted, operations_succeeded=0, operations_failed=len(operations)),
                portfolio=portfolio,
            )
        results.append(outcome)
    logger.debug("atomic batch applied %d operations", len(results))
    return BatchOutcome(
        result=BatchResult(tuple(results), operations_succeeded=len(results), operations_failed=0),
        portfolio=working,
    )


def execute_batch_best_effort(
    portfolio: Portfolio,
    operations: Sequence[BatchOperation],
    ctx: ExecutionContext = ExecutionContext(),
    config: TradingConfig = DEFAULT_CONFIG,
) -> BatchOutcome:
    """
    Attempt every operation in order against `portfolio`, in place.

    Raises:
        InvalidBatch: Empty or oversized batch (nothing is attempted)
    """
    validate_batch(operations, config)
    results = tuple(_run(portfolio, index, op, ctx, config) for index, op in enumerate(operations))
    succeeded = sum(1 for r in results if r.success)
    if succeeded != len(results):
        logger.info("best-effort batch: %d/%d operations failed", len(results) - succeeded, len(results))
    return BatchOutcome(
        result=BatchResult(results, operations_succeeded=succeeded, operations_failed=len(results) - succeeded),
        portfolio=portfolio,
    )
