"""
SwapTrade engine: imperative shell around the functional core.

Each public operation:
- reads the ledger clock into an `ExecutionContext`,
- authenticates the acting account (mutating operations),
- loads the Portfolio from the state store,
- runs the core operation,
- stores the Portfolio back (only when the operation succeeded),
- emits an event (failures of the sink are logged, never raised).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar, Union

from ..core import achievements, leaderboard, ledger, liquidity, rate_limit, tiers, trading
from ..core.achievements import BadgeProgress
from ..core.batch import BatchOperation, BatchOperationKind, BatchResult
from ..core.batch import execute_batch_atomic as _execute_batch_atomic
from ..core.batch import execute_batch_best_effort as _execute_batch_best_effort
from ..core.config import DEFAULT_CONFIG, ExecutionContext, TradingConfig
from ..core.errors import NotAdmin, SwapTradeError
from ..core.leaderboard import AdminStats
from ..core.liquidity import PoolStats
from ..core.rate_limit import RateLimitStatus
from ..core.tiers import TierInfo
from ..state.badges import Badge
from ..state.balances import Account, Amount, Asset
from ..state.lp import LPPosition
from ..state.portfolio import Metrics, Portfolio
from ..state.transactions import Transaction
from .collaborators import Authorizer, Clock, EventSink, InMemoryStateStore, ManualClock, StateStore
from .snapshot import portfolio_commitment


logger = logging.getLogger(__name__)

T = TypeVar("T")
AssetLike = Union[Asset, str]


def as_asset(value: AssetLike) -> Asset:
    """Accept an `Asset` or a token symbol ("XLM" is the native asset)."""
    if isinstance(value, Asset):
        return value
    if isinstance(value, str) and value:
        return Asset.from_symbol(value)
    raise TypeError(f"not an asset: {value!r}")


class SwapTradeEngine:
    def __init__(
        self,
        authorizer: Authorizer,
        *,
        store: Optional[StateStore] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
        config: TradingConfig = DEFAULT_CONFIG,
    ) -> None:
        self.config = config
        self.store = store if store is not None else InMemoryStateStore(config.new_portfolio)
        self.authorizer = authorizer
        self.clock = clock if clock is not None else ManualClock()
        self.events = events

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _context(self) -> ExecutionContext:
        return ExecutionContext(height=self.clock.current_height(), timestamp=self.clock.current_timestamp())

    def _authorize(self, account: Account, authorizer: Optional[Authorizer]) -> None:
        (authorizer or self.authorizer).require_caller_is(account)

    def _emit(self, name: str, **fields: Any) -> None:
        if self.events is None:
            return
        try:
            self.events.emit(name, **fields)
        except Exception:
            logger.warning("event sink failed for %s", name, exc_info=True)

    def _mutate(self, op: Callable[[Portfolio, ExecutionContext], T]) -> T:
        portfolio = self.store.load()
        result = op(portfolio, self._context())
        self.store.store(portfolio)
        return result

    def _read(self, op: Callable[[Portfolio], T]) -> T:
        return op(self.store.load())

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def mint(self, asset: AssetLike, account: Account, amount: Amount) -> None:
        """Faucet: issue `amount` of `asset` to `account` (no caller check)."""
        asset = as_asset(asset)
        self._mutate(lambda p, ctx: ledger.mint(p, asset, account, amount))
        self._emit("mint", asset=str(asset), account=account, amount=amount)

    def balance_of(self, asset: AssetLike, account: Account) -> Amount:
        asset = as_asset(asset)
        return self._read(lambda p: ledger.balance_of(p, asset, account))

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    def swap(
        self,
        from_asset: AssetLike,
        to_asset: AssetLike,
        amount: Amount,
        account: Account,
        *,
        authorizer: Optional[Authorizer] = None,
    ) -> Amount:
        """Swap and return the output amount. Raises on any failure."""
        src, dst = as_asset(from_asset), as_asset(to_asset)
        self._authorize(account, authorizer)
        result = self._mutate(
            lambda p, ctx: trading.perform_swap(p, src, dst, amount, account, ctx, self.config)
        )
        self._emit(
            "swap",
            account=account,
            from_asset=str(src),
            to_asset=str(dst),
            amount_in=result.amount_in,
            amount_out=result.amount_out,
            fee=result.fee,
        )
        return result.amount_out

    def try_swap(
        self,
        from_asset: AssetLike,
        to_asset: AssetLike,
        amount: Amount,
        account: Account,
        *,
        authorizer: Optional[Authorizer] = None,
    ) -> Amount:
        """
        Non-raising swap: on any domain failure returns 0 and counts a failed order.

        The failure reason is not reported to the caller; use `swap` to get it.
        """
        portfolio = self.store.load()
        try:
            src, dst = as_asset(from_asset), as_asset(to_asset)
            self._authorize(account, authorizer)
        except (SwapTradeError, TypeError, ValueError) as exc:
            logger.debug("try_swap for %s rejected: %s", account, exc)
            portfolio.metrics.failed_orders += 1
            amount_out = 0
        else:
            amount_out = trading.try_perform_swap(
                portfolio, src, dst, amount, account, self._context(), self.config
            )
        self.store.store(portfolio)
        if amount_out:
            self._emit("swap", account=account, from_asset=str(src), to_asset=str(dst), amount_in=amount, amount_out=amount_out)
        else:
            self._emit("swap_failed", account=account, amount=amount)
        return amount_out

    def safe_swap(
        self,
        from_asset: AssetLike,
        to_asset: AssetLike,
        amount: Amount,
        account: Account,
        *,
        authorizer: Optional[Authorizer] = None,
    ) -> Amount:
        return self.try_swap(from_asset, to_asset, amount, account, authorizer=authorizer)

    def record_trade(self, account: Account, *, authorizer: Optional[Authorizer] = None) -> int:
        """Count a trade for `account` outside the swap path; returns the new count."""
        self._authorize(account, authorizer)

        def op(p: Portfolio, ctx: ExecutionContext) -> int:
            count = achievements.record_trade(p, account)
            achievements.check_and_award_badges(p, account)
            return count

        return self._mutate(op)

    # ------------------------------------------------------------------
    # Liquidity
    # ------------------------------------------------------------------

    def add_liquidity(
        self,
        amount_a: Amount,
        amount_b: Amount,
        account: Account,
        *,
        authorizer: Optional[Authorizer] = None,
    ) -> Amount:
        self._authorize(account, authorizer)
        shares = self._mutate(
            lambda p, ctx: liquidity.add_liquidity(p, amount_a, amount_b, account, ctx, self.config)
        )
        self._emit("add_liquidity", account=account, amount_a=amount_a, amount_b=amount_b, shares=shares)
        return shares

    def remove_liquidity(
        self,
        shares: Amount,
        account: Account,
        *,
        authorizer: Optional[Authorizer] = None,
    ) -> Tuple[Amount, Amount]:
        self._authorize(account, authorizer)
        amount_a, amount_b = self._mutate(
            lambda p, ctx: liquidity.remove_liquidity(p, shares, account, ctx, self.config)
        )
        self._emit("remove_liquidity", account=account, shares=shares, amount_a=amount_a, amount_b=amount_b)
        return amount_a, amount_b

    def get_lp_positions(self, account: Account) -> List[LPPosition]:
        return self._read(lambda p: liquidity.get_lp_positions(p, account))

    def get_pool_stats(self) -> PoolStats:
        return self._read(liquidity.get_pool_stats)

    # ------------------------------------------------------------------
    # Tiers and rate limits
    # ------------------------------------------------------------------

    def get_user_tier(self, account: Account) -> TierInfo:
        return self._read(lambda p: tiers.get_tier_info(p, account, self.config.tiers))

    def get_swap_rate_limit(self, account: Account) -> RateLimitStatus:
        now = self.clock.current_timestamp()
        return self._read(
            lambda p: rate_limit.get_swap_status(
                p, account, tiers.get_user_tier(p, account, self.config.tiers), now, self.config.rate_limits
            )
        )

    def get_lp_rate_limit(self, account: Account) -> RateLimitStatus:
        now = self.clock.current_timestamp()
        return self._read(
            lambda p: rate_limit.get_lp_status(
                p, account, tiers.get_user_tier(p, account, self.config.tiers), now, self.config.rate_limits
            )
        )

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def _authorize_batch(self, operations: Sequence[BatchOperation], authorizer: Optional[Authorizer]) -> None:
        seen = set()
        for op in operations:
            if op.kind is BatchOperationKind.MINT or op.account in seen:
                continue
            self._authorize(op.account, authorizer)
            seen.add(op.account)

    def execute_batch_atomic(
        self, operations: Sequence[BatchOperation], *, authorizer: Optional[Authorizer] = None
    ) -> BatchResult:
        """All-or-nothing; the store is only written when every operation succeeded."""
        self._authorize_batch(operations, authorizer)
        portfolio = self.store.load()
        outcome = _execute_batch_atomic(portfolio, operations, self._context(), self.config)
        if outcome.result.ok:
            self.store.store(outcome.portfolio)
        self._emit(
            "batch_atomic",
            succeeded=outcome.result.operations_succeeded,
            failed=outcome.result.operations_failed,
        )
        return outcome.result

    def execute_batch_best_effort(
        self, operations: Sequence[BatchOperation], *, authorizer: Optional[Authorizer] = None
    ) -> BatchResult:
        self._authorize_batch(operations, authorizer)
        portfolio = self.store.load()
        outcome = _execute_batch_best_effort(portfolio, operations, self._context(), self.config)
        self.store.store(outcome.portfolio)
        self._emit(
            "batch_best_effort",
            succeeded=outcome.result.operations_succeeded,
            failed=outcome.result.operations_failed,
        )
        return outcome.result

    def execute_batch(
        self, operations: Sequence[BatchOperation], *, authorizer: Optional[Authorizer] = None
    ) -> BatchResult:
        return self.execute_batch_atomic(operations, authorizer=authorizer)

    # ------------------------------------------------------------------
    # Achievements, leaderboard, metrics
    # ------------------------------------------------------------------

    def get_user_badges(self, account: Account) -> List[Badge]:
        return self._read(lambda p: achievements.get_user_badges(p, account))

    def has_badge(self, account: Account, badge: Badge) -> bool:
        return self._read(lambda p: achievements.has_badge(p, account, badge))

    def get_badge_progress(self, account: Account) -> List[BadgeProgress]:
        return self._read(lambda p: achievements.get_badge_progress(p, account))

    def get_top_traders(self, limit: int = 100) -> List[Tuple[Account, int]]:
        return self._read(lambda p: leaderboard.get_top_traders(p, limit))

    def get_metrics(self) -> Metrics:
        m = self._read(lambda p: p.metrics)
        return Metrics(m.trades_executed, m.failed_orders, m.balances_updated)

    def get_admin_stats(self) -> AdminStats:
        return self._read(leaderboard.get_admin_stats)

    def get_portfolio(self, account: Account) -> Tuple[int, int]:
        """(trade_count, pnl) for `account`."""
        return self._read(lambda p: p.get_portfolio(account))

    def get_user_transactions(self, account: Account, limit: int) -> List[Transaction]:
        return self._read(lambda p: trading.get_user_transactions(p, account, limit))

    def state_commitment(self) -> str:
        return self._read(portfolio_commitment)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def _require_admin(self, p: Portfolio, admin: Account) -> None:
        if p.admin is None or p.admin != admin:
            raise NotAdmin(f"{admin} is not the admin")

    def initialize(self, admin: Account, *, authorizer: Optional[Authorizer] = None) -> None:
        """Claim the admin role. Only possible once."""
        self._authorize(admin, authorizer)

        def op(p: Portfolio, ctx: ExecutionContext) -> None:
            if p.admin is not None:
                raise NotAdmin("admin already initialized")
            p.admin = admin

        self._mutate(op)
        self._emit("initialize", admin=admin)

    def set_admin(self, admin: Account, new_admin: Account, *, authorizer: Optional[Authorizer] = None) -> None:
        self._authorize(admin, authorizer)

        def op(p: Portfolio, ctx: ExecutionContext) -> None:
            self._require_admin(p, admin)
            p.admin = new_admin

        self._mutate(op)
        self._emit("set_admin", admin=admin, new_admin=new_admin)

    def _set_paused(self, admin: Account, paused: bool, authorizer: Optional[Authorizer]) -> None:
        self._authorize(admin, authorizer)

        def op(p: Portfolio, ctx: ExecutionContext) -> None:
            self._require_admin(p, admin)
            p.paused = paused

        self._mutate(op)
        self._emit("pause_trading" if paused else "resume_trading", admin=admin)

    def pause_trading(self, admin: Account, *, authorizer: Optional[Authorizer] = None) -> None:
        self._set_paused(admin, True, authorizer)

    def resume_trading(self, admin: Account, *, authorizer: Optional[Authorizer] = None) -> None:
        self._set_paused(admin, False, authorizer)

    def is_paused(self) -> bool:
        return self._read(lambda p: p.paused)
