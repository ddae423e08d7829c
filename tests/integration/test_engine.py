"""End-to-end tests for SwapTradeEngine with in-memory collaborators."""

from __future__ import annotations

import logging

import pytest

from swaptrade.core.batch import BatchOperation
from swaptrade.core.errors import InsufficientBalance, NotAdmin, TradingPaused, Unauthorized
from swaptrade.core.tiers import UserTier
from swaptrade.integration import (
    InMemoryStateStore,
    InvokerAuthorizer,
    ManualClock,
    RecordingEventSink,
    SwapTradeEngine,
)
from swaptrade.state.badges import Badge
from swaptrade.state.balances import Asset


XLM = Asset.native()
USDC = Asset.custom("USDCSIM")


def _engine(caller: str = "alice"):
    events = RecordingEventSink()
    clock = ManualClock(height=1, timestamp=1_000)
    engine = SwapTradeEngine(InvokerAuthorizer(caller), clock=clock, events=events)
    engine.mint("XLM", "lp", 1_000_000)
    engine.mint("USDCSIM", "lp", 1_000_000)
    engine.add_liquidity(1_000_000, 1_000_000, "lp", authorizer=InvokerAuthorizer("lp"))
    return engine, events, clock


def test_swap_round_trip_through_the_store() -> None:
    engine, events, _ = _engine()
    engine.mint(XLM, "alice", 10_000)

    out = engine.swap("XLM", "USDCSIM", 10_000, "alice")

    assert out > 0
    assert engine.balance_of("USDCSIM", "alice") == out
    assert engine.balance_of(XLM, "alice") == 0
    assert engine.get_portfolio("alice")[0] == 1
    assert engine.get_user_badges("alice") == [Badge.FIRST_TRADE]
    assert engine.has_badge("alice", Badge.FIRST_TRADE)
    assert engine.get_pool_stats().total_fees_collected == 30
    assert engine.get_user_transactions("alice", 10)[0].to_amount == out
    assert events.names() == ["mint", "mint", "add_liquidity", "mint", "swap"]
    assert events.events[-1][1]["fee"] == 30


def test_swap_for_another_account_is_unauthorized() -> None:
    engine, events, _ = _engine()
    engine.mint(XLM, "bob", 100)
    before = engine.state_commitment()

    with pytest.raises(Unauthorized) as excinfo:
        engine.swap(XLM, USDC, 100, "bob")
    assert excinfo.value.code == 5
    assert engine.state_commitment() == before
    assert "swap" not in events.names()


def test_failed_operation_is_not_stored() -> None:
    engine, _, _ = _engine()
    before = engine.state_commitment()
    with pytest.raises(InsufficientBalance):
        engine.swap(XLM, USDC, 100, "alice")
    assert engine.state_commitment() == before


def test_try_swap_persists_failed_order_count() -> None:
    engine, events, _ = _engine()
    assert engine.try_swap(XLM, USDC, 100, "alice") == 0
    assert engine.safe_swap(XLM, USDC, 100, "bob") == 0
    assert engine.get_metrics().failed_orders == 2
    assert events.names()[-2:] == ["swap_failed", "swap_failed"]

    engine.mint(XLM, "alice", 100)
    assert engine.try_swap(XLM, USDC, 100, "alice") > 0
    assert engine.get_metrics().failed_orders == 2


@pytest.mark.parametrize("bad_asset", ["", None, 7])
def test_try_swap_counts_unparseable_asset_as_failed_order(bad_asset) -> None:
    engine, events, _ = _engine()
    engine.mint(XLM, "alice", 100)

    assert engine.try_swap(bad_asset, USDC, 100, "alice") == 0
    assert engine.safe_swap(XLM, bad_asset, 100, "alice") == 0
    assert engine.get_metrics().failed_orders == 2
    assert engine.balance_of(XLM, "alice") == 100
    assert events.names()[-1] == "swap_failed"


def test_get_metrics_returns_a_copy() -> None:
    engine, _, _ = _engine()
    metrics = engine.get_metrics()
    metrics.failed_orders = 99
    assert engine.get_metrics().failed_orders == 0


def test_rate_limit_status_follows_the_clock() -> None:
    engine, _, clock = _engine()
    engine.mint(XLM, "alice", 1_000)
    for _ in range(3):
        engine.swap(XLM, USDC, 100, "alice")

    status = engine.get_swap_rate_limit("alice")
    assert (status.used, status.limit, status.remaining) == (3, 10, 7)
    assert status.window_resets_at == 1_000 + 3600

    clock.advance(seconds=3600)
    assert engine.get_swap_rate_limit("alice").used == 0
    assert engine.get_lp_rate_limit("lp").used == 0
    assert engine.get_user_tier("alice").tier is UserTier.NOVICE


def test_atomic_batch_failure_leaves_state_unchanged() -> None:
    engine, events, _ = _engine()
    before = engine.state_commitment()
    result = engine.execute_batch_atomic(
        [
            BatchOperation.mint(XLM, "alice", 100),
            BatchOperation.swap(XLM, USDC, 1_000, "alice"),
        ]
    )
    assert (result.operations_succeeded, result.operations_failed) == (0, 2)
    assert engine.state_commitment() == before
    assert events.names()[-1] == "batch_atomic"


def test_batch_requires_authorization_for_every_acting_account() -> None:
    engine, _, _ = _engine()
    with pytest.raises(Unauthorized):
        engine.execute_batch([BatchOperation.swap(XLM, USDC, 1, "bob")])

    result = engine.execute_batch_best_effort(
        [
            BatchOperation.mint(XLM, "alice", 100),
            BatchOperation.swap(XLM, USDC, 100, "alice"),
            BatchOperation.swap(XLM, USDC, 100, "alice"),
        ]
    )
    assert [r.success for r in result.results] == [True, True, False]
    assert engine.get_portfolio("alice")[0] == 1


def test_liquidity_through_engine() -> None:
    engine, _, _ = _engine()
    lp = InvokerAuthorizer("lp")
    assert engine.get_lp_positions("lp")[0].lp_shares == 1_000_000
    assert engine.remove_liquidity(400_000, "lp", authorizer=lp) == (400_000, 400_000)
    assert engine.get_pool_stats().total_lp_supply == 600_000
    assert engine.get_badge_progress("lp")[3].achieved


def test_admin_pause_flow() -> None:
    engine, events, _ = _engine()
    engine.mint(XLM, "alice", 1_000)

    with pytest.raises(NotAdmin):
        engine.pause_trading("alice")

    engine.initialize("alice")
    with pytest.raises(NotAdmin):
        engine.initialize("alice")

    engine.pause_trading("alice")
    assert engine.is_paused()
    with pytest.raises(TradingPaused):
        engine.swap(XLM, USDC, 100, "alice")

    engine.resume_trading("alice")
    assert not engine.is_paused()
    assert engine.swap(XLM, USDC, 100, "alice") > 0

    engine.set_admin("alice", "carol")
    with pytest.raises(NotAdmin):
        engine.pause_trading("alice")
    engine.pause_trading("carol", authorizer=InvokerAuthorizer("carol"))
    assert engine.is_paused()
    assert "set_admin" in events.names()


def test_record_trade_and_leaderboard() -> None:
    engine, _, _ = _engine()
    for _ in range(10):
        engine.record_trade("alice")
    assert Badge.TRADER in engine.get_user_badges("alice")
    engine.mint(XLM, "alice", 5)
    assert engine.get_top_traders(1) == [("alice", 5)]
    stats = engine.get_admin_stats()
    assert stats.total_users == 0


class _ExplodingSink:
    def emit(self, name, **fields) -> None:
        raise RuntimeError("sink down")


def test_event_sink_failures_are_swallowed(caplog) -> None:
    engine = SwapTradeEngine(InvokerAuthorizer("alice"), events=_ExplodingSink())
    with caplog.at_level(logging.WARNING, logger="swaptrade.integration.engine"):
        engine.mint(XLM, "alice", 10)
    assert engine.balance_of(XLM, "alice") == 10
    assert any("event sink failed" in r.getMessage() for r in caplog.records)


def test_engine_store_is_pluggable() -> None:
    store = InMemoryStateStore()
    first = SwapTradeEngine(InvokerAuthorizer("alice"), store=store)
    first.mint(XLM, "alice", 42)
    second = SwapTradeEngine(InvokerAuthorizer("alice"), store=store)
    assert second.balance_of(XLM, "alice") == 42
    assert second.state_commitment() == first.state_commitment()
