"""Tests for fee computation and tier classification."""

from __future__ import annotations

import hypothesis.strategies as st
import pytest
from hypothesis import given, settings

from swaptrade.core.config import TradingConfig
from swaptrade.core.fees import MAX_FEE_BPS, collect_fee, compute_fee, fee_within_bounds
from swaptrade.core.ledger import mint
from swaptrade.core.liquidity import add_liquidity
from swaptrade.core.tiers import (
    TIER_ORDER,
    TierSchedule,
    TierThreshold,
    UserTier,
    classify_tier,
    default_tier_fees,
    get_tier_info,
    get_user_tier,
)
from swaptrade.core.trading import perform_swap
from swaptrade.state.balances import Asset
from swaptrade.state.portfolio import Portfolio


XLM = Asset.native()
USDC = Asset.custom("USDCSIM")


# ---------------------------------------------------------------------------
# Fees
# ---------------------------------------------------------------------------

def test_compute_fee_floors() -> None:
    assert compute_fee(10_000, 30) == 30
    assert compute_fee(99, 30) == 0
    assert compute_fee(0, 30) == 0
    assert compute_fee(1_000_000, MAX_FEE_BPS) == 10_000


def test_compute_fee_rejects_out_of_range_inputs() -> None:
    with pytest.raises(ValueError):
        compute_fee(100, MAX_FEE_BPS + 1)
    with pytest.raises(ValueError):
        compute_fee(-1, 30)
    with pytest.raises(TypeError):
        compute_fee(100, True)  # type: ignore[arg-type]


def test_fee_within_bounds_edges() -> None:
    assert fee_within_bounds(0, 0)
    assert not fee_within_bounds(0, 1)
    assert fee_within_bounds(100, 1)
    assert not fee_within_bounds(100, 2)
    assert not fee_within_bounds(100, -1)


@settings(max_examples=300, deadline=None)
@given(
    amount=st.integers(min_value=0, max_value=2**127 - 1),
    tier=st.sampled_from(TIER_ORDER),
)
def test_tier_fees_are_bounded(amount: int, tier: UserTier) -> None:
    fee_bps = TierSchedule().fee_bps_for(tier)
    fee = compute_fee(amount, fee_bps)
    assert fee == (amount * fee_bps) // 10_000
    assert fee_within_bounds(amount, fee)
    assert 0 <= fee <= amount // 100


def test_collect_fee_books_both_accumulators() -> None:
    p = Portfolio()
    collect_fee(p, 7)
    collect_fee(p, 0)
    assert p.total_fees_collected == 7
    assert p.pool.lp_fees_accumulated == 7
    with pytest.raises(ValueError):
        collect_fee(p, -1)


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------

def test_default_tier_fees() -> None:
    schedule = TierSchedule()
    assert [schedule.info_for(t).effective_fee_bps() for t in TIER_ORDER] == [30, 25, 20, 15]
    assert schedule.info_for(UserTier.WHALE).fee_discount_bps() == 15
    assert schedule.info_for(UserTier.NOVICE).fee_discount_bps() == 0


@pytest.mark.parametrize(
    "trades,volume,expected",
    [
        (0, 0, UserTier.NOVICE),
        (9, 10**9, UserTier.NOVICE),
        (10, 0, UserTier.TRADER),
        (50, 99_999, UserTier.TRADER),
        (50, 100_000, UserTier.EXPERT),
        (199, 10**9, UserTier.EXPERT),
        (200, 1_000_000, UserTier.WHALE),
        (500, 0, UserTier.TRADER),
    ],
)
def test_classify_tier(trades: int, volume: int, expected: UserTier) -> None:
    assert classify_tier(trades, volume) is expected


def test_classify_tier_rejects_negative_counters() -> None:
    with pytest.raises(ValueError):
        classify_tier(-1, 0)


def test_classify_tier_is_monotone_in_trades() -> None:
    order = {t: i for i, t in enumerate(TIER_ORDER)}
    previous = UserTier.NOVICE
    for trades in range(0, 300):
        tier = classify_tier(trades, 10**7)
        assert order[tier] >= order[previous]
        previous = tier


def test_tier_schedule_validation() -> None:
    with pytest.raises(ValueError):
        TierSchedule(trader=TierThreshold(min_trades=100), expert=TierThreshold(min_trades=50))
    fees = default_tier_fees()
    fees[UserTier.NOVICE] = MAX_FEE_BPS + 1
    with pytest.raises(ValueError):
        TierSchedule(fees=fees)
    with pytest.raises(ValueError):
        TierThreshold(min_trades=-1)
    fees = default_tier_fees()
    fees[UserTier.WHALE] = 40
    with pytest.raises(ValueError):
        TierSchedule(fees=fees)


def test_custom_schedule_changes_classification_and_fees() -> None:
    fees = default_tier_fees()
    fees[UserTier.TRADER] = 5
    schedule = TierSchedule(trader=TierThreshold(min_trades=2), fees=fees)
    assert classify_tier(2, 0, schedule) is UserTier.TRADER
    assert schedule.fee_bps_for(UserTier.TRADER) == 5
    info = schedule.info_for(UserTier.TRADER)
    assert (info.effective_fee_bps(), info.fee_discount_bps()) == (5, 25)


def test_get_user_tier_reads_portfolio_counters() -> None:
    p = Portfolio()
    p.trades["alice"] = 60
    p.volume["alice"] = 150_000
    assert get_user_tier(p, "alice") is UserTier.EXPERT
    assert get_user_tier(p, "bob") is UserTier.NOVICE


def test_tier_info_reports_the_configured_fee_that_swaps_charge() -> None:
    fees = default_tier_fees()
    fees[UserTier.NOVICE] = 100
    config = TradingConfig(tiers=TierSchedule(fees=fees))
    p = Portfolio()
    mint(p, XLM, "lp", 1_000_000)
    mint(p, USDC, "lp", 1_000_000)
    add_liquidity(p, 1_000_000, 1_000_000, "lp", config=config)
    mint(p, XLM, "alice", 10_000)

    info = get_tier_info(p, "alice", config.tiers)
    result = perform_swap(p, XLM, USDC, 10_000, "alice", config=config)

    assert info.tier is result.tier is UserTier.NOVICE
    assert result.fee == 100
    assert info.effective_fee_bps() == 100
    assert info.fee_discount_bps() == 0
    assert config.tiers.info_for(UserTier.WHALE).fee_discount_bps() == 85
