# [TESTER] v1

from __future__ import annotations

import hypothesis.strategies as st
import pytest
from hypothesis import given, settings

from swaptrade.core.achievements import (
    PairKeyMode,
    award_badge,
    check_and_award_badges,
    get_badge_progress,
    get_user_badges,
    has_badge,
    pair_key,
    record_lp_deposit,
    record_trade,
    track_trade_for_badges,
)
from swaptrade.core.errors import AmountOverflow, InsufficientBalance, InvalidAmount, InvalidSwapPair
from swaptrade.core.leaderboard import get_admin_stats, get_top_traders, observe_user
from swaptrade.core.ledger import balance_of, credit, debit, mint, transfer_asset
from swaptrade.state.badges import BADGE_ORDER, Badge
from swaptrade.state.balances import MAX_AMOUNT, Asset
from swaptrade.state.portfolio import Portfolio


XLM = Asset.native()
USDC = Asset.custom("USDCSIM")


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

def test_credit_then_debit_moves_balance_and_pnl() -> None:
    p = Portfolio()
    credit(p, XLM, "alice", 100)
    debit(p, XLM, "alice", 40)
    assert balance_of(p, XLM, "alice") == 60
    assert p.pnl_of("alice") == 60
    assert p.metrics.balances_updated == 2
    assert get_top_traders(p) == [("alice", 60)]


def test_credit_zero_is_noop_and_negative_rejected() -> None:
    p = Portfolio()
    credit(p, XLM, "alice", 0)
    assert p == Portfolio()
    with pytest.raises(InvalidAmount):
        credit(p, XLM, "alice", -1)


def test_credit_overflow_leaves_balance() -> None:
    p = Portfolio()
    credit(p, XLM, "alice", MAX_AMOUNT)
    with pytest.raises(AmountOverflow):
        credit(p, XLM, "alice", 1)
    with pytest.raises(AmountOverflow):
        credit(p, USDC, "bob", MAX_AMOUNT + 1)
    assert balance_of(p, XLM, "alice") == MAX_AMOUNT
    assert balance_of(p, USDC, "bob") == 0


@settings(max_examples=200, deadline=None)
@given(
    balance=st.integers(min_value=0, max_value=10**12),
    extra=st.integers(min_value=1, max_value=10**12),
)
def test_debit_over_balance_is_rejected_without_change(balance: int, extra: int) -> None:
    p = Portfolio()
    mint(p, XLM, "alice", balance)
    before = p.copy()
    with pytest.raises(InsufficientBalance):
        debit(p, XLM, "alice", balance + extra)
    assert p == before


def test_debit_requires_positive_amount() -> None:
    p = Portfolio()
    with pytest.raises(InvalidAmount):
        debit(p, XLM, "alice", 0)


@settings(max_examples=100, deadline=None)
@given(st.permutations([("alice", 5), ("bob", 7), ("alice", 11), ("carol", 2), ("bob", 1)]))
def test_mint_totals_do_not_depend_on_order(ops) -> None:
    p = Portfolio()
    for account, amount in ops:
        mint(p, XLM, account, amount)
    assert balance_of(p, XLM, "alice") == 16
    assert balance_of(p, XLM, "bob") == 8
    assert balance_of(p, XLM, "carol") == 2
    assert p.balances.total_supply(XLM) == 26


def test_mint_records_first_positive_balance_only() -> None:
    p = Portfolio()
    mint(p, XLM, "alice", 0)
    assert "alice" not in p.initial_balances
    mint(p, XLM, "alice", 100)
    mint(p, XLM, "alice", 50)
    assert p.initial_balances["alice"] == 100


def test_transfer_asset_validates_before_moving() -> None:
    p = Portfolio()
    mint(p, XLM, "alice", 10)
    before = p.copy()

    with pytest.raises(InvalidSwapPair):
        transfer_asset(p, XLM, XLM, "alice", 5)
    with pytest.raises(InsufficientBalance):
        transfer_asset(p, XLM, USDC, "alice", 11)
    with pytest.raises(InvalidAmount):
        transfer_asset(p, XLM, USDC, "alice", 0)
    assert p == before

    transfer_asset(p, XLM, USDC, "alice", 4)
    assert balance_of(p, XLM, "alice") == 6
    assert balance_of(p, USDC, "alice") == 4
    assert p.total_trading_volume == 4
    assert get_admin_stats(p).total_users == 1


def test_observe_user_counts_once() -> None:
    p = Portfolio()
    assert observe_user(p, "alice")
    assert not observe_user(p, "alice")
    stats = get_admin_stats(p)
    assert (stats.total_users, stats.active_users) == (1, 1)


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------

def test_award_badge_is_idempotent() -> None:
    p = Portfolio()
    assert award_badge(p, "alice", Badge.TRADER)
    assert not award_badge(p, "alice", Badge.TRADER)
    assert get_user_badges(p, "alice") == [Badge.TRADER]
    assert has_badge(p, "alice", Badge.TRADER)
    assert not has_badge(p, "bob", Badge.TRADER)


def test_pair_key_modes() -> None:
    assert pair_key(XLM, USDC) == pair_key(USDC, XLM)
    assert pair_key(XLM, USDC, PairKeyMode.SOURCE_ASSET) != pair_key(USDC, XLM, PairKeyMode.SOURCE_ASSET)
    assert pair_key(XLM, USDC, PairKeyMode.SOURCE_ASSET) == XLM.key


def test_first_trade_and_trader_badges() -> None:
    p = Portfolio()
    record_trade(p, "alice")
    assert get_user_badges(p, "alice") == [Badge.FIRST_TRADE]
    for _ in range(9):
        record_trade(p, "alice")
    assert check_and_award_badges(p, "alice") == [Badge.TRADER]
    assert check_and_award_badges(p, "alice") == []
    assert p.metrics.trades_executed == 10


def test_consistency_needs_seven_distinct_heights() -> None:
    p = Portfolio()
    for height in (1, 1, 2, 3, 4, 5, 6):
        track_trade_for_badges(p, "alice", XLM, USDC, height)
    assert Badge.CONSISTENCY not in check_and_award_badges(p, "alice")
    track_trade_for_badges(p, "alice", XLM, USDC, 7)
    assert Badge.CONSISTENCY in check_and_award_badges(p, "alice")


def test_diversifier_needs_five_distinct_pairs() -> None:
    p = Portfolio()
    others = [Asset.custom(f"TOK{i}") for i in range(5)]
    for asset in others[:4]:
        track_trade_for_badges(p, "alice", XLM, asset, 1)
        track_trade_for_badges(p, "alice", asset, XLM, 1)
    assert not has_badge(p, "alice", Badge.DIVERSIFIER)
    assert Badge.DIVERSIFIER not in check_and_award_badges(p, "alice")
    track_trade_for_badges(p, "alice", others[4], XLM, 1)
    assert Badge.DIVERSIFIER in check_and_award_badges(p, "alice")


def test_wealth_builder_at_ten_times_initial_balance() -> None:
    p = Portfolio()
    mint(p, XLM, "alice", 100)
    credit(p, USDC, "alice", 899)
    assert Badge.WEALTH_BUILDER not in check_and_award_badges(p, "alice")
    credit(p, USDC, "alice", 1)
    assert Badge.WEALTH_BUILDER in check_and_award_badges(p, "alice")


def test_liquidity_provider_badge() -> None:
    p = Portfolio()
    record_lp_deposit(p, "alice")
    assert check_and_award_badges(p, "alice") == [Badge.LIQUIDITY_PROVIDER]


def test_badge_progress_covers_all_badges() -> None:
    p = Portfolio()
    record_trade(p, "alice")
    progress = get_badge_progress(p, "alice")
    assert [bp.badge for bp in progress] == list(BADGE_ORDER)
    by_badge = {bp.badge: bp for bp in progress}
    assert by_badge[Badge.FIRST_TRADE].achieved
    assert (by_badge[Badge.TRADER].current, by_badge[Badge.TRADER].threshold) == (1, 10)
    assert not by_badge[Badge.CONSISTENCY].achieved
