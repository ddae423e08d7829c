"""Tests for the Portfolio aggregate and the ranked PnL index."""

from __future__ import annotations

import hypothesis.strategies as st
from hypothesis import given, settings

from swaptrade.state.badges import BADGE_ORDER, Badge
from swaptrade.state.balances import Asset
from swaptrade.state.leaderboard import LEADERBOARD_SIZE, RankedPnl
from swaptrade.state.lp import LPPosition
from swaptrade.state.portfolio import PORTFOLIO_SCHEMA_VERSION, Portfolio


XLM = Asset.native()


def test_default_portfolio_is_consistent() -> None:
    p = Portfolio()
    assert p.version == PORTFOLIO_SCHEMA_VERSION
    assert p.verify_invariants() == []
    assert p.get_portfolio("nobody") == (0, 0)
    assert p.admin is None
    assert p.paused is False


def test_copy_is_independent() -> None:
    p = Portfolio()
    p.balances.set("alice", XLM, 10)
    p.badges["alice"] = {Badge.FIRST_TRADE}
    p.leaderboard.update("alice", 10)

    c = p.copy()
    assert c == p

    c.balances.set("alice", XLM, 11)
    c.badges["alice"].add(Badge.TRADER)
    c.leaderboard.update("bob", 99)
    c.pool.reserve_a = 5

    assert p.balances.get("alice", XLM) == 10
    assert p.badges["alice"] == {Badge.FIRST_TRADE}
    assert "bob" not in p.leaderboard
    assert p.pool.reserve_a == 0
    assert c != p


def test_verify_invariants_flags_lp_supply_mismatch() -> None:
    p = Portfolio()
    p.lp_positions.set(LPPosition("alice", 1, 1, 10))
    assert "lp_supply_conservation" in p.verify_invariants()
    p.pool.total_lp_supply = 10
    assert p.verify_invariants() == []


def test_badge_order_covers_every_badge() -> None:
    assert set(BADGE_ORDER) == set(Badge)
    assert len(BADGE_ORDER) == 6


def test_ranked_pnl_orders_desc_with_account_tiebreak() -> None:
    r = RankedPnl()
    r.update("carol", 5)
    r.update("alice", 5)
    r.update("bob", 7)
    r.update("dave", -3)
    assert r.top() == [("bob", 7), ("alice", 5), ("carol", 5), ("dave", -3)]
    assert r.rank_of("alice") == 2
    assert r.rank_of("zed") == 0

    r.update("dave", 100)
    assert r.top(1) == [("dave", 100)]
    assert len(r) == 4


def test_ranked_pnl_exposes_at_most_leaderboard_size() -> None:
    r = RankedPnl()
    for i in range(LEADERBOARD_SIZE + 50):
        r.update(f"acct{i:03d}", i)
    top = r.top(10_000)
    assert len(top) == LEADERBOARD_SIZE
    assert top[0] == (f"acct{LEADERBOARD_SIZE + 49:03d}", LEADERBOARD_SIZE + 49)
    assert r.top(0) == []


@settings(max_examples=200, deadline=None)
@given(
    updates=st.lists(
        st.tuples(st.integers(min_value=0, max_value=150), st.integers(min_value=-10**6, max_value=10**6)),
        max_size=400,
    )
)
def test_ranked_pnl_is_true_top_k(updates) -> None:
    r = RankedPnl()
    truth = {}
    for idx, pnl in updates:
        account = f"a{idx}"
        r.update(account, pnl)
        truth[account] = pnl

    top = r.top()
    expected = sorted(truth.items(), key=lambda kv: (-kv[1], kv[0]))[:LEADERBOARD_SIZE]
    assert top == expected
    assert len(top) <= LEADERBOARD_SIZE
    assert all(top[i][1] >= top[i + 1][1] for i in range(len(top) - 1))
