# [TESTER] v1

from __future__ import annotations

import pytest

from swaptrade.state.balances import MAX_AMOUNT, Asset, AssetKind, BalanceTable
from swaptrade.state.lp import LPPosition, LPPositionTable
from swaptrade.state.pools import PoolState
from swaptrade.state.rate_limits import OperationKind, RateLimitBucket, RateLimitTable
from swaptrade.state.transactions import RATE_SCALE, Transaction, compute_rate


XLM = Asset.native()
USDC = Asset.custom("USDCSIM")


def test_asset_equality_is_by_kind_and_name() -> None:
    assert Asset.native() == Asset(AssetKind.NATIVE, "XLM")
    assert Asset.custom("XLM") != Asset.native()
    assert Asset.from_symbol("XLM") == XLM
    assert Asset.from_symbol("USDCSIM") == USDC


def test_asset_key_round_trips() -> None:
    for asset in (XLM, USDC):
        assert Asset.from_key(asset.key) == asset
    with pytest.raises(ValueError):
        Asset.from_key("nocolon")
    with pytest.raises(ValueError):
        Asset.from_key("bogus:XLM")


def test_asset_rejects_empty_name() -> None:
    with pytest.raises(ValueError):
        Asset.custom("")


def test_balance_table_defaults_to_zero_and_stays_sparse() -> None:
    t = BalanceTable()
    assert t.get("alice", XLM) == 0
    t.set("alice", XLM, 10)
    t.set("alice", XLM, 0)
    assert t.get_all_balances() == {}


def test_balance_table_rejects_negative() -> None:
    t = BalanceTable()
    t.set("alice", XLM, 5)
    with pytest.raises(ValueError):
        t.set("alice", XLM, -1)
    with pytest.raises(ValueError):
        t.subtract("alice", XLM, 6)
    assert t.get("alice", XLM) == 5


def test_balance_table_totals_and_copy() -> None:
    t = BalanceTable()
    t.set("alice", XLM, 5)
    t.set("bob", XLM, 7)
    t.set("bob", USDC, 3)
    assert t.total_supply(XLM) == 12
    assert t.get_balances_for_account("bob") == {XLM: 7, USDC: 3}

    c = t.copy()
    c.add("alice", XLM, 1)
    assert t.get("alice", XLM) == 5
    assert c != t


def test_lp_position_validates_and_withdraws() -> None:
    with pytest.raises(ValueError):
        LPPosition("alice", -1, 0, 0)
    with pytest.raises(TypeError):
        LPPosition("alice", 0, 0, True)  # type: ignore[arg-type]

    pos = LPPosition("alice", 100, 200, 50).with_deposit(10, 20, 5)
    assert (pos.asset_a_deposited, pos.asset_b_deposited, pos.lp_shares) == (110, 220, 55)

    pos = pos.with_withdrawal(500, 20, 5)
    assert (pos.asset_a_deposited, pos.asset_b_deposited, pos.lp_shares) == (0, 200, 50)

    with pytest.raises(ValueError):
        pos.with_withdrawal(0, 0, 51)


def test_lp_table_drops_empty_positions() -> None:
    table = LPPositionTable()
    table.set(LPPosition("bob", 1, 1, 3))
    table.set(LPPosition("alice", 1, 1, 2))
    assert [p.account for p in table.all_positions()] == ["alice", "bob"]
    assert table.total_shares() == 5

    table.set(LPPosition("alice", 0, 0, 0))
    assert table.get("alice") is None
    assert table.shares_of("alice") == 0
    assert len(table) == 1


def test_pool_state_validation_and_reserves() -> None:
    with pytest.raises(ValueError):
        PoolState(asset_a=XLM, asset_b=XLM)
    with pytest.raises(ValueError):
        PoolState(reserve_a=-1)

    pool = PoolState(reserve_a=10, reserve_b=20)
    assert pool.reserves_for(XLM, USDC) == (10, 20)
    assert pool.reserves_for(USDC, XLM) == (20, 10)
    assert pool.get_constant_product() == 200
    with pytest.raises(ValueError):
        pool.get_reserve(Asset.custom("BTC"))
    with pytest.raises(ValueError):
        pool.set_reserve(XLM, -5)


def test_rate_limit_bucket_expiry_boundary() -> None:
    bucket = RateLimitBucket(count=3, window_start=100)
    assert not bucket.is_expired(100, 60)
    assert not bucket.is_expired(159, 60)
    assert bucket.is_expired(160, 60)

    with pytest.raises(ValueError):
        RateLimitBucket(count=-1, window_start=0)


def test_rate_limit_table_is_keyed_by_account_and_kind() -> None:
    table = RateLimitTable()
    table.set("alice", OperationKind.SWAP, RateLimitBucket(1, 0))
    assert table.get("alice", OperationKind.LIQUIDITY) is None
    assert table.get("alice", OperationKind.SWAP) == RateLimitBucket(1, 0)
    assert table.copy() == table


def test_compute_rate_uses_seven_decimals() -> None:
    assert RATE_SCALE == 10_000_000
    assert compute_rate(100, 50) == 5_000_000
    assert compute_rate(3, 1) == 3_333_333
    assert compute_rate(0, 10) == 0


def test_transaction_rejects_negative_amounts() -> None:
    with pytest.raises(ValueError):
        Transaction(0, XLM, USDC, -1, 0, 0)


def test_max_amount_is_i128_max() -> None:
    assert MAX_AMOUNT == 2**127 - 1
