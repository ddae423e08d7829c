"""
Portfolio snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / persistence.
- Round-trippable into the `Portfolio` aggregate.
- Explicit versioning; unknown versions are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from ..state.badges import BADGE_ORDER, Badge
from ..state.balances import Asset
from ..state.canonical import canonical_json_bytes, domain_digest
from ..state.lp import LPPosition
from ..state.pools import PoolState
from ..state.portfolio import PORTFOLIO_SCHEMA_VERSION, Metrics, Portfolio
from ..state.rate_limits import OperationKind, RateLimitBucket
from ..state.transactions import Transaction


SNAPSHOT_VERSION = PORTFOLIO_SCHEMA_VERSION


def _require_str(value: Any, *, name: str, max_len: int = 512) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str, non_negative: bool = True) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if non_negative and value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _require_mapping(value: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{name} must be an object")
    return value


def _require_list(value: Any, *, name: str) -> List[Any]:
    if not isinstance(value, list):
        raise TypeError(f"{name} must be a list")
    return value


@dataclass(frozen=True)
class PortfolioSnapshot:
    """
    Deterministic, versioned snapshot of a Portfolio.

    The commitment is not included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        return domain_digest("portfolio_snapshot", self.canonical_bytes(), version=self.version)

    def commitment_hex(self) -> str:
        return "0x" + self.commitment_bytes().hex()


def _counter(values: Mapping[str, int]) -> Dict[str, int]:
    return {k: int(v) for k, v in values.items()}


def snapshot_from_portfolio(portfolio: Portfolio) -> PortfolioSnapshot:
    balances = [
        {"account": account, "asset": asset.key, "amount": int(amount)}
        for (account, asset), amount in portfolio.balances.get_all_balances().items()
    ]
    balances.sort(key=lambda e: (e["account"], e["asset"]))

    pool = portfolio.pool
    positions = [
        {
            "account": p.account,
            "asset_a_deposited": int(p.asset_a_deposited),
            "asset_b_deposited": int(p.asset_b_deposited),
            "lp_shares": int(p.lp_shares),
        }
        for p in portfolio.lp_positions.all_positions()
    ]

    rate_limits = [
        {"account": account, "kind": kind.value, "count": b.count, "window_start": b.window_start}
        for (account, kind), b in portfolio.rate_limits.items()
    ]
    rate_limits.sort(key=lambda e: (e["account"], e["kind"]))

    transactions = {
        account: [
            {
                "timestamp": t.timestamp,
                "from_asset": t.from_asset.key,
                "to_asset": t.to_asset.key,
                "from_amount": t.from_amount,
                "to_amount": t.to_amount,
                "rate_achieved": t.rate_achieved,
            }
            for t in history
        ]
        for account, history in portfolio.transactions.items()
    }

    data: Dict[str, Any] = {
        "version": int(portfolio.version),
        "balances": balances,
        "trades": _counter(portfolio.trades),
        "pnl": _counter(portfolio.pnl),
        "volume": _counter(portfolio.volume),
        "badges": {
            account: [b.value for b in BADGE_ORDER if b in held]
            for account, held in portfolio.badges.items()
            if held
        },
        "metrics": {
            "trades_executed": portfolio.metrics.trades_executed,
            "failed_orders": portfolio.metrics.failed_orders,
            "balances_updated": portfolio.metrics.balances_updated,
        },
        "total_users": portfolio.total_users,
        "total_trading_volume": portfolio.total_trading_volume,
        "active_users": sorted(portfolio.active_users),
        "total_fees_collected": portfolio.total_fees_collected,
        "initial_balances": _counter(portfolio.initial_balances),
        "traded_pairs": {a: list(pairs) for a, pairs in portfolio.traded_pairs.items()},
        "traded_heights": {a: list(heights) for a, heights in portfolio.traded_heights.items()},
        "lp_deposits": _counter(portfolio.lp_deposits),
        "transactions": transactions,
        "pool": {
            "asset_a": pool.asset_a.key,
            "asset_b": pool.asset_b.key,
            "reserve_a": pool.reserve_a,
            "reserve_b": pool.reserve_b,
            "total_lp_supply": pool.total_lp_supply,
            "lp_fees_accumulated": pool.lp_fees_accumulated,
        },
        "lp_positions": positions,
        "rate_limits": rate_limits,
        "admin": portfolio.admin,
        "paused": bool(portfolio.paused),
    }
    return PortfolioSnapshot(version=int(portfolio.version), data=data)


def portfolio_commitment(portfolio: Portfolio) -> str:
    """0x-prefixed SHA-256 commitment of the portfolio's canonical snapshot."""
    return snapshot_from_portfolio(portfolio).commitment_hex()


def _read_counter(snapshot: Mapping[str, Any], key: str, *, non_negative: bool = True) -> Dict[str, int]:
    raw = _require_mapping(snapshot.get(key, {}), name=f"snapshot.{key}")
    return {
        _require_str(account, name=f"{key}.account"): _require_int(v, name=f"{key}[{account}]", non_negative=non_negative)
        for account, v in raw.items()
    }


def _read_asset(value: Any, *, name: str) -> Asset:
    return Asset.from_key(_require_str(value, name=name))


def portfolio_from_snapshot(snapshot: Mapping[str, Any]) -> Portfolio:
    """
    Rebuild a Portfolio from snapshot data (fail-closed on malformed input).

    Raises:
        TypeError / ValueError: On unknown versions, wrong types or inconsistent entries
    """
    snapshot = _require_mapping(snapshot, name="snapshot")
    version = _require_int(snapshot.get("version"), name="snapshot.version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    portfolio = Portfolio()

    seen = set()
    for entry in _require_list(snapshot.get("balances", []), name="snapshot.balances"):
        entry = _require_mapping(entry, name="balance entry")
        account = _require_str(entry.get("account"), name="balance.account")
        asset = _read_asset(entry.get("asset"), name="balance.asset")
        if (account, asset) in seen:
            raise ValueError("duplicate balance entry (account, asset)")
        seen.add((account, asset))
        portfolio.balances.set(account, asset, _require_int(entry.get("amount"), name="balance.amount"))

    portfolio.trades = _read_counter(snapshot, "trades")
    portfolio.pnl = _read_counter(snapshot, "pnl", non_negative=False)
    portfolio.volume = _read_counter(snapshot, "volume")
    portfolio.initial_balances = _read_counter(snapshot, "initial_balances")
    portfolio.lp_deposits = _read_counter(snapshot, "lp_deposits")
    for account, pnl in portfolio.pnl.items():
        portfolio.leaderboard.update(account, pnl)

    for account, names in _require_mapping(snapshot.get("badges", {}), name="snapshot.badges").items():
        portfolio.badges[_require_str(account, name="badges.account")] = {
            Badge(_require_str(n, name="badge")) for n in _require_list(names, name=f"badges[{account}]")
        }

    metrics = _require_mapping(snapshot.get("metrics", {}), name="snapshot.metrics")
    portfolio.metrics = Metrics(
        trades_executed=_require_int(metrics.get("trades_executed", 0), name="metrics.trades_executed"),
        failed_orders=_require_int(metrics.get("failed_orders", 0), name="metrics.failed_orders"),
        balances_updated=_require_int(metrics.get("balances_updated", 0), name="metrics.balances_updated"),
    )

    portfolio.total_users = _require_int(snapshot.get("total_users", 0), name="snapshot.total_users")
    portfolio.total_trading_volume = _require_int(
        snapshot.get("total_trading_volume", 0), name="snapshot.total_trading_volume"
    )
    portfolio.total_fees_collected = _require_int(
        snapshot.get("total_fees_collected", 0), name="snapshot.total_fees_collected"
    )
    portfolio.active_users = {
        _require_str(a, name="active_users[]")
        for a in _require_list(snapshot.get("active_users", []), name="snapshot.active_users")
    }

    for account, pairs in _require_mapping(snapshot.get("traded_pairs", {}), name="snapshot.traded_pairs").items():
        portfolio.traded_pairs[account] = dict.fromkeys(
            _require_str(p, name="traded_pairs[]") for p in _require_list(pairs, name="traded_pairs")
        )
    for account, heights in _require_mapping(
        snapshot.get("traded_heights", {}), name="snapshot.traded_heights"
    ).items():
        portfolio.traded_heights[account] = dict.fromkeys(
            _require_int(h, name="traded_heights[]") for h in _require_list(heights, name="traded_heights")
        )

    for account, history in _require_mapping(snapshot.get("transactions", {}), name="snapshot.transactions").items():
        records = []
        for t in _require_list(history, name=f"transactions[{account}]"):
            t = _require_mapping(t, name="transaction")
            records.append(
                Transaction(
                    timestamp=_require_int(t.get("timestamp"), name="transaction.timestamp"),
                    from_asset=_read_asset(t.get("from_asset"), name="transaction.from_asset"),
                    to_asset=_read_asset(t.get("to_asset"), name="transaction.to_asset"),
                    from_amount=_require_int(t.get("from_amount"), name="transaction.from_amount"),
                    to_amount=_require_int(t.get("to_amount"), name="transaction.to_amount"),
                    rate_achieved=_require_int(t.get("rate_achieved"), name="transaction.rate_achieved"),
                )
            )
        portfolio.transactions[account] = records

    pool = _require_mapping(snapshot.get("pool"), name="snapshot.pool")
    portfolio.pool = PoolState(
        asset_a=_read_asset(pool.get("asset_a"), name="pool.asset_a"),
        asset_b=_read_asset(pool.get("asset_b"), name="pool.asset_b"),
        reserve_a=_require_int(pool.get("reserve_a", 0), name="pool.reserve_a"),
        reserve_b=_require_int(pool.get("reserve_b", 0), name="pool.reserve_b"),
        total_lp_supply=_require_int(pool.get("total_lp_supply", 0), name="pool.total_lp_supply"),
        lp_fees_accumulated=_require_int(pool.get("lp_fees_accumulated", 0), name="pool.lp_fees_accumulated"),
    )

    for entry in _require_list(snapshot.get("lp_positions", []), name="snapshot.lp_positions"):
        entry = _require_mapping(entry, name="lp position")
        account = _require_str(entry.get("account"), name="lp_position.account")
        if portfolio.lp_positions.get(account) is not None:
            raise ValueError(f"duplicate LP position for {account}")
        portfolio.lp_positions.set(
            LPPosition(
                account=account,
                asset_a_deposited=_require_int(entry.get("asset_a_deposited"), name="lp_position.asset_a_deposited"),
                asset_b_deposited=_require_int(entry.get("asset_b_deposited"), name="lp_position.asset_b_deposited"),
                lp_shares=_require_int(entry.get("lp_shares"), name="lp_position.lp_shares"),
            )
        )
    if portfolio.lp_positions.total_shares() != portfolio.pool.total_lp_supply:
        raise ValueError("LP positions do not sum to pool.total_lp_supply")

    for entry in _require_list(snapshot.get("rate_limits", []), name="snapshot.rate_limits"):
        entry = _require_mapping(entry, name="rate limit entry")
        portfolio.rate_limits.set(
            _require_str(entry.get("account"), name="rate_limit.account"),
            OperationKind(_require_str(entry.get("kind"), name="rate_limit.kind")),
            RateLimitBucket(
                count=_require_int(entry.get("count"), name="rate_limit.count"),
                window_start=_require_int(entry.get("window_start"), name="rate_limit.window_start"),
            ),
        )

    admin = snapshot.get("admin")
    portfolio.admin = None if admin is None else _require_str(admin, name="snapshot.admin")
    paused = snapshot.get("paused", False)
    if not isinstance(paused, bool):
        raise TypeError("snapshot.paused must be a bool")
    portfolio.paused = paused
    portfolio.version = version
    return portfolio
