"""
External collaborators consumed by the engine, plus reference implementations.

The core never touches these directly; `SwapTradeEngine` loads the Portfolio
from a `StateStore`, authenticates through an `Authorizer`, reads time from a
`Clock` and reports through an `EventSink`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from py_ecc.bls import G2Basic

from ..core.config import DEFAULT_CONFIG
from ..core.errors import Unauthorized
from ..state.balances import Account
from ..state.canonical import canonical_json_bytes, domain_digest, hex_to_bytes_fixed
from ..state.portfolio import Portfolio
from .snapshot import portfolio_from_snapshot, snapshot_from_portfolio


logger = logging.getLogger(__name__)

BLS_PUBKEY_BYTES = 48
BLS_SIGNATURE_BYTES = 96
DEFAULT_CHAIN_ID = "swaptrade-local"


@runtime_checkable
class StateStore(Protocol):
    def load(self) -> Portfolio: ...

    def store(self, portfolio: Portfolio) -> None: ...


@runtime_checkable
class Authorizer(Protocol):
    def require_caller_is(self, account: Account) -> None: ...


@runtime_checkable
class Clock(Protocol):
    def current_height(self) -> int: ...

    def current_timestamp(self) -> int: ...


@runtime_checkable
class EventSink(Protocol):
    def emit(self, name: str, **fields: Any) -> None: ...


# ---------------------------------------------------------------------------
# State stores
# ---------------------------------------------------------------------------


class InMemoryStateStore:
    """Single-slot store holding an independent copy of the last stored Portfolio."""

    def __init__(self, factory: Callable[[], Portfolio] = DEFAULT_CONFIG.new_portfolio) -> None:
        self._factory = factory
        self._slot: Optional[Portfolio] = None

    def load(self) -> Portfolio:
        if self._slot is None:
            return self._factory()
        return self._slot.copy()

    def store(self, portfolio: Portfolio) -> None:
        self._slot = portfolio.copy()


class JsonFileStateStore:
    """
    Portfolio persisted as a canonical JSON snapshot file.

    Writes go to a temporary file in the same directory and are moved into
    place with `os.replace`, so readers never observe a half-written file.
    """

    def __init__(self, path: Path, factory: Callable[[], Portfolio] = DEFAULT_CONFIG.new_portfolio) -> None:
        self.path = Path(path)
        self._factory = factory

    def load(self) -> Portfolio:
        if not self.path.exists():
            return self._factory()
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        return portfolio_from_snapshot(raw)

    def store(self, portfolio: Portfolio) -> None:
        data = snapshot_from_portfolio(portfolio).canonical_bytes()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=self.path.name + ".", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug("stored portfolio snapshot (%d bytes) to %s", len(data), self.path)


# ---------------------------------------------------------------------------
# Authorizers
# ---------------------------------------------------------------------------


class InvokerAuthorizer:
    """Accepts exactly one invoking identity."""

    def __init__(self, caller: Optional[Account]) -> None:
        self.caller = caller

    def require_caller_is(self, account: Account) -> None:
        if self.caller is None or self.caller != account:
            raise Unauthorized(f"caller {self.caller!r} may not act for {account!r}")


class BlsSignatureAuthorizer:
    """
    Authenticates a call by a BLS12-381 signature over its payload.

    The account is the signer's hex-encoded G1 public key. The signed message is
    SHA256(domain_sep("call_sig:<chain_id>", v1) || payload).
    """

    def __init__(self, payload: bytes, signature_hex: str, chain_id: str = DEFAULT_CHAIN_ID) -> None:
        if not isinstance(payload, (bytes, bytearray)):
            raise TypeError("payload must be bytes")
        self.payload = bytes(payload)
        self.signature_hex = signature_hex
        self.chain_id = chain_id

    @classmethod
    def for_call(
        cls, operation: str, args: Dict[str, Any], signature_hex: str, chain_id: str = DEFAULT_CHAIN_ID
    ) -> "BlsSignatureAuthorizer":
        """Authorizer whose payload is the canonical JSON of `{"op": operation, "args": args}`."""
        return cls(canonical_json_bytes({"op": operation, "args": args}), signature_hex, chain_id)

    def message_hash(self) -> bytes:
        return domain_digest(f"call_sig:{self.chain_id}", self.payload)

    def require_caller_is(self, account: Account) -> None:
        try:
            pubkey = hex_to_bytes_fixed(account, nbytes=BLS_PUBKEY_BYTES, name="account")
            signature = hex_to_bytes_fixed(self.signature_hex, nbytes=BLS_SIGNATURE_BYTES, name="signature")
        except (TypeError, ValueError) as exc:
            raise Unauthorized(str(exc)) from exc
        try:
            ok = bool(G2Basic.Verify(pubkey, self.message_hash(), signature))
        except Exception as exc:  # py_ecc raises assorted errors on malformed points
            raise Unauthorized(f"signature verification error: {exc}") from exc
        if not ok:
            raise Unauthorized(f"invalid signature for {account}")


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class ManualClock:
    """Externally driven ledger clock; never moves backwards."""

    def __init__(self, height: int = 0, timestamp: int = 0) -> None:
        if height < 0 or timestamp < 0:
            raise ValueError("clock values must be non-negative")
        self._height = height
        self._timestamp = timestamp

    def current_height(self) -> int:
        return self._height

    def current_timestamp(self) -> int:
        return self._timestamp

    def set(self, *, height: Optional[int] = None, timestamp: Optional[int] = None) -> None:
        new_height = self._height if height is None else height
        new_timestamp = self._timestamp if timestamp is None else timestamp
        if new_height < self._height or new_timestamp < self._timestamp:
            raise ValueError("clock cannot move backwards")
        self._height, self._timestamp = new_height, new_timestamp

    def advance(self, *, blocks: int = 0, seconds: int = 0) -> None:
        self.set(height=self._height + blocks, timestamp=self._timestamp + seconds)


# ---------------------------------------------------------------------------
# Event sinks
# ---------------------------------------------------------------------------


class LoggingEventSink:
    """Writes each event as one INFO record on the `swaptrade.events` logger."""

    def __init__(self, logger_name: str = "swaptrade.events") -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(self, name: str, **fields: Any) -> None:
        rendered = " ".join(f"{k}={fields[k]}" for k in sorted(fields))
        self._logger.info("%s %s", name, rendered)


class RecordingEventSink:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, name: str, **fields: Any) -> None:
        self.events.append((name, dict(fields)))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]
