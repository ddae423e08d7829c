"""
SwapTrade integration layer
"""

from .collaborators import (
    Authorizer,
    BlsSignatureAuthorizer,
    Clock,
    EventSink,
    InMemoryStateStore,
    InvokerAuthorizer,
    JsonFileStateStore,
    LoggingEventSink,
    ManualClock,
    RecordingEventSink,
    StateStore,
)
from .config import SwapTradeSettings, load_config
from .engine import SwapTradeEngine
from .logging_setup import configure_logging
from .snapshot import PortfolioSnapshot, portfolio_commitment, portfolio_from_snapshot, snapshot_from_portfolio

__all__ = [
    "Authorizer",
    "BlsSignatureAuthorizer",
    "Clock",
    "EventSink",
    "InMemoryStateStore",
    "InvokerAuthorizer",
    "JsonFileStateStore",
    "LoggingEventSink",
    "ManualClock",
    "RecordingEventSink",
    "StateStore",
    "SwapTradeSettings",
    "load_config",
    "SwapTradeEngine",
    "configure_logging",
    "PortfolioSnapshot",
    "portfolio_commitment",
    "portfolio_from_snapshot",
    "snapshot_from_portfolio",
]
