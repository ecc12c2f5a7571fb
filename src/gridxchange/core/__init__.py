"""Core components for the GridXchange trade core."""

from .clock import Clock, ManualClock, SystemClock
from .record_factory import RecordFactory
from .energy_ledger import EnergyLedger, SettlementResult
from .marketplace_book import MarketplaceBook
from .trade_lifecycle import TradeLifecycle
from .marketplace_service import MarketplaceService

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "RecordFactory",
    "EnergyLedger",
    "SettlementResult",
    "MarketplaceBook",
    "TradeLifecycle",
    "MarketplaceService",
]
