"""GridXchange peer-to-peer solar energy marketplace."""

from .config import MarketConfig, MarketConfigManager, NegativeBalancePolicy
from .core import ManualClock, MarketplaceService, SystemClock
from .models import EntryKind, EntryStatus, GeoScope, Household, MarketplaceEntry, Trade
from .store import InMemoryRecordStore, RecordStore

__version__ = "0.1.0"

__all__ = [
    "MarketConfig",
    "MarketConfigManager",
    "NegativeBalancePolicy",
    "ManualClock",
    "MarketplaceService",
    "SystemClock",
    "EntryKind",
    "EntryStatus",
    "GeoScope",
    "Household",
    "MarketplaceEntry",
    "Trade",
    "InMemoryRecordStore",
    "RecordStore",
]
