"""GridXchange trade core data models."""

from .household import Coordinate, GeoScope, Household
from .entry import EntryKind, EntryStatus, MarketplaceEntry
from .trade import Trade

__all__ = [
    "Coordinate",
    "GeoScope",
    "Household",
    "EntryKind",
    "EntryStatus",
    "MarketplaceEntry",
    "Trade",
]
