"""Record store abstraction and in-memory implementation."""

from .base import (
    Record,
    RecordStore,
    HOMES_TABLE,
    OFFERS_TABLE,
    REQUESTS_TABLE,
    TRADES_TABLE,
)
from .memory_store import InMemoryRecordStore

__all__ = [
    "Record",
    "RecordStore",
    "InMemoryRecordStore",
    "HOMES_TABLE",
    "OFFERS_TABLE",
    "REQUESTS_TABLE",
    "TRADES_TABLE",
]
