"""Abstract record store consumed by the trade core."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

Record = dict[str, Any]

# Persisted table names
HOMES_TABLE = "homes"
OFFERS_TABLE = "energy_offers"
REQUESTS_TABLE = "energy_requests"
TRADES_TABLE = "trades"


class RecordStore(ABC):
    """CRUD-style store reached by the trade core.

    `update` takes a precondition mapping of field -> expected value and
    applies the patch only when every field currently equals its expected
    value. Implementations must evaluate the precondition and apply the
    patch as one indivisible step; the trade core relies on this for
    single-match exclusivity.
    """

    @abstractmethod
    def get(self, table: str, record_id: str) -> Optional[Record]:
        """Fetch a record by id.

        Returns:
            A copy of the record, or None if absent
        """

    @abstractmethod
    def insert(self, table: str, record: Record) -> Record:
        """Insert a new record. The record must carry its own `id`.

        Raises:
            ConflictError: If a record with the same id already exists
        """

    @abstractmethod
    def update(
        self,
        table: str,
        record_id: str,
        patch: Mapping[str, Any],
        precondition: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Record]:
        """Conditionally patch a record.

        Returns:
            The updated record, or None if the precondition did not hold

        Raises:
            NotFoundError: If the record does not exist
        """

    @abstractmethod
    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Record]:
        """Return records whose fields equal every filter value."""

    @property
    def supports_transactions(self) -> bool:
        """Whether `transaction()` gives all-or-nothing multi-record writes."""
        return False

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several operations into one unit.

        The default is a no-op; callers must then rely on compensating
        actions for multi-record consistency.
        """
        yield
