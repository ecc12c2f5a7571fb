"""Thread-safe in-memory record store."""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

from ..validation import ConflictError, NotFoundError
from .base import Record, RecordStore

logger = logging.getLogger(__name__)

_MISSING = object()


class InMemoryRecordStore(RecordStore):
    """Keeps tables as dicts of records guarded by a single re-entrant lock.

    Records are copied on the way in and out so callers never share state
    with the store. Transactions hold the lock for their whole duration and
    restore a snapshot of every table if the block raises.
    """

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, Record]] = {}
        self._lock = threading.RLock()
        self._transaction_depth = 0

    def _table(self, table: str) -> dict[str, Record]:
        return self._tables.setdefault(table, {})

    def get(self, table: str, record_id: str) -> Optional[Record]:
        with self._lock:
            record = self._table(table).get(record_id)
            return dict(record) if record is not None else None

    def insert(self, table: str, record: Record) -> Record:
        record_id = record.get("id")
        if not record_id:
            raise ValueError(f"Record inserted into '{table}' must have an id")

        with self._lock:
            rows = self._table(table)
            if record_id in rows:
                raise ConflictError(
                    "Record already exists", entity=table, entity_id=record_id
                )
            rows[record_id] = dict(record)
            logger.debug(f"Inserted {table}/{record_id}")
            return dict(record)

    def update(
        self,
        table: str,
        record_id: str,
        patch: Mapping[str, Any],
        precondition: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Record]:
        with self._lock:
            rows = self._table(table)
            current = rows.get(record_id)
            if current is None:
                raise NotFoundError(
                    "Record not found", entity=table, entity_id=record_id
                )

            for field, expected in (precondition or {}).items():
                actual = current.get(field, _MISSING)
                if actual is _MISSING or actual != expected:
                    logger.debug(
                        f"Precondition failed on {table}/{record_id}: "
                        f"{field}={actual!r}, expected {expected!r}"
                    )
                    return None

            updated = {**current, **patch}
            rows[record_id] = updated
            return dict(updated)

    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Record]:
        with self._lock:
            rows = [
                dict(record)
                for record in self._table(table).values()
                if all(record.get(k) == v for k, v in (filters or {}).items())
            ]

        if order_by:
            # None sorts first ascending, last descending
            rows.sort(
                key=lambda r: (r.get(order_by) is not None, r.get(order_by)),
                reverse=descending,
            )
        return rows

    @property
    def supports_transactions(self) -> bool:
        return True

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            outermost = self._transaction_depth == 0
            snapshot = (
                {name: dict(rows) for name, rows in self._tables.items()}
                if outermost
                else None
            )
            self._transaction_depth += 1
            try:
                yield
            except BaseException:
                if snapshot is not None:
                    self._tables = snapshot
                    logger.debug("Rolled back in-memory transaction")
                raise
            finally:
                self._transaction_depth -= 1

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._table(table))
