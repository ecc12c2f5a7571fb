"""Marketplace book managing the offer/request lifecycle."""

from datetime import datetime, timedelta
from typing import Any, Optional
import logging

from ..config import MarketConfigManager
from ..eligibility import MatchEligibility
from ..models import EntryKind, EntryStatus, GeoScope, Household, MarketplaceEntry
from ..store import RecordStore
from ..utils.type_coercion import parse_timestamp
from ..validation import (
    ConflictError,
    IneligibleError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from .clock import Clock
from .energy_ledger import EnergyLedger
from .record_factory import ENTRY_TABLES, RecordFactory, table_for

logger = logging.getLogger(__name__)


class MarketplaceBook:
    """Posts, lists, cancels and expires marketplace entries.

    Status changes are always conditional updates on the current status, so
    a transition either happens exactly once or reports that it lost.
    Expiry is a read-time filter: an entry may stay `pending` in storage
    long after `expires_at`, and every read re-checks it.
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: EnergyLedger,
        config_manager: MarketConfigManager,
        clock: Clock,
        eligibility: Optional[MatchEligibility] = None,
        factory: Optional[RecordFactory] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.config_manager = config_manager
        self.clock = clock
        self.eligibility = eligibility or MatchEligibility()
        self.factory = factory or RecordFactory()

    def post(
        self,
        kind: EntryKind,
        household_id: str,
        quantity_kwh: Any,
        unit_price: Any = None,
        expires_at: Optional[datetime] = None,
        caller_user_id: Optional[str] = None,
    ) -> MarketplaceEntry:
        """Post a new offer or request.

        Args:
            kind: Offer or request
            household_id: Posting household
            quantity_kwh: Energy quantity, must be positive
            unit_price: Price per kWh; defaults to the configured price
            expires_at: Expiry; defaults to the configured horizon from now
            caller_user_id: When given, must own the posting household

        Raises:
            NotFoundError: If the household does not exist
            UnauthorizedError: If the caller does not own the household
            InvalidInputError: If quantity, price or expiry are invalid
            IneligibleError: If an offer exceeds the household's surplus
        """
        household = self.ledger.get_household(household_id)
        self._require_owner(household, caller_user_id)

        now = self.clock.now()
        # Naive expiries are taken as UTC to match the clock
        try:
            expires_at = parse_timestamp(expires_at)
        except ValueError as e:
            raise InvalidInputError(
                str(e), entity=kind.value, field="expires_at", value=expires_at
            ) from e
        if expires_at is None:
            expires_at = now + timedelta(hours=self.config_manager.get_entry_ttl_hours())
        if unit_price is None:
            unit_price = self.config_manager.get_default_unit_price()

        entry = self.factory.new_entry(
            kind, household_id, quantity_kwh, unit_price, posted_at=now, expires_at=expires_at
        )

        if (
            kind == EntryKind.OFFER
            and self.config_manager.requires_surplus_for_offer()
            and entry.quantity_kwh > household.surplus_kwh
        ):
            raise IneligibleError(
                f"Cannot offer more than available surplus ({household.surplus_kwh:.2f} kWh)",
                entity=kind.value,
                field="quantity_kwh",
                value=entry.quantity_kwh,
            )

        self.store.insert(table_for(kind), self.factory.entry_to_record(entry))
        logger.info(
            f"Household {household_id} posted {kind.value} {entry.id}: "
            f"{entry.quantity_kwh} kWh @ {entry.unit_price}, expires {entry.expires_at.isoformat()}"
        )
        return entry

    def get_entry(self, entry_id: str, kind: Optional[EntryKind] = None) -> MarketplaceEntry:
        """Find an entry by id, in one table or both.

        Raises:
            NotFoundError: If no entry has this id
        """
        kinds = [kind] if kind is not None else list(ENTRY_TABLES)
        for candidate in kinds:
            record = self.store.get(table_for(candidate), entry_id)
            if record is not None:
                return self.factory.entry_from_record(record, candidate)
        raise NotFoundError(
            "Entry not found", entity=kind.value if kind else "entry", entity_id=entry_id
        )

    def list_entries(
        self, kind: EntryKind, status: Optional[EntryStatus] = None
    ) -> list[MarketplaceEntry]:
        """All stored entries of a kind, newest first, optionally by stored status."""
        filters = {"status": status.value} if status is not None else None
        records = self.store.query(table_for(kind), filters, order_by="timestamp", descending=True)
        return [self.factory.entry_from_record(r, kind) for r in records]

    def list_eligible_with_distance(
        self,
        kind: EntryKind,
        acceptor_household_id: str,
        geo_scope: Optional[GeoScope] = None,
    ) -> list[tuple[MarketplaceEntry, Optional[float]]]:
        """Entries the acceptor may accept right now, with scope distance.

        Without a scope the list is newest first and distances are None.
        With a scope only entries whose household lies within the radius
        are kept, nearest first.

        Raises:
            NotFoundError: If the acceptor household does not exist
        """
        acceptor = self.ledger.get_household(acceptor_household_id)
        now = self.clock.now()

        results: list[tuple[MarketplaceEntry, Optional[float]]] = []
        for entry in self.list_entries(kind, EntryStatus.PENDING):
            if not self.eligibility.is_eligible(entry, acceptor, now):
                continue

            distance = None
            if geo_scope is not None:
                try:
                    owner = self.ledger.get_household(entry.household_id)
                except NotFoundError:
                    logger.warning(
                        f"{kind.value} {entry.id} references missing household {entry.household_id}"
                    )
                    continue
                if not self.eligibility.in_geo_scope(owner, geo_scope):
                    continue
                distance = self.eligibility.scoped_distance(owner, geo_scope)

            results.append((entry, distance))

        if geo_scope is not None:
            results.sort(key=lambda pair: pair[1])  # type: ignore[arg-type, return-value]

        logger.debug(
            f"{len(results)} eligible {kind.value}s for household {acceptor_household_id}"
        )
        return results

    def list_eligible(
        self,
        kind: EntryKind,
        acceptor_household_id: str,
        geo_scope: Optional[GeoScope] = None,
    ) -> list[MarketplaceEntry]:
        return [
            entry
            for entry, _ in self.list_eligible_with_distance(kind, acceptor_household_id, geo_scope)
        ]

    def cancel(self, entry_id: str, caller_user_id: str) -> MarketplaceEntry:
        """Withdraw a pending entry.

        Raises:
            NotFoundError: If the entry or its household does not exist
            UnauthorizedError: If the caller does not own the posting household
            ConflictError: If the entry is no longer pending
        """
        entry = self.get_entry(entry_id)
        owner = self.ledger.get_household(entry.household_id)
        self._require_owner(owner, caller_user_id)

        updated = self.transition(entry, EntryStatus.PENDING, EntryStatus.CANCELLED)
        if updated is None:
            current = self.get_entry(entry_id, entry.kind)
            raise ConflictError(
                f"Cannot cancel a {current.status.value} {entry.kind.value}",
                entity=entry.kind.value,
                entity_id=entry_id,
                field="status",
                value=current.status.value,
            )
        logger.info(f"Cancelled {entry.kind.value} {entry_id}")
        return updated

    def sweep_expired(self) -> int:
        """Move expired pending entries to `cancelled`.

        Returns:
            Number of entries swept
        """
        now = self.clock.now()
        swept = 0
        for kind in ENTRY_TABLES:
            for entry in self.list_entries(kind, EntryStatus.PENDING):
                if entry.is_expired(now) and self.transition(
                    entry, EntryStatus.PENDING, EntryStatus.CANCELLED
                ):
                    swept += 1
        if swept:
            logger.info(f"Swept {swept} expired entries")
        return swept

    def transition(
        self, entry: MarketplaceEntry, expected: EntryStatus, new_status: EntryStatus
    ) -> Optional[MarketplaceEntry]:
        """Atomically move an entry from `expected` to `new_status`.

        Returns:
            The updated entry, or None if its status was no longer `expected`
        """
        record = self.store.update(
            table_for(entry.kind),
            entry.id,
            {"status": new_status.value},
            precondition={"status": expected.value},
        )
        if record is None:
            logger.debug(
                f"{entry.kind.value} {entry.id} not {expected.value}; "
                f"transition to {new_status.value} skipped"
            )
            return None
        return self.factory.entry_from_record(record, entry.kind)

    @staticmethod
    def _require_owner(household: Household, caller_user_id: Optional[str]) -> None:
        if caller_user_id is not None and household.user_id != caller_user_id:
            raise UnauthorizedError(
                "Caller does not own this household", entity="home", entity_id=household.id
            )
