"""Trade creation and completion."""

from datetime import datetime, timedelta
from typing import Optional
import logging

from ..config import MarketConfigManager
from ..eligibility import MatchEligibility
from ..models import EntryKind, EntryStatus, MarketplaceEntry, Trade
from ..store import RecordStore, TRADES_TABLE
from ..validation import (
    AlreadyCompletedError,
    ConflictError,
    IneligibleError,
    NotFoundError,
    UnauthorizedError,
)
from .clock import Clock
from .energy_ledger import EnergyLedger
from .marketplace_book import MarketplaceBook
from .record_factory import RecordFactory, new_record_id

logger = logging.getLogger(__name__)


class TradeLifecycle:
    """Creates trades from accepted entries and completes them.

    Both operations are written as claim-first sequences with compensation
    so they stay correct on stores without multi-record transactions; when
    the store does support transactions the whole sequence also runs inside
    one, making it all-or-nothing.

    Creation claims the entry with a conditional `pending -> matched`
    update before inserting the trade. Completion claims the trade with a
    settlement marker, settles the ledger, then writes `completed_at` only
    if it is still unset, reversing the ledger if that final write loses.
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: EnergyLedger,
        book: MarketplaceBook,
        config_manager: MarketConfigManager,
        clock: Clock,
        eligibility: Optional[MatchEligibility] = None,
        factory: Optional[RecordFactory] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.book = book
        self.config_manager = config_manager
        self.clock = clock
        self.eligibility = eligibility or book.eligibility
        self.factory = factory or RecordFactory()

    def create(
        self,
        entry: MarketplaceEntry,
        acceptor_household_id: str,
        caller_user_id: Optional[str] = None,
    ) -> Trade:
        """Create a trade for an accepted entry and mark the entry matched.

        Args:
            entry: The pending entry being accepted
            acceptor_household_id: Household taking the other side
            caller_user_id: When given, must own the acceptor household

        Returns:
            The new active trade

        Raises:
            NotFoundError: If the acceptor household does not exist
            UnauthorizedError: If the caller does not own the acceptor household
            IneligibleError: If the acceptor may not accept this entry
            ConflictError: If the entry is no longer pending or has expired
        """
        with self.store.transaction():
            # Eligibility is re-validated against fresh household figures
            acceptor = self.ledger.get_household(acceptor_household_id)
            if caller_user_id is not None and acceptor.user_id != caller_user_id:
                raise UnauthorizedError(
                    "Caller does not own the accepting household",
                    entity="home",
                    entity_id=acceptor_household_id,
                )

            now = self.clock.now()
            if not entry.is_actionable(now):
                raise self._entry_conflict(entry, now)

            verdict = self.eligibility.evaluate(entry, acceptor, now)
            if not verdict:
                raise IneligibleError(
                    verdict.reason or "Household is not eligible for this entry",
                    entity=entry.kind.value,
                    entity_id=entry.id,
                )

            trade = self._build_trade(entry, acceptor_household_id, now)

            if self.book.transition(entry, EntryStatus.PENDING, EntryStatus.MATCHED) is None:
                logger.warning(
                    f"Lost race for {entry.kind.value} {entry.id} (acceptor {acceptor_household_id})"
                )
                raise self._entry_conflict(self.book.get_entry(entry.id, entry.kind), now)

            try:
                self.store.insert(TRADES_TABLE, self.factory.trade_to_record(trade))
            except Exception:
                logger.error(
                    f"Failed to insert trade for {entry.kind.value} {entry.id}; releasing entry",
                    exc_info=True,
                )
                self.book.transition(entry, EntryStatus.MATCHED, EntryStatus.PENDING)
                raise

        logger.info(
            f"Created trade {trade.id} from {entry.kind.value} {entry.id}: "
            f"{trade.provider_id} → {trade.receiver_id}, {trade.energy_kwh} kWh, total {trade.total_amount}"
        )
        return trade

    def complete(self, trade_id: str, caller_user_id: str) -> Trade:
        """Mark a trade completed and settle the ledger exactly once.

        Args:
            trade_id: Id of an active trade
            caller_user_id: Must own the provider or the receiver household

        Returns:
            The completed trade

        Raises:
            NotFoundError: If the trade or one of its households is missing
            UnauthorizedError: If the caller owns neither household
            AlreadyCompletedError: If the trade was already completed
            ConflictError: If another completion of this trade is in progress
        """
        with self.store.transaction():
            trade = self.get_trade(trade_id)
            self._require_participant(trade, caller_user_id)

            if not trade.is_active:
                raise self._already_completed(trade)

            now = self.clock.now()
            self._claim_settlement(trade, now)

            try:
                result = self.ledger.settle(trade)
            except Exception:
                logger.warning(f"Settlement of trade {trade_id} failed; releasing claim")
                self.store.update(
                    TRADES_TABLE,
                    trade_id,
                    {"settlement_started_at": None},
                    precondition={"settlement_started_at": now},
                )
                raise

            record = self.store.update(
                TRADES_TABLE,
                trade_id,
                {"completed_at": now, "settlement_started_at": None},
                precondition={"completed_at": None, "settlement_started_at": now},
            )
            if record is None:
                # Someone else committed first; undo our ledger effect
                self.ledger.reverse(result)
                raise self._already_completed(self.get_trade(trade_id))

            completed = self.factory.trade_from_record(record)
            self._complete_origin_entry(completed)

        logger.info(f"Completed trade {trade_id} at {now.isoformat()}")
        return completed

    def get_trade(self, trade_id: str) -> Trade:
        record = self.store.get(TRADES_TABLE, trade_id)
        if record is None:
            raise NotFoundError("Trade not found", entity="trade", entity_id=trade_id)
        return self.factory.trade_from_record(record)

    def trades_for_household(
        self, household_id: str, active_only: bool = False
    ) -> list[Trade]:
        """Trades where the household is provider or receiver, newest first."""
        records = self.store.query(TRADES_TABLE, {"provider_id": household_id})
        records += self.store.query(TRADES_TABLE, {"receiver_id": household_id})
        trades = [self.factory.trade_from_record(r) for r in records]
        if active_only:
            trades = [t for t in trades if t.is_active]
        return sorted(trades, key=lambda t: t.created_at, reverse=True)

    def all_trades(self) -> list[Trade]:
        records = self.store.query(TRADES_TABLE, order_by="timestamp", descending=True)
        return [self.factory.trade_from_record(r) for r in records]

    def _build_trade(
        self, entry: MarketplaceEntry, acceptor_household_id: str, now: datetime
    ) -> Trade:
        if entry.kind == EntryKind.REQUEST:
            provider_id, receiver_id = acceptor_household_id, entry.household_id
        else:
            provider_id, receiver_id = entry.household_id, acceptor_household_id

        return self.factory.build(
            Trade,
            "trade",
            id=new_record_id(),
            provider_id=provider_id,
            receiver_id=receiver_id,
            offer_id=entry.id if entry.kind == EntryKind.OFFER else None,
            request_id=entry.id if entry.kind == EntryKind.REQUEST else None,
            energy_kwh=entry.quantity_kwh,
            unit_price=entry.unit_price,
            created_at=now,
        )

    def _claim_settlement(self, trade: Trade, now: datetime) -> None:
        """Take the settlement marker so only one caller settles the ledger.

        A marker older than the configured TTL is treated as abandoned and
        may be taken over.
        """
        previous = trade.settlement_started_at
        if previous is not None:
            ttl = timedelta(seconds=self.config_manager.get_settlement_claim_ttl_seconds())
            if now - previous < ttl:
                raise ConflictError(
                    "Trade settlement already in progress", entity="trade", entity_id=trade.id
                )
            logger.warning(
                f"Taking over stale settlement claim on trade {trade.id} from {previous.isoformat()}"
            )

        claimed = self.store.update(
            TRADES_TABLE,
            trade.id,
            {"settlement_started_at": now},
            precondition={"completed_at": None, "settlement_started_at": previous},
        )
        if claimed is None:
            current = self.get_trade(trade.id)
            if not current.is_active:
                raise self._already_completed(current)
            raise ConflictError(
                "Trade settlement already in progress", entity="trade", entity_id=trade.id
            )

    def _complete_origin_entry(self, trade: Trade) -> None:
        try:
            entry = self.book.get_entry(trade.origin_entry_id, trade.origin_kind)
        except NotFoundError:
            logger.warning(
                f"Trade {trade.id} references missing {trade.origin_kind.value} {trade.origin_entry_id}"
            )
            return
        if self.book.transition(entry, EntryStatus.MATCHED, EntryStatus.COMPLETED) is None:
            logger.warning(
                f"{entry.kind.value} {entry.id} was not matched when trade {trade.id} completed"
            )

    def _require_participant(self, trade: Trade, caller_user_id: str) -> None:
        provider = self.ledger.get_household(trade.provider_id)
        receiver = self.ledger.get_household(trade.receiver_id)
        if caller_user_id not in (provider.user_id, receiver.user_id):
            raise UnauthorizedError(
                "Only trade participants can complete a trade",
                entity="trade",
                entity_id=trade.id,
            )

    @staticmethod
    def _already_completed(trade: Trade) -> AlreadyCompletedError:
        return AlreadyCompletedError(
            "Trade already completed",
            entity="trade",
            entity_id=trade.id,
            field="completed_at",
            value=trade.completed_at.isoformat() if trade.completed_at else None,
        )

    @staticmethod
    def _entry_conflict(entry: MarketplaceEntry, now: datetime) -> ConflictError:
        state = "expired" if entry.status == EntryStatus.PENDING and entry.is_expired(now) else entry.status.value
        return ConflictError(
            f"{entry.kind.value.capitalize()} is no longer available ({state})",
            entity=entry.kind.value,
            entity_id=entry.id,
            field="status",
            value=state,
        )
