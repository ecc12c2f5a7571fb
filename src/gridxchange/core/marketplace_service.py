"""Facade exposing the trade core to UI, API and notification layers."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
import logging

from ..config import MarketConfigManager
from ..eligibility import MatchEligibility
from ..geo import distance_km, estimate_travel_time, format_distance
from ..geo.distance import PointLike
from ..models import EntryKind, EntryStatus, GeoScope, Household, MarketplaceEntry, Trade
from ..store import InMemoryRecordStore, RecordStore, HOMES_TABLE
from .clock import Clock, SystemClock
from .energy_ledger import EnergyLedger
from .marketplace_book import MarketplaceBook
from .record_factory import ENTRY_TABLES, RecordFactory
from .trade_lifecycle import TradeLifecycle

logger = logging.getLogger(__name__)


class MarketplaceService:
    """Wires the ledger, marketplace book and trade lifecycle together.

    Every listing is computed fresh from the store on each call.
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        config_manager: Optional[MarketConfigManager] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store if store is not None else InMemoryRecordStore()
        self.config_manager = config_manager or MarketConfigManager()
        self.clock = clock or SystemClock()
        self.factory = RecordFactory()
        self.eligibility = MatchEligibility()

        self.ledger = EnergyLedger(self.store, self.config_manager, self.clock, self.factory)
        self.book = MarketplaceBook(
            self.store,
            self.ledger,
            self.config_manager,
            self.clock,
            self.eligibility,
            self.factory,
        )
        self.lifecycle = TradeLifecycle(
            self.store,
            self.ledger,
            self.book,
            self.config_manager,
            self.clock,
            self.eligibility,
            self.factory,
        )

        logger.info(f"Initialized marketplace service on {type(self.store).__name__}")

    # Households

    def register_household(
        self,
        user_id: str,
        generation_kwh: Any,
        consumption_kwh: Any,
        name: str = "",
        location: str = "",
        solar_capacity_kw: Any = 0,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        household_id: Optional[str] = None,
    ) -> Household:
        household = self.factory.new_household(
            user_id=user_id,
            generation_kwh=generation_kwh,
            consumption_kwh=consumption_kwh,
            now=self.clock.now(),
            name=name,
            location=location,
            solar_capacity_kw=solar_capacity_kw,
            latitude=latitude,
            longitude=longitude,
            household_id=household_id,
        )
        return self.ledger.register(household)

    def get_household(self, household_id: str) -> Household:
        return self.ledger.get_household(household_id)

    def list_households(self, user_id: Optional[str] = None) -> list[Household]:
        filters = {"user_id": user_id} if user_id is not None else None
        records = self.store.query(HOMES_TABLE, filters, order_by="created_at", descending=True)
        return [self.factory.household_from_record(r) for r in records]

    def update_readings(
        self, household_id: str, generation_kwh: Any, consumption_kwh: Any
    ) -> Household:
        return self.ledger.record_readings(household_id, generation_kwh, consumption_kwh)

    # Entries

    def post_offer(
        self,
        household_id: str,
        quantity_kwh: Any,
        unit_price: Any = None,
        expires_at: Optional[datetime] = None,
        caller_user_id: Optional[str] = None,
    ) -> MarketplaceEntry:
        return self.book.post(
            EntryKind.OFFER, household_id, quantity_kwh, unit_price, expires_at, caller_user_id
        )

    def post_request(
        self,
        household_id: str,
        quantity_kwh: Any,
        unit_price: Any = None,
        expires_at: Optional[datetime] = None,
        caller_user_id: Optional[str] = None,
    ) -> MarketplaceEntry:
        return self.book.post(
            EntryKind.REQUEST, household_id, quantity_kwh, unit_price, expires_at, caller_user_id
        )

    def get_entry(self, entry_id: str, kind: Optional[EntryKind] = None) -> MarketplaceEntry:
        return self.book.get_entry(entry_id, kind)

    def cancel_entry(self, entry_id: str, caller_user_id: str) -> MarketplaceEntry:
        return self.book.cancel(entry_id, caller_user_id)

    def sweep_expired_entries(self) -> int:
        return self.book.sweep_expired()

    def list_eligible_entries(
        self,
        kind: EntryKind,
        acceptor_household_id: str,
        geo_scope: Optional[GeoScope] = None,
    ) -> list[MarketplaceEntry]:
        """Entries of `kind` the acceptor may accept right now."""
        return self.book.list_eligible(kind, acceptor_household_id, geo_scope)

    def list_eligible_entries_with_distance(
        self,
        kind: EntryKind,
        acceptor_household_id: str,
        geo_scope: Optional[GeoScope] = None,
    ) -> list[tuple[MarketplaceEntry, Optional[float]]]:
        return self.book.list_eligible_with_distance(kind, acceptor_household_id, geo_scope)

    # Trades

    def accept_entry(
        self,
        entry_id: str,
        acceptor_household_id: str,
        caller_user_id: Optional[str] = None,
    ) -> Trade:
        """Accept an offer or request, creating a trade.

        Raises:
            NotFoundError, UnauthorizedError, IneligibleError, ConflictError
        """
        entry = self.book.get_entry(entry_id)
        return self.lifecycle.create(entry, acceptor_household_id, caller_user_id)

    def complete_trade(self, trade_id: str, caller_user_id: str) -> Trade:
        """Complete a trade and settle both households' figures.

        Raises:
            NotFoundError, UnauthorizedError, AlreadyCompletedError, ConflictError
        """
        return self.lifecycle.complete(trade_id, caller_user_id)

    def get_trade(self, trade_id: str) -> Trade:
        return self.lifecycle.get_trade(trade_id)

    def trade_history(self, household_id: str) -> list[Trade]:
        self.ledger.get_household(household_id)
        return self.lifecycle.trades_for_household(household_id)

    def active_trades(self, household_id: str) -> list[Trade]:
        self.ledger.get_household(household_id)
        return self.lifecycle.trades_for_household(household_id, active_only=True)

    def all_trades(self) -> list[Trade]:
        return self.lifecycle.all_trades()

    # Geo

    @staticmethod
    def distance_between(point_a: PointLike, point_b: PointLike) -> float:
        return distance_km(point_a, point_b)

    @staticmethod
    def format_distance(km: float) -> str:
        return format_distance(km)

    def suggested_radius(self, location_type: str) -> float:
        return self.config_manager.get_suggested_radius(location_type)

    def estimate_travel_time(self, km: float, mode: str = "driving") -> int:
        return estimate_travel_time(km, mode, self.config_manager.get_travel_speeds())

    # Reporting

    def marketplace_summary(self) -> dict[str, Any]:
        """Counts and volumes across the marketplace.

        Pending counts only include entries that are still actionable now.
        """
        now = self.clock.now()
        summary: dict[str, Any] = {"households": len(self.list_households())}

        for kind in ENTRY_TABLES:
            entries = self.book.list_entries(kind)
            open_entries = [e for e in entries if e.is_actionable(now)]
            summary[f"open_{kind.value}s"] = len(open_entries)
            summary[f"open_{kind.value}_kwh"] = sum(
                (e.quantity_kwh for e in open_entries), Decimal("0")
            )
            summary[f"expired_{kind.value}s"] = sum(
                1 for e in entries if e.status == EntryStatus.PENDING and e.is_expired(now)
            )

        trades = self.all_trades()
        completed = [t for t in trades if not t.is_active]
        summary.update(
            {
                "active_trades": len(trades) - len(completed),
                "completed_trades": len(completed),
                "settled_kwh": sum((t.energy_kwh for t in completed), Decimal("0")),
                "settled_amount": sum((t.total_amount for t in completed), Decimal("0")),
            }
        )
        return summary
