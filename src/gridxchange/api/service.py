"""Service layer for the marketplace API."""

import asyncio
import logging
from typing import Any, Optional

from ..core import MarketplaceService
from ..geo import format_distance
from ..models import Coordinate, EntryKind, EntryStatus, GeoScope
from .models import (
    DistanceRequest,
    DistanceResponse,
    EntryCreateRequest,
    EntryResponse,
    HouseholdCreateRequest,
    HouseholdResponse,
    TradeResponse,
    summary_to_json,
)

logger = logging.getLogger(__name__)


class MarketplaceAPIService:
    """Adapts the synchronous marketplace service to async request handlers.

    Store operations may block on the store lock, so every call is pushed
    to a worker thread.
    """

    def __init__(self, service: Optional[MarketplaceService] = None) -> None:
        self.service = service or MarketplaceService()

    async def register_household(self, request: HouseholdCreateRequest) -> HouseholdResponse:
        household = await asyncio.to_thread(
            self.service.register_household,
            user_id=request.user_id,
            generation_kwh=request.current_generation_kwh,
            consumption_kwh=request.current_consumption_kwh,
            name=request.name,
            location=request.location,
            solar_capacity_kw=request.solar_capacity_kw,
            latitude=request.latitude,
            longitude=request.longitude,
        )
        return HouseholdResponse.from_household(household)

    async def get_household(self, household_id: str) -> HouseholdResponse:
        household = await asyncio.to_thread(self.service.get_household, household_id)
        return HouseholdResponse.from_household(household)

    async def list_households(self, user_id: Optional[str]) -> list[HouseholdResponse]:
        households = await asyncio.to_thread(self.service.list_households, user_id)
        return [HouseholdResponse.from_household(h) for h in households]

    async def update_readings(
        self, household_id: str, generation_kwh: float, consumption_kwh: float
    ) -> HouseholdResponse:
        household = await asyncio.to_thread(
            self.service.update_readings, household_id, generation_kwh, consumption_kwh
        )
        return HouseholdResponse.from_household(household)

    async def post_entry(self, kind: EntryKind, request: EntryCreateRequest) -> EntryResponse:
        post = self.service.post_offer if kind == EntryKind.OFFER else self.service.post_request
        entry = await asyncio.to_thread(
            post,
            household_id=request.home_id,
            quantity_kwh=request.quantity_kwh,
            unit_price=request.price_per_kwh,
            expires_at=request.expires_at,
            caller_user_id=request.caller_user_id,
        )
        return EntryResponse.from_entry(entry)

    async def list_entries(
        self, kind: EntryKind, status: Optional[EntryStatus]
    ) -> list[EntryResponse]:
        entries = await asyncio.to_thread(self.service.book.list_entries, kind, status)
        return [EntryResponse.from_entry(e) for e in entries]

    async def get_entry(self, entry_id: str) -> EntryResponse:
        entry = await asyncio.to_thread(self.service.get_entry, entry_id)
        return EntryResponse.from_entry(entry)

    async def cancel_entry(self, entry_id: str, caller_user_id: str) -> EntryResponse:
        entry = await asyncio.to_thread(self.service.cancel_entry, entry_id, caller_user_id)
        return EntryResponse.from_entry(entry)

    async def sweep_expired(self) -> int:
        cancelled = await asyncio.to_thread(self.service.sweep_expired_entries)
        logger.info(f"API sweep cancelled {cancelled} expired entries")
        return cancelled

    async def list_eligible(
        self,
        kind: EntryKind,
        household_id: str,
        latitude: Optional[float],
        longitude: Optional[float],
        radius_km: Optional[float],
    ) -> list[EntryResponse]:
        geo_scope = self._geo_scope(latitude, longitude, radius_km)
        pairs = await asyncio.to_thread(
            self.service.list_eligible_entries_with_distance, kind, household_id, geo_scope
        )
        return [
            EntryResponse.from_entry(
                entry,
                distance_km=distance,
                distance_label=format_distance(distance) if distance is not None else None,
            )
            for entry, distance in pairs
        ]

    async def accept_entry(
        self, entry_id: str, household_id: str, caller_user_id: Optional[str]
    ) -> TradeResponse:
        trade = await asyncio.to_thread(
            self.service.accept_entry, entry_id, household_id, caller_user_id
        )
        return TradeResponse.from_trade(trade)

    async def complete_trade(self, trade_id: str, caller_user_id: str) -> TradeResponse:
        trade = await asyncio.to_thread(self.service.complete_trade, trade_id, caller_user_id)
        return TradeResponse.from_trade(trade)

    async def get_trade(self, trade_id: str) -> TradeResponse:
        trade = await asyncio.to_thread(self.service.get_trade, trade_id)
        return TradeResponse.from_trade(trade)

    async def trade_history(self, household_id: str, active_only: bool) -> list[TradeResponse]:
        lookup = self.service.active_trades if active_only else self.service.trade_history
        trades = await asyncio.to_thread(lookup, household_id)
        return [TradeResponse.from_trade(t) for t in trades]

    async def all_trades(self) -> list[TradeResponse]:
        trades = await asyncio.to_thread(self.service.all_trades)
        return [TradeResponse.from_trade(t) for t in trades]

    async def summary(self) -> dict[str, Any]:
        summary = await asyncio.to_thread(self.service.marketplace_summary)
        return summary_to_json(summary)

    def distance(self, request: DistanceRequest) -> DistanceResponse:
        km = self.service.distance_between(
            (request.from_latitude, request.from_longitude),
            (request.to_latitude, request.to_longitude),
        )
        return DistanceResponse(
            distance_km=km,
            label=self.service.format_distance(km),
            travel_minutes=self.service.estimate_travel_time(km, request.mode),
            mode=request.mode,
        )

    def suggested_radius(self, location_type: str) -> float:
        return self.service.suggested_radius(location_type)

    def _geo_scope(
        self,
        latitude: Optional[float],
        longitude: Optional[float],
        radius_km: Optional[float],
    ) -> Optional[GeoScope]:
        if latitude is None and longitude is None:
            return None
        if latitude is None or longitude is None:
            raise ValueError("latitude and longitude must be given together")
        radius = (
            radius_km
            if radius_km is not None
            else self.service.config_manager.get_default_radius_km()
        )
        return GeoScope(
            center=Coordinate(latitude=latitude, longitude=longitude), radius_km=radius
        )
