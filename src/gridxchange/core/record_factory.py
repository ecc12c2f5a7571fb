"""Record factory translating between stored records and core models."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Type, TypeVar
import logging
import uuid

from pydantic import BaseModel, ValidationError

from ..models import Coordinate, EntryKind, EntryStatus, Household, MarketplaceEntry, Trade
from ..store import Record, OFFERS_TABLE, REQUESTS_TABLE
from ..utils.type_coercion import parse_timestamp, safe_decimal, safe_float
from ..validation import InvalidInputError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ENTRY_TABLES: dict[EntryKind, str] = {
    EntryKind.OFFER: OFFERS_TABLE,
    EntryKind.REQUEST: REQUESTS_TABLE,
}

# Each entry table names its quantity column differently
QUANTITY_FIELDS: dict[EntryKind, str] = {
    EntryKind.OFFER: "offered_kwh",
    EntryKind.REQUEST: "requested_kwh",
}


def new_record_id() -> str:
    return str(uuid.uuid4())


class RecordFactory:
    """Creates core models from store records and store records from models.

    Persisted field names follow the marketplace schema verbatim
    (`current_generation_kwh`, `price_per_kwh`, `timestamp`, ...), while
    the models use domain names. All construction failures surface as
    InvalidInputError.
    """

    def build(self, model_cls: Type[ModelT], entity: str, **data: Any) -> ModelT:
        """Validate data into a model, translating pydantic errors.

        Raises:
            InvalidInputError: If any field violates the model's constraints
        """
        try:
            return model_cls(**data)
        except ValidationError as e:
            errors = e.errors(include_url=False)
            logger.debug(f"Rejected {entity} construction: {len(errors)} error(s)")
            first = errors[0] if errors else {}
            field = ".".join(str(p) for p in first.get("loc", ())) or None
            raise InvalidInputError(
                f"Invalid {entity}: {first.get('msg', 'validation failed')}",
                entity=entity,
                entity_id=data.get("id"),
                field=field,
                value=first.get("input") if field else None,
                errors=[{"loc": err.get("loc"), "msg": err.get("msg")} for err in errors],
            ) from e

    # Households

    def new_household(
        self,
        user_id: str,
        generation_kwh: Any,
        consumption_kwh: Any,
        now: datetime,
        name: str = "",
        location: str = "",
        solar_capacity_kw: Any = 0,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        household_id: Optional[str] = None,
    ) -> Household:
        """Create a household from owner-entered figures.

        Owner-entered generation and consumption must be non-negative, and
        latitude/longitude must be given together.
        """
        generation = self._require_decimal(generation_kwh, "home", "generation_kwh")
        consumption = self._require_decimal(consumption_kwh, "home", "consumption_kwh")
        for field, value in (("generation_kwh", generation), ("consumption_kwh", consumption)):
            if value < 0:
                raise InvalidInputError(
                    f"{field} must be non-negative", entity="home", field=field, value=value
                )

        return self.build(
            Household,
            "home",
            id=household_id or new_record_id(),
            user_id=user_id,
            name=name,
            location=location,
            solar_capacity_kw=self._require_decimal(solar_capacity_kw, "home", "solar_capacity_kw"),
            generation_kwh=generation,
            consumption_kwh=consumption,
            coordinate=self._coordinate(latitude, longitude),
            last_updated=now,
            created_at=now,
        )

    def household_from_record(self, record: Record) -> Household:
        # Stored surplus_kwh is a cache; the model recomputes it
        return self.build(
            Household,
            "home",
            id=record["id"],
            user_id=record["user_id"],
            name=record.get("name") or "",
            location=record.get("location") or "",
            solar_capacity_kw=safe_decimal(record.get("solar_capacity_kw"), Decimal("0")),
            generation_kwh=safe_decimal(record.get("current_generation_kwh"), Decimal("0")),
            consumption_kwh=safe_decimal(record.get("current_consumption_kwh"), Decimal("0")),
            coordinate=self._coordinate(
                safe_float(record.get("latitude")), safe_float(record.get("longitude"))
            ),
            last_updated=parse_timestamp(record.get("last_updated")),
            created_at=parse_timestamp(record.get("created_at")),
        )

    def household_to_record(self, household: Household) -> Record:
        return {
            "id": household.id,
            "user_id": household.user_id,
            "name": household.name,
            "location": household.location,
            "solar_capacity_kw": household.solar_capacity_kw,
            "current_generation_kwh": household.generation_kwh,
            "current_consumption_kwh": household.consumption_kwh,
            "surplus_kwh": household.surplus_kwh,
            "latitude": household.coordinate.latitude if household.coordinate else None,
            "longitude": household.coordinate.longitude if household.coordinate else None,
            "last_updated": household.last_updated,
            "created_at": household.created_at,
        }

    # Marketplace entries

    def new_entry(
        self,
        kind: EntryKind,
        household_id: str,
        quantity_kwh: Any,
        unit_price: Any,
        posted_at: datetime,
        expires_at: datetime,
        entry_id: Optional[str] = None,
    ) -> MarketplaceEntry:
        return self.build(
            MarketplaceEntry,
            kind.value,
            id=entry_id or new_record_id(),
            household_id=household_id,
            kind=kind,
            quantity_kwh=self._require_decimal(quantity_kwh, kind.value, "quantity_kwh"),
            unit_price=self._require_decimal(unit_price, kind.value, "unit_price"),
            status=EntryStatus.PENDING,
            posted_at=posted_at,
            expires_at=expires_at,
        )

    def entry_from_record(self, record: Record, kind: EntryKind) -> MarketplaceEntry:
        return self.build(
            MarketplaceEntry,
            kind.value,
            id=record["id"],
            household_id=record["home_id"],
            kind=kind,
            quantity_kwh=safe_decimal(record.get(QUANTITY_FIELDS[kind])),
            unit_price=safe_decimal(record.get("price_per_kwh")),
            status=EntryStatus(record["status"]),
            posted_at=parse_timestamp(record.get("timestamp")),
            expires_at=parse_timestamp(record.get("expires_at")),
        )

    def entry_to_record(self, entry: MarketplaceEntry) -> Record:
        return {
            "id": entry.id,
            "home_id": entry.household_id,
            QUANTITY_FIELDS[entry.kind]: entry.quantity_kwh,
            "price_per_kwh": entry.unit_price,
            "status": entry.status.value,
            "timestamp": entry.posted_at,
            "expires_at": entry.expires_at,
        }

    # Trades

    def trade_from_record(self, record: Record) -> Trade:
        return self.build(
            Trade,
            "trade",
            id=record["id"],
            provider_id=record["provider_id"],
            receiver_id=record["receiver_id"],
            offer_id=record.get("offer_id"),
            request_id=record.get("request_id"),
            energy_kwh=safe_decimal(record.get("energy_kwh")),
            unit_price=safe_decimal(record.get("price_per_kwh")),
            created_at=parse_timestamp(record.get("timestamp")),
            completed_at=parse_timestamp(record.get("completed_at")),
            settlement_started_at=parse_timestamp(record.get("settlement_started_at")),
        )

    def trade_to_record(self, trade: Trade) -> Record:
        return {
            "id": trade.id,
            "provider_id": trade.provider_id,
            "receiver_id": trade.receiver_id,
            "offer_id": trade.offer_id,
            "request_id": trade.request_id,
            "energy_kwh": trade.energy_kwh,
            "price_per_kwh": trade.unit_price,
            "total_amount": trade.total_amount,
            "timestamp": trade.created_at,
            "completed_at": trade.completed_at,
            "settlement_started_at": trade.settlement_started_at,
        }

    # Helpers

    @staticmethod
    def _require_decimal(value: Any, entity: str, field: str) -> Decimal:
        converted = safe_decimal(value)
        if converted is None or not converted.is_finite():
            raise InvalidInputError(
                f"{field} must be a number", entity=entity, field=field, value=value
            )
        return converted

    def _coordinate(
        self, latitude: Optional[float], longitude: Optional[float]
    ) -> Optional[Coordinate]:
        if latitude is None and longitude is None:
            return None
        if latitude is None or longitude is None:
            raise InvalidInputError(
                "latitude and longitude must be given together",
                entity="home",
                field="coordinate",
                value=(latitude, longitude),
            )
        return self.build(
            Coordinate, "coordinate", latitude=latitude, longitude=longitude
        )


def table_for(kind: EntryKind) -> str:
    return ENTRY_TABLES[kind]
