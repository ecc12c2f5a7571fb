"""Pydantic models for API request and response."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import Household, MarketplaceEntry, Trade


class HouseholdCreateRequest(BaseModel):
    """Request model for registering a household."""

    user_id: str = Field(..., min_length=1, description="Owning user")
    name: str = ""
    location: str = ""
    solar_capacity_kw: float = Field(default=0, ge=0)
    current_generation_kwh: float = Field(..., ge=0)
    current_consumption_kwh: float = Field(..., ge=0)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "user_id": "user-ana",
                    "name": "Maple Street Rooftop",
                    "current_generation_kwh": 12.0,
                    "current_consumption_kwh": 5.0,
                    "latitude": 40.6782,
                    "longitude": -73.9442,
                }
            ]
        }
    )


class ReadingsUpdateRequest(BaseModel):
    current_generation_kwh: float = Field(..., ge=0)
    current_consumption_kwh: float = Field(..., ge=0)


class EntryCreateRequest(BaseModel):
    """Request model for posting an offer or request."""

    home_id: str = Field(..., min_length=1)
    quantity_kwh: float = Field(..., description="Offered or requested kWh")
    price_per_kwh: Optional[float] = Field(
        default=None, description="Defaults to the configured unit price"
    )
    expires_at: Optional[datetime] = Field(
        default=None, description="Defaults to the configured horizon"
    )
    caller_user_id: Optional[str] = None


class AcceptRequest(BaseModel):
    household_id: str = Field(..., min_length=1, description="Accepting household")
    caller_user_id: Optional[str] = None


class CallerRequest(BaseModel):
    """Identifies the user performing an action."""

    caller_user_id: str = Field(..., min_length=1)


class DistanceRequest(BaseModel):
    from_latitude: float = Field(..., ge=-90, le=90)
    from_longitude: float = Field(..., ge=-180, le=180)
    to_latitude: float = Field(..., ge=-90, le=90)
    to_longitude: float = Field(..., ge=-180, le=180)
    mode: str = "driving"


class HouseholdResponse(BaseModel):
    id: str
    user_id: str
    name: str
    location: str
    solar_capacity_kw: float
    current_generation_kwh: float
    current_consumption_kwh: float
    surplus_kwh: float
    latitude: Optional[float]
    longitude: Optional[float]
    last_updated: datetime
    created_at: datetime

    @classmethod
    def from_household(cls, household: Household) -> "HouseholdResponse":
        coordinate = household.coordinate
        return cls(
            id=household.id,
            user_id=household.user_id,
            name=household.name,
            location=household.location,
            solar_capacity_kw=float(household.solar_capacity_kw),
            current_generation_kwh=float(household.generation_kwh),
            current_consumption_kwh=float(household.consumption_kwh),
            surplus_kwh=float(household.surplus_kwh),
            latitude=coordinate.latitude if coordinate else None,
            longitude=coordinate.longitude if coordinate else None,
            last_updated=household.last_updated,
            created_at=household.created_at,
        )


class EntryResponse(BaseModel):
    id: str
    kind: str
    home_id: str
    quantity_kwh: float
    price_per_kwh: float
    total_amount: float
    status: str
    timestamp: datetime
    expires_at: datetime
    distance_km: Optional[float] = None
    distance_label: Optional[str] = None

    @classmethod
    def from_entry(
        cls,
        entry: MarketplaceEntry,
        distance_km: Optional[float] = None,
        distance_label: Optional[str] = None,
    ) -> "EntryResponse":
        return cls(
            id=entry.id,
            kind=entry.kind.value,
            home_id=entry.household_id,
            quantity_kwh=float(entry.quantity_kwh),
            price_per_kwh=float(entry.unit_price),
            total_amount=float(entry.total_amount),
            status=entry.status.value,
            timestamp=entry.posted_at,
            expires_at=entry.expires_at,
            distance_km=distance_km,
            distance_label=distance_label,
        )


class TradeResponse(BaseModel):
    id: str
    provider_id: str
    receiver_id: str
    offer_id: Optional[str]
    request_id: Optional[str]
    energy_kwh: float
    price_per_kwh: float
    total_amount: float
    timestamp: datetime
    completed_at: Optional[datetime]
    status: str

    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeResponse":
        return cls(
            id=trade.id,
            provider_id=trade.provider_id,
            receiver_id=trade.receiver_id,
            offer_id=trade.offer_id,
            request_id=trade.request_id,
            energy_kwh=float(trade.energy_kwh),
            price_per_kwh=float(trade.unit_price),
            total_amount=float(trade.total_amount),
            timestamp=trade.created_at,
            completed_at=trade.completed_at,
            status="active" if trade.is_active else "completed",
        )


class DistanceResponse(BaseModel):
    distance_km: float
    label: str
    travel_minutes: int
    mode: str


class SweepResponse(BaseModel):
    cancelled: int


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str


def summary_to_json(summary: dict[str, Any]) -> dict[str, Any]:
    """Convert Decimal figures in a marketplace summary to floats."""
    return {
        key: float(value) if not isinstance(value, int) else value
        for key, value in summary.items()
    }
