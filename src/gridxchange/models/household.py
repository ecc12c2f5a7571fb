"""Household and coordinate data models."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, computed_field


class Coordinate(BaseModel):
    """A WGS84 point. Out-of-range latitude/longitude is rejected."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(
        ..., ge=-180, le=180, description="Longitude in degrees"
    )

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    def __str__(self) -> str:
        return f"({self.latitude:.4f}, {self.longitude:.4f})"


class GeoScope(BaseModel):
    """Reference point and radius used to narrow a marketplace view."""

    model_config = ConfigDict(frozen=True)

    center: Coordinate = Field(..., description="Reference coordinate")
    radius_km: float = Field(..., ge=0, description="Radius in kilometres")


class Household(BaseModel):
    """Represents a participant's site with generation/consumption meters.

    Generation and consumption are free-standing counters. They are
    non-negative when entered by the owner, but settlement may push them
    below zero when the declared figures were stale relative to committed
    trades, so the model itself does not bound them.
    """

    model_config = ConfigDict(
        frozen=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    # Core identification
    id: str = Field(..., description="Unique household identifier")
    user_id: str = Field(..., description="Identifier of the owning user")
    name: str = Field(default="", description="Display name")
    location: str = Field(default="", description="Free-text location label")
    solar_capacity_kw: Decimal = Field(
        default=Decimal("0"), ge=0, description="Installed solar capacity"
    )

    # Live energy figures
    generation_kwh: Decimal = Field(..., description="Current generation")
    consumption_kwh: Decimal = Field(..., description="Current consumption")

    coordinate: Optional[Coordinate] = Field(
        default=None, description="Geographic position, if known"
    )

    # Metadata
    last_updated: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def surplus_kwh(self) -> Decimal:
        """Generation minus consumption; negative denotes a deficit."""
        return self.generation_kwh - self.consumption_kwh

    @property
    def has_surplus(self) -> bool:
        return self.surplus_kwh > 0

    @property
    def balance_label(self) -> str:
        if self.surplus_kwh > 0:
            return "Surplus"
        if self.surplus_kwh < 0:
            return "Deficit"
        return "Balanced"

    def __str__(self) -> str:
        return (
            f"Household({self.id}: gen={self.generation_kwh} "
            f"cons={self.consumption_kwh} surplus={self.surplus_kwh})"
        )
