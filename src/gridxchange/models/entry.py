"""Marketplace entry (offer/request) data model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, model_validator


class EntryKind(str, Enum):
    """Whether the poster wants to sell (offer) or buy (request) energy."""

    OFFER = "offer"
    REQUEST = "request"


class EntryStatus(str, Enum):
    """Persisted entry status values.

    pending -> matched -> completed, with pending -> cancelled as the
    alternate terminal path. Expiry is not a stored status.
    """

    PENDING = "pending"
    MATCHED = "matched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MarketplaceEntry(BaseModel):
    """A posted intent to sell or buy a fixed energy quantity at a fixed price."""

    model_config = ConfigDict(
        frozen=True,
        validate_assignment=True,
    )

    id: str = Field(..., description="Unique entry identifier")
    household_id: str = Field(..., description="Posting household")
    kind: EntryKind = Field(..., description="Offer or request")

    quantity_kwh: Decimal = Field(..., gt=0, description="Energy quantity in kWh")
    unit_price: Decimal = Field(..., gt=0, description="Currency per kWh")
    status: EntryStatus = Field(default=EntryStatus.PENDING)

    posted_at: datetime = Field(..., description="When the entry was posted")
    expires_at: datetime = Field(..., description="When the entry stops being actionable")

    @model_validator(mode="after")
    def _check_expiry_after_posting(self) -> "MarketplaceEntry":
        if self.expires_at <= self.posted_at:
            raise ValueError("expires_at must be later than posted_at")
        return self

    @property
    def total_amount(self) -> Decimal:
        """Total value of the entry at its posted unit price."""
        return self.quantity_kwh * self.unit_price

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_actionable(self, now: datetime) -> bool:
        """Check if the entry may still be matched.

        A stored `pending` status is not enough: expiry must be re-checked
        against the current time on every read.
        """
        return self.status == EntryStatus.PENDING and not self.is_expired(now)

    def __str__(self) -> str:
        return (
            f"{self.kind.value.capitalize()}({self.id}: {self.quantity_kwh} kWh "
            f"@ {self.unit_price} [{self.status.value}])"
        )
