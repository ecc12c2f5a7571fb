"""Trade data model."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

from .entry import EntryKind


class Trade(BaseModel):
    """A committed pairing of a provider and a receiver.

    Energy quantity and unit price are copied from the originating entry at
    creation time and never change afterwards. A trade whose `completed_at`
    is unset is active.
    """

    model_config = ConfigDict(
        frozen=True,  # Immutable for audit trail
        validate_assignment=True,
    )

    id: str = Field(..., description="Unique trade identifier")
    provider_id: str = Field(..., description="Household supplying energy")
    receiver_id: str = Field(..., description="Household receiving energy")

    # Origin - exactly one is set
    offer_id: Optional[str] = Field(default=None)
    request_id: Optional[str] = Field(default=None)

    energy_kwh: Decimal = Field(..., gt=0, description="Traded energy in kWh")
    unit_price: Decimal = Field(..., gt=0, description="Currency per kWh")

    created_at: datetime = Field(..., description="When the trade was created")
    completed_at: Optional[datetime] = Field(
        default=None, description="Settlement time, unset while active"
    )
    settlement_started_at: Optional[datetime] = Field(
        default=None, description="Claim marker held while settlement runs"
    )

    @model_validator(mode="after")
    def _check_participants_and_origin(self) -> "Trade":
        if self.provider_id == self.receiver_id:
            raise ValueError("provider_id and receiver_id must differ")
        if (self.offer_id is None) == (self.request_id is None):
            raise ValueError("exactly one of offer_id or request_id must be set")
        return self

    @property
    def total_amount(self) -> Decimal:
        return self.energy_kwh * self.unit_price

    @property
    def is_active(self) -> bool:
        return self.completed_at is None

    @property
    def origin_kind(self) -> EntryKind:
        return EntryKind.OFFER if self.offer_id is not None else EntryKind.REQUEST

    @property
    def origin_entry_id(self) -> str:
        return self.offer_id if self.offer_id is not None else self.request_id  # type: ignore[return-value]

    def involves(self, household_id: str) -> bool:
        return household_id in (self.provider_id, self.receiver_id)

    def __str__(self) -> str:
        return f"Trade({self.id}: {self.energy_kwh} kWh, {self.provider_id} → {self.receiver_id})"
