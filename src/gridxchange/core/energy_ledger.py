"""Energy ledger owning each household's live generation/consumption figures."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
import logging

from ..config import MarketConfigManager, NegativeBalancePolicy
from ..models import Household, Trade
from ..store import RecordStore, HOMES_TABLE
from ..utils.type_coercion import safe_decimal
from ..validation import ConflictError, IneligibleError, InvalidInputError, NotFoundError
from .clock import Clock
from .record_factory import RecordFactory

logger = logging.getLogger(__name__)

GENERATION_FIELD = "current_generation_kwh"
CONSUMPTION_FIELD = "current_consumption_kwh"


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of one settlement: updated households and the deltas applied.

    Deltas can be smaller in magnitude than the traded energy when the
    clamp policy floored a figure at zero.
    """

    trade_id: str
    provider: Household
    receiver: Household
    provider_delta: Decimal
    receiver_delta: Decimal


class EnergyLedger:
    """Applies settlement deltas to household energy figures.

    Every write recomputes the cached `surplus_kwh` column from the two
    figures it is derived from. Writes are compare-and-swap against the
    figures read just before, so concurrent settlements touching the same
    household never lose an update.
    """

    def __init__(
        self,
        store: RecordStore,
        config_manager: MarketConfigManager,
        clock: Clock,
        factory: Optional[RecordFactory] = None,
    ):
        self.store = store
        self.config_manager = config_manager
        self.clock = clock
        self.factory = factory or RecordFactory()

    def get_household(self, household_id: str) -> Household:
        """Load a household.

        Raises:
            NotFoundError: If the household does not exist
        """
        record = self.store.get(HOMES_TABLE, household_id)
        if record is None:
            raise NotFoundError("Household not found", entity="home", entity_id=household_id)
        return self.factory.household_from_record(record)

    def register(self, household: Household) -> Household:
        """Persist a newly created household."""
        self.store.insert(HOMES_TABLE, self.factory.household_to_record(household))
        logger.info(
            f"Registered household {household.id} for user {household.user_id} "
            f"(surplus {household.surplus_kwh} kWh)"
        )
        return household

    def record_readings(
        self, household_id: str, generation_kwh: Any, consumption_kwh: Any
    ) -> Household:
        """Overwrite a household's figures with owner-entered readings.

        Raises:
            InvalidInputError: If either reading is missing or negative
            NotFoundError: If the household does not exist
        """
        readings = {}
        for field, value in ((GENERATION_FIELD, generation_kwh), (CONSUMPTION_FIELD, consumption_kwh)):
            converted = safe_decimal(value)
            if converted is None or not converted.is_finite() or converted < 0:
                raise InvalidInputError(
                    "Readings must be non-negative numbers",
                    entity="home",
                    entity_id=household_id,
                    field=field,
                    value=value,
                )
            readings[field] = converted

        patch = {
            **readings,
            "surplus_kwh": readings[GENERATION_FIELD] - readings[CONSUMPTION_FIELD],
            "last_updated": self.clock.now(),
        }
        updated = self.store.update(HOMES_TABLE, household_id, patch)
        household = self.factory.household_from_record(updated)  # type: ignore[arg-type]
        logger.info(f"Recorded readings for {household}")
        return household

    def settle(self, trade: Trade) -> SettlementResult:
        """Move the traded energy between the two households.

        The provider's generation and the receiver's consumption both drop
        by the trade's energy. Whether a figure may go negative depends on
        the configured policy.

        Raises:
            NotFoundError: If either household is missing (nothing is written)
            IneligibleError: If the reject policy forbids a negative result
        """
        policy = self.config_manager.get_negative_balance_policy()
        provider = self.get_household(trade.provider_id)
        receiver = self.get_household(trade.receiver_id)

        if policy == NegativeBalancePolicy.REJECT:
            self._check_not_negative(provider, provider.generation_kwh, trade, "generation_kwh")
            self._check_not_negative(receiver, receiver.consumption_kwh, trade, "consumption_kwh")

        amount = trade.energy_kwh
        provider, provider_delta = self._apply_delta(
            trade.provider_id, GENERATION_FIELD, -amount, policy
        )
        try:
            receiver, receiver_delta = self._apply_delta(
                trade.receiver_id, CONSUMPTION_FIELD, -amount, policy
            )
        except Exception:
            logger.warning(
                f"Receiver update failed for trade {trade.id}; reverting provider {trade.provider_id}"
            )
            self._apply_delta(
                trade.provider_id, GENERATION_FIELD, -provider_delta, NegativeBalancePolicy.ALLOW
            )
            raise

        if provider.generation_kwh < 0 or receiver.consumption_kwh < 0:
            logger.warning(
                f"Settlement of trade {trade.id} left a negative figure; "
                f"declared readings were stale (provider generation "
                f"{provider.generation_kwh}, receiver consumption {receiver.consumption_kwh})"
            )

        logger.info(
            f"Settled trade {trade.id}: {trade.provider_id} generation {provider_delta:+}, "
            f"{trade.receiver_id} consumption {receiver_delta:+}"
        )
        return SettlementResult(
            trade_id=trade.id,
            provider=provider,
            receiver=receiver,
            provider_delta=provider_delta,
            receiver_delta=receiver_delta,
        )

    def reverse(self, result: SettlementResult) -> None:
        """Undo a settlement by applying the inverse of its deltas."""
        self._apply_delta(
            result.provider.id, GENERATION_FIELD, -result.provider_delta, NegativeBalancePolicy.ALLOW
        )
        self._apply_delta(
            result.receiver.id, CONSUMPTION_FIELD, -result.receiver_delta, NegativeBalancePolicy.ALLOW
        )
        logger.warning(f"Reversed settlement of trade {result.trade_id}")

    def _apply_delta(
        self,
        household_id: str,
        field: str,
        delta: Decimal,
        policy: NegativeBalancePolicy,
    ) -> tuple[Household, Decimal]:
        """Compare-and-swap one figure, retrying when a concurrent write wins.

        Returns:
            The updated household and the delta actually applied
        """
        max_attempts = self.config_manager.get_max_cas_retries()

        for attempt in range(1, max_attempts + 1):
            record = self.store.get(HOMES_TABLE, household_id)
            if record is None:
                raise NotFoundError("Household not found", entity="home", entity_id=household_id)

            current = safe_decimal(record.get(field), Decimal("0"))
            target = current + delta
            if target < 0 and delta < 0:
                if policy == NegativeBalancePolicy.CLAMP:
                    target = max(target, min(current, Decimal("0")))
                elif policy == NegativeBalancePolicy.REJECT:
                    raise IneligibleError(
                        f"Settlement would leave {field} negative",
                        entity="home",
                        entity_id=household_id,
                        field=field,
                        value=target,
                    )

            figures = {
                GENERATION_FIELD: safe_decimal(record.get(GENERATION_FIELD), Decimal("0")),
                CONSUMPTION_FIELD: safe_decimal(record.get(CONSUMPTION_FIELD), Decimal("0")),
            }
            figures[field] = target
            patch = {
                field: target,
                "surplus_kwh": figures[GENERATION_FIELD] - figures[CONSUMPTION_FIELD],
                "last_updated": self.clock.now(),
            }
            precondition = {
                GENERATION_FIELD: record.get(GENERATION_FIELD),
                CONSUMPTION_FIELD: record.get(CONSUMPTION_FIELD),
            }

            updated = self.store.update(HOMES_TABLE, household_id, patch, precondition)
            if updated is not None:
                return self.factory.household_from_record(updated), target - current

            logger.debug(
                f"Concurrent write on household {household_id} ({field}); "
                f"retry {attempt}/{max_attempts}"
            )

        raise ConflictError(
            "Household figures kept changing during settlement",
            entity="home",
            entity_id=household_id,
            field=field,
        )

    @staticmethod
    def _check_not_negative(
        household: Household, figure: Decimal, trade: Trade, field: str
    ) -> None:
        if figure - trade.energy_kwh < 0:
            raise IneligibleError(
                f"Settlement would leave {field} negative",
                entity="home",
                entity_id=household.id,
                field=field,
                value=figure - trade.energy_kwh,
            )
