"""Configuration manager for the GridXchange trade core."""

import json
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, ValidationError


class NegativeBalancePolicy(str, Enum):
    """What settlement does when a figure would drop below zero."""

    ALLOW = "allow"  # keep the negative figure as a staleness signal
    CLAMP = "clamp"  # floor the figure at zero
    REJECT = "reject"  # refuse to settle


class MarketConfig(BaseModel):
    """Configuration for the marketplace and settlement rules.

    Contains the posting horizon, settlement policy and geo defaults.
    """

    model_config = ConfigDict(
        frozen=True,
        validate_assignment=True,  # Immutable configuration
    )

    entry_ttl_hours: float = Field(
        default=24, gt=0, description="Horizon from posting to expiry"
    )
    negative_balance_policy: NegativeBalancePolicy = Field(
        default=NegativeBalancePolicy.ALLOW,
        description="Handling of generation/consumption going below zero",
    )
    require_surplus_for_offer: bool = Field(
        default=True,
        description="Reject offers larger than the household's current surplus",
    )
    default_unit_price: Decimal = Field(
        default=Decimal("0.15"), gt=0, description="Suggested price per kWh"
    )

    default_radius_km: float = Field(default=10, gt=0)
    suggested_radii_km: dict[str, float] = Field(
        default={"urban": 5, "suburban": 10, "rural": 25},
        description="Suggested trading radius by location type",
    )
    travel_speeds_kmh: dict[str, float] = Field(
        default={"walking": 5, "driving": 30},
        description="Speeds used for travel time estimates",
    )

    settlement_claim_ttl_seconds: float = Field(
        default=300,
        gt=0,
        description="Age after which an unfinished settlement claim may be taken over",
    )
    max_cas_retries: int = Field(
        default=5, ge=1, description="Attempts for compare-and-swap ledger writes"
    )


class MarketConfigManager:
    """Manages configuration for the trade core.

    Loads configuration from a JSON file and provides a unified interface
    for accessing settlement and marketplace settings.
    """

    CONFIG_FILENAME = "market_config.json"

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config directory. Defaults to this module's dir.
        """
        if config_path is None:
            config_path = Path(__file__).parent

        self.config_path = config_path
        self.market_config_path = config_path / self.CONFIG_FILENAME

        self.market_config = self._load_market_config()

    @classmethod
    def from_config(cls, config: MarketConfig) -> "MarketConfigManager":
        """Build a manager around an in-memory config without touching disk."""
        manager = cls.__new__(cls)
        manager.config_path = None
        manager.market_config_path = None
        manager.market_config = config
        return manager

    def _load_market_config(self) -> MarketConfig:
        """Load market configuration from JSON file."""
        try:
            with open(self.market_config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise FileNotFoundError(
                f"Market config not found at {self.market_config_path}"
            ) from e
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in market config: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("Market config must be a dictionary")

        try:
            return MarketConfig.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid market config values: {e}") from e

    def get_entry_ttl_hours(self) -> float:
        return self.market_config.entry_ttl_hours

    def get_negative_balance_policy(self) -> NegativeBalancePolicy:
        return self.market_config.negative_balance_policy

    def requires_surplus_for_offer(self) -> bool:
        return self.market_config.require_surplus_for_offer

    def get_default_unit_price(self) -> Decimal:
        return self.market_config.default_unit_price

    def get_default_radius_km(self) -> float:
        return self.market_config.default_radius_km

    def get_suggested_radius(self, location_type: str) -> float:
        """Get suggested trading radius for a location type.

        Args:
            location_type: "urban", "suburban" or "rural"

        Returns:
            Radius in kilometres, falling back to the default radius
        """
        return self.market_config.suggested_radii_km.get(
            location_type, self.market_config.default_radius_km
        )

    def get_travel_speeds(self) -> dict[str, float]:
        return dict(self.market_config.travel_speeds_kmh)

    def get_settlement_claim_ttl_seconds(self) -> float:
        return self.market_config.settlement_claim_ttl_seconds

    def get_max_cas_retries(self) -> int:
        return self.market_config.max_cas_retries

    def reload_config(self) -> None:
        """Reload configuration from file.

        Useful for development and testing when config files change.
        """
        if self.market_config_path is None:
            return
        self.market_config = self._load_market_config()
