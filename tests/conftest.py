"""Shared fixtures for the marketplace tests."""

from datetime import datetime, timezone

import pytest

from gridxchange.config import MarketConfig, MarketConfigManager
from gridxchange.core import ManualClock, MarketplaceService
from gridxchange.store import InMemoryRecordStore

START = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_service(store=None, **config_overrides) -> MarketplaceService:
    config = MarketConfig(**config_overrides)
    return MarketplaceService(
        store=store or InMemoryRecordStore(),
        config_manager=MarketConfigManager.from_config(config),
        clock=ManualClock(START),
    )


@pytest.fixture
def service() -> MarketplaceService:
    return make_service()


@pytest.fixture
def clock(service) -> ManualClock:
    return service.clock


@pytest.fixture
def provider(service):
    """Household with 5 kWh surplus."""
    return service.register_household(
        user_id="user-provider",
        generation_kwh=10,
        consumption_kwh=5,
        name="Provider",
        latitude=40.7128,
        longitude=-74.0060,
    )


@pytest.fixture
def receiver(service):
    """Household in deficit."""
    return service.register_household(
        user_id="user-receiver",
        generation_kwh=2,
        consumption_kwh=8,
        name="Receiver",
        latitude=40.7306,
        longitude=-73.9352,
    )


@pytest.fixture
def service_factory():
    """Build a service with config overrides, e.g. negative_balance_policy="clamp"."""
    return make_service
