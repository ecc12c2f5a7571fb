"""Tests for household figure settlement."""

from decimal import Decimal

import pytest

from gridxchange.models import Trade
from gridxchange.validation import IneligibleError, InvalidInputError, NotFoundError


def make_trade(provider_id, receiver_id, energy, created_at):
    return Trade(
        id="trade-1",
        provider_id=provider_id,
        receiver_id=receiver_id,
        offer_id="offer-1",
        energy_kwh=Decimal(str(energy)),
        unit_price=Decimal("0.15"),
        created_at=created_at,
    )


def test_settle_moves_energy_between_households(service, provider, receiver, clock):
    # Arrange
    trade = make_trade(provider.id, receiver.id, 4, clock.now())

    # Act
    result = service.ledger.settle(trade)

    # Assert
    assert result.provider.generation_kwh == Decimal("6")
    assert result.provider.consumption_kwh == Decimal("5")
    assert result.receiver.consumption_kwh == Decimal("4")
    assert result.receiver.generation_kwh == Decimal("2")
    assert result.provider_delta == Decimal("-4")
    assert service.get_household(provider.id).surplus_kwh == Decimal("1")
    assert service.get_household(receiver.id).surplus_kwh == Decimal("-2")


def test_cached_surplus_column_tracks_figures(service, provider, receiver, clock):
    service.ledger.settle(make_trade(provider.id, receiver.id, 4, clock.now()))

    record = service.store.get("homes", provider.id)

    assert record["surplus_kwh"] == Decimal("1")
    assert record["last_updated"] == clock.now()


def test_allow_policy_keeps_negative_figures(service, provider, receiver, clock):
    # Arrange: 11 kWh exceeds both the provider generation and the receiver consumption
    trade = make_trade(provider.id, receiver.id, 11, clock.now())

    # Act
    result = service.ledger.settle(trade)

    # Assert
    assert result.provider.generation_kwh == Decimal("-1")
    assert result.receiver.consumption_kwh == Decimal("-3")
    assert result.provider_delta == Decimal("-11")
    assert result.receiver_delta == Decimal("-11")
    assert service.store.get("homes", provider.id)["surplus_kwh"] == Decimal("-6")
    assert service.store.get("homes", receiver.id)["surplus_kwh"] == Decimal("5")


def test_clamp_policy_floors_at_zero(service_factory):
    service = service_factory(negative_balance_policy="clamp")
    provider = service.register_household("p", generation_kwh=10, consumption_kwh=0)
    receiver = service.register_household("r", generation_kwh=0, consumption_kwh=2)

    result = service.ledger.settle(make_trade(provider.id, receiver.id, 5, service.clock.now()))

    assert result.receiver.consumption_kwh == Decimal("0")
    assert result.receiver_delta == Decimal("-2")
    assert result.provider.generation_kwh == Decimal("5")


def test_reject_policy_refuses_and_writes_nothing(service_factory):
    service = service_factory(negative_balance_policy="reject")
    provider = service.register_household("p", generation_kwh=10, consumption_kwh=0)
    receiver = service.register_household("r", generation_kwh=0, consumption_kwh=2)

    with pytest.raises(IneligibleError):
        service.ledger.settle(make_trade(provider.id, receiver.id, 5, service.clock.now()))

    assert service.get_household(provider.id).generation_kwh == Decimal("10")
    assert service.get_household(receiver.id).consumption_kwh == Decimal("2")


def test_settle_with_missing_household(service, provider, clock):
    with pytest.raises(NotFoundError):
        service.ledger.settle(make_trade(provider.id, "missing", 1, clock.now()))

    assert service.get_household(provider.id).generation_kwh == Decimal("10")


def test_reverse_restores_figures(service, provider, receiver, clock):
    result = service.ledger.settle(make_trade(provider.id, receiver.id, 4, clock.now()))

    service.ledger.reverse(result)

    assert service.get_household(provider.id).generation_kwh == Decimal("10")
    assert service.get_household(receiver.id).consumption_kwh == Decimal("8")


def test_record_readings_overwrites_figures(service, provider, clock):
    clock.advance(minutes=5)

    updated = service.update_readings(provider.id, 3, 7)

    assert updated.surplus_kwh == Decimal("-4")
    assert updated.balance_label == "Deficit"
    assert updated.last_updated == clock.now()


def test_record_readings_rejects_negative(service, provider):
    with pytest.raises(InvalidInputError):
        service.update_readings(provider.id, -1, 0)


def test_register_rejects_negative_figures(service):
    with pytest.raises(InvalidInputError):
        service.register_household("u", generation_kwh=-1, consumption_kwh=0)


def test_register_requires_both_coordinates(service):
    with pytest.raises(InvalidInputError):
        service.register_household("u", 1, 0, latitude=40.0)
