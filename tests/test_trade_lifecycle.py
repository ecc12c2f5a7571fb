"""Tests for trade creation and completion."""

import threading
from contextlib import contextmanager
from datetime import timedelta
from decimal import Decimal

import pytest

from gridxchange.models import EntryStatus
from gridxchange.store import InMemoryRecordStore
from gridxchange.validation import (
    AlreadyCompletedError,
    ConflictError,
    IneligibleError,
    NotFoundError,
    UnauthorizedError,
)


class NonTransactionalStore(InMemoryRecordStore):
    """In-memory store that behaves like a backend without transactions."""

    def __init__(self, fail_trade_inserts=False):
        super().__init__()
        self.fail_trade_inserts = fail_trade_inserts

    @property
    def supports_transactions(self):
        return False

    @contextmanager
    def transaction(self):
        yield

    def insert(self, table, record):
        if table == "trades" and self.fail_trade_inserts:
            raise RuntimeError("trades table unavailable")
        return super().insert(table, record)


def test_offer_accept_and_complete_end_to_end(service, provider, receiver):
    # Arrange
    offer = service.post_offer(provider.id, "4.0", unit_price="0.15")

    # Act
    trade = service.accept_entry(offer.id, receiver.id, caller_user_id=receiver.user_id)

    # Assert
    assert trade.provider_id == provider.id
    assert trade.receiver_id == receiver.id
    assert trade.offer_id == offer.id and trade.request_id is None
    assert trade.total_amount == Decimal("0.60")
    assert trade.is_active
    assert service.get_entry(offer.id).status == EntryStatus.MATCHED
    # Figures only move on completion
    assert service.get_household(provider.id).generation_kwh == Decimal("10")

    completed = service.complete_trade(trade.id, receiver.user_id)

    assert completed.completed_at is not None
    assert completed.settlement_started_at is None
    assert service.get_household(provider.id).generation_kwh == Decimal("6.0")
    assert service.get_household(receiver.id).consumption_kwh == Decimal("4.0")
    assert service.get_entry(offer.id).status == EntryStatus.COMPLETED


def test_accepting_request_makes_acceptor_the_provider(service, provider, receiver):
    request = service.post_request(receiver.id, 3)

    trade = service.accept_entry(request.id, provider.id)

    assert trade.provider_id == provider.id
    assert trade.receiver_id == receiver.id
    assert trade.request_id == request.id and trade.offer_id is None


def test_accepting_request_without_surplus_is_ineligible(service, provider, receiver):
    request = service.post_request(receiver.id, 6)

    with pytest.raises(IneligibleError, match="Insufficient surplus"):
        service.accept_entry(request.id, provider.id)

    assert service.get_entry(request.id).status == EntryStatus.PENDING
    assert service.all_trades() == []


def test_accept_uses_fresh_household_figures(service, provider, receiver):
    request = service.post_request(receiver.id, 5)
    service.update_readings(provider.id, 6, 5)  # surplus drops to 1

    with pytest.raises(IneligibleError):
        service.accept_entry(request.id, provider.id)


def test_cannot_accept_own_entry(service, provider):
    offer = service.post_offer(provider.id, 1)
    with pytest.raises(IneligibleError):
        service.accept_entry(offer.id, provider.id)


def test_accept_by_non_owner_of_acceptor(service, provider, receiver):
    offer = service.post_offer(provider.id, 1)
    with pytest.raises(UnauthorizedError):
        service.accept_entry(offer.id, receiver.id, caller_user_id=provider.user_id)


def test_accept_unknown_entry(service, receiver):
    with pytest.raises(NotFoundError):
        service.accept_entry("missing", receiver.id)


def test_second_accept_conflicts(service, provider, receiver):
    offer = service.post_offer(provider.id, 1)
    other = service.register_household("user-other", 0, 3)
    service.accept_entry(offer.id, receiver.id)

    with pytest.raises(ConflictError):
        service.accept_entry(offer.id, other.id)


def test_expired_entry_conflicts(service, provider, receiver, clock):
    offer = service.post_offer(provider.id, 1, expires_at=clock.now() + timedelta(minutes=5))
    clock.advance(minutes=5)

    with pytest.raises(ConflictError, match="expired"):
        service.accept_entry(offer.id, receiver.id)


def test_concurrent_accepts_create_exactly_one_trade(service, provider):
    # Arrange
    offer = service.post_offer(provider.id, 2)
    acceptors = [service.register_household(f"user-{i}", 0, 5) for i in range(6)]
    barrier = threading.Barrier(len(acceptors))
    trades, conflicts = [], []

    def accept(household_id):
        barrier.wait()
        try:
            trades.append(service.accept_entry(offer.id, household_id))
        except ConflictError as e:
            conflicts.append(e)

    # Act
    threads = [threading.Thread(target=accept, args=(h.id,)) for h in acceptors]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Assert
    assert len(trades) == 1
    assert len(conflicts) == len(acceptors) - 1
    assert len(service.all_trades()) == 1
    assert service.get_entry(offer.id).status == EntryStatus.MATCHED


def test_double_complete_settles_once(service, provider, receiver):
    offer = service.post_offer(provider.id, 4)
    trade = service.accept_entry(offer.id, receiver.id)
    service.complete_trade(trade.id, provider.user_id)

    with pytest.raises(AlreadyCompletedError):
        service.complete_trade(trade.id, receiver.user_id)

    assert service.get_household(provider.id).generation_kwh == Decimal("6")
    assert service.get_household(receiver.id).consumption_kwh == Decimal("4")


def test_concurrent_completion_settles_once(service, provider, receiver):
    # Arrange
    offer = service.post_offer(provider.id, 4)
    trade = service.accept_entry(offer.id, receiver.id)
    callers = [provider.user_id, receiver.user_id] * 3
    barrier = threading.Barrier(len(callers))
    completed, rejected = [], []

    def complete(user_id):
        barrier.wait()
        try:
            completed.append(service.complete_trade(trade.id, user_id))
        except (AlreadyCompletedError, ConflictError) as e:
            rejected.append(e)

    # Act
    threads = [threading.Thread(target=complete, args=(u,)) for u in callers]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    # Assert
    assert len(completed) == 1
    assert len(rejected) == len(callers) - 1
    assert service.get_household(provider.id).generation_kwh == Decimal("6")
    assert service.get_household(receiver.id).consumption_kwh == Decimal("4")


def test_complete_by_outsider_is_unauthorized(service, provider, receiver):
    offer = service.post_offer(provider.id, 1)
    trade = service.accept_entry(offer.id, receiver.id)

    with pytest.raises(UnauthorizedError):
        service.complete_trade(trade.id, "user-outsider")

    assert service.get_trade(trade.id).is_active


def test_complete_unknown_trade(service):
    with pytest.raises(NotFoundError):
        service.complete_trade("missing", "anyone")


def test_failed_settlement_leaves_trade_active(service_factory):
    # Arrange: reject policy and a receiver whose consumption is too small
    service = service_factory(negative_balance_policy="reject")
    provider = service.register_household("p", generation_kwh=10, consumption_kwh=0)
    receiver = service.register_household("r", generation_kwh=0, consumption_kwh=1)
    offer = service.post_offer(provider.id, 4)
    trade = service.accept_entry(offer.id, receiver.id)

    # Act
    with pytest.raises(IneligibleError):
        service.complete_trade(trade.id, receiver.user_id)

    # Assert
    current = service.get_trade(trade.id)
    assert current.is_active
    assert current.settlement_started_at is None
    assert service.get_household(provider.id).generation_kwh == Decimal("10")
    assert service.get_entry(offer.id).status == EntryStatus.MATCHED


def test_in_progress_settlement_conflicts_until_stale(service, provider, receiver, clock):
    offer = service.post_offer(provider.id, 2)
    trade = service.accept_entry(offer.id, receiver.id)
    service.store.update("trades", trade.id, {"settlement_started_at": clock.now()})

    with pytest.raises(ConflictError):
        service.complete_trade(trade.id, provider.user_id)

    clock.advance(seconds=301)
    completed = service.complete_trade(trade.id, provider.user_id)

    assert not completed.is_active
    assert service.get_household(provider.id).generation_kwh == Decimal("8")


def test_trade_history_and_active_trades(service, provider, receiver, clock):
    first = service.accept_entry(service.post_offer(provider.id, 1).id, receiver.id)
    clock.advance(minutes=1)
    second = service.accept_entry(service.post_request(receiver.id, 1).id, provider.id)
    service.complete_trade(first.id, provider.user_id)

    history = service.trade_history(receiver.id)
    active = service.active_trades(provider.id)

    assert [t.id for t in history] == [second.id, first.id]
    assert [t.id for t in active] == [second.id]
    with pytest.raises(NotFoundError):
        service.trade_history("missing")


def test_compensation_without_transactions_releases_entry(service_factory):
    service = service_factory(store=NonTransactionalStore(fail_trade_inserts=True))
    provider = service.register_household("p", 10, 0)
    receiver = service.register_household("r", 0, 5)
    offer = service.post_offer(provider.id, 2)

    with pytest.raises(RuntimeError):
        service.accept_entry(offer.id, receiver.id)

    assert service.get_entry(offer.id).status == EntryStatus.PENDING


def test_compensation_without_transactions_releases_claim(service_factory):
    service = service_factory(
        store=NonTransactionalStore(), negative_balance_policy="reject"
    )
    provider = service.register_household("p", 10, 0)
    receiver = service.register_household("r", 0, 1)
    trade = service.accept_entry(service.post_offer(provider.id, 3).id, receiver.id)

    with pytest.raises(IneligibleError):
        service.complete_trade(trade.id, provider.user_id)

    assert service.get_trade(trade.id).settlement_started_at is None
    assert service.store.supports_transactions is False
