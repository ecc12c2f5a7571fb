"""Tests for the in-memory record store."""

import pytest

from gridxchange.store import InMemoryRecordStore
from gridxchange.validation import ConflictError, NotFoundError


def test_records_are_copied_in_and_out():
    store = InMemoryRecordStore()
    record = {"id": "a", "status": "pending"}
    store.insert("t", record)

    record["status"] = "mutated"
    fetched = store.get("t", "a")
    fetched["status"] = "also mutated"

    assert store.get("t", "a")["status"] == "pending"


def test_insert_requires_unique_id():
    store = InMemoryRecordStore()
    store.insert("t", {"id": "a"})

    with pytest.raises(ConflictError):
        store.insert("t", {"id": "a"})
    with pytest.raises(ValueError):
        store.insert("t", {"name": "no id"})


def test_conditional_update():
    store = InMemoryRecordStore()
    store.insert("t", {"id": "a", "status": "pending", "completed_at": None})

    assert store.update("t", "a", {"status": "matched"}, {"status": "pending"})["status"] == "matched"
    assert store.update("t", "a", {"status": "matched"}, {"status": "pending"}) is None
    assert store.update("t", "a", {"x": 1}, {"completed_at": None}) is not None
    # A precondition on an absent field never holds
    assert store.update("t", "a", {"x": 2}, {"missing": None}) is None


def test_update_missing_record():
    with pytest.raises(NotFoundError):
        InMemoryRecordStore().update("t", "nope", {"x": 1})


def test_query_filters_and_orders():
    store = InMemoryRecordStore()
    store.insert("t", {"id": "a", "kind": "x", "rank": 2})
    store.insert("t", {"id": "b", "kind": "y", "rank": 1})
    store.insert("t", {"id": "c", "kind": "x", "rank": None})
    store.insert("t", {"id": "d", "kind": "x", "rank": 3})

    ascending = store.query("t", {"kind": "x"}, order_by="rank")
    descending = store.query("t", {"kind": "x"}, order_by="rank", descending=True)

    assert [r["id"] for r in ascending] == ["c", "a", "d"]
    assert [r["id"] for r in descending] == ["d", "a", "c"]
    assert store.query("missing-table") == []


def test_transaction_rolls_back_on_error():
    store = InMemoryRecordStore()
    store.insert("t", {"id": "a", "v": 1})

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.update("t", "a", {"v": 2})
            store.insert("t", {"id": "b"})
            with store.transaction():
                store.insert("u", {"id": "c"})
            raise RuntimeError("boom")

    assert store.get("t", "a")["v"] == 1
    assert store.get("t", "b") is None
    assert store.count("u") == 0
    assert store.supports_transactions


def test_transaction_commits():
    store = InMemoryRecordStore()
    with store.transaction():
        store.insert("t", {"id": "a"})
    assert store.count("t") == 1
