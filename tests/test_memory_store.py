import pytest

from sanitrack.core.errors import ConflictError
from sanitrack.storage.memory_store import InMemoryStore


def test_create_on_existing_key_conflicts(store):
    store.run_in_transaction(lambda txn: txn.create("cases", "r1", {"id": "r1"}))

    with pytest.raises(ConflictError):
        store.run_in_transaction(lambda txn: txn.create("cases", "r1", {"id": "r1", "again": True}))

    assert store.get("cases", "r1") == {"id": "r1"}


def test_failed_transaction_discards_all_writes(store):
    def _fail(txn):
        txn.create("reports", "r1", {"id": "r1"})
        txn.create("cases", "r1", {"id": "r1"})
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.run_in_transaction(_fail)

    assert store.get("reports", "r1") is None
    assert store.get("cases", "r1") is None


def test_failed_duplicate_create_leaves_other_writes_unapplied(store):
    store.put("cases", "r1", {"id": "r1"})

    def _create(txn):
        txn.create("reports", "r1", {"id": "r1"})
        txn.create("cases", "r1", {"id": "r1"})

    with pytest.raises(ConflictError):
        store.run_in_transaction(_create)

    assert store.get("reports", "r1") is None


def test_stale_read_is_retried_with_fresh_data(store):
    store.put("counters", "c", {"value": 0})
    attempts = []

    def _increment(txn):
        doc = txn.get("counters", "c")
        attempts.append(doc["value"])
        if len(attempts) == 1:
            # A competing transaction commits between our read and our commit
            store.run_in_transaction(lambda other: other.set("counters", "c", {"value": 100}))
        txn.set("counters", "c", {"value": doc["value"] + 1})

    store.run_in_transaction(_increment)

    assert attempts == [0, 100]
    assert store.get("counters", "c") == {"value": 101}


def test_persistent_contention_gives_up_with_conflict():
    store = InMemoryStore(max_attempts=3)
    store.put("counters", "c", {"value": 0})
    calls = []

    def _always_contended(txn):
        doc = txn.get("counters", "c")
        calls.append(1)
        store.put("counters", "c", {"value": doc["value"] + 1})
        txn.set("counters", "c", {"value": -1})

    with pytest.raises(ConflictError):
        store.run_in_transaction(_always_contended)

    assert len(calls) == 3
    assert store.get("counters", "c") == {"value": 3}


def test_reads_return_copies(store):
    store.put("users", "u1", {"id": "u1", "tags": ["a"]})
    doc = store.get("users", "u1")
    doc["tags"].append("b")

    assert store.get("users", "u1")["tags"] == ["a"]


def test_query_filters(store):
    store.put("cases", "a", {"status": "submitted", "n": 1})
    store.put("cases", "b", {"status": "approved", "n": 5})
    store.put("cases", "c", {"status": "rejected", "n": 9})

    assert {d["n"] for d in store.query("cases", [("status", "in", ["submitted", "approved"])])} == {1, 5}
    assert {d["n"] for d in store.query("cases", [("n", ">=", 5), ("n", "<=", 9)])} == {5, 9}
    assert store.query("cases", [("status", "==", "completed")]) == []


def test_reads_of_missing_documents_leave_no_trace(store):
    assert store.get("cases", "missing") is None
    store.run_in_transaction(lambda txn: txn.get("cases", "also-missing"))

    assert store._versions == {}
    assert store._docs.get("cases", {}) == {}


def test_document_created_after_missing_read_is_stale():
    store = InMemoryStore(max_attempts=2)
    seen = []

    def _create_if_absent(txn):
        seen.append(txn.get("cases", "r1"))
        if len(seen) == 1:
            store.put("cases", "r1", {"id": "r1", "by": "rival"})
        if seen[-1] is None:
            txn.create("cases", "r1", {"id": "r1", "by": "us"})

    store.run_in_transaction(_create_if_absent)

    assert seen == [None, {"id": "r1", "by": "rival"}]
    assert store.get("cases", "r1")["by"] == "rival"
