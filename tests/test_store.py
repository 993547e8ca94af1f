import pytest

from conftest import TestingSessionLocal
from edumonitor.infrastructure.store import Contains, DocumentStore, Eq, StaleRecordError


@pytest.fixture
def items(db):
    return DocumentStore(db).collection("items")


def test_put_assigns_versions(items):
    first = items.put({"id": "a", "name": "one"})
    assert first == {"id": "a", "name": "one", "version": 1}
    second = items.put({**first, "name": "two"})
    assert second["version"] == 2
    assert items.get("a") == {"id": "a", "name": "two", "version": 2}


def test_stale_write_is_rejected(items):
    stored = items.put({"id": "a", "name": "one"})
    items.put({**stored, "name": "winner"})

    with pytest.raises(StaleRecordError):
        items.put({**stored, "name": "loser"})
    assert items.get("a")["name"] == "winner"


def test_concurrent_insert_is_rejected(items):
    items.put({"id": "a", "name": "one"})
    with pytest.raises(StaleRecordError):
        items.put({"id": "a", "name": "again"})


def test_stale_write_across_sessions(db, items):
    stored = items.put({"id": "a", "name": "one"})
    other_session = TestingSessionLocal()
    try:
        other = DocumentStore(other_session).collection("items")
        other.put({**other.get("a"), "name": "other"})
    finally:
        other_session.close()

    with pytest.raises(StaleRecordError):
        items.put({**stored, "name": "mine"})


def test_scan_filters(items):
    items.put({"id": "a", "kind": "x", "tags": ["red", "blue"]})
    items.put({"id": "b", "kind": "y", "tags": ["red"]})
    items.put({"id": "c", "kind": "x", "tags": None})

    assert [i["id"] for i in items.scan(Eq("kind", "x"))] == ["a", "c"]
    assert [i["id"] for i in items.scan(Contains("tags", "red"))] == ["a", "b"]
    assert [i["id"] for i in items.scan(Eq("kind", "x"), Contains("tags", "blue"))] == ["a"]
    assert items.scan(Eq("kind", "x"), projection=["id"]) == [{"id": "a"}, {"id": "c"}]
    assert len(items.scan()) == 3


def test_collections_are_isolated(db, items):
    items.put({"id": "a"})
    others = DocumentStore(db).collection("others")
    assert others.get("a") is None
    assert others.scan() == []


def test_delete(items):
    items.put({"id": "a"})
    items.delete("a")
    assert items.get("a") is None
    items.delete("a")
