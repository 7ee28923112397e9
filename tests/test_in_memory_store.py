"""
Tests for the in-memory document store.
"""
import asyncio

import pytest

from supportdesk.store import InMemoryDocumentStore, Query, create_document_store
from supportdesk.store.document_store import sort_documents


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


async def test_insert_and_get(memory_store):
    assert await memory_store.insert("things", "a", {"id": "a", "value": 1}) is True

    assert await memory_store.get("things", "a") == {"id": "a", "value": 1}
    assert await memory_store.get("things", "b") is None


async def test_insert_duplicate_returns_false(memory_store):
    await memory_store.insert("things", "a", {"value": 1})

    assert await memory_store.insert("things", "a", {"value": 2}) is False
    assert (await memory_store.get("things", "a"))["value"] == 1


async def test_returned_documents_are_copies(memory_store):
    await memory_store.insert("things", "a", {"items": [1]})

    doc = await memory_store.get("things", "a")
    doc["items"].append(2)

    assert (await memory_store.get("things", "a"))["items"] == [1]


async def test_update_sets_and_pushes(memory_store):
    await memory_store.insert("things", "a", {"status": "new", "items": [1]})

    doc = await memory_store.update("things", "a", set_fields={"status": "done"}, push={"items": [2, 3]})

    assert doc == {"status": "done", "items": [1, 2, 3]}


async def test_update_missing_document(memory_store):
    assert await memory_store.update("things", "nope", set_fields={"x": 1}) is None


async def test_concurrent_pushes_are_not_lost(memory_store):
    await memory_store.insert("things", "a", {"items": []})

    await asyncio.gather(*(
        memory_store.update("things", "a", push={"items": [i]}) for i in range(50)
    ))

    doc = await memory_store.get("things", "a")
    assert sorted(doc["items"]) == list(range(50))


async def test_find_with_query_sort_and_paging(memory_store):
    for i, status in enumerate(["open", "closed", "open", "open"]):
        await memory_store.insert("things", str(i), {"n": i, "status": status})

    docs = await memory_store.find(
        "things",
        Query(equals={"status": "open"}),
        sort=[("n", True)],
        offset=1,
        limit=1,
    )

    assert [d["n"] for d in docs] == [2]
    assert await memory_store.count("things", Query(equals={"status": "open"})) == 3
    assert await memory_store.count("things") == 4


async def test_find_one_returns_first_sorted(memory_store):
    await memory_store.insert("things", "a", {"k": "x", "created_at": "2024-01-01T00:00:00+00:00"})
    await memory_store.insert("things", "b", {"k": "x", "created_at": "2024-02-01T00:00:00+00:00"})

    doc = await memory_store.find_one("things", Query(equals={"k": "x"}), sort=[("created_at", True)])

    assert doc["created_at"].startswith("2024-02")


def test_query_one_of_and_created_since():
    query = Query(one_of={"p": ("high", "urgent")}, created_since="2024-01-02")

    assert query.matches({"p": "high", "created_at": "2024-01-03T00:00:00+00:00"})
    assert not query.matches({"p": "low", "created_at": "2024-01-03T00:00:00+00:00"})
    assert not query.matches({"p": "urgent", "created_at": "2024-01-01T00:00:00+00:00"})
    assert not query.matches({"p": "urgent"})


def test_sort_documents_multi_key():
    docs = [
        {"rank": 1, "t": "b"},
        {"rank": 2, "t": "a"},
        {"rank": 1, "t": "c"},
    ]

    result = sort_documents(docs, [("rank", True), ("t", False)])

    assert result == [{"rank": 2, "t": "a"}, {"rank": 1, "t": "b"}, {"rank": 1, "t": "c"}]


async def test_clear_and_ping(memory_store):
    await memory_store.insert("things", "a", {})
    await memory_store.clear()

    assert await memory_store.count("things") == 0
    assert await memory_store.ping() is True


def test_factory_rejects_unknown_store_type():
    assert isinstance(create_document_store("in_memory"), InMemoryDocumentStore)

    with pytest.raises(ValueError):
        create_document_store("mongo")
