"""Tests for MongoChatStore against a recording fake Motor client."""

from __future__ import annotations

import asyncio

import pytest
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from chatroom.store import DuplicateParticipantError, MongoChatStore, serialize
from tests.fakes import FakeMotorClient


@pytest.fixture
def mongo() -> FakeMotorClient:
    return FakeMotorClient()


@pytest.fixture
def chat_store(mongo: FakeMotorClient) -> MongoChatStore:
    return MongoChatStore("mongodb://unused", "chatroom_test", client=mongo)


def test_uses_configured_database(chat_store: MongoChatStore) -> None:
    assert chat_store.db.name == "chatroom_test"


def test_connect_pings_and_creates_unique_name_index(chat_store: MongoChatStore, mongo: FakeMotorClient) -> None:
    asyncio.run(chat_store.connect())

    assert mongo.admin.commands == ["ping"]
    assert chat_store.participants.indexes == [([("name", ASCENDING)], {"unique": True})]


def test_duplicate_key_maps_to_duplicate_participant(chat_store: MongoChatStore) -> None:
    async def scenario() -> None:
        await chat_store.connect()
        await chat_store.insert_participant({"name": "Alice", "lastStatus": 1})
        with pytest.raises(DuplicateParticipantError):
            await chat_store.insert_participant({"name": "Alice", "lastStatus": 2})

    asyncio.run(scenario())
    assert len(chat_store.participants.docs) == 1


def test_touch_participant_returns_matched_count(chat_store: MongoChatStore) -> None:
    async def scenario() -> tuple[int, int]:
        await chat_store.insert_participant({"name": "Alice", "lastStatus": 1})
        return (
            await chat_store.touch_participant("Alice", 99),
            await chat_store.touch_participant("Ghost", 99),
        )

    assert asyncio.run(scenario()) == (1, 0)
    assert chat_store.participants.docs[0]["lastStatus"] == 99


def test_list_messages_query_sort_and_limit(chat_store: MongoChatStore) -> None:
    asyncio.run(chat_store.list_messages("Alice", 5))

    name, query = chat_store.messages.calls[-1]
    assert name == "find"
    assert query == {"$or": [{"from": "Alice"}, {"to": {"$in": ["Alice", "Todos"]}}]}
    cursor = chat_store.messages.last_cursor
    assert cursor.sort_spec == ("_id", DESCENDING)
    assert cursor.limit_value == 5


def test_list_messages_without_limit_uses_zero(chat_store: MongoChatStore) -> None:
    asyncio.run(chat_store.list_messages("Alice"))

    assert chat_store.messages.last_cursor.limit_value == 0


def test_stale_lookup_and_batch_delete(chat_store: MongoChatStore) -> None:
    chat_store.participants.docs.extend([{"name": "A", "lastStatus": 1}, {"name": "B", "lastStatus": 2}])

    async def scenario() -> list[str]:
        await chat_store.find_stale_participants(1000)
        return await chat_store.delete_participants(["A", "B"], 1000)

    assert asyncio.run(scenario()) == ["A", "B"]

    calls = chat_store.participants.calls
    assert ("find", {"lastStatus": {"$lt": 1000}}) in calls
    assert ("delete_many", {"name": {"$in": ["A", "B"]}, "lastStatus": {"$lt": 1000}}) in calls
    assert chat_store.participants.docs == []


def test_batch_delete_keeps_refreshed_participant(chat_store: MongoChatStore) -> None:
    chat_store.participants.docs.extend([{"name": "A", "lastStatus": 1}, {"name": "B", "lastStatus": 5000}])

    removed = asyncio.run(chat_store.delete_participants(["A", "B"], 1000))

    assert removed == ["A"]
    assert [d["name"] for d in chat_store.participants.docs] == ["B"]
    assert ("find", {"name": {"$in": ["A", "B"]}}) in chat_store.participants.calls


def test_insert_messages_skips_empty_batch(chat_store: MongoChatStore) -> None:
    asyncio.run(chat_store.insert_messages([]))

    assert chat_store.messages.calls == []


def test_serialize_stringifies_object_id() -> None:
    oid = ObjectId()
    doc = {"_id": oid, "name": "Alice"}

    assert serialize(doc) == {"_id": str(oid), "name": "Alice"}
    assert doc["_id"] is oid


def test_close_closes_client(chat_store: MongoChatStore, mongo: FakeMotorClient) -> None:
    asyncio.run(chat_store.close())

    assert mongo.closed
