"""Document store access.

``ChatStore`` is the interface the request handlers and the presence sweeper
depend on; ``MongoChatStore`` implements it over two Motor collections,
``participants`` and ``messages``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

import motor.motor_asyncio
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from .models import BROADCAST

logger = logging.getLogger(__name__)


class DuplicateParticipantError(Exception):
    """A participant with the same name already exists."""


def serialize(doc: Dict[str, Any]) -> Dict[str, Any]:
    # ObjectId is not JSON serializable
    if '_id' in doc:
        doc = dict(doc)
        doc['_id'] = str(doc['_id'])
    return doc


class ChatStore(Protocol):
    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def find_participant(self, name: str) -> Optional[Dict[str, Any]]: ...

    async def insert_participant(self, doc: Dict[str, Any]) -> None: ...

    async def list_participants(self) -> List[Dict[str, Any]]: ...

    async def touch_participant(self, name: str, last_status: int) -> int: ...

    async def insert_message(self, doc: Dict[str, Any]) -> None: ...

    async def insert_messages(self, docs: List[Dict[str, Any]]) -> None: ...

    async def list_messages(self, user: str, limit: Optional[int] = None) -> List[Dict[str, Any]]: ...

    async def find_stale_participants(self, cutoff_ms: int) -> List[Dict[str, Any]]: ...

    async def delete_participants(self, names: Iterable[str], cutoff_ms: int) -> List[str]: ...


class MongoChatStore:
    def __init__(self, url: str, database_name: str = 'chatroom', client: Optional[AsyncIOMotorClient] = None):
        self.client = client or motor.motor_asyncio.AsyncIOMotorClient(url)
        # a database named in the URL wins over database_name
        self.db = self.client.get_default_database(database_name)
        self.participants = self.db['participants']
        self.messages = self.db['messages']

    async def connect(self) -> None:
        await self.client.admin.command('ping')
        await self.participants.create_index([('name', ASCENDING)], unique=True)
        logger.info('connected to MongoDB database %s', self.db.name)

    async def close(self) -> None:
        self.client.close()

    async def find_participant(self, name):
        return await self.participants.find_one({'name': name})

    async def insert_participant(self, doc):
        try:
            await self.participants.insert_one(dict(doc))
        except DuplicateKeyError as e:
            raise DuplicateParticipantError(doc.get('name')) from e

    async def list_participants(self):
        return [serialize(d) async for d in self.participants.find({})]

    async def touch_participant(self, name, last_status):
        result = await self.participants.update_one({'name': name}, {'$set': {'lastStatus': last_status}})
        return result.matched_count

    async def insert_message(self, doc):
        await self.messages.insert_one(dict(doc))

    async def insert_messages(self, docs):
        if docs:
            await self.messages.insert_many([dict(d) for d in docs])

    async def list_messages(self, user, limit=None):
        query = {'$or': [{'from': user}, {'to': {'$in': [user, BROADCAST]}}]}
        # limit(0) means no limit for MongoDB cursors
        cursor = self.messages.find(query).sort('_id', DESCENDING).limit(limit or 0)
        return [serialize(d) async for d in cursor]

    async def find_stale_participants(self, cutoff_ms):
        return [serialize(d) async for d in self.participants.find({'lastStatus': {'$lt': cutoff_ms}})]

    async def delete_participants(self, names, cutoff_ms):
        names = list(names)
        # a heartbeat since the scan keeps the participant
        result = await self.participants.delete_many({'name': {'$in': names}, 'lastStatus': {'$lt': cutoff_ms}})
        if result.deleted_count == len(names):
            return names
        kept = {d['name'] async for d in self.participants.find({'name': {'$in': names}})}
        return [n for n in names if n not in kept]
