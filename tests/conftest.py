"""
Shared pytest fixtures: in-memory stand-ins for the MongoDB collection and
connection so the store, handler and routes run without a server.
"""

import asyncio
from types import SimpleNamespace

import pytest
from bson import ObjectId

from contractor_api.core.config import Settings
from contractor_api.db.mongo import ConnectionState
from contractor_api.services.contact_store import ContactStore


class FakeCursor:
    def __init__(self, collection, documents):
        self.collection = collection
        self.documents = documents

    def sort(self, key, direction):
        # missing keys sort as null, the way MongoDB orders them
        self.documents = sorted(self.documents, key=lambda d: (key in d, d.get(key)), reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        await self.collection._maybe_fail()
        return [dict(d) for d in self.documents]


class FakeCollection:
    def __init__(self, name="contacts"):
        self.name = name
        self.documents = []
        self.indexes = []
        self.fail_with = None
        self.delay = 0

    async def _maybe_fail(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    async def insert_one(self, document):
        await self._maybe_fail()
        document.setdefault("_id", ObjectId())
        self.documents.append(dict(document))
        return SimpleNamespace(inserted_id=document["_id"])

    def find(self, query=None):
        return FakeCursor(self, list(self.documents))

    async def find_one_and_update(self, query, update, return_document=None):
        await self._maybe_fail()
        for document in self.documents:
            if document["_id"] == query["_id"]:
                document.update(update["$set"])
                return dict(document)
        return None

    async def create_index(self, keys, **options):
        self.indexes.append((keys, options))
        return "_".join(f"{k}_{v}" for k, v in keys)

    async def count_documents(self, query):
        return len(self.documents)

    def list_indexes(self):
        names = [{"name": "_id_"}] + [{"name": "_".join(f"{k}_{v}" for k, v in keys)} for keys, _ in self.indexes]
        return SimpleNamespace(to_list=_async_return(names))


def _async_return(value):
    async def to_list(length=None):
        return value
    return to_list


class FakeDatabase:
    def __init__(self, name="paint-contractor"):
        self.name = name
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def list_collection_names(self):
        return list(self.collections)

    async def create_collection(self, name):
        return self[name]


class FakeConnection:
    def __init__(self, connected=True):
        self.db = FakeDatabase()
        self.state = ConnectionState.CONNECTED if connected else ConnectionState.DISCONNECTED

    @property
    def is_connected(self):
        return self.state == ConnectionState.CONNECTED

    @property
    def collection(self):
        return self.db["contacts"]

    def get_database(self):
        return self.db

    def get_collection(self, name="contacts"):
        return self.db[name]

    def close(self):
        self.state = ConnectionState.DISCONNECTED


@pytest.fixture
def settings():
    return Settings(mongodb_uri="mongodb://localhost:27017/test-contacts", _env_file=None)


@pytest.fixture
def connection():
    return FakeConnection(connected=True)


@pytest.fixture
def offline_connection():
    return FakeConnection(connected=False)


@pytest.fixture
def store(connection):
    return ContactStore(connection, operation_timeout=0.5)


@pytest.fixture
def offline_store(offline_connection):
    return ContactStore(offline_connection, operation_timeout=0.5)


@pytest.fixture
def valid_payload():
    return {
        "name": "Jo",
        "email": "jo@x.com",
        "service": "Civil Work",
        "message": "please call me back soon",
    }
