"""
Pytest configuration and shared fixtures for MDB_DAO tests.

This module provides:
- Settings fixtures
- An in-memory stand-in for the pymongo client/database/collection subset
  used by the DAO, so behavior can be tested without a server
- Mock MongoDB fixtures for fault injection
- Testcontainers fixtures for integration tests
"""

import copy
import os
from types import SimpleNamespace
from typing import Any, Dict, Iterator, List, Optional
from unittest.mock import MagicMock

import pytest
from pymongo.collection import Collection
from pymongo.errors import BulkWriteError, CollectionInvalid

from mdb_dao.config import MongoDBSettings
from mdb_dao.core.dao import MongoDBDAO
from mdb_dao.database.connection import MongoDBClient


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without a MongoDB server")
    config.addinivalue_line("markers", "integration: tests against a real MongoDB container")


# ============================================================================
# IN-MEMORY MONGODB
# ============================================================================


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    """Evaluate the filter shapes the DAO issues: equality, $in and $gt."""
    for field, condition in query.items():
        value = document.get(field)
        if isinstance(condition, dict):
            for operator, operand in condition.items():
                if operator == "$in":
                    if value not in operand:
                        return False
                elif operator == "$gt":
                    if field not in document or not value > operand:
                        return False
                else:
                    raise NotImplementedError(operator)
        elif field not in document or value != condition:
            return False
    return True


class InMemoryCursor:
    """Cursor supporting sort/batch_size/limit chaining and iteration."""

    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents
        self._limit = 0
        self.batch_size_value: Optional[int] = None

    def sort(self, key: str, direction: int = 1) -> "InMemoryCursor":
        self._documents.sort(
            key=lambda d: (key in d, d.get(key) if key in d else ""),
            reverse=direction < 0,
        )
        return self

    def batch_size(self, size: int) -> "InMemoryCursor":
        self.batch_size_value = size
        return self

    def limit(self, limit: int) -> "InMemoryCursor":
        self._limit = limit
        return self

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        documents = self._documents[: self._limit] if self._limit else self._documents
        return iter([copy.deepcopy(d) for d in documents])


class InMemoryCollection:
    """The subset of ``pymongo.collection.Collection`` used by the DAO."""

    def __init__(self, database: "InMemoryDatabase", name: str):
        self.database = database
        self.name = name
        self.documents: Dict[Any, Dict[str, Any]] = {}
        self.indexes: List[Any] = []

    def _touch(self) -> None:
        self.database.created.add(self.name)

    def create_index(self, keys, name=None, **kwargs):
        self._touch()
        self.indexes.append((keys, name))
        return name

    def count_documents(self, query):
        return sum(1 for d in self.documents.values() if _matches(d, query))

    def find_one(self, query):
        for document in self.documents.values():
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query=None):
        query = query or {}
        return InMemoryCursor([d for d in self.documents.values() if _matches(d, query)])

    def replace_one(self, query, replacement, upsert=False):
        self._touch()
        for key, document in self.documents.items():
            if _matches(document, query):
                self.documents[key] = copy.deepcopy(replacement)
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            document = copy.deepcopy(replacement)
            self.documents[document["_id"]] = document
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=document["_id"])
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    def insert_many(self, documents, ordered=True):
        self._touch()
        errors = []
        inserted = []
        for index, document in enumerate(documents):
            if document["_id"] in self.documents:
                errors.append({"index": index, "code": 11000, "errmsg": "duplicate key"})
                if ordered:
                    break
                continue
            self.documents[document["_id"]] = copy.deepcopy(document)
            inserted.append(document["_id"])
        if errors:
            raise BulkWriteError({"writeErrors": errors, "nInserted": len(inserted)})
        return SimpleNamespace(inserted_ids=inserted)

    def update_one(self, query, update):
        self._touch()
        for document in self.documents.values():
            if _matches(document, query):
                document.update(copy.deepcopy(update["$set"]))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def bulk_write(self, requests, ordered=True):
        modified = 0
        for request in requests:
            modified += self.update_one(request._filter, request._doc).modified_count
        return SimpleNamespace(modified_count=modified)

    def delete_one(self, query):
        for key, document in list(self.documents.items()):
            if _matches(document, query):
                del self.documents[key]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def delete_many(self, query):
        doomed = [k for k, d in self.documents.items() if _matches(d, query)]
        for key in doomed:
            del self.documents[key]
        return SimpleNamespace(deleted_count=len(doomed))


class InMemoryDatabase:
    """The subset of ``pymongo.database.Database`` used by the DAO."""

    def __init__(self, client: "InMemoryMongoClient", name: str):
        self.client = client
        self.name = name
        self.collections: Dict[str, InMemoryCollection] = {}
        self.created: set = set()

    def get_collection(self, name: str) -> InMemoryCollection:
        if name not in self.collections:
            self.collections[name] = InMemoryCollection(self, name)
        return self.collections[name]

    __getitem__ = get_collection

    def list_collection_names(self) -> List[str]:
        return sorted(self.created)

    def create_collection(self, name: str) -> InMemoryCollection:
        if name in self.created:
            raise CollectionInvalid(f"collection {name} already exists")
        self.created.add(name)
        return self.get_collection(name)

    def drop_collection(self, name: str) -> None:
        self.created.discard(name)
        self.collections.pop(name, None)


class InMemoryMongoClient:
    """Stands in for ``pymongo.MongoClient``."""

    def __init__(self):
        self.databases: Dict[str, InMemoryDatabase] = {}
        self.admin = MagicMock()
        self.admin.command.return_value = {"ok": 1}
        self.close_calls = 0

    def __getitem__(self, name: str) -> InMemoryDatabase:
        if name not in self.databases:
            self.databases[name] = InMemoryDatabase(self, name)
        return self.databases[name]

    def close(self) -> None:
        self.close_calls += 1


# ============================================================================
# SETTINGS & CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def settings() -> MongoDBSettings:
    """Settings with the default root tenant and prefix, ignoring any .env file."""
    return MongoDBSettings(
        _env_file=None,
        uri="mongodb://localhost:27017",
        database="test_db",
        root_app_id="para",
        table_prefix="para",
    )


@pytest.fixture
def memory_mongo_client() -> InMemoryMongoClient:
    return InMemoryMongoClient()


@pytest.fixture
def client(settings, memory_mongo_client) -> Iterator[MongoDBClient]:
    """MongoDBClient backed by the in-memory store."""
    mongo_client = MongoDBClient(settings, mongo_client=memory_mongo_client)
    yield mongo_client
    mongo_client.close()


@pytest.fixture
def memory_db(client, memory_mongo_client) -> InMemoryDatabase:
    """The in-memory database behind ``client`` (connected)."""
    client.database
    return memory_mongo_client["test_db"]


@pytest.fixture
def dao(client) -> MongoDBDAO:
    return MongoDBDAO(client)


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


@pytest.fixture
def mock_mongo_collection() -> MagicMock:
    """Create a mock MongoDB collection."""
    collection = MagicMock(spec=Collection)
    collection.name = "para-t1"
    collection.replace_one.return_value = MagicMock(matched_count=0, upserted_id="x1")
    collection.find_one.return_value = None
    collection.find.return_value = MagicMock()
    collection.insert_many.return_value = MagicMock(inserted_ids=["id1", "id2"])
    collection.update_one.return_value = MagicMock(modified_count=1)
    collection.bulk_write.return_value = MagicMock(modified_count=2)
    collection.delete_one.return_value = MagicMock(deleted_count=1)
    collection.delete_many.return_value = MagicMock(deleted_count=2)
    collection.count_documents.return_value = 0
    return collection


@pytest.fixture
def mock_mongo_db(mock_mongo_collection) -> MagicMock:
    """Create a mock MongoDB database returning ``mock_mongo_collection``."""
    db = MagicMock()
    db.name = "test_db"
    db.get_collection.return_value = mock_mongo_collection
    db.create_collection.return_value = mock_mongo_collection
    db.list_collection_names.return_value = ["para"]
    return db


@pytest.fixture
def mock_client(settings, mock_mongo_db) -> MagicMock:
    """A MongoDBClient stand-in whose database is ``mock_mongo_db``."""
    mongo_client = MagicMock(spec=MongoDBClient)
    mongo_client.settings = settings
    mongo_client.database = mock_mongo_db
    return mongo_client


@pytest.fixture
def mock_dao(mock_client) -> MongoDBDAO:
    return MongoDBDAO(mock_client)


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB container for integration tests.

    Session-scoped: container starts once and is reused for all integration tests.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    container = MongoDbContainer(image=os.getenv("MDB_DAO_TEST_IMAGE", "mongo:7"))
    try:
        container.start()
    except Exception as e:  # noqa: BLE001
        pytest.skip(f"Could not start MongoDB container: {e}")
    yield container
    container.stop()


@pytest.fixture
def real_client(mongodb_container) -> Iterator[MongoDBClient]:
    """
    MongoDBClient connected to the container, on a database unique to the test.

    Drops the database after the test.
    """
    exposed_port = mongodb_container.get_exposed_port(27017)
    host = mongodb_container.get_container_host_ip()
    db_name = f"test_db_{os.getpid()}_{id(mongodb_container)}"

    settings = MongoDBSettings(
        _env_file=None,
        uri=mongodb_container.get_connection_url(),
        database=db_name,
    )
    mongo_client = MongoDBClient(settings)
    assert mongo_client.ping(), f"MongoDB container at {host}:{exposed_port} not reachable"

    yield mongo_client

    mongo_client.database.client.drop_database(db_name)
    mongo_client.close()


@pytest.fixture
def real_dao(real_client) -> MongoDBDAO:
    return MongoDBDAO(real_client)
