"""
Tenant Namespaces

Each tenant (app) stores its records in its own collection. This module
maps a tenant identifier to its collection name and manages the
collection lifecycle.

Naming rule: the root tenant and names already carrying the prefix are
used as-is; everything else becomes ``<prefix>-<app_id>``.

    resolver.resolve_name("para")       -> "para"
    resolver.resolve_name("myapp")      -> "para-myapp"
    resolver.resolve_name("para-myapp") -> "para-myapp"

Lifecycle operations never raise; faults are logged and reported through
the return value.
"""

import logging

from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ..constants import APP_ID_PREFIX, COUNT_FAILED, PAGINATION_INDEX_NAME, PAGINATION_KEY_FIELD
from ..exceptions import MongoDAOError
from ..utils import is_blank
from .connection import MongoDBClient

logger = logging.getLogger(__name__)


def collection_exists(db: Database, name: str) -> bool:
    """Case-insensitive check for a collection named ``name`` in ``db``."""
    return any(existing.lower() == name.lower() for existing in db.list_collection_names())


def create_collection(db: Database, name: str) -> Collection:
    """Create ``name`` in ``db`` with the ascending pagination key index."""
    collection = db.create_collection(name)
    collection.create_index([(PAGINATION_KEY_FIELD, ASCENDING)], name=PAGINATION_INDEX_NAME)
    return collection


class NamespaceResolver:
    """
    Resolves tenant identifiers to collections and manages their lifecycle.
    """

    def __init__(self, client: MongoDBClient) -> None:
        self._client = client
        self._root_app_id = client.settings.root_app_id
        self._prefix = client.settings.table_prefix

    @property
    def root_app_id(self) -> str:
        return self._root_app_id

    def is_root(self, app_id: str | None) -> bool:
        """Check whether ``app_id`` designates the root tenant."""
        if is_blank(app_id):
            return False
        return app_id in (self._root_app_id, APP_ID_PREFIX + self._root_app_id)

    def resolve_name(self, app_id: str | None) -> str | None:
        """
        Return the collection name for a tenant.

        Args:
            app_id: Tenant identifier

        Returns:
            Collection name, or None if ``app_id`` is blank
        """
        if is_blank(app_id):
            return None
        if self.is_root(app_id) or app_id.startswith(f"{self._prefix}-"):
            return app_id
        return f"{self._prefix}-{app_id}"

    def get_collection(self, app_id: str | None) -> Collection | None:
        """
        Get the collection holding a tenant's records.

        Returns:
            The collection, or None if ``app_id`` is blank or the client
            can't connect
        """
        name = self.resolve_name(app_id)
        if name is None:
            return None
        try:
            return self._client.database.get_collection(name)
        except (PyMongoError, MongoDAOError):
            logger.exception(f"Could not get collection '{name}'")
            return None

    def list_all(self) -> list[str]:
        """List every collection name visible to the connection."""
        try:
            return self._client.database.list_collection_names()
        except (PyMongoError, MongoDAOError):
            logger.exception("Could not list collections")
            return []

    def exists(self, app_id: str | None) -> bool:
        """
        Check if a tenant's collection exists (case-insensitive).

        Faults count as "doesn't exist".
        """
        name = self.resolve_name(app_id)
        if name is None:
            return False
        try:
            return collection_exists(self._client.database, name)
        except (PyMongoError, MongoDAOError) as e:
            logger.debug(f"Could not check whether '{name}' exists: {e}")
            return False

    def create(self, app_id: str | None) -> bool:
        """
        Create a tenant's collection along with the pagination key index.

        Returns:
            True if created; False if ``app_id`` is blank or contains
            whitespace, the collection exists, or creation failed
        """
        if is_blank(app_id) or any(ch.isspace() for ch in app_id) or self.exists(app_id):
            return False
        name = self.resolve_name(app_id)
        try:
            create_collection(self._client.database, name)
        except (PyMongoError, MongoDAOError):
            logger.exception(f"Failed to create MongoDB table '{name}'")
            return False
        logger.info(f"Created MongoDB table '{name}'.")
        return True

    def drop(self, app_id: str | None) -> bool:
        """
        Drop a tenant's collection.

        Returns:
            True once the drop was acknowledged; False if the collection
            doesn't exist or the drop failed
        """
        if not self.exists(app_id):
            return False
        name = self.resolve_name(app_id)
        try:
            self._client.database.drop_collection(name)
        except (PyMongoError, MongoDAOError):
            logger.exception(f"Failed to delete MongoDB table '{name}'")
            return False
        logger.info(f"Deleted MongoDB table '{name}'.")
        return True

    def count(self, app_id: str | None) -> int:
        """
        Count the documents in a tenant's collection.

        Returns:
            Document count, or -1 if ``app_id`` is blank or counting failed
        """
        collection = self.get_collection(app_id)
        if collection is None:
            return COUNT_FAILED
        try:
            return collection.count_documents({})
        except PyMongoError:
            logger.exception(f"Failed to count documents in '{collection.name}'")
            return COUNT_FAILED
