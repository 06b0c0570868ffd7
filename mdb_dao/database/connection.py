"""
MongoDB Connection Management

Provides the client object that owns the MongoDB connection used by the
DAO. The connection is created lazily on first use, guarded by a
double-checked lock so concurrent first calls create exactly one
``MongoClient``, and released by ``close()``.

The root tenant's collection is created as part of connecting, so the
root namespace always exists once the client is usable.

Usage:
    from mdb_dao.database import MongoDBClient

    with MongoDBClient(MongoDBSettings(uri="mongodb://localhost:27017")) as client:
        dao = MongoDBDAO(client)
        dao.create(Record(type="note"))
"""

import logging
import re
import threading
import time
from typing import Any

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import (
    ConnectionFailure,
    InvalidOperation,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

from ..config import MongoDBSettings, get_settings
from ..constants import DEFAULT_MAX_IDLE_TIME_MS
from ..exceptions import InitializationError
from ..observability import get_logger as get_contextual_logger

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)

_URI_CREDENTIALS = re.compile(r"(mongodb(?:\+srv)?://)[^@/]*@")


def mask_uri(uri: str) -> str:
    """Hide the user:password part of a MongoDB URI for logging."""
    return _URI_CREDENTIALS.sub(r"\1<user:password>@", uri)


class MongoDBClient:
    """
    Owns the MongoDB connection for one DAO (or a group of DAOs).

    Thread-safe: the underlying ``MongoClient`` is created at most once,
    even when several threads hit ``database`` at the same time.
    """

    def __init__(
        self,
        settings: MongoDBSettings | None = None,
        mongo_client: MongoClient | None = None,
    ) -> None:
        """
        Initialize the client. No connection is opened here.

        Args:
            settings: Connection and tenancy settings (defaults to ``get_settings()``)
            mongo_client: Pre-built ``MongoClient`` to use instead of creating one.
                The client takes ownership and closes it in ``close()``.
        """
        self.settings = settings or get_settings()
        self._mongo_client: MongoClient | None = mongo_client
        self._mongo_db: Database | None = None
        self._closed = False
        self._init_lock = threading.Lock()

    def __enter__(self) -> "MongoDBClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def database(self) -> Database:
        """
        The tenant database, connecting on first access.

        Raises:
            InitializationError: If the client is closed or can't be created
        """
        # Fast path: already connected
        db = self._mongo_db
        if db is not None:
            return db

        with self._init_lock:
            # Double-check: another thread may have connected while we waited
            if self._mongo_db is not None:
                return self._mongo_db
            if self._closed:
                raise InitializationError(
                    "MongoDBClient is closed",
                    db_name=self.settings.database_name,
                )
            db = self._connect()
            # published only once the root namespace is in place
            self._bootstrap_root_namespace(db)
            self._mongo_db = db
        return db

    @property
    def initialized(self) -> bool:
        """Check if the connection has been opened."""
        return self._mongo_db is not None

    def _connect(self) -> Database:
        start_time = time.time()
        settings = self.settings
        target = mask_uri(settings.uri) if settings.uri else f"{settings.host}:{settings.port}"

        try:
            if self._mongo_client is None:
                self._mongo_client = self._create_mongo_client()
            db = self._mongo_client[settings.database_name]
        except (PyMongoConfigurationError, ConnectionFailure, TypeError, ValueError) as e:
            contextual_logger.critical(
                "MongoDB client creation failed",
                extra={"error_type": type(e).__name__, "error": str(e)},
                exc_info=True,
            )
            raise InitializationError(
                f"Failed to create MongoDB client: {e}",
                mongo_uri=target,
                db_name=settings.database_name,
                context={"error_type": type(e).__name__},
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        contextual_logger.info(
            f"MongoDB {'uri' if settings.uri else 'host'}: {target}, "
            f"database: {settings.database_name}",
            extra={
                "db_name": settings.database_name,
                "pool_size": f"{settings.min_pool_size}-{settings.max_pool_size}",
                "duration_ms": round(duration_ms, 2),
            },
        )
        return db

    def _create_mongo_client(self) -> MongoClient:
        settings = self.settings
        options: dict[str, Any] = {
            "serverSelectionTimeoutMS": settings.server_selection_timeout_ms,
            "appname": "MDB_DAO",
            "maxPoolSize": settings.max_pool_size,
            "minPoolSize": settings.min_pool_size,
            "maxIdleTimeMS": DEFAULT_MAX_IDLE_TIME_MS,
            "retryWrites": True,
            "retryReads": True,
        }
        if settings.ssl_enabled:
            options["tls"] = True
            options["tlsAllowInvalidHostnames"] = settings.ssl_allow_all

        if settings.uri:
            return MongoClient(settings.uri, **options)

        if settings.user and settings.password:
            options["username"] = settings.user
            options["password"] = settings.password
            options["authSource"] = settings.database_name
        return MongoClient(settings.host, settings.port, **options)

    def _bootstrap_root_namespace(self, db: Database) -> None:
        from .namespaces import collection_exists, create_collection

        root = self.settings.root_app_id
        try:
            if not collection_exists(db, root):
                create_collection(db, root)
                logger.info(f"Created MongoDB table '{root}'.")
        except PyMongoError:
            logger.exception(f"Failed to create root MongoDB table '{root}'")

    def ping(self) -> bool:
        """
        Verify that the server is reachable.

        Returns:
            True if the server answered the ping, False otherwise
        """
        try:
            self.database.client.admin.command("ping")
            logger.debug("MongoDB ping successful")
            return True
        except (
            ConnectionFailure,
            ServerSelectionTimeoutError,
            OperationFailure,
            InvalidOperation,
            InitializationError,
        ):
            logger.exception("MongoDB ping failed")
            return False

    def close(self) -> None:
        """
        Close the MongoDB connection and release resources.

        This method is idempotent - it's safe to call multiple times.
        """
        with self._init_lock:
            if self._closed:
                return
            self._closed = True
            client, self._mongo_client = self._mongo_client, None
            self._mongo_db = None

        if client is not None:
            try:
                client.close()
                logger.info("MongoDB client closed")
            except (InvalidOperation, AttributeError, RuntimeError) as e:
                logger.warning(f"Error closing MongoDB client: {e}")
