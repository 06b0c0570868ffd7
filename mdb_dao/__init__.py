"""
MDB_DAO - Multi-tenant MongoDB DAO

Stores generic records in MongoDB with one collection per tenant, and
provides CRUD, bulk CRUD and resumable paginated scans.
"""

from .config import MongoDBSettings, get_settings
from .core import (DEFAULT_SCHEMA, FieldSpec, MongoDBDAO, Pager, Record,
                   RecordMapper, RecordSchema)
from .database import MongoDBClient, NamespaceResolver
from .exceptions import ConfigurationError, InitializationError, MongoDAOError

__version__ = "0.1.0"

__all__ = [
    # DAO
    "MongoDBDAO",
    "Record",
    "Pager",
    # Mapping
    "RecordMapper",
    "RecordSchema",
    "FieldSpec",
    "DEFAULT_SCHEMA",
    # Database
    "MongoDBClient",
    "NamespaceResolver",
    # Config
    "MongoDBSettings",
    "get_settings",
    # Errors
    "MongoDAOError",
    "InitializationError",
    "ConfigurationError",
]
