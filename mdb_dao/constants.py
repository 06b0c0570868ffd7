"""
Constants for MDB_DAO.

This module contains all shared constants used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# DOCUMENT FIELD CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "id"
"""Business identifier field on a record."""

PRIMARY_KEY_FIELD: Final[str] = "_id"
"""MongoDB primary key field. A record's ``id`` is stored here."""

PAGINATION_KEY_FIELD: Final[str] = "_ObjectId"
"""Internal ordering key attached to every inserted document."""

PAGINATION_INDEX_NAME: Final[str] = "pagination_key_1"
"""Name of the ascending index on the pagination key."""

LOCKED: Final[str] = "locked"
"""Schema tag for fields that can't change after create."""

# ============================================================================
# TENANT CONSTANTS
# ============================================================================

DEFAULT_ROOT_APP_ID: Final[str] = "para"
"""Identifier of the root tenant."""

DEFAULT_TABLE_PREFIX: Final[str] = "para"
"""Prefix applied to tenant collection names (``<prefix>-<app_id>``)."""

APP_ID_PREFIX: Final[str] = "app:"
"""Optional prefix on fully-qualified app identifiers (``app:<id>``)."""

# ============================================================================
# DATABASE CONSTANTS
# ============================================================================

DEFAULT_HOST: Final[str] = "localhost"
"""Default MongoDB host when no URI is configured."""

DEFAULT_PORT: Final[int] = 27017
"""Default MongoDB port when no URI is configured."""

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 0
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

# ============================================================================
# PAGINATION CONSTANTS
# ============================================================================

MAX_ITEMS_PER_PAGE: Final[int] = 30
"""Default page size for paginated scans."""

COUNT_FAILED: Final[int] = -1
"""Returned by namespace count when the count can't be obtained."""
