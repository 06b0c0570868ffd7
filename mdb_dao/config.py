"""
Configuration management for MDB_DAO.

Settings are read from ``MDB_DAO_*`` environment variables (or a ``.env``
file) using Pydantic Settings. Every setting has a default, so
``MongoDBSettings()`` works against a local MongoDB out of the box.

Example:
    # Using environment variables
    #   MDB_DAO_URI=mongodb://user:pass@db:27017
    #   MDB_DAO_ROOT_APP_ID=para
    settings = get_settings()

    # Or using direct parameters
    settings = MongoDBSettings(host="db", port=27018, table_prefix="acme")
"""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_HOST,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_PORT,
    DEFAULT_ROOT_APP_ID,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    DEFAULT_TABLE_PREFIX,
    MAX_ITEMS_PER_PAGE,
)
from .exceptions import ConfigurationError


class MongoDBSettings(BaseSettings):
    """
    MongoDB DAO configuration.

    ``uri`` takes precedence over ``host``/``port``/``user``/``password``.
    ``database`` falls back to the root app id when left empty.
    """

    # Connection
    uri: str = Field("", description="MongoDB connection URI")
    host: str = Field(DEFAULT_HOST, description="MongoDB host (ignored when uri is set)")
    port: int = Field(DEFAULT_PORT, ge=1, le=65535, description="MongoDB port")
    user: str = Field("", description="Username for SCRAM authentication")
    password: str = Field("", description="Password for SCRAM authentication")
    ssl_enabled: bool = Field(False, description="Connect over TLS")
    ssl_allow_all: bool = Field(False, description="Allow invalid TLS hostnames")
    database: str = Field("", description="Database name (defaults to root_app_id)")

    # Pool
    max_pool_size: int = Field(DEFAULT_MAX_POOL_SIZE, ge=1)
    min_pool_size: int = Field(DEFAULT_MIN_POOL_SIZE, ge=0)
    server_selection_timeout_ms: int = Field(DEFAULT_SERVER_SELECTION_TIMEOUT_MS, ge=1)

    # Tenancy
    root_app_id: str = Field(DEFAULT_ROOT_APP_ID, min_length=1)
    table_prefix: str = Field(DEFAULT_TABLE_PREFIX, min_length=1)

    # Pagination
    max_items_per_page: int = Field(MAX_ITEMS_PER_PAGE, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="MDB_DAO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> "MongoDBSettings":
        if self.min_pool_size > self.max_pool_size:
            raise ConfigurationError(
                f"min_pool_size ({self.min_pool_size}) cannot be greater than "
                f"max_pool_size ({self.max_pool_size})",
                config_key="min_pool_size",
                config_value=self.min_pool_size,
            )
        return self

    @property
    def database_name(self) -> str:
        """Database holding every tenant collection."""
        return self.database or self.root_app_id


@lru_cache(maxsize=1)
def get_settings() -> MongoDBSettings:
    """
    Retrieve a cached instance of MongoDBSettings to avoid repeated env parsing.
    """
    return MongoDBSettings()


__all__ = ["MongoDBSettings", "get_settings"]
