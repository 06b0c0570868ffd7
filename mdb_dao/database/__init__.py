"""
Database layer.

Connection ownership and per-tenant collection management.
"""

from .connection import MongoDBClient, mask_uri
from .namespaces import NamespaceResolver

__all__ = [
    "MongoDBClient",
    "NamespaceResolver",
    "mask_uri",
]
