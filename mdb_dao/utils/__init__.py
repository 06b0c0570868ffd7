"""
Utility functions and helpers for MDB_DAO.
"""

from .mongo import (PaginationKeySequence, generate_new_id,
                    generate_pagination_key, is_blank, timestamp)

__all__ = [
    "PaginationKeySequence",
    "generate_new_id",
    "generate_pagination_key",
    "is_blank",
    "timestamp",
]
