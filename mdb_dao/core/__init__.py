"""
Core record persistence: the record model, its mapping to documents and
the DAO operations.
"""

from .dao import MongoDBDAO
from .mapper import RecordMapper
from .pager import Pager
from .record import Record
from .schema import DEFAULT_SCHEMA, FieldSpec, RecordSchema

__all__ = [
    "MongoDBDAO",
    "RecordMapper",
    "Pager",
    "Record",
    "RecordSchema",
    "FieldSpec",
    "DEFAULT_SCHEMA",
]
