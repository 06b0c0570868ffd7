"""
Record <-> Document Mapping

Converts records to MongoDB documents and back. Two translations happen
on the way through:

- the record's ``id`` is stored as the document's ``_id`` (and back)
- newly inserted documents get an ``_ObjectId`` pagination key, a
  strictly increasing value used to resume scans. It never shows up
  on a record.

Field values are stored as they are; nested structures and types are
preserved in both directions.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..constants import ID_FIELD, PAGINATION_KEY_FIELD, PRIMARY_KEY_FIELD
from ..utils import generate_pagination_key, is_blank
from .record import Record
from .schema import DEFAULT_SCHEMA, RecordSchema

logger = logging.getLogger(__name__)

_INTERNAL_FIELDS = frozenset({PRIMARY_KEY_FIELD, PAGINATION_KEY_FIELD})


class RecordMapper:
    """
    Maps records to stored documents using a ``RecordSchema``.

    Example:
        mapper = RecordMapper()
        doc = mapper.to_document(Record(id="n1", type="note"), assign_pagination_key=True)
        # {"_id": "n1", "type": "note", "_ObjectId": "1843c0e2f7a91b20a3f9d2"}
        mapper.from_document(doc)
        # Record({"id": "n1", "type": "note"})
    """

    def __init__(self, schema: RecordSchema | None = None) -> None:
        self.schema = schema or DEFAULT_SCHEMA

    def to_document(
        self,
        record: Mapping[str, Any] | None,
        field_filter: str | None = None,
        include_null_fields: bool = False,
        assign_pagination_key: bool = False,
    ) -> dict[str, Any]:
        """
        Convert a record to a document.

        Args:
            record: Record to convert
            field_filter: Schema tag; fields carrying it are left out
            include_null_fields: Keep blank (None/empty) values instead of dropping them
            assign_pagination_key: Attach a fresh pagination key (inserts only)

        Returns:
            The document, empty if ``record`` is None (nothing to write)
        """
        document: dict[str, Any] = {}
        if record is None:
            return document

        for name, value in record.items():
            if name in _INTERNAL_FIELDS or self.schema.is_tagged(name, field_filter):
                continue
            if is_blank(value) and not include_null_fields:
                continue
            if name == ID_FIELD:
                if value is not None:
                    document[PRIMARY_KEY_FIELD] = str(value)
            else:
                document[name] = value

        if assign_pagination_key and document:
            document[PAGINATION_KEY_FIELD] = generate_pagination_key()
        return document

    def from_document(self, document: Mapping[str, Any] | None) -> Record | None:
        """
        Convert a stored document back to a record.

        Returns:
            The record, or None if ``document`` is None or empty
        """
        if not document:
            logger.debug("row is null or empty")
            return None

        record = Record()
        for name, value in document.items():
            if name == PRIMARY_KEY_FIELD:
                record[ID_FIELD] = value
            elif name != PAGINATION_KEY_FIELD:
                record[name] = value
        return record

    @staticmethod
    def pagination_key(document: Mapping[str, Any] | None) -> str | None:
        """Read the pagination key from a raw document."""
        if not document:
            return None
        return document.get(PAGINATION_KEY_FIELD)
