"""
MongoDB DAO

CRUD, bulk CRUD and paginated scans of records, one collection per
tenant. Every operation takes an ``app_id`` keyword naming the tenant;
leaving it out targets the root tenant.

Error policy: operations never raise. Misuse (None record, blank key,
blank tenant) is a silent no-op, and store faults are logged and turned
into an empty result. A caller can't tell "not found" from "store
unreachable" by the return value alone.

Usage:
    with MongoDBClient() as client:
        dao = MongoDBDAO(client)
        note_id = dao.create(Record(type="note", text="hi"), app_id="acme")
        note = dao.read(note_id, app_id="acme")

        pager = Pager(limit=50)
        while page := dao.read_page(pager, app_id="acme"):
            process(page)
"""

import logging
import time
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any

from pymongo import ASCENDING, UpdateOne
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from ..constants import ID_FIELD, LOCKED, PAGINATION_KEY_FIELD, PRIMARY_KEY_FIELD
from ..database.connection import MongoDBClient
from ..database.namespaces import NamespaceResolver
from ..exceptions import MongoDAOError
from ..observability import get_logger as get_contextual_logger
from ..observability import log_operation, tenant_context
from ..utils import generate_new_id, is_blank, timestamp
from .mapper import RecordMapper
from .pager import Pager
from .record import Record

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)

RecordLike = MutableMapping[str, Any]

# Faults raised by the driver, or by the client failing to connect
STORE_FAULTS = (PyMongoError, MongoDAOError)


def _elapsed_ms(start_time: float) -> float:
    return (time.time() - start_time) * 1000


class MongoDBDAO:
    """
    Record persistence on MongoDB with per-tenant collections.

    Thread-safe: no state is kept between calls apart from the shared
    client, so concurrent callers may use one instance.
    """

    def __init__(self, client: MongoDBClient, mapper: RecordMapper | None = None) -> None:
        """
        Args:
            client: Connection owner. The DAO never closes it.
            mapper: Record mapper (defaults to one using ``DEFAULT_SCHEMA``)
        """
        self._client = client
        self.namespaces = NamespaceResolver(client)
        self.mapper = mapper or RecordMapper()
        self._max_items_per_page = client.settings.max_items_per_page

    def _resolve_app_id(self, app_id: str | None) -> str:
        return self.namespaces.root_app_id if app_id is None else app_id

    def _table(self, app_id: str) -> Collection | None:
        return self.namespaces.get_collection(app_id)

    # ------------------------------------------------------------------
    # Core functions
    # ------------------------------------------------------------------

    def create(self, record: RecordLike | None, app_id: str | None = None) -> str | None:
        """
        Store a new record, replacing any record with the same id.

        Generates an id when the record has none, sets ``timestamp`` if
        missing and stamps ``appid``. The record is modified in place.

        Returns:
            The record's id, or None if ``record`` is None
        """
        if record is None:
            return None
        app_id = self._resolve_app_id(app_id)
        start_time = time.time()

        self._prepare_for_insert(record, app_id)
        document = self.mapper.to_document(record, assign_pagination_key=True)
        success = self._create_row(record[ID_FIELD], app_id, document)

        log_operation(
            contextual_logger,
            "dao.create",
            app_id=app_id,
            success=success,
            duration_ms=_elapsed_ms(start_time),
            key=record[ID_FIELD],
        )
        return record[ID_FIELD]

    def read(self, key: str | None, app_id: str | None = None) -> Record | None:
        """
        Fetch a record by id.

        Returns:
            The record, or None if ``key`` is blank, nothing matches or the
            read failed
        """
        if is_blank(key):
            return None
        app_id = self._resolve_app_id(app_id)
        record = self.mapper.from_document(self._read_row(key, app_id))
        logger.debug(f"DAO.read() {key} -> {None if record is None else record.type}")
        return record

    def update(self, record: RecordLike | None, app_id: str | None = None) -> None:
        """
        Merge a record's fields into the stored document.

        Only the fields present on ``record`` are written; locked fields
        (id, type, appid, timestamp, ...) are never overwritten. Sets
        ``updated`` on the record.
        """
        if record is None or is_blank(record.get(ID_FIELD)):
            return
        app_id = self._resolve_app_id(app_id)
        start_time = time.time()

        record["updated"] = timestamp()
        document = self.mapper.to_document(record, field_filter=LOCKED, include_null_fields=True)
        success = self._update_row(record[ID_FIELD], app_id, document)

        log_operation(
            contextual_logger,
            "dao.update",
            app_id=app_id,
            success=success,
            duration_ms=_elapsed_ms(start_time),
            key=record[ID_FIELD],
        )

    def delete(self, record: Mapping[str, Any] | None, app_id: str | None = None) -> None:
        """Delete a record by its id."""
        if record is None or is_blank(record.get(ID_FIELD)):
            return
        app_id = self._resolve_app_id(app_id)
        start_time = time.time()

        success = self._delete_row(record[ID_FIELD], app_id)

        log_operation(
            contextual_logger,
            "dao.delete",
            app_id=app_id,
            success=success,
            duration_ms=_elapsed_ms(start_time),
            key=record[ID_FIELD],
        )

    # ------------------------------------------------------------------
    # Row functions
    # ------------------------------------------------------------------

    def _create_row(self, key: Any, app_id: str, document: dict[str, Any]) -> bool:
        if is_blank(key) or is_blank(app_id) or not document:
            return False
        table = self._table(app_id)
        if table is None:
            return False
        with tenant_context(app_id, collection=table.name):
            try:
                # insert if no document has this id, replace it otherwise
                table.replace_one({PRIMARY_KEY_FIELD: str(key)}, document, upsert=True)
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to create row '{key}'")
                return False
        return True

    def _read_row(self, key: Any, app_id: str) -> dict[str, Any] | None:
        if is_blank(key) or is_blank(app_id):
            return None
        table = self._table(app_id)
        if table is None:
            return None
        with tenant_context(app_id, collection=table.name):
            try:
                row = table.find_one({PRIMARY_KEY_FIELD: str(key)})
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to read row '{key}'")
                return None
        logger.debug(f"id: {key} row null: {row is None}")
        return row or None

    def _update_row(self, key: Any, app_id: str, document: dict[str, Any]) -> bool:
        if is_blank(key) or is_blank(app_id) or not document:
            return False
        table = self._table(app_id)
        if table is None:
            return False
        with tenant_context(app_id, collection=table.name):
            try:
                result = table.update_one({PRIMARY_KEY_FIELD: str(key)}, {"$set": document})
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to update row '{key}'")
                return False
        logger.debug(f"key: {key} updated count: {result.modified_count}")
        return True

    def _delete_row(self, key: Any, app_id: str) -> bool:
        if is_blank(key) or is_blank(app_id):
            return False
        table = self._table(app_id)
        if table is None:
            return False
        with tenant_context(app_id, collection=table.name):
            try:
                result = table.delete_one({PRIMARY_KEY_FIELD: str(key)})
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to delete row '{key}'")
                return False
        logger.debug(f"key: {key} deleted count: {result.deleted_count}")
        return True

    def _prepare_for_insert(self, record: RecordLike, app_id: str) -> None:
        if is_blank(record.get(ID_FIELD)):
            record[ID_FIELD] = generate_new_id()
            logger.debug(f"Generated id: {record[ID_FIELD]}")
        if record.get("timestamp") is None:
            record["timestamp"] = timestamp()
        record["appid"] = app_id

    # ------------------------------------------------------------------
    # Bulk functions
    # ------------------------------------------------------------------

    def create_all(
        self, records: Iterable[RecordLike | None] | None, app_id: str | None = None
    ) -> None:
        """
        Store many new records in one unordered bulk insert.

        None entries are skipped. Each record gets the same defaults as in
        ``create``. If the insert fails the whole batch is logged as failed;
        no per-record outcome is reported.
        """
        app_id = self._resolve_app_id(app_id)
        if not records or is_blank(app_id):
            return
        start_time = time.time()

        documents = []
        for record in records:
            if record is not None:
                self._prepare_for_insert(record, app_id)
                documents.append(self.mapper.to_document(record, assign_pagination_key=True))
        documents = [document for document in documents if document]
        if not documents:
            return

        table = self._table(app_id)
        if table is None:
            return
        success = True
        with tenant_context(app_id, collection=table.name):
            try:
                table.insert_many(documents, ordered=False)
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to create {len(documents)} rows")
                success = False

        log_operation(
            contextual_logger,
            "dao.create_all",
            app_id=app_id,
            success=success,
            duration_ms=_elapsed_ms(start_time),
            count=len(documents),
        )

    def read_all(
        self,
        keys: Iterable[str] | None,
        app_id: str | None = None,
        get_all_columns: bool = True,
    ) -> dict[str, Record]:
        """
        Fetch many records by id with a single query.

        Args:
            keys: Record ids
            app_id: Tenant (defaults to the root tenant)
            get_all_columns: Accepted for interface compatibility; full
                records are always returned

        Returns:
            Mapping of id to record, ordered like ``keys``. Ids with no
            match are simply absent.
        """
        app_id = self._resolve_app_id(app_id)
        keys = [str(key) for key in keys or () if not is_blank(key)]
        if not keys or is_blank(app_id):
            return {}
        start_time = time.time()

        table = self._table(app_id)
        if table is None:
            return {}
        found: dict[str, Record] = {}
        with tenant_context(app_id, collection=table.name):
            try:
                for document in table.find({PRIMARY_KEY_FIELD: {"$in": keys}}):
                    record = self.mapper.from_document(document)
                    if record is not None:
                        found[document[PRIMARY_KEY_FIELD]] = record
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to read {len(keys)} rows")
                log_operation(contextual_logger, "dao.read_all", success=False)
                return {}

        results = {key: found[key] for key in keys if key in found}
        log_operation(
            contextual_logger,
            "dao.read_all",
            app_id=app_id,
            duration_ms=_elapsed_ms(start_time),
            count=len(results),
        )
        return results

    def read_page(self, pager: Pager | None = None, app_id: str | None = None) -> list[Record]:
        """
        Read the next page of records in insertion order.

        Scans records whose pagination key is greater than
        ``pager.last_key`` (from the start if it's None), up to
        ``pager.limit`` of them. On success ``pager.last_key`` moves to
        the last record returned and ``pager.count`` grows by the number of
        records returned. On failure the pager is left untouched.

        Records inserted while paging sort after the cursor and show up on
        later pages; records deleted while paging just disappear.

        Args:
            pager: Cursor state carried across calls (a fresh first-page
                pager is used when None)
            app_id: Tenant (defaults to the root tenant)

        Returns:
            The page of records, empty when the scan is exhausted or failed
        """
        results: list[Record] = []
        app_id = self._resolve_app_id(app_id)
        if is_blank(app_id):
            return results
        if pager is None:
            pager = Pager(limit=self._max_items_per_page)
        start_time = time.time()

        table = self._table(app_id)
        if table is None:
            return results
        limit = pager.limit if pager.limit > 0 else self._max_items_per_page
        query: dict[str, Any] = {}
        if pager.last_key is not None:
            query = {PAGINATION_KEY_FIELD: {"$gt": pager.last_key}}

        last_key = None
        with tenant_context(app_id, collection=table.name):
            try:
                cursor = (
                    table.find(query)
                    .sort(PAGINATION_KEY_FIELD, ASCENDING)
                    .batch_size(limit)
                    .limit(limit)
                )
                for document in cursor:
                    record = self.mapper.from_document(document)
                    if record is not None:
                        results.append(record)
                        last_key = self.mapper.pagination_key(document) or last_key
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to read page {pager.page}")
                log_operation(contextual_logger, "dao.read_page", success=False)
                return []

        if results:
            if last_key is not None:
                pager.last_key = last_key
            pager.count += len(results)
        log_operation(
            contextual_logger,
            "dao.read_page",
            app_id=app_id,
            duration_ms=_elapsed_ms(start_time),
            page=pager.page,
            count=len(results),
        )
        return results

    def update_all(
        self, records: Iterable[RecordLike | None] | None, app_id: str | None = None
    ) -> None:
        """
        Merge many records in one ordered bulk write.

        Each update behaves like ``update``. The writes run in order and stop
        at the first fatal error; updates applied before it are kept.
        """
        app_id = self._resolve_app_id(app_id)
        if not records or is_blank(app_id):
            return
        start_time = time.time()

        updates = []
        keys = []
        for record in records:
            if record is None or is_blank(record.get(ID_FIELD)):
                continue
            record["updated"] = timestamp()
            document = self.mapper.to_document(
                record, field_filter=LOCKED, include_null_fields=True
            )
            updates.append(
                UpdateOne({PRIMARY_KEY_FIELD: str(record[ID_FIELD])}, {"$set": document})
            )
            keys.append(record[ID_FIELD])
        if not updates:
            return

        table = self._table(app_id)
        if table is None:
            return
        success = True
        with tenant_context(app_id, collection=table.name):
            try:
                result = table.bulk_write(updates, ordered=True)
                logger.debug(f"Updated: {result.modified_count}, keys: {keys}")
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to update {len(updates)} rows")
                success = False

        log_operation(
            contextual_logger,
            "dao.update_all",
            app_id=app_id,
            success=success,
            duration_ms=_elapsed_ms(start_time),
            count=len(updates),
        )

    def delete_all(
        self, records: Iterable[Mapping[str, Any] | None] | None, app_id: str | None = None
    ) -> None:
        """Delete many records by id with a single ``delete_many``."""
        app_id = self._resolve_app_id(app_id)
        if not records or is_blank(app_id):
            return
        keys = [
            str(record[ID_FIELD])
            for record in records
            if record is not None and not is_blank(record.get(ID_FIELD))
        ]
        if not keys:
            return
        start_time = time.time()

        table = self._table(app_id)
        if table is None:
            return
        success = True
        with tenant_context(app_id, collection=table.name):
            try:
                result = table.delete_many({PRIMARY_KEY_FIELD: {"$in": keys}})
                logger.debug(f"Deleted: {result.deleted_count}, keys: {keys}")
            except STORE_FAULTS:
                contextual_logger.exception(f"Failed to delete {len(keys)} rows")
                success = False

        log_operation(
            contextual_logger,
            "dao.delete_all",
            app_id=app_id,
            success=success,
            duration_ms=_elapsed_ms(start_time),
            count=len(keys),
        )
