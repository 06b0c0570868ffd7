"""
Integration tests for MongoDBDAO against a real MongoDB.

Requires Docker; the tests are skipped when the container can't start.
"""

import pytest

from mdb_dao.core.pager import Pager
from mdb_dao.core.record import Record


@pytest.mark.integration
class TestCrud:
    """Test CRUD round trips through the server."""

    def test_create_read_update_delete(self, real_dao):
        note = Record(type="note", text="hello", meta={"tags": ["a"], "n": 1})

        note_id = real_dao.create(note, app_id="acme")
        stored = real_dao.read(note_id, app_id="acme")
        assert stored == note

        real_dao.update(Record(id=note_id, type="other", text="bye"), app_id="acme")
        stored = real_dao.read(note_id, app_id="acme")
        assert stored["text"] == "bye"
        assert stored.type == "note"
        assert stored.updated is not None

        real_dao.delete(stored, app_id="acme")
        assert real_dao.read(note_id, app_id="acme") is None

    def test_tenant_isolation(self, real_dao):
        real_dao.create(Record(id="x1", type="note"), app_id="acme")

        assert real_dao.read("x1", app_id="globex") is None
        assert real_dao.read("x1") is None
        assert real_dao.read("x1", app_id="acme") is not None

    def test_bulk_operations(self, real_dao):
        records = [Record(type="note", n=i) for i in range(5)]
        real_dao.create_all(records, app_id="acme")

        keys = [r.id for r in records]
        assert list(real_dao.read_all(keys + ["missing"], app_id="acme")) == keys

        real_dao.update_all([Record(id=key, done=True) for key in keys[:2]], app_id="acme")
        found = real_dao.read_all(keys, app_id="acme")
        assert found[keys[0]]["done"] is True
        assert "done" not in found[keys[4]]

        real_dao.delete_all(records[:3], app_id="acme")
        assert real_dao.namespaces.count("acme") == 2


@pytest.mark.integration
class TestPagination:
    """Test resumable scans through the server."""

    def test_walk_all_pages(self, real_dao):
        records = [Record(type="note", n=i) for i in range(23)]
        real_dao.create_all(records, app_id="acme")
        pager = Pager(limit=5)

        seen = []
        while page := real_dao.read_page(pager, app_id="acme"):
            seen.extend(r.id for r in page)

        assert seen == [r.id for r in records]
        assert pager.count == 23

    def test_pagination_index_exists(self, real_dao, real_client):
        assert real_dao.namespaces.create("acme")

        indexes = real_client.database["para-acme"].index_information()

        assert indexes["pagination_key_1"]["key"] == [("_ObjectId", 1)]


@pytest.mark.integration
class TestNamespaces:
    """Test the collection lifecycle on the server."""

    def test_root_namespace_bootstrapped(self, real_dao):
        assert real_dao.namespaces.exists("para")

    def test_create_drop(self, real_dao):
        assert real_dao.namespaces.create("globex") is True
        assert real_dao.namespaces.exists("globex")
        assert "para-globex" in real_dao.namespaces.list_all()
        assert real_dao.namespaces.count("globex") == 0

        assert real_dao.namespaces.drop("globex") is True
        assert not real_dao.namespaces.exists("globex")
        assert real_dao.namespaces.drop("globex") is False
