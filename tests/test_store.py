"""
Document store behaviour shared by the JSON file and SQL backends.
"""

import pytest

from app.core.config import Settings
from app.core.errors import ValidationError
from app.db.store import JsonFileStore, SqlDocumentStore, create_store


@pytest.fixture(params=["file", "sql"])
def any_store(request, tmp_path):
    settings = Settings(
        storage_backend=request.param,
        data_dir=str(tmp_path / "data"),
        database_url=f"sqlite:///{tmp_path / 'store.db'}",
    )
    return create_store(settings)


class TestDocumentStore:
    """Key -> document operations."""

    def test_backend_selection(self, tmp_path):
        """The configured backend decides the store class."""
        assert isinstance(create_store(Settings(data_dir=str(tmp_path))), JsonFileStore)
        sql = create_store(Settings(storage_backend="sql", database_url="sqlite://"))
        assert isinstance(sql, SqlDocumentStore)

    def test_put_and_get(self, any_store):
        """A stored document reads back unchanged."""
        any_store.put("interviews/abc", {"id": "abc", "phase": "warm-up", "tags": ["x"]})
        assert any_store.get("interviews/abc") == {"id": "abc", "phase": "warm-up", "tags": ["x"]}

    def test_missing_key_is_none(self, any_store):
        """Unknown keys read as None."""
        assert any_store.get("interviews/missing") is None

    def test_overwrite_last_write_wins(self, any_store):
        """A second put replaces the first."""
        any_store.put("personas/p1", {"version": 1})
        any_store.put("personas/p1", {"version": 2})
        assert any_store.get("personas/p1") == {"version": 2}

    def test_list_ids_is_scoped_to_namespace(self, any_store):
        """Listing a namespace does not descend into nested ones."""
        any_store.put("snapshots/i1/a", {"n": 1})
        any_store.put("snapshots/i1/b", {"n": 2})
        any_store.put("snapshots/i2/c", {"n": 3})
        assert any_store.list_ids("snapshots/i1") == ["a", "b"]
        assert [doc["n"] for doc in any_store.list_documents("snapshots/i1")] == [1, 2]
        assert any_store.list_ids("snapshots/nothing") == []

    def test_delete(self, any_store):
        """Delete reports whether anything was removed."""
        any_store.put("topics/t1", {"name": "Payroll"})
        assert any_store.delete("topics/t1") is True
        assert any_store.delete("topics/t1") is False
        assert any_store.get("topics/t1") is None

    def test_delete_namespace(self, any_store):
        """Deleting a namespace removes every document under it."""
        any_store.put("knowledge-points/i1/a", {})
        any_store.put("knowledge-points/i1/b", {})
        any_store.put("knowledge-points/i2/a", {})
        assert any_store.delete_namespace("knowledge-points/i1") == 2
        assert any_store.list_ids("knowledge-points/i1") == []
        assert any_store.list_ids("knowledge-points/i2") == ["a"]

    @pytest.mark.parametrize("key", ["interviews", "interviews/../secrets", "interviews/a b", "/interviews/x"])
    def test_invalid_keys_are_rejected(self, any_store, key):
        """Keys must be at least two safe path segments."""
        with pytest.raises(ValidationError):
            any_store.get(key)
