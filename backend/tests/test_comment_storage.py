"""
Unit tests for SQLiteCommentStorage.

Tests cover:
- Table creation on init
- Save/load of the full blob across instances
- Absent and corrupt payloads
- Read and write failures surfacing as CommentPersistenceError
- Full store reload through SQLite
"""

import os
import sqlite3
import tempfile
from unittest.mock import patch

import pytest

from app.models.highlight_types import HighlightComment
from app.services.comment_storage import (
    CommentPersistenceError,
    SQLiteCommentStorage,
)
from app.services.comment_store import CommentStore


@pytest.fixture
def temp_db_path():
    """Create temporary database path"""
    with tempfile.TemporaryDirectory() as data_dir:
        yield os.path.join(data_dir, "nested", "comments.db")


@pytest.fixture
def storage(temp_db_path):
    return SQLiteCommentStorage(db_path=temp_db_path)


class TestSQLiteCommentStorage:
    """Test the single-row blob table"""

    def test_table_created_on_init(self, storage):
        conn = sqlite3.connect(storage.db_path)
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='comment_store'"
        )
        result = cursor.fetchone()
        conn.close()

        assert result is not None

    def test_load_without_data_returns_none(self, storage):
        assert storage.load() is None

    def test_save_then_load_in_new_instance(self, storage, temp_db_path):
        blob = {
            "comments": {"a.md": {"h1": {"id": "h1", "text": "ü ✓", "position": 3}}},
            "fileComments": {},
        }
        storage.save(blob)

        assert SQLiteCommentStorage(db_path=temp_db_path).load() == blob

    def test_save_overwrites_single_row(self, storage):
        storage.save({"comments": {}, "fileComments": {"a.md": []}})
        storage.save({"comments": {}, "fileComments": {}})

        conn = sqlite3.connect(storage.db_path)
        count = conn.execute("SELECT COUNT(*) FROM comment_store").fetchone()[0]
        conn.close()

        assert count == 1
        assert storage.load() == {"comments": {}, "fileComments": {}}

    def test_store_keys_are_independent(self, temp_db_path):
        first = SQLiteCommentStorage(temp_db_path, store_key="first")
        second = SQLiteCommentStorage(temp_db_path, store_key="second")

        first.save({"comments": {"a.md": {}}, "fileComments": {}})

        assert second.load() is None

    def test_corrupt_payload_raises(self, storage):
        conn = sqlite3.connect(storage.db_path)
        conn.execute(
            "INSERT INTO comment_store (store_key, payload, updated_at) VALUES (?, ?, ?)",
            (storage.store_key, "{not json", 0),
        )
        conn.commit()
        conn.close()

        with pytest.raises(CommentPersistenceError):
            storage.load()

    def test_read_failure_raises(self, storage):
        with patch.object(
            storage, "execute_query", side_effect=sqlite3.OperationalError("locked")
        ):
            with pytest.raises(CommentPersistenceError):
                storage.load()

    def test_write_failure_raises(self, storage):
        with patch.object(
            storage, "execute_write", side_effect=sqlite3.OperationalError("locked")
        ):
            with pytest.raises(CommentPersistenceError):
                storage.save({"comments": {}, "fileComments": {}})

    def test_unserialisable_blob_raises(self, storage):
        with pytest.raises(CommentPersistenceError):
            storage.save({"comments": {"a.md": object()}})

        assert storage.load() is None


class TestStoreOverSQLite:
    """Test a CommentStore persisted through SQLite"""

    def test_reload_restores_everything(self, temp_db_path):
        store = CommentStore(SQLiteCommentStorage(temp_db_path))
        store.load()
        store.add_highlight(
            "notes/a.md",
            HighlightComment(
                id="h1",
                text="world",
                position=6,
                paragraph_offset=6,
                background_color="#ff0000",
                paragraph_id="notes/a.md#^p1",
            ),
        )
        store.add_comment_to_highlight("notes/a.md", "h1", "why this matters")
        file_comment = store.add_file_comment("notes/a.md", "overall")

        reloaded = CommentStore(SQLiteCommentStorage(temp_db_path))
        reloaded.load()

        highlight = reloaded.get_highlight("notes/a.md", "h1")
        assert highlight.text == "world"
        assert highlight.background_color == "#ff0000"
        assert highlight.paragraph_id == "notes/a.md#^p1"
        assert [c.content for c in highlight.comments] == ["why this matters"]
        assert reloaded.get_file_comments("notes/a.md")[0].id == file_comment.id

    def test_blob_uses_camel_case_keys(self, temp_db_path):
        storage = SQLiteCommentStorage(temp_db_path)
        store = CommentStore(storage)
        store.load()
        store.add_highlight(
            "a.md", HighlightComment(id="h1", text="x", is_virtual=True)
        )

        record = storage.load()["comments"]["a.md"]["h1"]

        assert record["isVirtual"] is True
        assert "createdAt" in record
        assert "is_virtual" not in record

    def test_corrupt_row_is_not_overwritten(self, temp_db_path):
        storage = SQLiteCommentStorage(temp_db_path)
        conn = sqlite3.connect(temp_db_path)
        conn.execute(
            "INSERT INTO comment_store (store_key, payload, updated_at) VALUES (?, ?, ?)",
            (storage.store_key, "{not json", 0),
        )
        conn.commit()
        conn.close()

        store = CommentStore(storage)
        store.load()
        with pytest.raises(CommentPersistenceError):
            store.add_file_comment("a.md", "x")

        conn = sqlite3.connect(temp_db_path)
        payload = conn.execute("SELECT payload FROM comment_store").fetchone()[0]
        conn.close()
        assert payload == "{not json"
