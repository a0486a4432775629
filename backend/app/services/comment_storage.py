"""
Comment Storage Module

Durable storage for the highlight comment blob. The whole blob
({"comments": ..., "fileComments": ...}) is written as one JSON document in
a single transaction, so a reader sees either the previous or the new state.
"""

import copy
import json
import logging
import sqlite3
from typing import Any, Protocol

from .base_database_service import BaseDatabaseService

# Configure logger for this module
logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "default"


class CommentPersistenceError(Exception):
    """Raised when the comment blob could not be read or written"""


class CommentStorage(Protocol):
    def load(self) -> dict[str, Any] | None:
        """Return the stored blob, or None when nothing is stored yet"""
        ...

    def save(self, data: dict[str, Any]) -> None:
        """Persist the blob; raise CommentPersistenceError on failure"""
        ...


class SQLiteCommentStorage(BaseDatabaseService):
    """
    Store the comment blob in a single-row SQLite table.
    """

    def __init__(
        self,
        db_path: str = "data/highlight_comments.db",
        store_key: str = DEFAULT_STORE_KEY,
    ):
        """
        Initialize the storage.

        Args:
            db_path (str): Path to the SQLite database file
            store_key (str): Row key, lets several stores share one database
        """
        super().__init__(db_path)
        self.store_key = store_key
        self._init_table()

    def _init_table(self):
        """
        Initialize the comment_store table.
        """
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS comment_store (
                    store_key TEXT PRIMARY KEY,   -- Which store this blob belongs to
                    payload TEXT NOT NULL,        -- JSON: {"comments": ..., "fileComments": ...}
                    updated_at INTEGER NOT NULL   -- Last write, ms since epoch
                )
            """)
            conn.commit()

    def load(self) -> dict[str, Any] | None:
        """
        Read the stored blob.

        Returns:
            dict | None: The blob, or None when no row exists yet

        Raises:
            CommentPersistenceError: If the row could not be read or decoded
        """
        try:
            row = self.execute_query(
                "SELECT payload FROM comment_store WHERE store_key = ?",
                (self.store_key,),
                fetch_one=True,
            )
        except sqlite3.Error as e:
            raise CommentPersistenceError(f"Failed to load comments: {e}") from e
        if row is None:
            return None

        try:
            data = json.loads(row["payload"])
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Invalid comment payload for store '{self.store_key}'")
            raise CommentPersistenceError(
                f"Stored comments are not valid JSON: {e}"
            ) from e

        if not isinstance(data, dict):
            raise CommentPersistenceError(
                f"Unexpected comment payload type: {type(data).__name__}"
            )
        return data

    def save(self, data: dict[str, Any]) -> None:
        try:
            payload = json.dumps(data, ensure_ascii=False)
            self.execute_write(
                """
                INSERT INTO comment_store (store_key, payload, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(store_key) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (self.store_key, payload, self.get_current_timestamp()),
            )
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error(f"Error saving comments: {e}")
            raise CommentPersistenceError(f"Failed to save comments: {e}") from e

        logger.debug(f"Saved comment store '{self.store_key}' ({len(payload)} bytes)")


class InMemoryCommentStorage:
    """
    Keeps the blob in memory only. Used by hosts without persistence.
    """

    def __init__(self, data: dict[str, Any] | None = None):
        self._data = copy.deepcopy(data) if data is not None else None
        self.save_count = 0

    def load(self) -> dict[str, Any] | None:
        return copy.deepcopy(self._data)

    def save(self, data: dict[str, Any]) -> None:
        self._data = copy.deepcopy(data)
        self.save_count += 1
