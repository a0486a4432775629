"""
Base Database Service Module

This module provides shared SQLite connection management and query helpers
for the services that persist highlight comments.
"""

import logging
import os
import sqlite3
import time
from contextlib import contextmanager
from typing import Any, Iterator

# Configure logger for this module
logger = logging.getLogger(__name__)


class BaseDatabaseService:
    """
    Base class providing shared database utilities and connection management.

    Errors are logged and re-raised so that callers can tell a failed read
    from an empty one and never lose a write silently.
    """

    def __init__(self, db_path: str = "data/highlight_comments.db"):
        """
        Initialize the base database service.

        Args:
            db_path (str): Path to the SQLite database file. The directory will
                          be created if it doesn't exist.
        """
        self.db_path = db_path
        self._ensure_data_dir()

    def _ensure_data_dir(self):
        """
        Ensure the data directory exists for the database file.
        """
        data_dir = os.path.dirname(self.db_path)
        if data_dir and not os.path.exists(data_dir):
            os.makedirs(data_dir)

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """
        Context manager for database connections.
        Ensures the connection is closed after use.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def execute_query(
        self,
        query: str,
        params: tuple = (),
        fetch_one: bool = False,
        fetch_all: bool = False,
    ) -> Any:
        """
        Execute a read query, logging errors before re-raising them.

        Args:
            query (str): SQL query to execute
            params (tuple): Query parameters
            fetch_one (bool): Whether to fetch one result
            fetch_all (bool): Whether to fetch all results

        Returns:
            Any: Query result, None when nothing was fetched

        Raises:
            sqlite3.Error: If the query fails
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(query, params)
                if fetch_one:
                    return cursor.fetchone()
                if fetch_all:
                    return cursor.fetchall()
                return None
        except sqlite3.Error as e:
            logger.error(f"Database query error: {e}")
            raise

    def execute_write(self, query: str, params: tuple = ()) -> int:
        """
        Execute an INSERT/UPDATE/DELETE in its own transaction.

        Args:
            query (str): SQL statement
            params (tuple): Statement parameters

        Returns:
            int: Number of affected rows

        Raises:
            sqlite3.Error: If the statement or commit fails (rolled back)
        """
        with self.get_connection() as conn:
            try:
                cursor = conn.execute(query, params)
                conn.commit()
                return cursor.rowcount
            except sqlite3.Error:
                conn.rollback()
                raise

    @staticmethod
    def get_current_timestamp() -> int:
        """
        Current time in milliseconds since the epoch.
        """
        return int(time.time() * 1000)
