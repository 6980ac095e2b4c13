"""
Base Database Service Module

Shared SQLite connection management and query helpers for the services
that persist highlight data.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

from learningly.config import Config

# Configure logger for this module
logger = logging.getLogger(__name__)


class BaseDatabaseService:
    """
    Base class providing SQLite connections and query helpers.

    Every write commits before returning, so a read issued afterwards in the
    same process always sees it.
    """

    def __init__(self, db_path: str | None = None):
        """
        Initialize the base database service.

        Args:
            db_path (str | None): Path to the SQLite database file. Defaults to
                                  Config.DATABASE_PATH. The directory is created if missing.
        """
        self.db_path = db_path or Config.DATABASE_PATH
        self._ensure_data_dir()

    def _ensure_data_dir(self):
        data_dir = os.path.dirname(self.db_path)
        if data_dir and not os.path.exists(data_dir):
            os.makedirs(data_dir)

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager yielding a connection with row access by column name"""
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
    ) -> Any:
        """
        Execute a read query.

        Args:
            query (str): SQL query to execute
            params (tuple): Query parameters
            fetch_one (bool): Return a single row instead of all rows

        Returns:
            Any: The row or list of rows, or None if an error occurred
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(query, params)
                if fetch_one:
                    return cursor.fetchone()
                return cursor.fetchall()
        except Exception as e:
            logger.error(f"Database query error: {e}")
            return None

    def execute_write(self, query: str, params: tuple) -> Optional[int]:
        """
        Execute an INSERT/UPDATE/DELETE and commit it.

        Returns:
            Optional[int]: Number of affected rows, or None if the write failed
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(query, params)
                conn.commit()
                return cursor.rowcount
        except Exception as e:
            logger.error(f"Database write error: {e}")
            return None

    def get_current_timestamp(self) -> str:
        """Current local time in SQLite timestamp format"""
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S")
