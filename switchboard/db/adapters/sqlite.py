"""
SQLite Database Adapter

Implementation of the DatabaseAdapter interface for SQLite.
Used for local development and tests (":memory:" is supported).
"""

import json
import sqlite3
import threading
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from switchboard.core.config import settings
from switchboard.core.exceptions import DuplicateRecordError
from switchboard.core.logging import get_logger
from switchboard.db.base import DatabaseAdapter
from switchboard.db.models import SQLITE_SCHEMA

logger = get_logger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Holds a single connection in autocommit mode so every statement is
    atomic on its own; a lock serializes access across threads.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize SQLite adapter.

        Args:
            db_path: Path to the database file (defaults to settings.sqlite_path)
        """
        self.db_path = db_path or settings.sqlite_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    async def connect(self) -> bool:
        """Open the SQLite connection."""
        try:
            self._conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            logger.info(f"Connected to SQLite database: {self.db_path}")
            return True
        except sqlite3.Error as e:
            logger.error(f"Failed to connect to SQLite: {e}")
            self._conn = None
            return False

    async def disconnect(self) -> None:
        """Close the SQLite connection."""
        if self._conn:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.warning(f"Error closing SQLite connection: {e}")
            finally:
                self._conn = None
                logger.info("Disconnected from SQLite database")

    async def initialize_schema(self) -> bool:
        """Create necessary tables if they don't exist."""
        if not self._conn:
            logger.error("Cannot initialize schema: Not connected")
            return False

        try:
            with self._lock:
                self._conn.executescript(SQLITE_SCHEMA)
            logger.info("SQLite schema initialized successfully")
            return True
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize SQLite schema: {e}")
            return False

    async def execute(self, query: str, params: tuple = ()) -> int:
        """Execute a write query and return the affected row count."""
        conn = self._require_connection()
        try:
            with self._lock:
                cursor = conn.execute(query, self._adapt_params(params))
                return cursor.rowcount
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e).upper():
                raise DuplicateRecordError(str(e)) from e
            logger.error(f"Query execution failed: {e}\nQuery: {query}")
            raise
        except sqlite3.Error as e:
            logger.error(f"Query execution failed: {e}\nQuery: {query}")
            raise

    async def fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Execute query and return single row as dict."""
        conn = self._require_connection()
        try:
            with self._lock:
                row = conn.execute(query, self._adapt_params(params)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as e:
            logger.error(f"Query execution failed: {e}\nQuery: {query}")
            raise

    async def fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Execute query and return all rows as list of dicts."""
        conn = self._require_connection()
        try:
            with self._lock:
                rows = conn.execute(query, self._adapt_params(params)).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Query execution failed: {e}\nQuery: {query}")
            raise

    def is_connected(self) -> bool:
        """Check if database connection is active."""
        return self._conn is not None

    def _require_connection(self) -> sqlite3.Connection:
        if not self._conn:
            raise ConnectionError("Not connected to database")
        return self._conn

    @staticmethod
    def _adapt_params(params: tuple) -> tuple:
        """Convert enums, datetimes, booleans and JSON values to SQLite types."""
        adapted = []
        for value in params:
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, bool):
                value = int(value)
            elif isinstance(value, (dict, list)):
                value = json.dumps(value, default=str)
            adapted.append(value)
        return tuple(adapted)
