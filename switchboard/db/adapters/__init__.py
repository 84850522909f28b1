"""
Database Adapters

This module contains concrete implementations of the DatabaseAdapter
interface for different database backends.
"""

from switchboard.db.adapters.sqlite import SQLiteAdapter
from switchboard.db.adapters.postgres import PostgresAdapter

__all__ = ["SQLiteAdapter", "PostgresAdapter"]
