"""
Database Abstraction Layer

This module provides a clean abstraction for database operations,
making it easy to switch between database backends (SQLite, PostgreSQL)
with minimal code changes.

Usage:
    from switchboard.db import get_repository

    repo = get_repository()
    lead, created = await repo.create_lead(lead)
    call = await repo.get_call_by_provider_id(provider_call_id)
"""

from switchboard.db.repository import (
    DatabaseRepository,
    Repository,
    get_repository,
    initialize_database,
    close_database,
)
from switchboard.db.models import (
    TenantDB,
    RoutingPolicyDB,
    LeadDB,
    CallDB,
    AuditLogDB,
)

__all__ = [
    "DatabaseRepository",
    "Repository",
    "get_repository",
    "initialize_database",
    "close_database",
    "TenantDB",
    "RoutingPolicyDB",
    "LeadDB",
    "CallDB",
    "AuditLogDB",
]
