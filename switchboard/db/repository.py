"""
Repository Implementation

This module provides a concrete implementation of the RepositoryInterface
that works with any DatabaseAdapter (SQLite, PostgreSQL)
"""

import json
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple

from switchboard.core.config import settings
from switchboard.core.exceptions import DuplicateRecordError
from switchboard.core.logging import get_logger
from switchboard.db.base import DatabaseAdapter, RepositoryInterface
from switchboard.db.models import TenantDB, RoutingPolicyDB, LeadDB, CallDB, AuditLogDB
from switchboard.models.enums import LeadStatus, CallStatus

logger = get_logger(__name__)

# Singleton instance
_repository_instance: Optional["Repository"] = None

_TENANT_COLUMNS = {"name", "status", "timezone", "quiet_hours_start", "quiet_hours_end"}
_CALL_COLUMNS = {
    "provider_call_id", "status", "outcome", "transcript", "recording_url",
    "provider_payload", "error_message", "started_at", "ended_at",
}
_JSON_COLUMNS = {"raw_payload", "provider_payload", "data"}


class Repository(RepositoryInterface):
    """
    Repository for tenants, routing policies, leads, calls and audit logs.

    This class implements all database operations using the provided
    database adapter.
    """

    def __init__(self, adapter: DatabaseAdapter):
        """
        Initialize the repository with a database adapter.

        Args:
            adapter: A DatabaseAdapter implementation (SQLite, PostgreSQL)
        """
        self.adapter = adapter

    async def initialize(self) -> bool:
        """
        Initialize the repository (connect and setup schema).

        Returns:
            True if initialization successful, False otherwise.
        """
        connected = await self.adapter.connect()
        if not connected:
            return False

        schema_ok = await self.adapter.initialize_schema()
        return schema_ok

    async def close(self) -> None:
        """Close the database connection."""
        await self.adapter.disconnect()

    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        if not self.adapter.is_connected():
            return False
        try:
            row = await self.adapter.fetch_one("SELECT 1 AS ok")
            return row is not None
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False

    # ==================== Tenants ====================

    async def create_tenant(self, tenant: TenantDB) -> TenantDB:
        """Create a new tenant."""
        query = """
            INSERT INTO tenants (
                id, name, status, timezone, quiet_hours_start, quiet_hours_end,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """

        params = (
            tenant.id,
            tenant.name,
            tenant.status.value,
            tenant.timezone,
            tenant.quiet_hours_start,
            tenant.quiet_hours_end,
            tenant.created_at,
            tenant.updated_at,
        )

        await self.adapter.execute(query, params)
        logger.info(f"Created tenant: {tenant.id}")
        return tenant

    async def get_tenant(self, tenant_id: str) -> Optional[TenantDB]:
        """Get a tenant by id."""
        row = await self.adapter.fetch_one("SELECT * FROM tenants WHERE id = ?", (tenant_id,))
        if not row:
            return None
        return self._row_to_tenant(row)

    async def update_tenant(self, tenant_id: str, updates: Dict[str, Any]) -> Optional[TenantDB]:
        """Update a tenant."""
        updates = {k: v for k, v in updates.items() if k in _TENANT_COLUMNS}
        if not updates:
            return await self.get_tenant(tenant_id)

        set_clause, params = self._build_set_clause(updates)
        params.append(tenant_id)
        query = f"UPDATE tenants SET {set_clause} WHERE id = ?"

        await self.adapter.execute(query, tuple(params))
        logger.info(f"Updated tenant: {tenant_id}")
        return await self.get_tenant(tenant_id)

    async def list_tenants(self, limit: int = 50, offset: int = 0) -> List[TenantDB]:
        """List tenants, newest first."""
        rows = await self.adapter.fetch_all(
            "SELECT * FROM tenants ORDER BY created_at DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        return [self._row_to_tenant(row) for row in rows]

    # ==================== Routing Policies ====================

    async def get_active_routing_policy(self, tenant_id: str) -> Optional[RoutingPolicyDB]:
        """
        Get the routing policy the pipeline should use for a tenant.

        Writes keep a single active policy per tenant; for older data with
        several, the oldest active one wins.
        """
        query = """
            SELECT * FROM routing_policies
            WHERE tenant_id = ? AND active = ?
            ORDER BY created_at ASC
            LIMIT 1
        """
        row = await self.adapter.fetch_one(query, (tenant_id, True))
        if not row:
            return None
        return self._row_to_policy(row)

    async def get_routing_policy(self, tenant_id: str) -> Optional[RoutingPolicyDB]:
        """Get the tenant's current routing policy, preferring an active one."""
        query = """
            SELECT * FROM routing_policies
            WHERE tenant_id = ?
            ORDER BY active DESC, updated_at DESC
            LIMIT 1
        """
        row = await self.adapter.fetch_one(query, (tenant_id,))
        if not row:
            return None
        return self._row_to_policy(row)

    async def save_routing_policy(self, policy: RoutingPolicyDB) -> RoutingPolicyDB:
        """
        Insert or update a routing policy.

        Saving an active policy deactivates every other policy of the tenant.
        """
        policy.updated_at = datetime.utcnow()
        existing = await self.adapter.fetch_one(
            "SELECT id FROM routing_policies WHERE id = ?", (policy.id,)
        )

        if existing:
            query = """
                UPDATE routing_policies
                SET active = ?, call_delay_seconds = ?, instructions = ?,
                    transfer_number = ?, provider = ?, updated_at = ?
                WHERE id = ?
            """
            params = (
                policy.active,
                policy.call_delay_seconds,
                policy.instructions,
                policy.transfer_number,
                policy.provider.value,
                policy.updated_at,
                policy.id,
            )
        else:
            query = """
                INSERT INTO routing_policies (
                    id, tenant_id, active, call_delay_seconds, instructions,
                    transfer_number, provider, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """
            params = (
                policy.id,
                policy.tenant_id,
                policy.active,
                policy.call_delay_seconds,
                policy.instructions,
                policy.transfer_number,
                policy.provider.value,
                policy.created_at,
                policy.updated_at,
            )

        await self.adapter.execute(query, params)

        if policy.active:
            deactivated = await self.adapter.execute(
                """
                UPDATE routing_policies SET active = ?, updated_at = ?
                WHERE tenant_id = ? AND id != ? AND active = ?
                """,
                (False, policy.updated_at, policy.tenant_id, policy.id, True),
            )
            if deactivated:
                logger.info(f"Deactivated {deactivated} older routing policies for tenant {policy.tenant_id}")

        logger.info(f"Saved routing policy {policy.id} for tenant {policy.tenant_id}")
        return policy

    # ==================== Leads ====================

    async def find_lead_by_dedupe_key(self, tenant_id: str, dedupe_key: str) -> Optional[LeadDB]:
        """Find a lead by its tenant-scoped dedupe key."""
        row = await self.adapter.fetch_one(
            "SELECT * FROM leads WHERE tenant_id = ? AND dedupe_key = ?",
            (tenant_id, dedupe_key),
        )
        if not row:
            return None
        return self._row_to_lead(row)

    async def create_lead(self, lead: LeadDB) -> Tuple[LeadDB, bool]:
        """
        Create a lead.

        The (tenant_id, dedupe_key) unique constraint decides races: a
        duplicate insert returns the row that won with created=False.
        """
        query = """
            INSERT INTO leads (
                id, tenant_id, contact_id, first_name, last_name, phone, email,
                source, raw_payload, dedupe_key, call_status, skip_reason,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """

        params = (
            lead.id,
            lead.tenant_id,
            lead.contact_id,
            lead.first_name,
            lead.last_name,
            lead.phone,
            lead.email,
            lead.source,
            self._dump_json(lead.raw_payload),
            lead.dedupe_key,
            lead.call_status.value,
            lead.skip_reason,
            lead.created_at,
            lead.updated_at,
        )

        try:
            await self.adapter.execute(query, params)
        except DuplicateRecordError:
            existing = await self.find_lead_by_dedupe_key(lead.tenant_id, lead.dedupe_key)
            if existing is None:
                raise
            logger.info(f"Lead already exists for dedupe key {lead.dedupe_key}: {existing.id}")
            return existing, False

        logger.info(f"Created lead: {lead.id}")
        return lead, True

    async def get_lead(self, lead_id: str) -> Optional[LeadDB]:
        """Get a lead by id."""
        row = await self.adapter.fetch_one("SELECT * FROM leads WHERE id = ?", (lead_id,))
        if not row:
            return None
        return self._row_to_lead(row)

    async def update_lead_status(
        self,
        lead_id: str,
        status: LeadStatus,
        skip_reason: Optional[str] = None,
    ) -> bool:
        """Update a lead's call status; the skip reason is kept unless one is given."""
        updates: Dict[str, Any] = {"call_status": status}
        if skip_reason is not None:
            updates["skip_reason"] = skip_reason

        set_clause, params = self._build_set_clause(updates)
        params.append(lead_id)

        affected = await self.adapter.execute(
            f"UPDATE leads SET {set_clause} WHERE id = ?", tuple(params)
        )
        logger.debug(f"Lead {lead_id} -> {LeadStatus(status).value}")
        return affected > 0

    async def list_leads(
        self,
        tenant_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[LeadDB]:
        """List leads, newest first."""
        query = "SELECT * FROM leads"
        params: List[Any] = []

        if tenant_id:
            query += " WHERE tenant_id = ?"
            params.append(tenant_id)

        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = await self.adapter.fetch_all(query, tuple(params))
        return [self._row_to_lead(row) for row in rows]

    # ==================== Calls ====================

    async def create_call(self, call: CallDB) -> CallDB:
        """Create a new call record."""
        query = """
            INSERT INTO calls (
                id, tenant_id, lead_id, provider, provider_call_id, status,
                outcome, transcript, recording_url, provider_payload, error_message,
                started_at, ended_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """

        params = (
            call.id,
            call.tenant_id,
            call.lead_id,
            call.provider.value,
            call.provider_call_id,
            call.status.value,
            call.outcome,
            call.transcript,
            call.recording_url,
            self._dump_json(call.provider_payload),
            call.error_message,
            call.started_at,
            call.ended_at,
            call.created_at,
            call.updated_at,
        )

        await self.adapter.execute(query, params)
        logger.info(f"Created call record: {call.id}")
        return call

    async def get_call(self, call_id: str) -> Optional[CallDB]:
        """Get a call by internal id."""
        row = await self.adapter.fetch_one("SELECT * FROM calls WHERE id = ?", (call_id,))
        if not row:
            return None
        return self._row_to_call(row)

    async def get_call_by_provider_id(self, provider_call_id: str) -> Optional[CallDB]:
        """Get a call by the provider-assigned call id."""
        row = await self.adapter.fetch_one(
            "SELECT * FROM calls WHERE provider_call_id = ?", (provider_call_id,)
        )
        if not row:
            return None
        return self._row_to_call(row)

    async def update_call(self, call_id: str, updates: Dict[str, Any]) -> Optional[CallDB]:
        """Update a call record."""
        updates = {k: v for k, v in updates.items() if k in _CALL_COLUMNS}
        if not updates:
            return await self.get_call(call_id)

        set_clause, params = self._build_set_clause(updates)
        params.append(call_id)

        await self.adapter.execute(f"UPDATE calls SET {set_clause} WHERE id = ?", tuple(params))
        logger.info(f"Updated call record: {call_id}")
        return await self.get_call(call_id)

    async def update_call_if_not_terminal(self, call_id: str, updates: Dict[str, Any]) -> bool:
        """
        Update a call only while it is not COMPLETED or FAILED.

        Returns False when the row was already terminal (or is gone), so
        concurrent duplicate callbacks apply at most one terminal transition.
        """
        updates = {k: v for k, v in updates.items() if k in _CALL_COLUMNS}
        set_clause, params = self._build_set_clause(updates)
        params.extend([call_id, CallStatus.COMPLETED.value, CallStatus.FAILED.value])

        affected = await self.adapter.execute(
            f"UPDATE calls SET {set_clause} WHERE id = ? AND status NOT IN (?, ?)",
            tuple(params),
        )
        return affected > 0

    async def list_calls(
        self,
        tenant_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[CallDB]:
        """List calls, newest first."""
        query = "SELECT * FROM calls"
        params: List[Any] = []

        if tenant_id:
            query += " WHERE tenant_id = ?"
            params.append(tenant_id)

        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = await self.adapter.fetch_all(query, tuple(params))
        return [self._row_to_call(row) for row in rows]

    # ==================== Audit Logs ====================

    async def add_audit_log(self, entry: AuditLogDB) -> None:
        """Append an audit log entry."""
        query = """
            INSERT INTO audit_logs (tenant_id, event_type, message, data, created_at)
            VALUES (?, ?, ?, ?, ?)
        """
        params = (
            entry.tenant_id,
            entry.event_type,
            entry.message,
            self._dump_json(entry.data),
            entry.created_at,
        )
        await self.adapter.execute(query, params)

    async def list_audit_logs(
        self,
        tenant_id: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditLogDB]:
        """List audit log entries, newest first."""
        query = "SELECT * FROM audit_logs"
        params: List[Any] = []
        conditions = []

        if tenant_id:
            conditions.append("tenant_id = ?")
            params.append(tenant_id)

        if event_type:
            conditions.append("event_type = ?")
            params.append(event_type)

        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        rows = await self.adapter.fetch_all(query, tuple(params))
        return [
            AuditLogDB(
                id=row.get("id"),
                tenant_id=row.get("tenant_id"),
                event_type=row["event_type"],
                message=row["message"],
                data=self._parse_json(row.get("data")),
                created_at=self._parse_datetime(row.get("created_at")),
            )
            for row in rows
        ]

    # ==================== Helper Methods ====================

    def _build_set_clause(self, updates: Dict[str, Any]) -> Tuple[str, List[Any]]:
        """Build "col = ?" pairs for an UPDATE, stamping updated_at."""
        set_clauses = []
        params: List[Any] = []

        for key, value in updates.items():
            if key in _JSON_COLUMNS:
                value = self._dump_json(value)
            set_clauses.append(f"{key} = ?")
            params.append(value)

        set_clauses.append("updated_at = ?")
        params.append(datetime.utcnow())
        return ", ".join(set_clauses), params

    def _row_to_tenant(self, row: Dict[str, Any]) -> TenantDB:
        return TenantDB(
            id=row["id"],
            name=row["name"],
            status=row["status"],
            timezone=row["timezone"],
            quiet_hours_start=row["quiet_hours_start"],
            quiet_hours_end=row["quiet_hours_end"],
            created_at=self._parse_datetime(row.get("created_at")),
            updated_at=self._parse_datetime(row.get("updated_at")),
        )

    def _row_to_policy(self, row: Dict[str, Any]) -> RoutingPolicyDB:
        return RoutingPolicyDB(
            id=row["id"],
            tenant_id=row["tenant_id"],
            active=bool(row["active"]),
            call_delay_seconds=row.get("call_delay_seconds") or 0,
            instructions=row.get("instructions") or "",
            transfer_number=row.get("transfer_number"),
            provider=row["provider"],
            created_at=self._parse_datetime(row.get("created_at")),
            updated_at=self._parse_datetime(row.get("updated_at")),
        )

    def _row_to_lead(self, row: Dict[str, Any]) -> LeadDB:
        return LeadDB(
            id=row["id"],
            tenant_id=row["tenant_id"],
            contact_id=row.get("contact_id"),
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            phone=row["phone"],
            email=row.get("email"),
            source=row.get("source"),
            raw_payload=self._parse_json(row.get("raw_payload")),
            dedupe_key=row["dedupe_key"],
            call_status=row["call_status"],
            skip_reason=row.get("skip_reason"),
            created_at=self._parse_datetime(row.get("created_at")),
            updated_at=self._parse_datetime(row.get("updated_at")),
        )

    def _row_to_call(self, row: Dict[str, Any]) -> CallDB:
        return CallDB(
            id=row["id"],
            tenant_id=row["tenant_id"],
            lead_id=row["lead_id"],
            provider=row["provider"],
            provider_call_id=row.get("provider_call_id"),
            status=row["status"],
            outcome=row.get("outcome"),
            transcript=row.get("transcript"),
            recording_url=row.get("recording_url"),
            provider_payload=self._parse_json(row.get("provider_payload")),
            error_message=row.get("error_message"),
            started_at=self._parse_datetime(row.get("started_at")),
            ended_at=self._parse_datetime(row.get("ended_at")),
            created_at=self._parse_datetime(row.get("created_at")),
            updated_at=self._parse_datetime(row.get("updated_at")),
        )

    def _dump_json(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        return json.dumps(value, default=str)

    def _parse_datetime(self, value: Any) -> Optional[datetime]:
        """Parse datetime from string or return as-is if already datetime."""
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (ValueError, AttributeError):
            return None

    def _parse_json(self, value: Any) -> Any:
        """Parse a JSON column from text or return as-is if already decoded."""
        if value is None or isinstance(value, (dict, list)):
            return value
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            return None


class DatabaseRepository:
    """
    Main database repository factory.

    This class provides a unified interface to get the appropriate
    repository based on configuration.
    """

    @staticmethod
    def create_repository(db_type: str = "sqlite", **adapter_kwargs: Any) -> Repository:
        """
        Create a repository with the specified database type.

        Args:
            db_type: Database type ("sqlite" or "postgres")

        Returns:
            Repository instance with the appropriate adapter.
        """
        if db_type == "postgres":
            from switchboard.db.adapters.postgres import PostgresAdapter
            adapter = PostgresAdapter(**adapter_kwargs)
        else:
            from switchboard.db.adapters.sqlite import SQLiteAdapter
            adapter = SQLiteAdapter(**adapter_kwargs)

        return Repository(adapter)


def get_repository() -> Repository:
    """
    Get or create the singleton repository instance.

    The database type is determined by the DATABASE_TYPE setting
    (default: "sqlite").

    Returns:
        Repository singleton instance.
    """
    global _repository_instance

    if _repository_instance is None:
        db_type = settings.database_type.lower()

        if db_type == "postgres" and not settings.postgres_url:
            logger.warning("PostgreSQL selected but POSTGRES_URL not set, falling back to SQLite")
            db_type = "sqlite"

        _repository_instance = DatabaseRepository.create_repository(db_type)
        logger.info(f"Created {db_type} repository instance")

    return _repository_instance


async def initialize_database() -> bool:
    """
    Initialize the database (connect and create schema).

    Call this at application startup.

    Returns:
        True if initialization successful, False otherwise.
    """
    repo = get_repository()
    return await repo.initialize()


async def close_database() -> None:
    """
    Close the database connection.

    Call this at application shutdown.
    """
    global _repository_instance
    if _repository_instance:
        await _repository_instance.close()
        _repository_instance = None
        logger.info("Database connection closed")
