"""
Database Adapter Base Classes

This module defines the abstract interfaces that all database adapters
must implement. This enables easy switching between different databases.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Tuple

from switchboard.db.models import TenantDB, RoutingPolicyDB, LeadDB, CallDB, AuditLogDB
from switchboard.models.enums import LeadStatus


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    All database implementations (SQLite, PostgreSQL) must implement this
    interface. Unique-constraint violations surface as DuplicateRecordError.
    """

    @abstractmethod
    async def connect(self) -> bool:
        """
        Establish connection to the database.
        Returns True if successful, False otherwise.
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the database connection."""
        pass

    @abstractmethod
    async def initialize_schema(self) -> bool:
        """
        Create necessary tables if they don't exist.
        Returns True if successful, False otherwise.
        """
        pass

    @abstractmethod
    async def execute(self, query: str, params: tuple = ()) -> int:
        """Execute a write query and return the number of affected rows."""
        pass

    @abstractmethod
    async def fetch_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        """Execute query and return single row as dict."""
        pass

    @abstractmethod
    async def fetch_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        """Execute query and return all rows as list of dicts."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if database connection is active."""
        pass


class RepositoryInterface(ABC):
    """
    Abstract interface for the switchboard's data operations.

    Tenants and routing policies are written by the admin surface and
    read by the lead pipeline; leads and calls are owned by the pipeline.
    """

    # ==================== Tenants ====================

    @abstractmethod
    async def create_tenant(self, tenant: TenantDB) -> TenantDB:
        """Create a new tenant."""
        pass

    @abstractmethod
    async def get_tenant(self, tenant_id: str) -> Optional[TenantDB]:
        """Get a tenant by id."""
        pass

    @abstractmethod
    async def update_tenant(self, tenant_id: str, updates: Dict[str, Any]) -> Optional[TenantDB]:
        """Update a tenant."""
        pass

    @abstractmethod
    async def list_tenants(self, limit: int = 50, offset: int = 0) -> List[TenantDB]:
        """List tenants."""
        pass

    # ==================== Routing Policies ====================

    @abstractmethod
    async def get_active_routing_policy(self, tenant_id: str) -> Optional[RoutingPolicyDB]:
        """Get the routing policy the pipeline should use for a tenant."""
        pass

    @abstractmethod
    async def get_routing_policy(self, tenant_id: str) -> Optional[RoutingPolicyDB]:
        """Get the tenant's current routing policy, active or not."""
        pass

    @abstractmethod
    async def save_routing_policy(self, policy: RoutingPolicyDB) -> RoutingPolicyDB:
        """Insert or update a routing policy."""
        pass

    # ==================== Leads ====================

    @abstractmethod
    async def find_lead_by_dedupe_key(self, tenant_id: str, dedupe_key: str) -> Optional[LeadDB]:
        """Find a lead by its tenant-scoped dedupe key."""
        pass

    @abstractmethod
    async def create_lead(self, lead: LeadDB) -> Tuple[LeadDB, bool]:
        """Create a lead; returns the existing lead and False on a duplicate key."""
        pass

    @abstractmethod
    async def get_lead(self, lead_id: str) -> Optional[LeadDB]:
        """Get a lead by id."""
        pass

    @abstractmethod
    async def update_lead_status(
        self,
        lead_id: str,
        status: LeadStatus,
        skip_reason: Optional[str] = None,
    ) -> bool:
        """Update a lead's call status."""
        pass

    @abstractmethod
    async def list_leads(
        self,
        tenant_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[LeadDB]:
        """List leads, newest first."""
        pass

    # ==================== Calls ====================

    @abstractmethod
    async def create_call(self, call: CallDB) -> CallDB:
        """Create a new call record."""
        pass

    @abstractmethod
    async def get_call(self, call_id: str) -> Optional[CallDB]:
        """Get a call by internal id."""
        pass

    @abstractmethod
    async def get_call_by_provider_id(self, provider_call_id: str) -> Optional[CallDB]:
        """Get a call by the provider-assigned call id."""
        pass

    @abstractmethod
    async def update_call(self, call_id: str, updates: Dict[str, Any]) -> Optional[CallDB]:
        """Update a call record."""
        pass

    @abstractmethod
    async def update_call_if_not_terminal(self, call_id: str, updates: Dict[str, Any]) -> bool:
        """Update a call only while it is not COMPLETED or FAILED."""
        pass

    @abstractmethod
    async def list_calls(
        self,
        tenant_id: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[CallDB]:
        """List calls, newest first."""
        pass

    # ==================== Audit Logs ====================

    @abstractmethod
    async def add_audit_log(self, entry: AuditLogDB) -> None:
        """Append an audit log entry."""
        pass

    @abstractmethod
    async def list_audit_logs(
        self,
        tenant_id: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditLogDB]:
        """List audit log entries, newest first."""
        pass
