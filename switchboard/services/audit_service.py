"""
Audit Service
Best-effort, append-only event log for the lead pipeline
"""

import time
from typing import Any, Callable, Optional, Union

from switchboard.core.config import settings
from switchboard.core.logging import get_logger
from switchboard.db import AuditLogDB, Repository, get_repository
from switchboard.models.enums import AuditEventType
from switchboard.utils.helpers import sanitize_for_storage

logger = get_logger(__name__)


class AuditRecorder:
    """
    Writes sanitized audit entries.

    Never raises: a failed write is logged (at most once per interval)
    and otherwise ignored, so auditing can never fail a request.
    """

    def __init__(
        self,
        repository: Repository,
        max_chars: Optional[int] = None,
        error_log_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.max_chars = max_chars or settings.audit_json_max_chars
        self.error_log_interval = (
            settings.audit_error_log_interval_seconds
            if error_log_interval is None
            else error_log_interval
        )
        self._clock = clock
        self._last_error_logged_at: Optional[float] = None

    async def record(
        self,
        event_type: Union[AuditEventType, str],
        message: str,
        tenant_id: Optional[str] = None,
        data: Any = None,
    ) -> None:
        """
        Append an audit entry.

        Args:
            event_type: Event tag
            message: Human readable message
            tenant_id: Optional tenant reference
            data: Optional structured detail, sanitized before storage
        """
        event = event_type.value if isinstance(event_type, AuditEventType) else str(event_type)

        try:
            entry = AuditLogDB(
                tenant_id=tenant_id,
                event_type=event,
                message=message,
                data=sanitize_for_storage(data, max_chars=self.max_chars),
            )
            await self.repository.add_audit_log(entry)
            logger.debug(f"Audit [{event}] {message}")
        except Exception as e:
            self._log_failure(event, e)

    def _log_failure(self, event: str, error: Exception) -> None:
        now = self._clock()
        if (
            self._last_error_logged_at is not None
            and now - self._last_error_logged_at < self.error_log_interval
        ):
            return
        self._last_error_logged_at = now
        logger.error(f"Failed to write audit log [{event}]: {error}")


_audit_recorder: Optional[AuditRecorder] = None


def get_audit_recorder() -> AuditRecorder:
    """Get the audit recorder bound to the current repository"""
    global _audit_recorder
    repository = get_repository()
    if _audit_recorder is None or _audit_recorder.repository is not repository:
        _audit_recorder = AuditRecorder(repository)
    return _audit_recorder
