"""
Audit Logger

DESIGN DECISION: Every change to money or relationships is logged.
This provides:
1. Complete traceability
2. Debugging capability when a balance looks wrong
3. A history users can be shown

The audit logger:
- Is called after the request's transaction commits, never inside it
- Gracefully handles failures (doesn't fail the request if logging fails)
"""

import logging
from functools import lru_cache
from typing import Optional

import structlog

from budgetframes.config import get_settings
from budgetframes.db.audit_storage import SqlAuditStorage
from budgetframes.db.interface import AuditStorageInterface
from budgetframes.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """Route structlog output through the stdlib root logger at the configured level."""
    level = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s", level=getattr(logging, level))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit_events table (when storage is configured)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("budgetframes.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_validation_failed(
        self,
        actor_uid: str,
        operation: str,
        issues: list[dict],
    ) -> None:
        """Log a rejected request."""
        self.log(AuditEventBuilder.validation_failed(
            actor_uid=actor_uid,
            operation=operation,
            issues=issues,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor_uid: Optional[str] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            actor_uid=actor_uid,
        ))


@lru_cache()
def get_audit_logger() -> AuditLogger:
    """
    Get the application audit logger (cached).

    Persists events only when persist_audit_events is enabled.
    """
    if get_settings().app.persist_audit_events:
        return AuditLogger(storage=SqlAuditStorage())
    return AuditLogger()
