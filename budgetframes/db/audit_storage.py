"""
SQL Audit Storage

Appends audit events to the audit_events table of the ledger database.
Events are written in their own transaction, after the request's
transaction has committed.
"""

from typing import Optional

from budgetframes.db.database import Database, get_database
from budgetframes.db.interface import AuditStorageInterface
from budgetframes.models.audit import AuditEvent


class SqlAuditStorage(AuditStorageInterface):
    """audit_events table implementation of audit storage."""

    def __init__(self, db: Optional[Database] = None):
        self._db = db or get_database()

    def append_event(self, event: AuditEvent) -> bool:
        with self._db.transaction() as tx:
            tx.none(
                "insert into audit_events (event_id, timestamp, event_type, severity, "
                "entity_type, entity_id, actor_uid, description, details_json, "
                "error_message, is_user_action) values (:event_id, :timestamp, "
                ":event_type, :severity, :entity_type, :entity_id, :actor_uid, "
                ":description, :details_json, :error_message, :is_user_action)",
                event.to_row(),
            )
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        with self._db.transaction() as tx:
            rows = tx.many_or_none(
                "select * from audit_events where entity_type = :entity_type "
                "and entity_id = :entity_id order by timestamp asc",
                {"entity_type": entity_type, "entity_id": entity_id},
            )
        return [AuditEvent.from_row(row) for row in rows]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        with self._db.transaction() as tx:
            rows = tx.many_or_none(
                "select * from audit_events order by timestamp desc limit :limit",
                {"limit": limit},
            )
        return [AuditEvent.from_row(row) for row in rows]
