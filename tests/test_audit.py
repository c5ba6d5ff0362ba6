"""
Tests for audit events, the audit logger and SQL audit storage.
"""

from budgetframes.audit import AuditLogger
from budgetframes.db import SqlAuditStorage, StorageError
from budgetframes.db.interface import AuditStorageInterface
from budgetframes.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class FailingStorage(AuditStorageInterface):
    """Storage that always fails, to check the logger never raises."""

    def append_event(self, event):
        raise StorageError("disk full")

    def get_events_by_entity(self, entity_type, entity_id):
        return []

    def get_recent_events(self, limit=100):
        return []


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Test event",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test AuditEvent conversion to log dict."""
        event = AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            description="Test",
            details={"amount": "10.00"},
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "payment_recorded"
        assert log_dict["details"]["amount"] == "10.00"

    def test_row_round_trip(self):
        """Test that a stored row reads back as the same event."""
        event = AuditEventBuilder.split_updated("s1", "u1", "50.00", "50.00", "10.00")
        restored = AuditEvent.from_row(event.to_row())
        assert restored == event

    def test_builder_transaction_created(self):
        """Test AuditEventBuilder for a new shared transaction."""
        event = AuditEventBuilder.transaction_created(
            transaction_id="t1",
            actor_uid="u1",
            amount="60.00",
            frame=3,
            split_id="s1",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.entity_type == "transaction"
        assert event.entity_id == "t1"
        assert event.actor_uid == "u1"
        assert event.details["split_id"] == "s1"

    def test_builder_validation_failed(self):
        """Test AuditEventBuilder for rejected requests."""
        event = AuditEventBuilder.validation_failed(
            actor_uid="u1",
            operation="transaction_post",
            issues=[{"field": "amount"}],
        )
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.severity == AuditSeverity.WARNING

    def test_builder_system_error(self):
        """Test AuditEventBuilder for system errors."""
        event = AuditEventBuilder.system_error("ConnectionError", "timeout")
        assert event.severity == AuditSeverity.ERROR
        assert event.is_user_action is False
        assert event.error_message == "timeout"

    def test_builder_category_changed(self):
        """Test that category events name what happened."""
        event = AuditEventBuilder.category_changed(
            AuditEventType.CATEGORY_DELETED, actor_uid="u1", category_id="c1", frame=2
        )
        assert event.entity_type == "category"
        assert "deleted" in event.description


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_log_without_storage(self):
        """Test that local-only logging succeeds."""
        assert AuditLogger().log(AuditEventBuilder.friend_added("u1", "u2")) is True

    def test_storage_failure_is_swallowed(self):
        """Test that a failing storage never breaks the caller."""
        audit = AuditLogger(storage=FailingStorage())
        assert audit.log(AuditEventBuilder.friend_added("u1", "u2")) is False

    def test_persists_to_sql_storage(self, db):
        """Test that events reach the audit_events table."""
        storage = SqlAuditStorage(db=db)
        audit = AuditLogger(storage=storage)

        audit.log(AuditEventBuilder.transaction_created("t1", "u1", "12.00", frame=0))
        audit.log(AuditEventBuilder.transaction_deleted("t1", "u1"))
        audit.log(AuditEventBuilder.name_changed("u1", "Ally"))

        events = storage.get_events_by_entity("transaction", "t1")
        assert [e.event_type for e in events] == [
            AuditEventType.TRANSACTION_CREATED,
            AuditEventType.TRANSACTION_DELETED,
        ]
        assert len(storage.get_recent_events(limit=2)) == 2

    def test_log_error_helper(self, db):
        """Test that log_error stores a system error event."""
        storage = SqlAuditStorage(db=db)
        AuditLogger(storage=storage).log_error("StorageError", "boom", details={"path": "/api"})

        [event] = storage.get_recent_events()
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.details == {"path": "/api"}
