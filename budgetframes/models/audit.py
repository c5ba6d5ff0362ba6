"""
Audit Models for the Ledger

Every change to money or relationships is recorded as an audit event.
This provides:
1. Traceability of who changed which balance and when
2. Debugging information when a balance looks wrong
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_UPDATED = "transaction_updated"
    SPLIT_UPDATED = "split_updated"
    VALIDATION_FAILED = "validation_failed"

    # Friends and payments
    FRIEND_ADDED = "friend_added"
    FRIEND_REJECTED = "friend_rejected"
    FRIEND_REMOVED = "friend_removed"
    NAME_CHANGED = "name_changed"
    PAYMENT_RECORDED = "payment_recorded"

    # Frames and categories
    INCOME_SET = "income_set"
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'frame', 'friend')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who did it
    actor_uid: Optional[str] = Field(
        default=None,
        description="User whose request caused the event"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=True,
        description="Was this triggered by a user request?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_uid": self.actor_uid,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> dict:
        """
        Convert to a row for the audit_events table.

        Details are JSON-encoded; everything else is a plain column.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_uid": self.actor_uid,
            "description": self.description,
            "details_json": json.dumps(self.details) if self.details else "",
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    @classmethod
    def from_row(cls, row: dict) -> "AuditEvent":
        return cls(
            event_id=UUID(row["event_id"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            event_type=AuditEventType(row["event_type"]),
            severity=AuditSeverity(row["severity"]),
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            actor_uid=row["actor_uid"],
            description=row["description"],
            details=json.loads(row["details_json"]) if row["details_json"] else {},
            error_message=row["error_message"],
            is_user_action=bool(row["is_user_action"]),
        )


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tid, uid, "12.00", frame=3)
        event = AuditEventBuilder.friend_added(uid, friend_uid)
    """

    @staticmethod
    def transaction_created(
        transaction_id: str,
        actor_uid: str,
        amount: str,
        frame: int,
        split_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_uid=actor_uid,
            description=f"Transaction created: {amount} in frame {frame}",
            details={
                "amount": amount,
                "frame": frame,
                "split_id": split_id,
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        actor_uid: str,
        linked_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_uid=actor_uid,
            description="Transaction deleted",
            details={"linked_id": linked_id} if linked_id else {},
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        actor_uid: str,
        field: str,
        value: Optional[str],
        propagated: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            actor_uid=actor_uid,
            description=f"Transaction {field} updated",
            details={
                "field": field,
                "value": value,
                "propagated_to_split": propagated,
            },
        )

    @staticmethod
    def split_updated(
        split_id: str,
        actor_uid: str,
        my_amount: str,
        other_amount: str,
        balance_delta: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SPLIT_UPDATED,
            entity_type="split",
            entity_id=split_id,
            actor_uid=actor_uid,
            description=f"Split updated: {my_amount} / {other_amount}",
            details={
                "my_amount": my_amount,
                "other_amount": other_amount,
                "balance_delta": balance_delta,
            },
        )

    @staticmethod
    def validation_failed(
        actor_uid: str,
        operation: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="request",
            actor_uid=actor_uid,
            description=f"{operation} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def friend_added(actor_uid: str, friend_uid: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FRIEND_ADDED,
            entity_type="user",
            entity_id=friend_uid,
            actor_uid=actor_uid,
            description="Friend added",
        )

    @staticmethod
    def friend_rejected(actor_uid: str, friend_uid: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FRIEND_REJECTED,
            entity_type="user",
            entity_id=friend_uid,
            actor_uid=actor_uid,
            description="Friend request rejected",
        )

    @staticmethod
    def friend_removed(actor_uid: str, friend_uid: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FRIEND_REMOVED,
            entity_type="user",
            entity_id=friend_uid,
            actor_uid=actor_uid,
            description="Friend removed",
        )

    @staticmethod
    def name_changed(actor_uid: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NAME_CHANGED,
            entity_type="user",
            entity_id=actor_uid,
            actor_uid=actor_uid,
            description="Display name changed",
            details={"name": name},
        )

    @staticmethod
    def payment_recorded(actor_uid: str, friend_uid: str, amount: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            entity_type="user",
            entity_id=friend_uid,
            actor_uid=actor_uid,
            description=f"Payment of {amount} recorded",
            details={"amount": amount},
        )

    @staticmethod
    def income_set(actor_uid: str, gid: str, index: int, income: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_SET,
            entity_type="frame",
            entity_id=f"{gid}:{index}",
            actor_uid=actor_uid,
            description=f"Income for frame {index} set to {income}",
            details={"income": income},
        )

    @staticmethod
    def category_changed(
        event_type: AuditEventType,
        actor_uid: str,
        category_id: str,
        frame: int,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="category",
            entity_id=category_id,
            actor_uid=actor_uid,
            description=f"Category {event_type.value.split('_')[-1]} in frame {frame}",
            details=details or {},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor_uid: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            actor_uid=actor_uid,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            is_user_action=False,
        )
