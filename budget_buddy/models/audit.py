"""
Audit Models for Budget Buddy

Every significant step in a session is described by an audit event:
intents applied or rejected, remote syncs started, completed or failed,
loads and refreshes. Events are written to the structured log.

DESIGN DECISION: Audit events are log records, not persisted facts.
Sync failures in particular are never surfaced to the user, so the log
is the only place they can be traced, and the correlation id is what
links an optimistic local change to the remote call that followed it.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Local state
    INTENT_APPLIED = "intent_applied"
    INTENT_REJECTED = "intent_rejected"
    NOTIFICATIONS_EMITTED = "notifications_emitted"

    # Remote sync
    SYNC_STARTED = "sync_started"
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"

    # Loading
    INITIAL_LOAD_COMPLETED = "initial_load_completed"
    INITIAL_LOAD_FAILED = "initial_load_failed"
    REFRESH_COMPLETED = "refresh_completed"
    REFRESH_FAILED = "refresh_failed"

    # Session
    SIGN_IN_FAILED = "sign_in_failed"
    SESSION_OPENED = "session_opened"
    SESSION_CLOSED = "session_closed"

    # External services
    PLAN_FEEDBACK_FAILED = "plan_feedback_failed"
    CSV_IMPORT_PARSED = "csv_import_parsed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which principal and entity is this about?
    principal_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'recurring')"
    )
    entity_id: Optional[str] = None

    # Correlation - links a local apply to its remote sync
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "principal_id": self.principal_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.intent_applied("add_transaction", principal_id)
        event = AuditEventBuilder.sync_failed("create_transaction", error, correlation_id)
    """

    @staticmethod
    def intent_applied(
        intent_kind: str,
        principal_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTENT_APPLIED,
            severity=AuditSeverity.DEBUG,
            principal_id=principal_id,
            correlation_id=correlation_id,
            description=f"Intent applied: {intent_kind}",
            details={"intent": intent_kind},
        )

    @staticmethod
    def intent_rejected(
        intent_kind: str,
        reason: str,
        principal_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INTENT_REJECTED,
            severity=AuditSeverity.WARNING,
            principal_id=principal_id,
            description=f"Intent rejected: {intent_kind}",
            details={"intent": intent_kind, "reason": reason},
        )

    @staticmethod
    def notifications_emitted(
        notification_ids: list[str],
        principal_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTIFICATIONS_EMITTED,
            principal_id=principal_id,
            entity_type="notification",
            description=f"{len(notification_ids)} new notification(s)",
            details={"notification_ids": notification_ids},
        )

    @staticmethod
    def sync_started(
        operation: str,
        principal_id: str,
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_STARTED,
            severity=AuditSeverity.DEBUG,
            principal_id=principal_id,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Sync started: {operation}",
            details={"operation": operation},
        )

    @staticmethod
    def sync_completed(
        operation: str,
        principal_id: str,
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_COMPLETED,
            severity=AuditSeverity.DEBUG,
            principal_id=principal_id,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Sync completed: {operation}",
            details={"operation": operation},
        )

    @staticmethod
    def sync_failed(
        operation: str,
        principal_id: str,
        entity_id: Optional[str],
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            principal_id=principal_id,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Sync failed: {operation} (local change kept)",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def initial_load_completed(
        principal_id: str,
        counts: dict[str, int],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INITIAL_LOAD_COMPLETED,
            principal_id=principal_id,
            description="Initial load completed",
            details=counts,
        )

    @staticmethod
    def initial_load_failed(
        principal_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INITIAL_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            principal_id=principal_id,
            description="Initial load failed; keeping prior state",
            error_message=error_message,
        )

    @staticmethod
    def refresh_completed(
        principal_id: str,
        counts: dict[str, int],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_COMPLETED,
            principal_id=principal_id,
            description="Snapshot refreshed from record store",
            details=counts,
        )

    @staticmethod
    def refresh_failed(
        principal_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_FAILED,
            severity=AuditSeverity.ERROR,
            principal_id=principal_id,
            description="Refresh failed; keeping local state",
            error_message=error_message,
        )

    @staticmethod
    def sign_in_failed(
        email: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_FAILED,
            severity=AuditSeverity.WARNING,
            description="Sign-in failed",
            details={"email": email},
            error_message=error_message,
        )

    @staticmethod
    def session_opened(principal_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_OPENED,
            principal_id=principal_id,
            description="Session opened",
        )

    @staticmethod
    def session_closed(principal_id: str, pending_syncs: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_CLOSED,
            principal_id=principal_id,
            description="Session closed",
            details={"pending_syncs": pending_syncs},
        )

    @staticmethod
    def plan_feedback_failed(
        error_type: str,
        error_message: str,
        needs_reconfiguration: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_FEEDBACK_FAILED,
            severity=AuditSeverity.WARNING if needs_reconfiguration else AuditSeverity.ERROR,
            description=f"Plan feedback failed: {error_type}",
            details={"needs_reconfiguration": needs_reconfiguration},
            error_message=error_message,
        )

    @staticmethod
    def csv_import_parsed(
        parsed: int,
        dropped: int,
        principal_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CSV_IMPORT_PARSED,
            principal_id=principal_id,
            entity_type="transaction",
            description=f"CSV import parsed {parsed} row(s)",
            details={"parsed": parsed, "dropped": dropped},
        )
