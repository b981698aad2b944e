"""
Audit Logger

DESIGN DECISION: Every significant action in a session is logged.
This provides:
1. Traceability of optimistic changes and their remote syncs
2. The only record of sync failures (they are never shown to the user)
3. Debugging capability for drift between local and remote state

The audit logger:
- Is synchronous, so the reducer can log without suspending
- Never raises (logging must not break the main flow)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budget_buddy.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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


def configure_log_level(level: str) -> None:
    """Set the minimum level for every budget_buddy logger."""
    logging.getLogger("budget_buddy").setLevel(level)


class AuditLogger:
    """
    Central audit logging service.

    Writes AuditEvents to the structured log at the event's severity.
    """

    def __init__(self, name: str = "budget_buddy.audit"):
        self._logger = structlog.get_logger(name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at its own severity."""
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # A broken log handler must not take the session down with it
            self._logger.error(
                "audit_log_failed",
                error=str(e),
                event_id=str(event.event_id),
            )

    def log_intent_applied(
        self,
        intent_kind: str,
        principal_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a reducer transition."""
        self.log(AuditEventBuilder.intent_applied(
            intent_kind=intent_kind,
            principal_id=principal_id,
            correlation_id=correlation_id,
        ))

    def log_intent_rejected(
        self,
        intent_kind: str,
        reason: str,
        principal_id: Optional[str] = None,
    ) -> None:
        """Log an intent that was dropped without changing state."""
        self.log(AuditEventBuilder.intent_rejected(
            intent_kind=intent_kind,
            reason=reason,
            principal_id=principal_id,
        ))

    def log_notifications_emitted(
        self,
        notification_ids: list[str],
        principal_id: Optional[str] = None,
    ) -> None:
        """Log new notifications added by the alert engine."""
        self.log(AuditEventBuilder.notifications_emitted(
            notification_ids=notification_ids,
            principal_id=principal_id,
        ))

    def log_sync_started(
        self,
        operation: str,
        principal_id: str,
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.sync_started(
            operation=operation,
            principal_id=principal_id,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    def log_sync_completed(
        self,
        operation: str,
        principal_id: str,
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.sync_completed(
            operation=operation,
            principal_id=principal_id,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    def log_sync_failed(
        self,
        operation: str,
        principal_id: str,
        entity_id: Optional[str],
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a remote call that failed after the local change was applied."""
        self.log(AuditEventBuilder.sync_failed(
            operation=operation,
            principal_id=principal_id,
            entity_id=entity_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_initial_load_completed(
        self,
        principal_id: str,
        counts: dict[str, int],
    ) -> None:
        self.log(AuditEventBuilder.initial_load_completed(principal_id, counts))

    def log_initial_load_failed(
        self,
        principal_id: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.initial_load_failed(principal_id, error_message))

    def log_refresh_completed(
        self,
        principal_id: str,
        counts: dict[str, int],
    ) -> None:
        self.log(AuditEventBuilder.refresh_completed(principal_id, counts))

    def log_refresh_failed(
        self,
        principal_id: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.refresh_failed(principal_id, error_message))

    def log_sign_in_failed(self, email: str, error_message: str) -> None:
        self.log(AuditEventBuilder.sign_in_failed(email, error_message))

    def log_session_opened(self, principal_id: str) -> None:
        self.log(AuditEventBuilder.session_opened(principal_id))

    def log_session_closed(self, principal_id: str, pending_syncs: int) -> None:
        self.log(AuditEventBuilder.session_closed(principal_id, pending_syncs))

    def log_plan_feedback_failed(
        self,
        error_type: str,
        error_message: str,
        needs_reconfiguration: bool,
    ) -> None:
        self.log(AuditEventBuilder.plan_feedback_failed(
            error_type=error_type,
            error_message=error_message,
            needs_reconfiguration=needs_reconfiguration,
        ))

    def log_csv_import_parsed(
        self,
        parsed: int,
        dropped: int,
        principal_id: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.csv_import_parsed(parsed, dropped, principal_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    The sync dispatcher creates one per mutating intent and passes it
    to both the local apply and the remote call.
    """
    return uuid4()
