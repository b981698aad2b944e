"""
Data Models Package

This package contains all Pydantic models used in Budget Buddy.
All data flowing through the system must conform to these schemas.
"""

from budget_buddy.models.records import (
    Budget,
    BudgetPlan,
    Frequency,
    RecordSnapshot,
    RecurringItem,
    Transaction,
    TransactionType,
    new_record_id,
)
from budget_buddy.models.notification import (
    Notification,
    NotificationKind,
)
from budget_buddy.models.state import SessionSnapshot
from budget_buddy.models.intents import (
    AddNotification,
    AddRecurring,
    AddTransaction,
    DeleteBudget,
    DeleteRecurring,
    DeleteTransaction,
    EditRecurring,
    EditTransaction,
    ImportTransactions,
    Intent,
    MarkNotificationsRead,
    SetBudget,
    SetInitialData,
    SetLoading,
    UploadPlan,
    parse_intent,
)
from budget_buddy.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "Budget",
    "BudgetPlan",
    "Frequency",
    "RecordSnapshot",
    "RecurringItem",
    "Transaction",
    "TransactionType",
    "new_record_id",
    # Notifications
    "Notification",
    "NotificationKind",
    # Session state
    "SessionSnapshot",
    # Intents
    "AddNotification",
    "AddRecurring",
    "AddTransaction",
    "DeleteBudget",
    "DeleteRecurring",
    "DeleteTransaction",
    "EditRecurring",
    "EditTransaction",
    "ImportTransactions",
    "Intent",
    "MarkNotificationsRead",
    "SetBudget",
    "SetInitialData",
    "SetLoading",
    "UploadPlan",
    "parse_intent",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
