"""
Notification Model

Notifications are a derived view. The alert engine regenerates candidates
whenever the underlying records change, and the session store merges them
into its list by id. A notification is never rewritten once it exists: the
only change it ever sees is its read flag flipping to true.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    """Display severity of a notification."""
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


class Notification(BaseModel):
    """A single alert shown to the user."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Deterministic id derived from source entity, rule and period"
    )
    kind: NotificationKind
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    read: bool = False

    def mark_read(self) -> "Notification":
        if self.read:
            return self
        return self.model_copy(update={"read": True})


def bill_notification_id(recurring_id: str, due_date_iso: str) -> str:
    return f"bill_{recurring_id}_{due_date_iso}"


def budget_exceeded_notification_id(category: str, period: str) -> str:
    return f"budget_err_{category}_{period}"


def budget_warning_notification_id(category: str, period: str) -> str:
    return f"budget_warn_{category}_{period}"
