"""
Session Snapshot

The complete in-memory state of one signed-in session. Snapshots are
immutable: every reducer step builds a new one and reuses the slices it
did not touch.
"""

from pydantic import BaseModel, ConfigDict, Field

from budget_buddy.models.notification import Notification
from budget_buddy.models.records import (
    Budget,
    BudgetPlan,
    RecurringItem,
    Transaction,
)


class SessionSnapshot(BaseModel):
    """
    Authoritative-for-the-session view of a principal's data.

    `loading` starts true and flips to false exactly once, when the
    initial load completes or fails.
    """
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    budgets: tuple[Budget, ...] = ()
    recurring: tuple[RecurringItem, ...] = ()
    notifications: tuple[Notification, ...] = ()
    budget_plan: BudgetPlan = Field(default_factory=BudgetPlan)
    loading: bool = True

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    def has_notification(self, notification_id: str) -> bool:
        return any(n.id == notification_id for n in self.notifications)

    def find_budget(self, category: str):
        for budget in self.budgets:
            if budget.category == category:
                return budget
        return None
