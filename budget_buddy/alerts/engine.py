"""
Alert Engine

Derives notifications from records. Three rules, each evaluated per
entity and independently of the others:

1. BILL DUE SOON: an active recurring item due within the reminder window
   (0 to 3 days by default) gets an info notification. Overdue, inactive
   and farther-out items get nothing.
2. BUDGET EXCEEDED: current-month spend at or above 100% of the limit
   gets a danger notification stating the overage.
3. BUDGET WARNING: otherwise, spend at or above 80% gets a warning
   stating the percentage consumed.

The engine is stateless. It returns candidates; deduplication against
what the session already holds happens in merge_notifications (and in
the session reducer, which applies the same rule).

Notification ids carry the calendar period, so a new month makes a
category eligible for fresh budget alerts while an earlier alert for the
same month is never retracted, even if spend later drops.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_DOWN, Decimal
from typing import Callable, Iterable, Optional, Sequence

from budget_buddy.config import AppSettings
from budget_buddy.domain.aggregator import (
    YearMonth,
    budget_percentage,
    category_spend,
    days_until_due,
)
from budget_buddy.models.notification import (
    Notification,
    NotificationKind,
    bill_notification_id,
    budget_exceeded_notification_id,
    budget_warning_notification_id,
)
from budget_buddy.models.records import Budget, RecurringItem, Transaction


DEFAULT_BILL_DUE_WINDOW_DAYS = 3
DEFAULT_WARNING_PERCENT = Decimal("80")
DEFAULT_EXCEEDED_PERCENT = Decimal("100")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_money(amount: Decimal) -> str:
    return f"₹{amount:,.2f}"


class AlertEngine:
    """
    Stateless rule evaluator producing candidate notifications.

    Thresholds default to the fixed values the product ships with; they
    can be overridden from AppSettings for a deployment.
    """

    def __init__(
        self,
        bill_due_window_days: int = DEFAULT_BILL_DUE_WINDOW_DAYS,
        warning_percent: Decimal = DEFAULT_WARNING_PERCENT,
        exceeded_percent: Decimal = DEFAULT_EXCEEDED_PERCENT,
    ):
        if warning_percent >= exceeded_percent:
            raise ValueError("warning_percent must be lower than exceeded_percent")
        self.bill_due_window_days = bill_due_window_days
        self.warning_percent = Decimal(warning_percent)
        self.exceeded_percent = Decimal(exceeded_percent)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "AlertEngine":
        return cls(
            bill_due_window_days=settings.bill_due_window_days,
            warning_percent=settings.budget_warning_percent,
            exceeded_percent=settings.budget_exceeded_percent,
        )

    def evaluate(
        self,
        transactions: Sequence[Transaction],
        budgets: Iterable[Budget],
        recurring: Iterable[RecurringItem],
        today: date,
        now: Optional[Callable[[], datetime]] = None,
    ) -> list[Notification]:
        """
        Run every rule against the given records.

        Returns bill reminders first, then budget alerts, in the order of
        the underlying records.
        """
        now = now or _utc_now
        candidates: list[Notification] = []

        for item in recurring:
            notification = self.check_bill_due(item, today, now())
            if notification is not None:
                candidates.append(notification)

        period = YearMonth.of(today)
        for budget in budgets:
            notification = self.check_budget(budget, transactions, period, now())
            if notification is not None:
                candidates.append(notification)

        return candidates

    def check_bill_due(
        self,
        item: RecurringItem,
        today: date,
        created_at: datetime,
    ) -> Optional[Notification]:
        """Reminder for an active item due within the window, else None."""
        if not item.active:
            return None

        days = days_until_due(today, item.next_due_date)
        if days < 0 or days > self.bill_due_window_days:
            return None

        if days == 0:
            when = "today"
        elif days == 1:
            when = "in 1 day"
        else:
            when = f"in {days} days"

        return Notification(
            id=bill_notification_id(item.id, item.next_due_date.isoformat()),
            kind=NotificationKind.INFO,
            title="Upcoming bill",
            message=f"{item.description} ({_format_money(item.amount)}) is due {when}.",
            created_at=created_at,
        )

    def check_budget(
        self,
        budget: Budget,
        transactions: Sequence[Transaction],
        period: YearMonth,
        created_at: datetime,
    ) -> Optional[Notification]:
        """Exceeded or warning notification for one budget, else None."""
        spent = category_spend(transactions, budget.category, period)
        percentage = budget_percentage(spent, budget.limit)

        if percentage >= self.exceeded_percent:
            overage = spent - budget.limit
            return Notification(
                id=budget_exceeded_notification_id(budget.category, period.label),
                kind=NotificationKind.DANGER,
                title="Budget exceeded",
                message=(
                    f"You have exceeded your {budget.category} budget "
                    f"by {_format_money(overage)}."
                ),
                created_at=created_at,
            )

        if percentage >= self.warning_percent:
            consumed = percentage.quantize(Decimal("1"), rounding=ROUND_DOWN)
            return Notification(
                id=budget_warning_notification_id(budget.category, period.label),
                kind=NotificationKind.WARNING,
                title="Budget warning",
                message=(
                    f"You have used {consumed}% of your {budget.category} budget "
                    f"({_format_money(spent)} of {_format_money(budget.limit)})."
                ),
                created_at=created_at,
            )

        return None


def merge_notifications(
    existing: Sequence[Notification],
    candidates: Iterable[Notification],
) -> tuple[tuple[Notification, ...], list[Notification]]:
    """
    Fold candidates into an existing list, deduplicating by id.

    Existing entries are never replaced (their read flag survives) and
    never removed. New entries go to the front, newest first.

    Returns (merged_list, newly_added).
    """
    seen = {n.id for n in existing}
    added: list[Notification] = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        added.append(candidate)

    merged = tuple(reversed(added)) + tuple(existing)
    return merged, added
