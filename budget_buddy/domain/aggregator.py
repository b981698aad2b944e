"""
Domain Aggregator

Pure functions that turn a snapshot of records into numbers: category
spend, daily averages, month-end projections, budget consumption and
days until a bill falls due.

DESIGN DECISION: Nothing here does I/O or reads the clock. "Today" is
always passed in, so the same inputs always give the same outputs and
the alert engine, the dashboard views and the tests agree on every figure.

Month boundaries are calendar boundaries (same year and month as the
date itself), never a rolling 30-day window.
"""

import calendar
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, NamedTuple, Union

from budget_buddy.models.records import Transaction


ZERO = Decimal("0")
HUNDRED = Decimal("100")


class YearMonth(NamedTuple):
    """A calendar month, e.g. YearMonth(2023, 11)."""
    year: int
    month: int

    @classmethod
    def of(cls, day: Union[date, datetime]) -> "YearMonth":
        return cls(day.year, day.month)

    @property
    def label(self) -> str:
        """ISO-style label used in notification ids, e.g. '2023-11'."""
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month


def category_spend(
    transactions: Iterable[Transaction],
    category: str,
    year_month: YearMonth,
) -> Decimal:
    """
    Sum of expense amounts in a category during one calendar month.

    Income and other categories or months contribute nothing.
    """
    return sum(
        (
            t.amount
            for t in transactions
            if t.is_expense and t.category == category and year_month.contains(t.date)
        ),
        ZERO,
    )


def category_spend_all_time(
    transactions: Iterable[Transaction],
    category: str,
) -> Decimal:
    """
    Sum of every expense amount ever recorded in a category.

    Feeds the per-budget display. Alerting uses the monthly figure from
    category_spend instead; the two are kept apart on purpose.
    """
    return sum(
        (t.amount for t in transactions if t.is_expense and t.category == category),
        ZERO,
    )


def average_daily_spend(total_spent: Decimal, day_of_month_today: int) -> Decimal:
    """total_spent / day_of_month_today, or 0 for a non-positive day."""
    if day_of_month_today <= 0:
        return ZERO
    return Decimal(total_spent) / Decimal(day_of_month_today)


def projected_month_end_spend(avg_daily: Decimal, total_days_in_month: int) -> Decimal:
    return Decimal(avg_daily) * Decimal(total_days_in_month)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until_due(today: Union[date, datetime], due_date: Union[date, datetime]) -> int:
    """
    Signed whole days from today until due_date; negative means overdue.

    Both sides are reduced to calendar dates before subtracting, so neither
    the time of day nor a timezone on either side shifts the answer.
    """
    return (_as_date(due_date) - _as_date(today)).days


def budget_percentage(spent: Decimal, limit: Decimal) -> Decimal:
    """
    Share of a budget consumed, as a percentage.

    Budgets guarantee a positive limit; a non-positive one is a caller bug.
    """
    if limit <= 0:
        raise ValueError(f"Budget limit must be positive, got {limit}")
    return Decimal(spent) / Decimal(limit) * HUNDRED
