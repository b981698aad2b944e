"""
Dashboard Views

Read-only figures the screens show: income versus expenses, spend per
category, the per-budget card and transaction search. Built on the
aggregator so the numbers match what the alert engine sees.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from budget_buddy.domain.aggregator import (
    ZERO,
    average_daily_spend,
    budget_percentage,
    category_spend_all_time,
    days_in_month,
    projected_month_end_spend,
)
from budget_buddy.models.records import Budget, Transaction, TransactionType


DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Groceries",
    "Housing",
    "Transportation",
    "Food",
    "Apparel",
    "Entertainment",
    "Health",
    "Education",
    "Gifts",
    "Salary",
    "Other",
)

# Categories that are income sources, never offered for budgeting
NON_BUDGETABLE_CATEGORIES = frozenset({"Salary", "Other"})


class CashFlowSummary(BaseModel):
    """Totals across every transaction."""
    model_config = ConfigDict(frozen=True)

    total_income: Decimal
    total_expenses: Decimal

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses


class BudgetOverview(BaseModel):
    """Figures for one budget card."""
    model_config = ConfigDict(frozen=True)

    category: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: Decimal
    average_daily_spend: Decimal
    projected_spend: Decimal

    @property
    def is_over_limit(self) -> bool:
        return self.spent > self.limit

    @property
    def projected_over_limit(self) -> bool:
        return self.projected_spend > self.limit


def summarize_totals(transactions: Iterable[Transaction]) -> CashFlowSummary:
    income = ZERO
    expenses = ZERO
    for t in transactions:
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expenses += t.amount
    return CashFlowSummary(total_income=income, total_expenses=expenses)


def expense_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """All-time expense totals keyed by category, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for t in transactions:
        if t.is_expense:
            totals[t.category] = totals.get(t.category, ZERO) + t.amount
    return totals


def budget_overview(
    budget: Budget,
    transactions: Sequence[Transaction],
    today: date,
) -> BudgetOverview:
    """
    Build the per-budget card.

    The card shows all-time spend for the category, and the daily average
    and projection are derived from that same all-time figure.
    """
    spent = category_spend_all_time(transactions, budget.category)
    avg_daily = average_daily_spend(spent, today.day)
    projected = projected_month_end_spend(avg_daily, days_in_month(today.year, today.month))
    return BudgetOverview(
        category=budget.category,
        limit=budget.limit,
        spent=spent,
        remaining=budget.limit - spent,
        percentage=budget_percentage(spent, budget.limit),
        average_daily_spend=avg_daily,
        projected_spend=projected,
    )


def search_transactions(
    transactions: Sequence[Transaction],
    query: str,
) -> list[Transaction]:
    """Case-insensitive match on description or category; blank query matches all."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(transactions)
    return [
        t for t in transactions
        if needle in t.description.lower() or needle in t.category.lower()
    ]


def unbudgeted_categories(
    budgets: Iterable[Budget],
    categories: Iterable[str] = DEFAULT_CATEGORIES,
) -> list[str]:
    """Categories that could still get a budget."""
    budgeted = {b.category for b in budgets}
    return [
        c for c in categories
        if c not in budgeted and c not in NON_BUDGETABLE_CATEGORIES
    ]
