"""Domain aggregation package."""

from budget_buddy.domain.aggregator import (
    YearMonth,
    average_daily_spend,
    budget_percentage,
    category_spend,
    category_spend_all_time,
    days_in_month,
    days_until_due,
    projected_month_end_spend,
)
from budget_buddy.domain.views import (
    DEFAULT_CATEGORIES,
    BudgetOverview,
    CashFlowSummary,
    budget_overview,
    expense_by_category,
    search_transactions,
    summarize_totals,
    unbudgeted_categories,
)

__all__ = [
    # Aggregator
    "YearMonth",
    "average_daily_spend",
    "budget_percentage",
    "category_spend",
    "category_spend_all_time",
    "days_in_month",
    "days_until_due",
    "projected_month_end_spend",
    # Views
    "DEFAULT_CATEGORIES",
    "BudgetOverview",
    "CashFlowSummary",
    "budget_overview",
    "expense_by_category",
    "search_transactions",
    "summarize_totals",
    "unbudgeted_categories",
]
