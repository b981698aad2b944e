"""Tests for dashboard views built on the aggregator."""

from datetime import date
from decimal import Decimal

from budget_buddy.domain import (
    DEFAULT_CATEGORIES,
    budget_overview,
    expense_by_category,
    search_transactions,
    summarize_totals,
    unbudgeted_categories,
)
from budget_buddy.models.records import TransactionType

from tests.conftest import TODAY, make_budget, make_transaction


class TestSummaries:
    """Tests for income/expense totals."""

    def test_summarize_totals(self):
        transactions = [
            make_transaction("5000", "Salary", type=TransactionType.INCOME),
            make_transaction("1500", "Housing"),
            make_transaction("250.75", "Groceries"),
        ]
        summary = summarize_totals(transactions)
        assert summary.total_income == Decimal("5000")
        assert summary.total_expenses == Decimal("1750.75")
        assert summary.balance == Decimal("3249.25")

    def test_expense_by_category_skips_income(self):
        transactions = [
            make_transaction("10", "Food"),
            make_transaction("20", "Groceries"),
            make_transaction("5", "Food"),
            make_transaction("900", "Salary", type=TransactionType.INCOME),
        ]
        totals = expense_by_category(transactions)
        assert totals == {"Food": Decimal("15"), "Groceries": Decimal("20")}
        assert list(totals) == ["Food", "Groceries"]


class TestBudgetOverview:
    """Tests for the per-budget card."""

    def test_overview_uses_all_time_spend(self):
        transactions = [
            make_transaction("200", "Groceries", date(2023, 10, 20)),
            make_transaction("100", "Groceries", TODAY),
        ]
        overview = budget_overview(make_budget("Groceries", "600"), transactions, TODAY)

        assert overview.spent == Decimal("300")
        assert overview.remaining == Decimal("300")
        assert overview.percentage == Decimal("50")
        assert overview.average_daily_spend == Decimal("20")
        assert overview.projected_spend == Decimal("600")
        assert not overview.is_over_limit
        assert not overview.projected_over_limit

    def test_overview_over_limit(self):
        transactions = [make_transaction("650", "Groceries", TODAY)]
        overview = budget_overview(make_budget("Groceries", "600"), transactions, TODAY)
        assert overview.is_over_limit
        assert overview.remaining == Decimal("-50")
        assert overview.projected_over_limit


class TestSearchAndCategories:
    """Tests for transaction search and budgetable categories."""

    def test_search_matches_description_or_category(self):
        transactions = [
            make_transaction(description="Grocery Shopping", category="Groceries"),
            make_transaction(description="Movie Tickets", category="Entertainment"),
            make_transaction(description="Gasoline", category="Transportation"),
        ]
        assert len(search_transactions(transactions, "grocer")) == 1
        assert len(search_transactions(transactions, "ENTERTAIN")) == 1
        assert len(search_transactions(transactions, "  ")) == 3

    def test_unbudgeted_categories_exclude_income_sources(self):
        budgets = [make_budget("Groceries"), make_budget("Housing", "1500")]
        remaining = unbudgeted_categories(budgets)

        assert "Groceries" not in remaining
        assert "Housing" not in remaining
        assert "Salary" not in remaining
        assert "Other" not in remaining
        assert "Food" in remaining
        assert len(remaining) == len(DEFAULT_CATEGORIES) - 4
