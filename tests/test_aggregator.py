"""Tests for the domain aggregator."""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from budget_buddy.domain import (
    YearMonth,
    average_daily_spend,
    budget_percentage,
    category_spend,
    category_spend_all_time,
    days_in_month,
    days_until_due,
    projected_month_end_spend,
)
from budget_buddy.models.records import TransactionType

from tests.conftest import TODAY, make_transaction


NOVEMBER = YearMonth(2023, 11)


class TestYearMonth:
    """Tests for calendar month handling."""

    def test_of_and_label(self):
        assert YearMonth.of(TODAY) == NOVEMBER
        assert NOVEMBER.label == "2023-11"
        assert YearMonth(2024, 3).label == "2024-03"

    def test_contains_is_calendar_based(self):
        assert NOVEMBER.contains(date(2023, 11, 1))
        assert NOVEMBER.contains(date(2023, 11, 30))
        assert not NOVEMBER.contains(date(2023, 10, 31))
        assert not NOVEMBER.contains(date(2022, 11, 15))


class TestCategorySpend:
    """Tests for category spend sums."""

    def test_sums_only_matching_expenses_in_month(self):
        transactions = [
            make_transaction("250.75", "Groceries", date(2023, 11, 2)),
            make_transaction("180.40", "Groceries", date(2023, 11, 18)),
            make_transaction("99", "Groceries", date(2023, 10, 30)),
            make_transaction("60", "Transportation", date(2023, 11, 5)),
            make_transaction("500", "Groceries", date(2023, 11, 3), type=TransactionType.INCOME),
        ]
        assert category_spend(transactions, "Groceries", NOVEMBER) == Decimal("431.15")

    def test_empty_is_zero(self):
        assert category_spend([], "Groceries", NOVEMBER) == Decimal("0")

    def test_all_time_ignores_month(self):
        transactions = [
            make_transaction("100", "Food", date(2023, 9, 1)),
            make_transaction("50", "Food", date(2023, 11, 1)),
            make_transaction("70", "Food", date(2023, 11, 1), type=TransactionType.INCOME),
        ]
        assert category_spend_all_time(transactions, "Food") == Decimal("150")
        assert category_spend(transactions, "Food", NOVEMBER) == Decimal("50")


class TestProjection:
    """Tests for daily averages and month-end projections."""

    def test_average_daily_spend(self):
        assert average_daily_spend(Decimal("300"), 15) == Decimal("20")

    def test_average_daily_spend_non_positive_day(self):
        assert average_daily_spend(Decimal("300"), 0) == Decimal("0")
        assert average_daily_spend(Decimal("300"), -3) == Decimal("0")

    @pytest.mark.parametrize("spent,day,total_days", [
        (Decimal("300"), 15, 30),
        (Decimal("431.15"), 7, 31),
        (Decimal("0"), 1, 28),
    ])
    def test_projection_is_average_times_days(self, spent, day, total_days):
        avg = average_daily_spend(spent, day)
        assert projected_month_end_spend(avg, total_days) == avg * total_days

    def test_days_in_month(self):
        assert days_in_month(2023, 11) == 30
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28
        assert days_in_month(2023, 12) == 31


class TestDaysUntilDue:
    """Tests for bill due-date arithmetic."""

    def test_future_today_and_overdue(self):
        assert days_until_due(TODAY, date(2023, 11, 17)) == 2
        assert days_until_due(TODAY, TODAY) == 0
        assert days_until_due(TODAY, date(2023, 11, 14)) == -1

    def test_time_of_day_is_ignored(self):
        late_evening = datetime(2023, 11, 15, 23, 59)
        assert days_until_due(late_evening, date(2023, 11, 16)) == 1

    def test_crosses_month_and_year(self):
        assert days_until_due(date(2023, 12, 30), date(2024, 1, 2)) == 3

    def test_aware_today_against_plain_date(self):
        morning_utc = datetime(2023, 11, 15, 9, 30, tzinfo=timezone.utc)
        assert days_until_due(morning_utc, date(2023, 11, 17)) == 2
        assert days_until_due(morning_utc, date(2023, 11, 14)) == -1


class TestBudgetPercentage:
    """Tests for budget consumption."""

    def test_exact_values(self):
        assert budget_percentage(Decimal("480"), Decimal("600")) == Decimal("80")
        assert budget_percentage(Decimal("600"), Decimal("600")) == Decimal("100")
        assert budget_percentage(Decimal("650"), Decimal("600")) > Decimal("100")

    def test_non_positive_limit_raises(self):
        with pytest.raises(ValueError):
            budget_percentage(Decimal("10"), Decimal("0"))
