"""
Shared test helpers for Budget Buddy.

No real API calls in tests: record stores are in-memory or mocked,
and the clock is always fixed.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from unittest.mock import MagicMock

import pytest

from budget_buddy.audit import AuditLogger
from budget_buddy.models.records import (
    Budget,
    Frequency,
    RecurringItem,
    Transaction,
    TransactionType,
)
from budget_buddy.services.auth import Principal
from budget_buddy.services.storage import InMemoryRecordStore


TODAY = date(2023, 11, 15)
NOW = datetime(2023, 11, 15, 9, 30, tzinfo=timezone.utc)


def make_transaction(
    amount: str = "100",
    category: str = "Groceries",
    day: date = TODAY,
    type: TransactionType = TransactionType.EXPENSE,
    description: str = "Weekly shop",
    id: Optional[str] = None,
) -> Transaction:
    fields = dict(
        date=day,
        description=description,
        amount=Decimal(amount),
        type=type,
        category=category,
    )
    if id is not None:
        fields["id"] = id
    return Transaction(**fields)


def make_budget(category: str = "Groceries", limit: str = "600") -> Budget:
    return Budget(category=category, limit=Decimal(limit))


def make_recurring(
    due: date,
    description: str = "Netflix",
    active: bool = True,
    id: str = "rec_1",
) -> RecurringItem:
    return RecurringItem(
        id=id,
        description=description,
        amount=Decimal("650"),
        type=TransactionType.EXPENSE,
        category="Entertainment",
        frequency=Frequency.MONTHLY,
        next_due_date=due,
        active=active,
    )


@pytest.fixture
def principal() -> Principal:
    return Principal(id="user-1", name="Asha", email="asha@example.com")


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def audit_logger() -> MagicMock:
    """An AuditLogger double that records calls instead of logging."""
    return MagicMock(spec=AuditLogger)
