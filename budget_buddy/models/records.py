"""
Core Record Models for Budget Buddy

These models define the strict schemas for the records a principal owns:
transactions, budgets, recurring items and the budget plan document.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and CSV transcoding
4. Stay immutable once built, so snapshots can share them safely

DESIGN DECISION: We use Pydantic v2 frozen models.
A record is replaced, never mutated in place, which is what lets the
session reducer share unchanged slices between snapshots.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money for a transaction or recurring item."""
    INCOME = "income"
    EXPENSE = "expense"


class Frequency(str, Enum):
    """How often a recurring item falls due."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def new_record_id() -> str:
    """Generate an id for a record created on this side of the wire."""
    return uuid4().hex


# =============================================================================
# RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry.

    Created on user entry or CSV import. The id never changes once assigned.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Unique transaction ID"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the money was for"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount, always non-negative; direction comes from type"
    )
    type: TransactionType
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


class Budget(BaseModel):
    """
    Monthly spending limit for one category.

    At most one budget exists per category per principal; setting a budget
    for a category that already has one overwrites its limit.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    limit: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Monthly limit, strictly positive"
    )


class RecurringItem(BaseModel):
    """
    A bill or income that repeats.

    next_due_date is a static target. It is not advanced automatically
    after it passes; moving it is an explicit user edit.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
    )
    type: TransactionType
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    frequency: Frequency
    next_due_date: dt.date
    active: bool = True


class BudgetPlan(BaseModel):
    """A human-written budget plan document (both fields null when absent)."""
    model_config = ConfigDict(frozen=True)

    file_name: Optional[str] = None
    content: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.content


class RecordSnapshot(BaseModel):
    """Everything the record store holds for one principal."""
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    budgets: tuple[Budget, ...] = ()
    recurring: tuple[RecurringItem, ...] = ()
    plan: BudgetPlan = Field(default_factory=BudgetPlan)
