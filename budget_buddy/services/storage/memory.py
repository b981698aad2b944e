"""
In-Memory Record Store

Dictionary-backed implementation of the record store, one bucket per
principal. Used for local development, demos and tests.

It behaves like a remote store from the caller's point of view: every
method is a coroutine, results are copies of what is held, and an
unauthenticated (empty) principal id is rejected.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from budget_buddy.models.records import (
    Budget,
    BudgetPlan,
    Frequency,
    RecordSnapshot,
    RecurringItem,
    Transaction,
    TransactionType,
    new_record_id,
)
from budget_buddy.services.storage.interface import (
    NotFoundError,
    RecordStoreInterface,
    StoreAuthError,
)


@dataclass
class _PrincipalRecords:
    transactions: list[Transaction] = field(default_factory=list)
    budgets: list[Budget] = field(default_factory=list)
    recurring: list[RecurringItem] = field(default_factory=list)
    plan: BudgetPlan = field(default_factory=BudgetPlan)


class InMemoryRecordStore(RecordStoreInterface):
    """
    Record store kept in process memory.

    Args:
        latency: Optional artificial delay (seconds) per call, to make
                 the asynchronous sync path observable in demos.
    """

    def __init__(self, latency: float = 0.0):
        self._latency = latency
        self._records: dict[str, _PrincipalRecords] = {}

    def _bucket(self, principal_id: str) -> _PrincipalRecords:
        if not principal_id:
            raise StoreAuthError("Access denied. No principal provided.")
        if principal_id not in self._records:
            self._records[principal_id] = _PrincipalRecords()
        return self._records[principal_id]

    async def _pause(self) -> None:
        # Always yield once so callers never see a synchronous completion
        await asyncio.sleep(self._latency)

    async def fetch_all(self, principal_id: str) -> RecordSnapshot:
        bucket = self._bucket(principal_id)
        await self._pause()
        return RecordSnapshot(
            transactions=tuple(sorted(bucket.transactions, key=lambda t: t.date, reverse=True)),
            budgets=tuple(bucket.budgets),
            recurring=tuple(bucket.recurring),
            plan=bucket.plan,
        )

    async def create_transaction(
        self,
        principal_id: str,
        transaction: Transaction,
    ) -> Transaction:
        bucket = self._bucket(principal_id)
        await self._pause()
        bucket.transactions.insert(0, transaction)
        return transaction

    async def update_transaction(
        self,
        principal_id: str,
        transaction: Transaction,
    ) -> Transaction:
        bucket = self._bucket(principal_id)
        await self._pause()
        for idx, existing in enumerate(bucket.transactions):
            if existing.id == transaction.id:
                bucket.transactions[idx] = transaction
                return transaction
        raise NotFoundError(f"Transaction not found: {transaction.id}")

    async def delete_transaction(self, principal_id: str, transaction_id: str) -> bool:
        bucket = self._bucket(principal_id)
        await self._pause()
        before = len(bucket.transactions)
        bucket.transactions = [t for t in bucket.transactions if t.id != transaction_id]
        return len(bucket.transactions) < before

    async def bulk_import_transactions(
        self,
        principal_id: str,
        transactions: list[Transaction],
    ) -> list[Transaction]:
        bucket = self._bucket(principal_id)
        await self._pause()
        bucket.transactions = list(transactions) + bucket.transactions
        return list(transactions)

    async def upsert_budget(
        self,
        principal_id: str,
        category: str,
        limit: Decimal,
    ) -> Budget:
        bucket = self._bucket(principal_id)
        await self._pause()
        budget = Budget(category=category, limit=limit)
        for idx, existing in enumerate(bucket.budgets):
            if existing.category == category:
                bucket.budgets[idx] = budget
                return budget
        bucket.budgets.append(budget)
        return budget

    async def delete_budget(self, principal_id: str, category: str) -> bool:
        bucket = self._bucket(principal_id)
        await self._pause()
        before = len(bucket.budgets)
        bucket.budgets = [b for b in bucket.budgets if b.category != category]
        return len(bucket.budgets) < before

    async def create_recurring(
        self,
        principal_id: str,
        item: RecurringItem,
    ) -> RecurringItem:
        bucket = self._bucket(principal_id)
        await self._pause()
        bucket.recurring.append(item)
        return item

    async def update_recurring(
        self,
        principal_id: str,
        item: RecurringItem,
    ) -> RecurringItem:
        bucket = self._bucket(principal_id)
        await self._pause()
        for idx, existing in enumerate(bucket.recurring):
            if existing.id == item.id:
                bucket.recurring[idx] = item
                return item
        raise NotFoundError(f"Recurring item not found: {item.id}")

    async def delete_recurring(self, principal_id: str, recurring_id: str) -> bool:
        bucket = self._bucket(principal_id)
        await self._pause()
        before = len(bucket.recurring)
        bucket.recurring = [r for r in bucket.recurring if r.id != recurring_id]
        return len(bucket.recurring) < before

    async def save_plan(
        self,
        principal_id: str,
        file_name: str,
        content: str,
    ) -> BudgetPlan:
        bucket = self._bucket(principal_id)
        await self._pause()
        bucket.plan = BudgetPlan(file_name=file_name, content=content)
        return bucket.plan

    def seed_demo_data(self, principal_id: str, today: Optional[date] = None) -> None:
        """
        Give a fresh principal the starter data new accounts get:
        a month of sample transactions, six budgets and two recurring bills
        (one due in two days, one in fifteen).
        """
        today = today or date.today()
        bucket = self._bucket(principal_id)
        start = today.replace(day=1)

        def txn(day_offset: int, description: str, amount: str, kind: TransactionType, category: str):
            day = min(start + timedelta(days=day_offset), today)
            return Transaction(
                id=new_record_id(),
                date=day,
                description=description,
                amount=Decimal(amount),
                type=kind,
                category=category,
            )

        bucket.transactions = [
            txn(0, "Monthly Salary", "5000", TransactionType.INCOME, "Salary"),
            txn(0, "Rent Payment", "1500", TransactionType.EXPENSE, "Housing"),
            txn(1, "Grocery Shopping", "250.75", TransactionType.EXPENSE, "Groceries"),
            txn(4, "Gasoline", "60", TransactionType.EXPENSE, "Transportation"),
            txn(7, "Dinner with friends", "120.50", TransactionType.EXPENSE, "Food"),
            txn(9, "Movie Tickets", "35", TransactionType.EXPENSE, "Entertainment"),
            txn(11, "New Jacket", "150", TransactionType.EXPENSE, "Apparel"),
            txn(14, "Pharmacy", "45.20", TransactionType.EXPENSE, "Health"),
            txn(15, "Freelance Project", "750", TransactionType.INCOME, "Other"),
            txn(17, "Weekly Groceries", "180.40", TransactionType.EXPENSE, "Groceries"),
        ]
        bucket.budgets = [
            Budget(category="Groceries", limit=Decimal("600")),
            Budget(category="Housing", limit=Decimal("1500")),
            Budget(category="Transportation", limit=Decimal("200")),
            Budget(category="Food", limit=Decimal("300")),
            Budget(category="Entertainment", limit=Decimal("150")),
            Budget(category="Apparel", limit=Decimal("200")),
        ]
        bucket.recurring = [
            RecurringItem(
                id="rec_1",
                description="Netflix Subscription",
                amount=Decimal("650"),
                type=TransactionType.EXPENSE,
                category="Entertainment",
                frequency=Frequency.MONTHLY,
                next_due_date=today + timedelta(days=2),
            ),
            RecurringItem(
                id="rec_2",
                description="Rent",
                amount=Decimal("15000"),
                type=TransactionType.EXPENSE,
                category="Housing",
                frequency=Frequency.MONTHLY,
                next_due_date=today + timedelta(days=15),
            ),
        ]
