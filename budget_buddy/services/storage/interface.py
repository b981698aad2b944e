"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for the durable store.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for development and testing
3. Keep the session core decoupled from storage implementation

The interface is intentionally simple - just the CRUD the session core
needs. Every call is scoped to one principal; an implementation must
never read or write another principal's records.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from budget_buddy.models.records import (
    Budget,
    BudgetPlan,
    RecordSnapshot,
    RecurringItem,
    Transaction,
)


class RecordStoreInterface(ABC):
    """
    Abstract interface for record storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def fetch_all(self, principal_id: str) -> RecordSnapshot:
        """
        Load everything a principal owns.

        Returns:
            Transactions (newest date first), budgets, recurring items
            and the plan document

        Raises:
            StoreAuthError: If the principal is not authenticated
            StorageError: If the load fails
        """
        pass

    @abstractmethod
    async def create_transaction(
        self,
        principal_id: str,
        transaction: Transaction,
    ) -> Transaction:
        """
        Persist a new transaction.

        Returns:
            The stored transaction
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        principal_id: str,
        transaction: Transaction,
    ) -> Transaction:
        """
        Replace a stored transaction with the same id.

        Raises:
            NotFoundError: If no transaction has that id
        """
        pass

    @abstractmethod
    async def delete_transaction(self, principal_id: str, transaction_id: str) -> bool:
        """
        Delete a transaction by id.

        Returns:
            True if a record was removed, False if none matched
        """
        pass

    @abstractmethod
    async def bulk_import_transactions(
        self,
        principal_id: str,
        transactions: list[Transaction],
    ) -> list[Transaction]:
        """
        Persist a batch of imported transactions.

        Returns:
            The stored transactions
        """
        pass

    @abstractmethod
    async def upsert_budget(
        self,
        principal_id: str,
        category: str,
        limit: Decimal,
    ) -> Budget:
        """
        Create the budget for a category, or overwrite its limit.

        Returns:
            The stored budget
        """
        pass

    @abstractmethod
    async def delete_budget(self, principal_id: str, category: str) -> bool:
        """
        Delete the budget for a category. Transactions are untouched.

        Returns:
            True if a budget was removed
        """
        pass

    @abstractmethod
    async def create_recurring(
        self,
        principal_id: str,
        item: RecurringItem,
    ) -> RecurringItem:
        pass

    @abstractmethod
    async def update_recurring(
        self,
        principal_id: str,
        item: RecurringItem,
    ) -> RecurringItem:
        """
        Raises:
            NotFoundError: If no recurring item has that id
        """
        pass

    @abstractmethod
    async def delete_recurring(self, principal_id: str, recurring_id: str) -> bool:
        pass

    @abstractmethod
    async def save_plan(
        self,
        principal_id: str,
        file_name: str,
        content: str,
    ) -> BudgetPlan:
        """
        Store the principal's plan document, replacing any previous one.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StoreAuthError(StorageError):
    """The call was made without an authenticated principal."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
