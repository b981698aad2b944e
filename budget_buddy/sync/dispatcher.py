"""
Sync Dispatcher

Applies a mutation locally first, then tells the record store about it.

DESIGN DECISION: Optimistic, fire-and-forget persistence.
1. The local snapshot changes synchronously, before any network I/O
2. The record store call runs as a background asyncio task
3. A failed call is logged with its correlation id and nothing else:
   no rollback, no retry, no error surfaced to the view

The local view is the source of truth until the next refresh. Two racing
writes to the same record may leave the store and the snapshot disagreeing;
refresh() is how a session recovers from that.

All operations must be called from inside a running event loop.
"""

import asyncio
from decimal import Decimal
from typing import Awaitable, Callable, Optional
from uuid import UUID

from pydantic import ValidationError

from budget_buddy.audit import AuditLogger, create_correlation_id
from budget_buddy.models.intents import (
    AddRecurring,
    AddTransaction,
    DeleteBudget,
    DeleteRecurring,
    DeleteTransaction,
    EditRecurring,
    EditTransaction,
    ImportTransactions,
    MarkNotificationsRead,
    SetBudget,
    UploadPlan,
)
from budget_buddy.models.records import Budget, BudgetPlan, RecurringItem, Transaction
from budget_buddy.models.state import SessionSnapshot
from budget_buddy.services.auth import Principal
from budget_buddy.services.csv_codec import parse_transactions
from budget_buddy.services.storage import RecordStoreInterface
from budget_buddy.state import ClientStateStore


RemoteCall = Callable[[], Awaitable[object]]


class SyncDispatcher:
    """
    Entry point for every user-initiated mutation in a session.

    Each operation returns True when the change was applied locally and
    its sync scheduled, False when it was rejected (no active principal,
    or the session has not finished loading).
    """

    def __init__(
        self,
        store: ClientStateStore,
        record_store: RecordStoreInterface,
        principal: Optional[Principal],
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._record_store = record_store
        self._principal = principal
        self._audit = audit_logger or AuditLogger()
        self._pending: set[asyncio.Task] = set()

    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def pending(self) -> int:
        """Number of record store calls still in flight."""
        return len(self._pending)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _can_mutate(self, requires_loaded: bool = True) -> bool:
        if self._principal is None:
            return False
        if requires_loaded and self._store.snapshot.loading:
            return False
        return True

    def _schedule(self, operation: str, entity_id: Optional[str], call: RemoteCall) -> None:
        correlation_id = create_correlation_id()
        task = asyncio.get_running_loop().create_task(
            self._sync(self._principal.id, operation, entity_id, call, correlation_id)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _sync(
        self,
        principal_id: str,
        operation: str,
        entity_id: Optional[str],
        call: RemoteCall,
        correlation_id: UUID,
    ) -> None:
        self._audit.log_sync_started(operation, principal_id, entity_id, correlation_id)
        try:
            await call()
        except Exception as e:
            self._audit.log_sync_failed(
                operation=operation,
                principal_id=principal_id,
                entity_id=entity_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return
        self._audit.log_sync_completed(operation, principal_id, entity_id, correlation_id)

    async def drain(self) -> None:
        """Wait until every scheduled sync has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def deactivate(self) -> None:
        """Drop the principal. Every later operation is rejected."""
        self._principal = None

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, transaction: Transaction) -> bool:
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        self._store.dispatch(AddTransaction(transaction=transaction))
        self._schedule(
            "create_transaction",
            transaction.id,
            lambda: self._record_store.create_transaction(principal_id, transaction),
        )
        return True

    def edit_transaction(self, transaction: Transaction) -> bool:
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        self._store.dispatch(EditTransaction(transaction=transaction))
        self._schedule(
            "update_transaction",
            transaction.id,
            lambda: self._record_store.update_transaction(principal_id, transaction),
        )
        return True

    def delete_transaction(self, transaction_id: str) -> bool:
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        self._store.dispatch(DeleteTransaction(transaction_id=transaction_id))
        self._schedule(
            "delete_transaction",
            transaction_id,
            lambda: self._record_store.delete_transaction(principal_id, transaction_id),
        )
        return True

    def import_transactions(self, transactions: list[Transaction]) -> bool:
        if not transactions or not self._can_mutate():
            return False
        principal_id = self._principal.id
        batch = tuple(transactions)
        self._store.dispatch(ImportTransactions(transactions=batch))
        self._schedule(
            "bulk_import_transactions",
            None,
            lambda: self._record_store.bulk_import_transactions(principal_id, list(batch)),
        )
        return True

    def import_csv(self, text: str) -> int:
        """
        Parse CSV text and import what survived.

        Returns the number of transactions imported; zero means nothing
        was dispatched.
        """
        if not self._can_mutate():
            return 0
        result = parse_transactions(text)
        self._audit.log_csv_import_parsed(
            parsed=len(result.transactions),
            dropped=result.dropped,
            principal_id=self._principal.id,
        )
        if not self.import_transactions(result.transactions):
            return 0
        return len(result.transactions)

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def set_budget(self, category: str, limit: Decimal) -> bool:
        """Create or replace a category budget; a non-positive limit is rejected."""
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        try:
            budget = Budget(category=category, limit=limit)
        except ValidationError as e:
            self._audit.log_intent_rejected(
                intent_kind="set_budget",
                reason=str(e),
                principal_id=principal_id,
            )
            return False
        self._store.dispatch(SetBudget(budget=budget))
        self._schedule(
            "upsert_budget",
            budget.category,
            lambda: self._record_store.upsert_budget(principal_id, budget.category, budget.limit),
        )
        return True

    def delete_budget(self, category: str) -> bool:
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        self._store.dispatch(DeleteBudget(category=category))
        self._schedule(
            "delete_budget",
            category,
            lambda: self._record_store.delete_budget(principal_id, category),
        )
        return True

    # -------------------------------------------------------------------------
    # Recurring items
    # -------------------------------------------------------------------------

    def add_recurring(self, item: RecurringItem) -> bool:
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        self._store.dispatch(AddRecurring(item=item))
        self._schedule(
            "create_recurring",
            item.id,
            lambda: self._record_store.create_recurring(principal_id, item),
        )
        return True

    def edit_recurring(self, item: RecurringItem) -> bool:
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        self._store.dispatch(EditRecurring(item=item))
        self._schedule(
            "update_recurring",
            item.id,
            lambda: self._record_store.update_recurring(principal_id, item),
        )
        return True

    def delete_recurring(self, recurring_id: str) -> bool:
        if not self._can_mutate():
            return False
        principal_id = self._principal.id
        self._store.dispatch(DeleteRecurring(recurring_id=recurring_id))
        self._schedule(
            "delete_recurring",
            recurring_id,
            lambda: self._record_store.delete_recurring(principal_id, recurring_id),
        )
        return True

    # -------------------------------------------------------------------------
    # Plan and notifications
    # -------------------------------------------------------------------------

    def upload_plan(self, file_name: str, content: str) -> bool:
        """Store a plan document. Allowed before the initial load settles."""
        if not self._can_mutate(requires_loaded=False):
            return False
        principal_id = self._principal.id
        self._store.dispatch(UploadPlan(plan=BudgetPlan(file_name=file_name, content=content)))
        self._schedule(
            "save_plan",
            file_name,
            lambda: self._record_store.save_plan(principal_id, file_name, content),
        )
        return True

    def mark_notifications_read(self) -> bool:
        """Local only: notifications are never persisted."""
        if self._store.snapshot.loading:
            return False
        self._store.dispatch(MarkNotificationsRead())
        return True

    async def refresh(self) -> SessionSnapshot:
        """Re-fetch everything for the active principal."""
        if self._principal is None:
            return self._store.snapshot
        return await self._store.refresh(self._principal)
