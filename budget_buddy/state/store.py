"""
Client State Store

Holds the session snapshot, applies intents through a pure reducer and
keeps derived notifications current.

DESIGN DECISION: Every change goes through `reduce`.
- The reducer is a pure function of (snapshot, intent)
- Slices an intent does not touch are shared with the previous snapshot
- Alert re-evaluation is a hook that runs after the reducer, never inside it

The store never talks to the record store on behalf of a mutation; the
sync dispatcher does that after the local change is already visible.
"""

import asyncio
from datetime import date, datetime
from typing import Callable, Optional

import structlog

from budget_buddy.alerts import AlertEngine, merge_notifications
from budget_buddy.audit import AuditLogger
from budget_buddy.models.intents import (
    LOAD_EXEMPT_INTENTS,
    RECORD_INTENTS,
    AddNotification,
    AddRecurring,
    AddTransaction,
    DeleteBudget,
    DeleteRecurring,
    DeleteTransaction,
    EditRecurring,
    EditTransaction,
    ImportTransactions,
    Intent,
    MarkNotificationsRead,
    SetBudget,
    SetInitialData,
    SetLoading,
    UploadPlan,
)
from budget_buddy.models.notification import Notification
from budget_buddy.models.records import RecordSnapshot
from budget_buddy.models.state import SessionSnapshot
from budget_buddy.services.auth import Principal
from budget_buddy.services.storage import RecordStoreInterface


logger = structlog.get_logger(__name__)

Listener = Callable[[SessionSnapshot], None]


def _replace_by_id(items: tuple, replacement) -> Optional[tuple]:
    """Swap the element sharing replacement's id, or None when nothing matches."""
    for idx, item in enumerate(items):
        if item.id == replacement.id:
            return items[:idx] + (replacement,) + items[idx + 1:]
    return None


def _record_counts(data: RecordSnapshot) -> dict[str, int]:
    return {
        "transactions": len(data.transactions),
        "budgets": len(data.budgets),
        "recurring": len(data.recurring),
    }


def reduce(snapshot: SessionSnapshot, intent: Intent) -> SessionSnapshot:
    """
    Apply one intent and return the next snapshot.

    Returns the same snapshot object when the intent changes nothing
    (an edit or delete whose id is unknown, a duplicate notification).

    Raises:
        TypeError: If the intent is not one of the known variants
    """
    if isinstance(intent, SetInitialData):
        data = intent.data
        return snapshot.model_copy(update={
            "transactions": data.transactions,
            "budgets": data.budgets,
            "recurring": data.recurring,
            "budget_plan": data.plan,
        })

    if isinstance(intent, AddTransaction):
        return snapshot.model_copy(update={
            "transactions": (intent.transaction,) + snapshot.transactions,
        })

    if isinstance(intent, EditTransaction):
        updated = _replace_by_id(snapshot.transactions, intent.transaction)
        if updated is None:
            return snapshot
        return snapshot.model_copy(update={"transactions": updated})

    if isinstance(intent, DeleteTransaction):
        remaining = tuple(t for t in snapshot.transactions if t.id != intent.transaction_id)
        if len(remaining) == len(snapshot.transactions):
            return snapshot
        return snapshot.model_copy(update={"transactions": remaining})

    if isinstance(intent, ImportTransactions):
        # Imported batch keeps its own order, ahead of what was there
        return snapshot.model_copy(update={
            "transactions": tuple(intent.transactions) + snapshot.transactions,
        })

    if isinstance(intent, SetBudget):
        budgets = snapshot.budgets
        for idx, existing in enumerate(budgets):
            if existing.category == intent.budget.category:
                budgets = budgets[:idx] + (intent.budget,) + budgets[idx + 1:]
                break
        else:
            budgets = budgets + (intent.budget,)
        return snapshot.model_copy(update={"budgets": budgets})

    if isinstance(intent, DeleteBudget):
        remaining = tuple(b for b in snapshot.budgets if b.category != intent.category)
        if len(remaining) == len(snapshot.budgets):
            return snapshot
        return snapshot.model_copy(update={"budgets": remaining})

    if isinstance(intent, AddRecurring):
        return snapshot.model_copy(update={
            "recurring": snapshot.recurring + (intent.item,),
        })

    if isinstance(intent, EditRecurring):
        updated = _replace_by_id(snapshot.recurring, intent.item)
        if updated is None:
            return snapshot
        return snapshot.model_copy(update={"recurring": updated})

    if isinstance(intent, DeleteRecurring):
        remaining = tuple(r for r in snapshot.recurring if r.id != intent.recurring_id)
        if len(remaining) == len(snapshot.recurring):
            return snapshot
        return snapshot.model_copy(update={"recurring": remaining})

    if isinstance(intent, AddNotification):
        if snapshot.has_notification(intent.notification.id):
            return snapshot
        return snapshot.model_copy(update={
            "notifications": (intent.notification,) + snapshot.notifications,
        })

    if isinstance(intent, MarkNotificationsRead):
        return snapshot.model_copy(update={
            "notifications": tuple(n.mark_read() for n in snapshot.notifications),
        })

    if isinstance(intent, UploadPlan):
        return snapshot.model_copy(update={"budget_plan": intent.plan})

    if isinstance(intent, SetLoading):
        if snapshot.loading == intent.loading:
            return snapshot
        return snapshot.model_copy(update={"loading": intent.loading})

    raise TypeError(f"Unknown intent: {type(intent).__name__}")


class ClientStateStore:
    """
    The session's single source of truth.

    Args:
        record_store: Where the initial load and refreshes read from
        engine: Alert rules (defaults to the shipped thresholds)
        audit_logger: Audit sink
        clock: Returns "today" for alert evaluation
        now: Returns the creation timestamp for new notifications
    """

    def __init__(
        self,
        record_store: RecordStoreInterface,
        engine: Optional[AlertEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self._record_store = record_store
        self._engine = engine or AlertEngine()
        self._audit = audit_logger or AuditLogger()
        self._clock = clock
        self._now = now
        self._snapshot = SessionSnapshot()
        self._listeners: list[Listener] = []
        self._initial_load: Optional[asyncio.Task] = None
        self._principal_id: Optional[str] = None

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def _apply(self, intent: Intent) -> None:
        """Gate and reduce one intent."""
        current = self._snapshot
        if current.loading and not isinstance(intent, LOAD_EXEMPT_INTENTS):
            self._audit.log_intent_rejected(
                intent_kind=intent.kind,
                reason="session is still loading",
                principal_id=self._principal_id,
            )
            return

        self._snapshot = reduce(current, intent)
        self._audit.log_intent_applied(intent.kind, principal_id=self._principal_id)

    def _reevaluate(self) -> list[Notification]:
        snapshot = self._snapshot
        if snapshot.loading:
            return []

        candidates = self._engine.evaluate(
            snapshot.transactions,
            snapshot.budgets,
            snapshot.recurring,
            today=self._clock(),
            now=self._now,
        )
        _, added = merge_notifications(snapshot.notifications, candidates)
        for notification in added:
            self._apply(AddNotification(notification=notification))

        if added:
            self._audit.log_notifications_emitted(
                [n.id for n in added],
                principal_id=self._principal_id,
            )
        return added

    def dispatch(self, intent: Intent) -> SessionSnapshot:
        """
        Apply an intent and, when records changed, re-run the alert rules.

        Intents that need loaded data are dropped while the session is
        still loading. Returns the settled snapshot.
        """
        before = self._snapshot
        self._apply(intent)

        if not self._snapshot.loading and (
            isinstance(intent, RECORD_INTENTS) or before.loading
        ):
            self._reevaluate()

        if self._snapshot is not before:
            self._publish()
        return self._snapshot

    def reevaluate_alerts(self) -> list[Notification]:
        """
        Run the alert rules for today against the current snapshot.

        Useful when only the date moved on. Returns the notifications added.
        """
        added = self._reevaluate()
        if added:
            self._publish()
        return added

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def initialize(self, principal: Principal) -> SessionSnapshot:
        """
        Load the principal's records once.

        Concurrent callers await the same in-flight load. Failures are
        logged and leave the snapshot empty; loading still ends.
        """
        if self._initial_load is None:
            self._principal_id = principal.id
            self._initial_load = asyncio.get_running_loop().create_task(
                self._load(principal)
            )
        return await self._initial_load

    async def _load(self, principal: Principal) -> SessionSnapshot:
        try:
            data = await self._record_store.fetch_all(principal.id)
        except Exception as e:
            self._audit.log_initial_load_failed(principal.id, str(e))
        else:
            self.dispatch(SetInitialData(data=data))
            self._audit.log_initial_load_completed(principal.id, _record_counts(data))

        return self.dispatch(SetLoading(loading=False))

    async def refresh(self, principal: Principal) -> SessionSnapshot:
        """
        Re-fetch everything and replace the record slices wholesale.

        Notifications are kept. On failure the snapshot is left as it was.
        """
        try:
            data = await self._record_store.fetch_all(principal.id)
        except Exception as e:
            self._audit.log_refresh_failed(principal.id, str(e))
            return self._snapshot

        snapshot = self.dispatch(SetInitialData(data=data))
        self._audit.log_refresh_completed(principal.id, _record_counts(data))
        return snapshot

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for settled snapshots. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self._snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error("state_listener_failed", error=str(e))
