"""
User Session

One signed-in principal's working set: the state store, the sync
dispatcher wired to it and the record store both talk to.

DESIGN DECISION: A session is an explicit object created at sign-in and
closed at sign-out. There is no process-wide current user; anything that
needs the session is handed it.
"""

from datetime import date, datetime
from typing import Callable, Optional

from budget_buddy.agents import PlanFeedback, PlanFeedbackFlow
from budget_buddy.alerts import AlertEngine
from budget_buddy.audit import AuditLogger
from budget_buddy.models.state import SessionSnapshot
from budget_buddy.services.auth import Principal
from budget_buddy.services.storage import RecordStoreInterface
from budget_buddy.state import ClientStateStore
from budget_buddy.sync import SyncDispatcher


class UserSession:
    """
    Owns the ClientStateStore and SyncDispatcher for one principal.

    Usage:
        session = UserSession(principal, record_store)
        await session.start()
        session.dispatcher.add_transaction(txn)
        ...
        await session.close()
    """

    def __init__(
        self,
        principal: Principal,
        record_store: RecordStoreInterface,
        engine: Optional[AlertEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self._principal = principal
        self._audit = audit_logger or AuditLogger()
        self._store = ClientStateStore(
            record_store,
            engine=engine,
            audit_logger=self._audit,
            clock=clock,
            now=now,
        )
        self._dispatcher = SyncDispatcher(
            self._store,
            record_store,
            principal,
            audit_logger=self._audit,
        )
        self._closed = False

    @property
    def principal(self) -> Principal:
        return self._principal

    @property
    def store(self) -> ClientStateStore:
        return self._store

    @property
    def dispatcher(self) -> SyncDispatcher:
        return self._dispatcher

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._store.snapshot

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def start(self) -> SessionSnapshot:
        """Run the initial load. Safe to await more than once."""
        self._audit.log_session_opened(self._principal.id)
        return await self._store.initialize(self._principal)

    async def close(self) -> None:
        """Let in-flight syncs finish, then stop accepting mutations."""
        if self._closed:
            return
        pending = self._dispatcher.pending
        await self._dispatcher.drain()
        self._dispatcher.deactivate()
        self._closed = True
        self._audit.log_session_closed(self._principal.id, pending)

    async def get_plan_feedback(self, flow: PlanFeedbackFlow) -> PlanFeedback:
        """Ask the plan advisor about the plan currently held in the session."""
        return await flow.get_feedback(self._store.snapshot.budget_plan)
