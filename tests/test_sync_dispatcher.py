"""
Tests for the sync dispatcher.

The dispatcher applies locally first and syncs in the background, so
every test drains it before checking the record store.
"""

import asyncio
import pytest
from decimal import Decimal

from budget_buddy.models import SetLoading
from budget_buddy.models.records import TransactionType
from budget_buddy.services.storage import InMemoryRecordStore, StorageError
from budget_buddy.state import ClientStateStore
from budget_buddy.sync import SyncDispatcher

from tests.conftest import NOW, TODAY, make_recurring, make_transaction


class FlakyRecordStore(InMemoryRecordStore):
    """In-memory store whose writes always fail."""

    async def create_transaction(self, principal_id, transaction):
        raise StorageError("write quota exceeded")

    async def upsert_budget(self, principal_id, category, limit):
        raise StorageError("write quota exceeded")


async def open_dispatcher(principal, record_store, audit_logger) -> tuple[ClientStateStore, SyncDispatcher]:
    state = ClientStateStore(record_store, audit_logger=audit_logger, clock=lambda: TODAY, now=lambda: NOW)
    await state.initialize(principal)
    return state, SyncDispatcher(state, record_store, principal, audit_logger=audit_logger)


class TestOptimisticApply:
    """Tests for local-first application and background sync."""

    @pytest.mark.asyncio
    async def test_add_transaction_is_visible_before_sync(self, principal, audit_logger):
        record_store = InMemoryRecordStore(latency=0.01)
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        txn = make_transaction(id="t1")

        assert dispatcher.add_transaction(txn)

        assert state.snapshot.transactions == (txn,)
        assert dispatcher.pending == 1

        await dispatcher.drain()

        assert dispatcher.pending == 0
        remote = await record_store.fetch_all(principal.id)
        assert remote.transactions == (txn,)
        audit_logger.log_sync_completed.assert_called()

    @pytest.mark.asyncio
    async def test_failed_sync_keeps_local_change(self, principal, audit_logger):
        record_store = FlakyRecordStore()
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        txn = make_transaction(id="t1")

        assert dispatcher.add_transaction(txn)
        await dispatcher.drain()

        assert state.snapshot.transactions == (txn,)
        audit_logger.log_sync_failed.assert_called_once()
        kwargs = audit_logger.log_sync_failed.call_args.kwargs
        assert kwargs["operation"] == "create_transaction"
        assert kwargs["entity_id"] == "t1"
        assert kwargs["error_message"] == "write quota exceeded"
        assert kwargs["correlation_id"] is not None

    @pytest.mark.asyncio
    async def test_edit_and_delete_round_trip(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        dispatcher.add_transaction(make_transaction(id="t1", amount="10"))
        await dispatcher.drain()

        dispatcher.edit_transaction(make_transaction(id="t1", amount="25"))
        await dispatcher.drain()
        remote = await record_store.fetch_all(principal.id)
        assert remote.transactions[0].amount == Decimal("25")

        dispatcher.delete_transaction("t1")
        await dispatcher.drain()
        assert state.snapshot.transactions == ()
        assert (await record_store.fetch_all(principal.id)).transactions == ()

    @pytest.mark.asyncio
    async def test_edit_of_unknown_id_logs_remote_not_found(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        before = state.snapshot

        assert dispatcher.edit_transaction(make_transaction(id="ghost"))
        await dispatcher.drain()

        assert state.snapshot is before
        audit_logger.log_sync_failed.assert_called_once()


class TestRejection:
    """Tests for operations refused before touching state."""

    @pytest.mark.asyncio
    async def test_no_principal_rejects(self, record_store, audit_logger):
        state = ClientStateStore(record_store, audit_logger=audit_logger)
        state.dispatch(SetLoading(loading=False))
        dispatcher = SyncDispatcher(state, record_store, None, audit_logger=audit_logger)

        assert not dispatcher.add_transaction(make_transaction())
        assert not dispatcher.set_budget("Food", Decimal("100"))
        assert not dispatcher.upload_plan("plan.txt", "text")
        assert state.snapshot.transactions == ()
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_loading_rejects_all_but_plan_upload(self, principal, record_store, audit_logger):
        state = ClientStateStore(record_store, audit_logger=audit_logger)
        dispatcher = SyncDispatcher(state, record_store, principal, audit_logger=audit_logger)

        assert not dispatcher.add_transaction(make_transaction())
        assert not dispatcher.mark_notifications_read()
        assert dispatcher.upload_plan("plan.txt", "Spend less on takeout")
        await dispatcher.drain()

        assert state.snapshot.budget_plan.file_name == "plan.txt"
        remote = await record_store.fetch_all(principal.id)
        assert remote.plan.content == "Spend less on takeout"

    @pytest.mark.asyncio
    async def test_deactivate_rejects_later_operations(self, principal, record_store, audit_logger):
        _, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        dispatcher.deactivate()

        assert dispatcher.principal is None
        assert not dispatcher.delete_budget("Food")


class TestBudgetsRecurringAndImport:
    """Tests for the remaining mutation operations."""

    @pytest.mark.asyncio
    async def test_set_and_delete_budget(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)

        dispatcher.set_budget("Groceries", Decimal("600"))
        dispatcher.set_budget("Groceries", Decimal("650"))
        await dispatcher.drain()

        assert [(b.category, b.limit) for b in state.snapshot.budgets] == [("Groceries", Decimal("650"))]
        remote = await record_store.fetch_all(principal.id)
        assert remote.budgets == state.snapshot.budgets

        dispatcher.delete_budget("Groceries")
        await dispatcher.drain()
        assert state.snapshot.budgets == ()
        assert (await record_store.fetch_all(principal.id)).budgets == ()

    @pytest.mark.asyncio
    async def test_non_positive_limit_is_rejected(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        audit_logger.log_intent_rejected.reset_mock()

        assert not dispatcher.set_budget("Food", Decimal("0"))
        assert not dispatcher.set_budget("Food", Decimal("-10"))

        assert state.snapshot.budgets == ()
        assert dispatcher.pending == 0
        assert audit_logger.log_intent_rejected.call_count == 2
        assert audit_logger.log_intent_rejected.call_args.kwargs["intent_kind"] == "set_budget"

    @pytest.mark.asyncio
    async def test_budget_sync_failure_is_not_rolled_back(self, principal, audit_logger):
        state, dispatcher = await open_dispatcher(principal, FlakyRecordStore(), audit_logger)

        dispatcher.set_budget("Food", Decimal("300"))
        await dispatcher.drain()

        assert state.snapshot.find_budget("Food") is not None

    @pytest.mark.asyncio
    async def test_recurring_lifecycle(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        item = make_recurring(TODAY.replace(day=17), id="rec_9")

        dispatcher.add_recurring(item)
        await dispatcher.drain()
        assert [n.id for n in state.snapshot.notifications] == ["bill_rec_9_2023-11-17"]

        dispatcher.edit_recurring(item.model_copy(update={"active": False}))
        dispatcher.delete_recurring("rec_9")
        await dispatcher.drain()

        assert state.snapshot.recurring == ()
        assert (await record_store.fetch_all(principal.id)).recurring == ()
        # Notifications are never removed by record changes
        assert len(state.snapshot.notifications) == 1

    @pytest.mark.asyncio
    async def test_import_csv_dispatches_parsed_rows(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        text = (
            "id,date,description,amount,type,category\n"
            'a1,2023-11-02,"Grocery Shopping",250.75,expense,Groceries\n'
            ',2023-11-03,"Bus pass",abc,expense,Transportation\n'
            ',2023-11-04,"Salary",5000,income,Salary\n'
        )

        imported = dispatcher.import_csv(text)
        await dispatcher.drain()

        assert imported == 2
        assert [t.description for t in state.snapshot.transactions] == ["Grocery Shopping", "Salary"]
        assert state.snapshot.transactions[1].type == TransactionType.INCOME
        assert len((await record_store.fetch_all(principal.id)).transactions) == 2
        audit_logger.log_csv_import_parsed.assert_called_once_with(
            parsed=2, dropped=1, principal_id=principal.id
        )

    @pytest.mark.asyncio
    async def test_import_csv_with_nothing_valid_dispatches_nothing(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        before = state.snapshot

        imported = dispatcher.import_csv("id,date,description,amount,type,category\n,,,,,\n")

        assert imported == 0
        assert state.snapshot is before
        assert dispatcher.pending == 0


class TestLocalOnlyAndRefresh:
    """Tests for notification reads and explicit refresh."""

    @pytest.mark.asyncio
    async def test_mark_read_never_calls_the_store(self, principal, record_store, audit_logger):
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        dispatcher.add_recurring(make_recurring(TODAY))
        await dispatcher.drain()
        audit_logger.log_sync_started.reset_mock()

        assert dispatcher.mark_notifications_read()

        assert dispatcher.pending == 0
        assert state.snapshot.unread_count == 0
        audit_logger.log_sync_started.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_recovers_from_drift(self, principal, audit_logger):
        record_store = FlakyRecordStore()
        state, dispatcher = await open_dispatcher(principal, record_store, audit_logger)
        dispatcher.add_transaction(make_transaction(id="lost"))
        await dispatcher.drain()
        assert len(state.snapshot.transactions) == 1

        snapshot = await dispatcher.refresh()

        assert snapshot.transactions == ()

    @pytest.mark.asyncio
    async def test_drain_waits_for_every_task(self, principal, audit_logger):
        record_store = InMemoryRecordStore(latency=0.01)
        _, dispatcher = await open_dispatcher(principal, record_store, audit_logger)

        for i in range(5):
            dispatcher.add_transaction(make_transaction(id=f"t{i}"))
        assert dispatcher.pending == 5

        await asyncio.wait_for(dispatcher.drain(), timeout=5)

        assert dispatcher.pending == 0
        assert len((await record_store.fetch_all(principal.id)).transactions) == 5
