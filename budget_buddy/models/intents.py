"""
Session Intents

The closed set of changes a session snapshot can undergo. Every variant
carries a literal `kind` tag, and `Intent` is the discriminated union the
reducer switches over.

DESIGN DECISION: Intents are plain frozen data. They say WHAT should
change; the reducer in budget_buddy.state decides HOW, and the sync
dispatcher decides what the record store has to hear about it.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from budget_buddy.models.notification import Notification
from budget_buddy.models.records import (
    Budget,
    BudgetPlan,
    RecordSnapshot,
    RecurringItem,
    Transaction,
)


class _Intent(BaseModel):
    model_config = ConfigDict(frozen=True)


class SetInitialData(_Intent):
    kind: Literal["set_initial_data"] = "set_initial_data"
    data: RecordSnapshot


class AddTransaction(_Intent):
    kind: Literal["add_transaction"] = "add_transaction"
    transaction: Transaction


class EditTransaction(_Intent):
    kind: Literal["edit_transaction"] = "edit_transaction"
    transaction: Transaction


class DeleteTransaction(_Intent):
    kind: Literal["delete_transaction"] = "delete_transaction"
    transaction_id: str


class ImportTransactions(_Intent):
    kind: Literal["import_transactions"] = "import_transactions"
    transactions: tuple[Transaction, ...]


class SetBudget(_Intent):
    kind: Literal["set_budget"] = "set_budget"
    budget: Budget


class DeleteBudget(_Intent):
    kind: Literal["delete_budget"] = "delete_budget"
    category: str


class AddRecurring(_Intent):
    kind: Literal["add_recurring"] = "add_recurring"
    item: RecurringItem


class EditRecurring(_Intent):
    kind: Literal["edit_recurring"] = "edit_recurring"
    item: RecurringItem


class DeleteRecurring(_Intent):
    kind: Literal["delete_recurring"] = "delete_recurring"
    recurring_id: str


class AddNotification(_Intent):
    kind: Literal["add_notification"] = "add_notification"
    notification: Notification


class MarkNotificationsRead(_Intent):
    kind: Literal["mark_notifications_read"] = "mark_notifications_read"


class UploadPlan(_Intent):
    kind: Literal["upload_plan"] = "upload_plan"
    plan: BudgetPlan


class SetLoading(_Intent):
    kind: Literal["set_loading"] = "set_loading"
    loading: bool


Intent = Annotated[
    Union[
        SetInitialData,
        AddTransaction,
        EditTransaction,
        DeleteTransaction,
        ImportTransactions,
        SetBudget,
        DeleteBudget,
        AddRecurring,
        EditRecurring,
        DeleteRecurring,
        AddNotification,
        MarkNotificationsRead,
        UploadPlan,
        SetLoading,
    ],
    Field(discriminator="kind"),
]


# Intents that change the records the alert engine reads from.
RECORD_INTENTS = (
    SetInitialData,
    AddTransaction,
    EditTransaction,
    DeleteTransaction,
    ImportTransactions,
    SetBudget,
    DeleteBudget,
    AddRecurring,
    EditRecurring,
    DeleteRecurring,
)

# Intents allowed before the initial load has settled.
LOAD_EXEMPT_INTENTS = (
    SetInitialData,
    SetLoading,
    UploadPlan,
)


_intent_adapter = TypeAdapter(Intent)


def parse_intent(data: dict[str, Any]) -> Intent:
    """
    Validate a raw mapping into the matching intent variant.

    Raises pydantic.ValidationError for unknown kinds or bad payloads.
    """
    return _intent_adapter.validate_python(data)
