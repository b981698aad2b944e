"""
Google Sheets Record Store

DESIGN DECISION: Google Sheets is a supported durable backend because:
1. Users can view and fix their own data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for one household's budget)
- No transactions (the session core never assumes any)
- Limited query capabilities (we filter by principal in Python)

Each record kind lives in its own worksheet, one record per row, with the
owning principal's id in the first column.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_buddy.config import GoogleSheetsSettings, get_settings
from budget_buddy.models.records import (
    Budget,
    BudgetPlan,
    Frequency,
    RecordSnapshot,
    RecurringItem,
    Transaction,
    TransactionType,
)
from budget_buddy.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoreAuthError,
)


# Column mappings, one list per worksheet
TRANSACTION_COLUMNS = [
    "principal_id",
    "id",
    "date",
    "description",
    "amount",
    "type",
    "category",
]

BUDGET_COLUMNS = [
    "principal_id",
    "category",
    "limit",
]

RECURRING_COLUMNS = [
    "principal_id",
    "id",
    "description",
    "amount",
    "type",
    "category",
    "frequency",
    "next_due_date",
    "active",
]

PLAN_COLUMNS = [
    "principal_id",
    "file_name",
    "content",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet creation, with retry on connect.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=5000
        )

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.budgets_sheet_name, BUDGET_COLUMNS, rows=500
        )

    def get_recurring_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.recurring_sheet_name, RECURRING_COLUMNS, rows=500
        )

    def get_plans_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(
            self._settings.plans_sheet_name, PLAN_COLUMNS, rows=100
        )


def _safe_getter(row: list) -> Callable[[int], str]:
    """Handle short rows gracefully: missing cells read as empty."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsRecordStore(RecordStoreInterface):
    """
    Google Sheets implementation of the record store.

    Rows are matched on (principal_id, key) where key is the record id,
    or the category for budgets.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _require_principal(principal_id: str) -> None:
        if not principal_id:
            raise StoreAuthError("Access denied. No principal provided.")

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _transaction_to_row(principal_id: str, t: Transaction) -> list:
        return [
            principal_id,
            t.id,
            t.date.isoformat(),
            t.description,
            str(t.amount),
            t.type.value,
            t.category,
        ]

    @staticmethod
    def _row_to_transaction(row: list) -> Transaction:
        safe_get = _safe_getter(row)
        return Transaction(
            id=safe_get(1),
            date=date.fromisoformat(safe_get(2)),
            description=safe_get(3),
            amount=Decimal(safe_get(4)),
            type=TransactionType(safe_get(5)),
            category=safe_get(6),
        )

    @staticmethod
    def _budget_to_row(principal_id: str, b: Budget) -> list:
        return [principal_id, b.category, str(b.limit)]

    @staticmethod
    def _row_to_budget(row: list) -> Budget:
        safe_get = _safe_getter(row)
        return Budget(category=safe_get(1), limit=Decimal(safe_get(2)))

    @staticmethod
    def _recurring_to_row(principal_id: str, r: RecurringItem) -> list:
        return [
            principal_id,
            r.id,
            r.description,
            str(r.amount),
            r.type.value,
            r.category,
            r.frequency.value,
            r.next_due_date.isoformat(),
            str(r.active),
        ]

    @staticmethod
    def _row_to_recurring(row: list) -> RecurringItem:
        safe_get = _safe_getter(row)
        return RecurringItem(
            id=safe_get(1),
            description=safe_get(2),
            amount=Decimal(safe_get(3)),
            type=TransactionType(safe_get(4)),
            category=safe_get(5),
            frequency=Frequency(safe_get(6)),
            next_due_date=date.fromisoformat(safe_get(7)),
            active=safe_get(8, "True").lower() == "true",
        )

    @staticmethod
    def _principal_rows(sheet: gspread.Worksheet, principal_id: str):
        """Yield (sheet_row_number, row) for the principal's rows."""
        all_rows = sheet.get_all_values()
        # Start from 2 (row 1 is header)
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == principal_id:
                yield idx, row

    @staticmethod
    def _replace_row(sheet: gspread.Worksheet, row_number: int, values: list) -> None:
        for col_idx, value in enumerate(values, start=1):
            sheet.update_cell(row_number, col_idx, value)

    # -------------------------------------------------------------------------
    # RecordStoreInterface
    # -------------------------------------------------------------------------

    async def fetch_all(self, principal_id: str) -> RecordSnapshot:
        self._require_principal(principal_id)
        try:
            transactions = []
            for _, row in self._principal_rows(self._client.get_transactions_sheet(), principal_id):
                try:
                    transactions.append(self._row_to_transaction(row))
                except Exception:
                    continue  # Skip malformed rows

            budgets = []
            for _, row in self._principal_rows(self._client.get_budgets_sheet(), principal_id):
                try:
                    budgets.append(self._row_to_budget(row))
                except Exception:
                    continue

            recurring = []
            for _, row in self._principal_rows(self._client.get_recurring_sheet(), principal_id):
                try:
                    recurring.append(self._row_to_recurring(row))
                except Exception:
                    continue

            plan = BudgetPlan()
            for _, row in self._principal_rows(self._client.get_plans_sheet(), principal_id):
                safe_get = _safe_getter(row)
                plan = BudgetPlan(file_name=safe_get(1) or None, content=safe_get(2) or None)

            # Newest first, like the original API
            transactions.sort(key=lambda t: t.date, reverse=True)

            return RecordSnapshot(
                transactions=tuple(transactions),
                budgets=tuple(budgets),
                recurring=tuple(recurring),
                plan=plan,
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load records: {e}")

    async def create_transaction(
        self,
        principal_id: str,
        transaction: Transaction,
    ) -> Transaction:
        self._require_principal(principal_id)
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(
                self._transaction_to_row(principal_id, transaction),
                value_input_option="RAW",
            )
            return transaction
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def update_transaction(
        self,
        principal_id: str,
        transaction: Transaction,
    ) -> Transaction:
        self._require_principal(principal_id)
        try:
            sheet = self._client.get_transactions_sheet()
            for row_number, row in self._principal_rows(sheet, principal_id):
                if len(row) > 1 and row[1] == transaction.id:
                    self._replace_row(
                        sheet, row_number, self._transaction_to_row(principal_id, transaction)
                    )
                    return transaction
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def delete_transaction(self, principal_id: str, transaction_id: str) -> bool:
        self._require_principal(principal_id)
        try:
            sheet = self._client.get_transactions_sheet()
            for row_number, row in self._principal_rows(sheet, principal_id):
                if len(row) > 1 and row[1] == transaction_id:
                    sheet.delete_rows(row_number)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    async def bulk_import_transactions(
        self,
        principal_id: str,
        transactions: list[Transaction],
    ) -> list[Transaction]:
        self._require_principal(principal_id)
        if not transactions:
            return []
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_rows(
                [self._transaction_to_row(principal_id, t) for t in transactions],
                value_input_option="RAW",
            )
            return list(transactions)
        except Exception as e:
            raise StorageError(f"Failed to import transactions: {e}")

    async def upsert_budget(
        self,
        principal_id: str,
        category: str,
        limit: Decimal,
    ) -> Budget:
        self._require_principal(principal_id)
        budget = Budget(category=category, limit=limit)
        try:
            sheet = self._client.get_budgets_sheet()
            for row_number, row in self._principal_rows(sheet, principal_id):
                if len(row) > 1 and row[1] == category:
                    self._replace_row(sheet, row_number, self._budget_to_row(principal_id, budget))
                    return budget
            sheet.append_row(self._budget_to_row(principal_id, budget), value_input_option="RAW")
            return budget
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")

    async def delete_budget(self, principal_id: str, category: str) -> bool:
        self._require_principal(principal_id)
        try:
            sheet = self._client.get_budgets_sheet()
            for row_number, row in self._principal_rows(sheet, principal_id):
                if len(row) > 1 and row[1] == category:
                    sheet.delete_rows(row_number)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete budget: {e}")

    async def create_recurring(
        self,
        principal_id: str,
        item: RecurringItem,
    ) -> RecurringItem:
        self._require_principal(principal_id)
        try:
            sheet = self._client.get_recurring_sheet()
            sheet.append_row(self._recurring_to_row(principal_id, item), value_input_option="RAW")
            return item
        except Exception as e:
            raise StorageError(f"Failed to save recurring item: {e}")

    async def update_recurring(
        self,
        principal_id: str,
        item: RecurringItem,
    ) -> RecurringItem:
        self._require_principal(principal_id)
        try:
            sheet = self._client.get_recurring_sheet()
            for row_number, row in self._principal_rows(sheet, principal_id):
                if len(row) > 1 and row[1] == item.id:
                    self._replace_row(sheet, row_number, self._recurring_to_row(principal_id, item))
                    return item
            raise NotFoundError(f"Recurring item not found: {item.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update recurring item: {e}")

    async def delete_recurring(self, principal_id: str, recurring_id: str) -> bool:
        self._require_principal(principal_id)
        try:
            sheet = self._client.get_recurring_sheet()
            for row_number, row in self._principal_rows(sheet, principal_id):
                if len(row) > 1 and row[1] == recurring_id:
                    sheet.delete_rows(row_number)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete recurring item: {e}")

    async def save_plan(
        self,
        principal_id: str,
        file_name: str,
        content: str,
    ) -> BudgetPlan:
        self._require_principal(principal_id)
        plan = BudgetPlan(file_name=file_name, content=content)
        values = [principal_id, file_name, content]
        try:
            # One plan per principal
            sheet = self._client.get_plans_sheet()
            for row_number, _ in self._principal_rows(sheet, principal_id):
                self._replace_row(sheet, row_number, values)
                return plan
            sheet.append_row(values, value_input_option="RAW")
            return plan
        except Exception as e:
            raise StorageError(f"Failed to save budget plan: {e}")
