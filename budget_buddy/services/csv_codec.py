"""
CSV Transcoding for Transactions

Export writes one line per transaction under the header
`id,date,description,amount,type,category`, with the description always
quoted. Import reads the same shape back.

Import is lenient by row and strict by field: a row that cannot become a
valid Transaction is dropped, never half-imported.
"""

import csv
import io
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from pydantic import ValidationError

from budget_buddy.models.records import Transaction, TransactionType, new_record_id


CSV_COLUMNS = ["id", "date", "description", "amount", "type", "category"]

CENT = Decimal("0.01")


@dataclass
class CsvImportResult:
    """Transactions parsed from a CSV document plus the number of rows dropped."""
    transactions: list[Transaction] = field(default_factory=list)
    dropped: int = 0


def _cell(value: str, quoting: int) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, quoting=quoting, lineterminator="").writerow([value])
    return buffer.getvalue()


def export_transactions(transactions: Iterable[Transaction]) -> str:
    """Render transactions as CSV text, header first."""
    lines = [",".join(CSV_COLUMNS)]
    for t in transactions:
        lines.append(",".join([
            _cell(t.id, csv.QUOTE_MINIMAL),
            t.date.isoformat(),
            _cell(t.description, csv.QUOTE_ALL),
            str(t.amount),
            t.type.value,
            _cell(t.category, csv.QUOTE_MINIMAL),
        ]))
    return "\n".join(lines) + "\n"


def _parse_amount(raw: str) -> Optional[Decimal]:
    try:
        amount = Decimal(raw.strip())
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _parse_row(row: list[str]) -> Optional[Transaction]:
    if len(row) > len(CSV_COLUMNS):
        return None
    # Pad short rows so a missing trailing column reads as empty
    cells = row + [""] * (len(CSV_COLUMNS) - len(row))
    record_id, raw_date, description, raw_amount, raw_type, category = (
        cell.strip() for cell in cells
    )

    if not description or not raw_date:
        return None

    try:
        txn_date = date.fromisoformat(raw_date)
    except ValueError:
        return None

    amount = _parse_amount(raw_amount)
    if amount is None:
        return None

    try:
        txn_type = TransactionType(raw_type.lower())
    except ValueError:
        return None

    try:
        return Transaction(
            id=record_id or new_record_id(),
            date=txn_date,
            description=description,
            amount=amount,
            type=txn_type,
            category=category,
        )
    except ValidationError:
        return None


def parse_transactions(text: str) -> CsvImportResult:
    """
    Parse CSV text into transactions.

    The first row is always treated as the header and skipped. Blank rows
    are ignored and do not count as dropped.
    """
    result = CsvImportResult()
    reader = csv.reader(io.StringIO(text))

    for line_number, row in enumerate(reader):
        if line_number == 0:
            continue
        if not any(cell.strip() for cell in row):
            continue

        transaction = _parse_row(row)
        if transaction is None:
            result.dropped += 1
        else:
            result.transactions.append(transaction)

    return result


def import_transactions(text: str) -> list[Transaction]:
    """Parse CSV text and return only the transactions that survived validation."""
    return parse_transactions(text).transactions
