"""Turn raw receivables sheet rows into inflow ledger records.

Everything here is pure: no network, no store. Rows the sheet is known to
carry as administrative noise (short rows, missing due dates, zero amounts)
are reported as ``SkippedRow`` diagnostics instead of errors.
"""
from collections.abc import Sequence
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import IntEnum
import re

from ledger_import.schemas import EntryKind, EntryStatus, FinancialRecord, SkippedRow


MIN_ROW_LENGTH = 22
UNIDENTIFIED_COUNTERPARTY = "Sem identificacao"
NOTE_SEPARATOR = " / "

_DATE_PATTERN = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_NON_NUMERIC = re.compile(r"[^\d.-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


class SheetColumn(IntEnum):
    COUNTERPARTY = 0
    STUDENT = 3
    DUE_DATE = 4
    PAYMENT_DATE = 5
    CATEGORY = 11
    DESCRIPTION = 12
    INSTALLMENT = 13
    AMOUNT = 14
    PUNCTUAL_DISCOUNT = 16
    UNIT = 21


class RawRow:
    """Positional view over one sheet row; missing indices read as absent."""

    def __init__(self, cells: Sequence[str | None] | None) -> None:
        self.cells = list(cells or [])

    def __len__(self) -> int:
        return len(self.cells)

    def raw(self, column: SheetColumn) -> str | None:
        if column >= len(self.cells):
            return None
        value = self.cells[column]
        return None if value is None else str(value)

    def text(self, column: SheetColumn) -> str | None:
        """Trimmed cell text, or None when the cell is absent or blank."""
        value = self.raw(column)
        if value is None:
            return None
        value = value.strip()
        return value or None


def parse_currency(value: str | None) -> Decimal:
    """Parse ``1.234,56`` style text; anything unparsable is zero."""
    if not value:
        return Decimal(0)

    normalized = value.replace(".", "").replace(",", ".", 1)
    normalized = _NON_NUMERIC.sub("", normalized)
    match = _LEADING_NUMBER.match(normalized)
    if not match:
        return Decimal(0)
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal(0)


def parse_sheet_date(value: str | None) -> date | None:
    if not value:
        return None
    match = _DATE_PATTERN.match(value.strip())
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def build_note(category: str | None, installment: str | None) -> str | None:
    category = category.strip() if category else ""
    installment = installment.strip() if installment else ""
    if category and installment:
        return f"{category}{NOTE_SEPARATOR}{installment}"
    return category or installment or None


def normalize_row(row: RawRow) -> FinancialRecord | str:
    """Return the record for ``row`` or the reason it was left out."""
    if len(row) < MIN_ROW_LENGTH:
        return "too few columns"

    amount = parse_currency(row.raw(SheetColumn.AMOUNT))
    due_date = parse_sheet_date(row.raw(SheetColumn.DUE_DATE))
    if due_date is None:
        return "invalid due date"
    if amount == 0:
        return "zero amount"

    payment_date = parse_sheet_date(row.raw(SheetColumn.PAYMENT_DATE))
    discount = parse_currency(row.raw(SheetColumn.PUNCTUAL_DISCOUNT))

    return FinancialRecord(
        due_date=due_date,
        kind=EntryKind.INFLOW,
        counterparty=row.text(SheetColumn.COUNTERPARTY) or UNIDENTIFIED_COUNTERPARTY,
        description=row.text(SheetColumn.DESCRIPTION) or "",
        amount=amount,
        status=EntryStatus.PAID if payment_date else EntryStatus.DUE,
        unit=row.text(SheetColumn.UNIT),
        note=build_note(row.raw(SheetColumn.CATEGORY), row.raw(SheetColumn.INSTALLMENT)),
        payment_date=payment_date,
        student=row.text(SheetColumn.STUDENT),
        installment=row.text(SheetColumn.INSTALLMENT),
        punctual_discount=discount if discount != 0 else None,
    )


def normalize_rows(
    values: Sequence[Sequence[str | None] | None],
) -> tuple[list[FinancialRecord], list[SkippedRow]]:
    """Normalize every data row of a sheet range; the first row is the header."""
    records: list[FinancialRecord] = []
    skipped: list[SkippedRow] = []

    # Sheet row numbers are 1-based and row 1 is the header.
    for row_number, cells in enumerate(values[1:], start=2):
        outcome = normalize_row(RawRow(cells))
        if isinstance(outcome, FinancialRecord):
            records.append(outcome)
        else:
            skipped.append(SkippedRow(row_number, outcome))

    return records, skipped
