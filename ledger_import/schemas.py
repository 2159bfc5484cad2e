from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum


class EntryKind(StrEnum):
    INFLOW = "Entrada"


class EntryStatus(StrEnum):
    PAID = "Paid"
    DUE = "Due"


@dataclass(frozen=True)
class FinancialRecord:
    due_date: date
    counterparty: str
    description: str
    amount: Decimal
    status: EntryStatus
    unit: str | None = None
    note: str | None = None
    payment_date: date | None = None
    student: str | None = None
    installment: str | None = None
    punctual_discount: Decimal | None = None
    kind: EntryKind = EntryKind.INFLOW

    def to_row(self) -> dict[str, object]:
        """Column mapping used for inserts; the store assigns the id."""
        return {
            "due_date": self.due_date,
            "kind": str(self.kind),
            "counterparty": self.counterparty,
            "description": self.description,
            "amount": self.amount,
            "status": str(self.status),
            "unit": self.unit,
            "note": self.note,
            "payment_date": self.payment_date,
            "student": self.student,
            "installment": self.installment,
            "punctual_discount": self.punctual_discount,
        }

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "due_date": self.due_date.isoformat(),
            "kind": str(self.kind),
            "counterparty": self.counterparty,
            "description": self.description,
            "amount": str(self.amount),
            "status": str(self.status),
            "unit": self.unit,
            "note": self.note,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "student": self.student,
            "installment": self.installment,
        }
        # Optional attribute, never present with value zero.
        if self.punctual_discount is not None:
            payload["punctual_discount"] = str(self.punctual_discount)
        return payload


@dataclass(frozen=True)
class SkippedRow:
    row_number: int
    reason: str


@dataclass(frozen=True)
class ImportResult:
    run_id: int | None
    kind: str
    trigger_source: str
    status: str
    rows_seen: int
    rows_skipped: int
    records_imported: int
    error: str | None

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"
