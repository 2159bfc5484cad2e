from collections.abc import Sequence

HEADER = [f"col{index}" for index in range(22)]


def sheet_row(
    *,
    counterparty: str = "Maria Souza",
    student: str = "Joao Souza",
    due_date: str = "10/03/2026",
    payment_date: str = "",
    category: str = "Mensalidade",
    description: str = "Mensalidade marco",
    installment: str = "3/12",
    amount: str = "150,00",
    discount: str = "",
    unit: str = "Centro",
) -> list[str]:
    row = [""] * 22
    row[0] = counterparty
    row[3] = student
    row[4] = due_date
    row[5] = payment_date
    row[11] = category
    row[12] = description
    row[13] = installment
    row[14] = amount
    row[16] = discount
    row[21] = unit
    return row


class FakeSource:
    def __init__(self, values: Sequence[Sequence[str | None]] | None = None, error: Exception | None = None) -> None:
        self.values = [list(row) for row in (values or [HEADER])]
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def fetch_values(self, sheet_id: str, cell_range: str) -> list[list[str | None]]:
        self.calls.append((sheet_id, cell_range))
        if self.error is not None:
            raise self.error
        return self.values
