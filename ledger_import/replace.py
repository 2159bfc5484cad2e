from collections.abc import Sequence
from contextlib import nullcontext
import logging
from typing import TypeVar

from ledger_import.errors import StoreInsertFailed
from ledger_import.ledger_store import LedgerStore
from ledger_import.schemas import FinancialRecord


logger = logging.getLogger(__name__)
T = TypeVar("T")

DEFAULT_BATCH_SIZE = 500


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    if size < 1:
        raise ValueError("batch size must be positive")
    return [items[start : start + size] for start in range(0, len(items), size)]


def replace_records(
    store: LedgerStore,
    records: Sequence[FinancialRecord],
    *,
    kind: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    atomic: bool = False,
) -> int:
    """Delete every stored entry of ``kind`` and insert ``records`` in batches.

    Without ``atomic`` a failed batch leaves the earlier batches in place; with
    it, the delete and every insert share one store transaction.
    """
    batches = chunked(records, batch_size)

    with store.transaction() if atomic else nullcontext():
        deleted = store.delete_kind(kind)
        logger.info("deleted existing entries", extra={"kind": kind, "deleted": deleted})

        written = 0
        for batch_index, batch in enumerate(batches):
            try:
                store.insert_batch(batch)
            except StoreInsertFailed as exc:
                exc.batch_index = batch_index
                logger.error(
                    "batch insert failed",
                    extra={"kind": kind, "batch_index": batch_index, "written": written},
                )
                raise
            written += len(batch)
            logger.debug("inserted batch", extra={"kind": kind, "batch_index": batch_index, "size": len(batch)})

    return written
