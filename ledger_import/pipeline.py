import logging
import threading
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_import.config import Settings
from ledger_import.db_models import ImportRun
from ledger_import.errors import ImportAlreadyRunning, StoreInsertFailed
from ledger_import.ledger_store import LedgerStore, SqlLedgerStore
from ledger_import.normalizer import normalize_rows
from ledger_import.replace import replace_records
from ledger_import.run_store import create_run, mark_run_failed, mark_run_succeeded
from ledger_import.schemas import EntryKind, FinancialRecord, ImportResult, SkippedRow


logger = logging.getLogger(__name__)

_locks_guard = threading.Lock()
_run_locks: dict[str, threading.Lock] = {}


def run_lock(kind: str) -> threading.Lock:
    with _locks_guard:
        return _run_locks.setdefault(kind, threading.Lock())


class ValuesSource(Protocol):
    def fetch_values(self, sheet_id: str, cell_range: str) -> list[list[str | None]]: ...


class ImportRunner:
    def __init__(
        self,
        settings: Settings,
        session_factory: sessionmaker[Session],
        source: ValuesSource,
        store: LedgerStore | None = None,
        *,
        kind: str = EntryKind.INFLOW,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.source = source
        self.store = store if store is not None else SqlLedgerStore(session_factory)
        self.kind = str(kind)

    def preview(self) -> tuple[list[FinancialRecord], list[SkippedRow]]:
        """Fetch and normalize without touching the store."""
        values = self.source.fetch_values(self.settings.sheet_id, self.settings.sheet_range)
        return normalize_rows(values)

    def run(self, *, trigger_source: str = "manual") -> ImportResult:
        lock = run_lock(self.kind)
        if not lock.acquire(blocking=False):
            exc = ImportAlreadyRunning(self.kind)
            logger.warning("import rejected", extra={"kind": self.kind, "reason": str(exc)})
            return self._failed_result(trigger_source, str(exc))
        try:
            return self._run_locked(trigger_source)
        finally:
            lock.release()

    def _run_locked(self, trigger_source: str) -> ImportResult:
        with self.session_factory() as db:
            try:
                run = create_run(db, kind=self.kind, trigger_source=trigger_source)
            except SQLAlchemyError as exc:
                logger.exception("could not record import run", extra={"kind": self.kind})
                return self._failed_result(trigger_source, f"ledger store unavailable: {exc}")

            run_id = run.id
            logger.info("import started", extra={"run_id": run_id, "kind": self.kind})

            rows_seen = 0
            skipped: list[SkippedRow] = []

            try:
                values = self.source.fetch_values(self.settings.sheet_id, self.settings.sheet_range)
                rows_seen = max(len(values) - 1, 0)

                records, skipped = normalize_rows(values)
                for row in skipped:
                    logger.debug("row skipped", extra={"row_number": row.row_number, "reason": row.reason})

                written = replace_records(
                    self.store,
                    records,
                    kind=self.kind,
                    batch_size=self.settings.batch_size,
                    atomic=self.settings.atomic_replace,
                )

                mark_run_succeeded(
                    db,
                    run,
                    rows_seen=rows_seen,
                    rows_skipped=len(skipped),
                    records_imported=written,
                )
            except Exception as exc:
                logger.exception("import failed", extra={"run_id": run_id, "kind": self.kind})
                error = str(exc)
                written_before = self._written_before_failure(exc)
                try:
                    db.rollback()
                    mark_run_failed(
                        db,
                        run,
                        error=error,
                        rows_seen=rows_seen,
                        rows_skipped=len(skipped),
                        records_imported=written_before,
                    )
                except SQLAlchemyError:
                    logger.exception("could not record failed import run", extra={"run_id": run_id})
                return self._failed_result(
                    trigger_source,
                    error,
                    run_id=run_id,
                    rows_seen=rows_seen,
                    rows_skipped=len(skipped),
                    records_imported=written_before,
                )

            logger.info(
                "import finished",
                extra={"run_id": run_id, "imported": run.records_imported, "skipped": run.rows_skipped},
            )
            return self._result_from_run(run)

    def _failed_result(
        self,
        trigger_source: str,
        error: str,
        *,
        run_id: int | None = None,
        rows_seen: int = 0,
        rows_skipped: int = 0,
        records_imported: int = 0,
    ) -> ImportResult:
        return ImportResult(
            run_id=run_id,
            kind=self.kind,
            trigger_source=trigger_source,
            status="failed",
            rows_seen=rows_seen,
            rows_skipped=rows_skipped,
            records_imported=records_imported,
            error=error,
        )

    def _written_before_failure(self, exc: Exception) -> int:
        # Earlier batches survive a failed insert unless the replace is transactional.
        if self.settings.atomic_replace or not isinstance(exc, StoreInsertFailed) or exc.batch_index is None:
            return 0
        return exc.batch_index * self.settings.batch_size

    def _result_from_run(self, run: ImportRun) -> ImportResult:
        return ImportResult(
            run_id=run.id,
            kind=run.kind,
            trigger_source=run.trigger_source,
            status=run.status,
            rows_seen=run.rows_seen,
            rows_skipped=run.rows_skipped,
            records_imported=run.records_imported,
            error=run.error,
        )
