from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol

from sqlalchemy import delete, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_import.db_models import LedgerEntry
from ledger_import.errors import StoreDeleteFailed, StoreInsertFailed
from ledger_import.schemas import FinancialRecord


class LedgerStore(Protocol):
    def delete_kind(self, kind: str) -> int: ...

    def insert_batch(self, records: Sequence[FinancialRecord]) -> None: ...

    def transaction(self) -> AbstractContextManager[None]: ...


class SqlLedgerStore:
    """Ledger entries table behind the two write primitives the import needs.

    Outside ``transaction()`` every call commits on its own, so a batch insert
    is atomic per batch and nothing more. Inside it, all calls share one
    session and one commit.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        self._db: Session | None = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self.session_factory() as db, db.begin():
            self._db = db
            try:
                yield
            finally:
                self._db = None

    @contextmanager
    def _unit(self) -> Iterator[Session]:
        if self._db is not None:
            yield self._db
            return
        with self.session_factory() as db, db.begin():
            yield db

    def delete_kind(self, kind: str) -> int:
        try:
            with self._unit() as db:
                result = db.execute(delete(LedgerEntry).where(LedgerEntry.kind == kind))
                return result.rowcount
        except SQLAlchemyError as exc:
            raise StoreDeleteFailed(f"failed to delete '{kind}' ledger entries: {exc}") from exc

    def insert_batch(self, records: Sequence[FinancialRecord]) -> None:
        if not records:
            return
        try:
            with self._unit() as db:
                db.execute(insert(LedgerEntry), [record.to_row() for record in records])
        except SQLAlchemyError as exc:
            raise StoreInsertFailed(f"failed to insert ledger entries: {exc}") from exc
