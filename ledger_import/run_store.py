from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_import.db_models import ImportRun, utc_now


def create_run(db: Session, *, kind: str, trigger_source: str) -> ImportRun:
    run = ImportRun(kind=kind, trigger_source=trigger_source, status="running", started_at=utc_now())
    db.add(run)
    db.commit()
    db.refresh(run)
    return run


def latest_run(db: Session, kind: str) -> ImportRun | None:
    stmt = select(ImportRun).where(ImportRun.kind == kind).order_by(ImportRun.id.desc()).limit(1)
    return db.execute(stmt).scalar_one_or_none()


def mark_run_succeeded(
    db: Session,
    run: ImportRun,
    *,
    rows_seen: int,
    rows_skipped: int,
    records_imported: int,
) -> None:
    run.status = "succeeded"
    run.rows_seen = rows_seen
    run.rows_skipped = rows_skipped
    run.records_imported = records_imported
    run.completed_at = utc_now()
    run.error = None
    db.commit()


def mark_run_failed(
    db: Session,
    run: ImportRun,
    *,
    error: str,
    rows_seen: int = 0,
    rows_skipped: int = 0,
    records_imported: int = 0,
) -> None:
    run.status = "failed"
    run.error = error
    run.rows_seen = rows_seen
    run.rows_skipped = rows_skipped
    run.records_imported = records_imported
    run.completed_at = utc_now()
    db.commit()
