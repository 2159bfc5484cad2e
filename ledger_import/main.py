import argparse
import json
import logging
import sys

import uvicorn

from ledger_import.config import Settings, get_settings
from ledger_import.database import build_session_factory
from ledger_import.errors import ConfigurationInvalid, ConfigurationMissing
from ledger_import.handler import create_app
from ledger_import.pipeline import ImportRunner
from ledger_import.run_store import latest_run
from ledger_import.sheets_client import SheetsClient


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import receivables from Google Sheets into the ledger")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="run one import now")
    subparsers.add_parser("preview", help="fetch and normalize, print entries as JSON lines, write nothing")
    subparsers.add_parser("status", help="show the most recent import run")

    serve_parser = subparsers.add_parser("serve", help="serve the HTTP import trigger")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def build_runner(settings: Settings) -> ImportRunner:
    session_factory = build_session_factory(settings.database_url, settings.database_password)
    source = SheetsClient(
        settings.google_api_key,
        base_url=settings.sheets_base_url,
        timeout=settings.sheets_timeout_seconds,
    )
    return ImportRunner(settings, session_factory, source)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        settings = get_settings()
    except (ConfigurationMissing, ConfigurationInvalid) as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    runner = build_runner(settings)

    if args.command == "serve":
        uvicorn.run(create_app(runner), host=args.host, port=args.port)
        return

    if args.command == "preview":
        records, skipped = runner.preview()
        for record in records:
            print(json.dumps(record.to_payload(), sort_keys=True, ensure_ascii=False))
        print(f"entries={len(records)} skipped={len(skipped)}", file=sys.stderr)
        return

    if args.command == "status":
        with runner.session_factory() as db:
            run = latest_run(db, runner.kind)
            if run is None:
                print("no import runs recorded")
                return
            print(
                f"run_id={run.id} kind={run.kind} status={run.status} started={run.started_at.isoformat()} "
                f"seen={run.rows_seen} skipped={run.rows_skipped} imported={run.records_imported} error={run.error}"
            )
        return

    result = runner.run(trigger_source="cli")
    print(
        "run_id={run_id} kind={kind} status={status} seen={seen} skipped={skipped} imported={imported}".format(
            run_id=result.run_id,
            kind=result.kind,
            status=result.status,
            seen=result.rows_seen,
            skipped=result.rows_skipped,
            imported=result.records_imported,
        )
    )
    if not result.succeeded:
        print(f"error: {result.error}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
