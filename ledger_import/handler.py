"""HTTP trigger for the receivables import.

``POST /import`` runs one full import and answers with the outcome. A
pre-flight ``OPTIONS`` is answered for browser callers whatever headers they
ask for; every other method is refused with the failure payload.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ledger_import.pipeline import ImportRunner
from ledger_import.schemas import ImportResult


logger = logging.getLogger(__name__)


def success_payload(result: ImportResult) -> dict[str, object]:
    return {
        "success": True,
        "message": f"Import finished with {result.records_imported} inflow entries.",
        "total_imported": result.records_imported,
        "rows_seen": result.rows_seen,
        "rows_skipped": result.rows_skipped,
    }


def failure_payload(message: str | None) -> dict[str, object]:
    return {"success": False, "message": message or "Unexpected import error."}


def create_app(runner: ImportRunner) -> FastAPI:
    app = FastAPI(title=runner.settings.app_name)
    app.state.runner = runner

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            return JSONResponse(failure_payload("Method not allowed"), status_code=405, headers=exc.headers)
        return JSONResponse(failure_payload(str(exc.detail)), status_code=exc.status_code, headers=exc.headers)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/import")
    def run_import() -> JSONResponse:
        result = app.state.runner.run(trigger_source="http")
        if not result.succeeded:
            logger.error("import request failed", extra={"run_id": result.run_id, "error": result.error})
            return JSONResponse(failure_payload(result.error), status_code=500)
        return JSONResponse(success_payload(result))

    @app.options("/import")
    def preflight() -> PlainTextResponse:
        return PlainTextResponse("ok")

    return app
