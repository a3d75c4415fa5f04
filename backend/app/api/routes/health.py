from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.db.bootstrap import find_schema_gaps

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
async def health_ready(request: Request) -> JSONResponse:
    engine = request.app.state.engine
    db_ok = True
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    db_error: str | None = None

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
            missing_tables, missing_columns = await connection.run_sync(find_schema_gaps)
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = exc.__class__.__name__

    schema_ok = not missing_tables and not missing_columns
    ready = db_ok and schema_ok

    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "dialect": engine.dialect.name,
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
        "booking_lock_strategy": request.app.state.lock_strategy.name,
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
