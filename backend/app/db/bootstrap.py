from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

import app.models  # noqa: F401
from app.db.base import Base

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"user_id", "full_name", "role", "batch_id"},
    "classrooms": {"classroom_id", "room_number"},
    "courses": {"course_id", "course_code", "course_name"},
    "batches": {"batch_id", "division_id", "batch_name"},
    "schedule": {
        "schedule_id",
        "course_id",
        "professor_id",
        "batch_id",
        "classroom_id",
        "class_type",
        "day_of_week",
        "class_date",
        "start_time",
        "end_time",
    },
}


def find_schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(columns - existing)
        if missing:
            missing_columns[table_name] = missing
    return sorted(missing_tables), missing_columns


async def ensure_runtime_schema(engine: AsyncEngine, *, create_missing: bool) -> None:
    try:
        async with engine.begin() as connection:
            if create_missing:
                await connection.run_sync(Base.metadata.create_all)
            missing_tables, missing_columns = await connection.run_sync(find_schema_gaps)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc

    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}")
