"""Load the recurring (Base) timetable into the schedule table.

Run:
  PYTHONPATH=backend python scripts/seed_base_timetable.py path/to/base_timetable.json

The file holds a JSON list of objects with course_id, professor_id, batch_id,
classroom_id, day_of_week, start_time and end_time.

On PostgreSQL the load holds an exclusive lock on the schedule table, so extra
class bookings made while it runs wait for it to commit and then see its rows.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from pydantic import TypeAdapter

from app.core.config import get_settings
from app.core.logging_config import setup_logging
from app.db.bootstrap import ensure_runtime_schema
from app.db.session import create_engine_from_settings, create_session_factory
from app.services.booking.seeding import BaseTimetableEntry, seed_base_timetable

logger = logging.getLogger("seed_base_timetable")


async def main(path: Path) -> int:
    settings = get_settings()
    setup_logging(settings)
    entries = TypeAdapter(list[BaseTimetableEntry]).validate_python(json.loads(path.read_text(encoding="utf-8")))

    engine = create_engine_from_settings(settings)
    try:
        await ensure_runtime_schema(engine, create_missing=settings.auto_create_schema)
        report = await seed_base_timetable(create_session_factory(engine), entries)
    finally:
        await engine.dispose()

    for entry, schedule_id in report.skipped:
        logger.warning("Not seeded (clashes with schedule %s): %s", schedule_id, entry.model_dump())
    return 1 if report.skipped else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", type=Path)
    args = parser.parse_args()
    raise SystemExit(asyncio.run(main(args.path)))
