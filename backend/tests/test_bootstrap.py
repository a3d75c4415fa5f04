import pytest
from sqlalchemy import text

from app.db import bootstrap
from app.db.session import create_engine_from_settings


async def test_runtime_schema_bootstrap_creates_missing_tables(settings):
    engine = create_engine_from_settings(settings)
    try:
        await bootstrap.ensure_runtime_schema(engine, create_missing=True)
        async with engine.connect() as connection:
            missing_tables, missing_columns = await connection.run_sync(bootstrap.find_schema_gaps)
    finally:
        await engine.dispose()

    assert missing_tables == []
    assert missing_columns == {}


async def test_runtime_schema_bootstrap_raises_on_empty_database(settings):
    engine = create_engine_from_settings(settings)
    try:
        with pytest.raises(RuntimeError, match="Missing required tables"):
            await bootstrap.ensure_runtime_schema(engine, create_missing=False)
    finally:
        await engine.dispose()


async def test_runtime_schema_bootstrap_reports_missing_columns(settings):
    engine = create_engine_from_settings(settings)
    try:
        await bootstrap.ensure_runtime_schema(engine, create_missing=True)
        async with engine.begin() as connection:
            await connection.execute(text("DROP TABLE schedule"))
            await connection.execute(text("CREATE TABLE schedule (schedule_id INTEGER PRIMARY KEY)"))
        with pytest.raises(RuntimeError, match="schedule.class_type"):
            await bootstrap.ensure_runtime_schema(engine, create_missing=False)
    finally:
        await engine.dispose()
