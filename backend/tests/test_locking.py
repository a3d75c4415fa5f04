import asyncio
from datetime import date, time

import pytest
from sqlalchemy.dialects import postgresql

from conftest import RecordingSession
from app.services.booking.locking import (
    AdvisoryLockStrategy,
    KeyedLockRegistry,
    LocalLockStrategy,
    advisory_key,
    build_lock_strategy,
    lock_keys,
)
from app.services.booking.records import BookingCandidate
from app.services.booking.store import ScheduleStore


def candidate(classroom_id=101, professor_id=1, batch_id=1, class_date=date(2024, 3, 4)) -> BookingCandidate:
    return BookingCandidate(
        course_id=1,
        professor_id=professor_id,
        batch_id=batch_id,
        classroom_id=classroom_id,
        class_date=class_date,
        start_time=time(9, 0),
        end_time=time(10, 0),
    )


def test_lock_keys_cover_every_dimension_in_sorted_order():
    keys = lock_keys(candidate(classroom_id=300, professor_id=2, batch_id=7))

    assert keys == ["batch:7:2024-03-04", "classroom:300:2024-03-04", "professor:2:2024-03-04"]


def test_lock_keys_are_scoped_to_the_date():
    monday = lock_keys(candidate(class_date=date(2024, 3, 4)))
    tuesday = lock_keys(candidate(class_date=date(2024, 3, 5)))

    assert not set(monday) & set(tuesday)


def test_advisory_key_is_stable_signed_bigint():
    key = advisory_key("classroom:101:2024-03-04")

    assert key == advisory_key("classroom:101:2024-03-04")
    assert key != advisory_key("classroom:101:2024-03-05")
    assert -(2**63) <= key < 2**63


async def test_registry_serialises_holders_of_the_same_key():
    registry = KeyedLockRegistry()
    events: list[str] = []

    async def worker(name: str):
        async with registry.hold(["classroom:101:2024-03-04"]):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
    assert len(registry) == 0


async def test_registry_lets_disjoint_keys_run_together():
    registry = KeyedLockRegistry()
    both_inside = asyncio.Event()
    inside = 0

    async def worker(key: str):
        nonlocal inside
        async with registry.hold([key]):
            inside += 1
            if inside == 2:
                both_inside.set()
            await asyncio.wait_for(both_inside.wait(), timeout=1)

    await asyncio.gather(worker("classroom:101:2024-03-04"), worker("classroom:300:2024-03-04"))

    assert both_inside.is_set()


async def test_registry_releases_keys_when_the_body_raises():
    registry = KeyedLockRegistry()

    with pytest.raises(RuntimeError):
        async with registry.hold(["batch:1:2024-03-04", "professor:1:2024-03-04"]):
            raise RuntimeError("boom")

    assert len(registry) == 0
    async with registry.hold(["batch:1:2024-03-04"]):
        pass


@pytest.mark.parametrize(
    ("setting", "dialect", "expected"),
    [
        ("auto", "postgresql", AdvisoryLockStrategy),
        ("auto", "sqlite", LocalLockStrategy),
        ("advisory", "postgresql", AdvisoryLockStrategy),
        ("local", "postgresql", LocalLockStrategy),
        ("local", "sqlite", LocalLockStrategy),
    ],
)
def test_build_lock_strategy(setting, dialect, expected):
    assert isinstance(build_lock_strategy(setting, dialect), expected)


def test_advisory_locks_require_postgresql():
    with pytest.raises(ValueError):
        build_lock_strategy("advisory", "sqlite")


def test_unknown_lock_strategy_is_rejected():
    with pytest.raises(ValueError):
        build_lock_strategy("optimistic", "postgresql")


async def test_advisory_strategy_locks_each_key_once_in_sorted_order():
    session = RecordingSession()
    keys = lock_keys(candidate(classroom_id=300, professor_id=2, batch_id=7))

    await AdvisoryLockStrategy().acquire_in_transaction(session, list(reversed(keys)))

    assert [str(statement) for statement, _ in session.statements] == ["SELECT pg_advisory_xact_lock(:key)"] * 3
    assert [params["key"] for _, params in session.statements] == [advisory_key(key) for key in sorted(keys)]


async def test_conflict_read_locks_rows_on_postgresql():
    session = RecordingSession()

    await ScheduleStore(session).find_conflicting(candidate(), limit=1)

    [(statement, _)] = session.statements
    sql = str(statement.compile(dialect=postgresql.dialect()))
    assert "LIMIT" in sql
    assert sql.endswith("FOR UPDATE")


async def test_conflict_read_without_lock_is_plain_select():
    session = RecordingSession()

    await ScheduleStore(session).find_conflicting(candidate(), lock=False)

    [(statement, _)] = session.statements
    assert "FOR UPDATE" not in str(statement.compile(dialect=postgresql.dialect()))
