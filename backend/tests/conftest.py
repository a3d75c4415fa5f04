import asyncio
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient #fake http client that drives the app, lifespan included

from app.core.config import Settings
from app.core.security import create_access_token
from app.db.bootstrap import ensure_runtime_schema
from app.db.session import create_engine_from_settings, create_session_factory
from app.main import create_app
from app.models.academic_structure import Batch, Branch, Division
from app.models.classroom import Classroom
from app.models.course import Course
from app.models.user import User, UserRole
from app.services.booking.coordinator import BookingCoordinator
from app.services.booking.locking import LocalLockStrategy

# Scenario dates in the tests (March/April 2024) must not count as "past".
TODAY = date(2024, 3, 1)

PROFESSORS = {1: "Dr. Asha Rao", 2: "Dr. Vikram Patil", 3: "Dr. Meera Iyer", 4: "Dr. Kunal Shah", 5: "Dr. Nisha Menon"}
CLASSROOMS = {101: "101", 205: "205", 300: "300", 999: "999"}
BATCH_IDS = range(1, 10)
STUDENT_ID = 50
UNBATCHED_STUDENT_ID = 51
ADMIN_ID = 60
COURSE_ID = 1


async def seed_resources(session_factory) -> SimpleNamespace:
    """Collaborator rows every booking test references."""
    async with session_factory() as session:
        async with session.begin():
            session.add(Branch(branch_id=1, branch_code="CSE", branch_name="Computer Science"))
            await session.flush()
            session.add(Division(division_id=1, branch_id=1, division_name="A"))
            await session.flush()
            session.add_all(Batch(batch_id=batch_id, division_id=1, batch_name=f"B{batch_id}") for batch_id in BATCH_IDS)
            session.add_all(
                Classroom(classroom_id=classroom_id, room_number=room, building="Main")
                for classroom_id, room in CLASSROOMS.items()
            )
            session.add(Course(course_id=COURSE_ID, course_code="CS301", course_name="Operating Systems"))
            await session.flush()
            session.add_all(
                User(user_id=user_id, full_name=name, email=f"prof{user_id}@example.edu", role=UserRole.professor)
                for user_id, name in PROFESSORS.items()
            )
            session.add(
                User(
                    user_id=STUDENT_ID,
                    full_name="Student One",
                    email="student@example.edu",
                    role=UserRole.student,
                    batch_id=1,
                )
            )
            session.add(
                User(
                    user_id=UNBATCHED_STUDENT_ID,
                    full_name="Student Two",
                    email="student2@example.edu",
                    role=UserRole.student,
                )
            )
            session.add(
                User(user_id=ADMIN_ID, full_name="Admin", email="admin@example.edu", role=UserRole.administrator)
            )
    return SimpleNamespace(
        professors=PROFESSORS,
        classrooms=CLASSROOMS,
        student_id=STUDENT_ID,
        admin_id=ADMIN_ID,
        course_id=COURSE_ID,
    )


class RecordingSession:
    """Stands in for an ``AsyncSession`` and keeps every statement it is asked to run."""

    def __init__(self, dialect_name: str = "postgresql") -> None:
        self.statements: list = []
        self._bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect_name))

    def get_bind(self):
        return self._bind

    async def execute(self, statement, params=None):
        self.statements.append((statement, params))
        return SimpleNamespace(scalars=lambda: SimpleNamespace(all=list))


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'noclash.db'}",
        auto_create_schema=True,
        booking_lock_strategy="local",
        booking_transaction_timeout_seconds=5.0,
        log_dir=None,
    )


@pytest.fixture()
async def engine(settings):
    engine = create_engine_from_settings(settings)
    await ensure_runtime_schema(engine, create_missing=True)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
async def resources(session_factory):
    return await seed_resources(session_factory)


@pytest.fixture()
def coordinator(session_factory, resources) -> BookingCoordinator:
    return BookingCoordinator(session_factory, LocalLockStrategy(), timeout_seconds=5.0, clock=lambda: TODAY)


async def _prepare_database(settings: Settings) -> None:
    engine = create_engine_from_settings(settings)
    try:
        await ensure_runtime_schema(engine, create_missing=True)
        await seed_resources(create_session_factory(engine))
    finally:
        await engine.dispose()


@pytest.fixture()
def client(settings):
    # Seeded on a private loop; the app opens its own engine inside the TestClient loop.
    asyncio.run(_prepare_database(settings))
    app = create_app(settings, clock=lambda: TODAY)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers(settings):
    def build(user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, settings=settings)}"}

    return build
