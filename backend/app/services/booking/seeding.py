from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.schedule import DayOfWeek
from app.services.booking.intervals import TimeInterval, parse_time_value
from app.services.booking.records import Booking, ResourceKind
from app.services.booking.store import ScheduleStore

logger = logging.getLogger(__name__)


class BaseTimetableEntry(BaseModel):
    course_id: int
    professor_id: int
    batch_id: int
    classroom_id: int
    day_of_week: DayOfWeek
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        parse_time_value(value.strip())
        return value.strip()

    @model_validator(mode="after")
    def validate_order(self) -> "BaseTimetableEntry":
        if parse_time_value(self.end_time) <= parse_time_value(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(parse_time_value(self.start_time), parse_time_value(self.end_time))

    def resource_id(self, kind: ResourceKind) -> int:
        return {
            ResourceKind.classroom: self.classroom_id,
            ResourceKind.professor: self.professor_id,
            ResourceKind.batch: self.batch_id,
        }[kind]


@dataclass
class SeedReport:
    inserted: list[Booking] = field(default_factory=list)
    skipped: list[tuple[BaseTimetableEntry, int]] = field(default_factory=list)


async def _clashing_schedule_id(store: ScheduleStore, entry: BaseTimetableEntry) -> int | None:
    for kind in ResourceKind:
        for existing in await store.list_by_resource(kind, entry.resource_id(kind)):
            if existing.day_of_week == entry.day_of_week and existing.interval.overlaps(entry.interval):
                return existing.schedule_id
    return None


async def seed_base_timetable(
    session_factory: async_sessionmaker[AsyncSession],
    entries: list[BaseTimetableEntry],
) -> SeedReport:
    """Insert recurring classes in one transaction, skipping any that would double-book a resource."""
    report = SeedReport()
    async with session_factory() as session:
        async with session.begin():
            store = ScheduleStore(session)
            await store.lock_for_bulk_load()
            for entry in entries:
                clash = await _clashing_schedule_id(store, entry)
                if clash is not None:
                    logger.warning("Skipping base class %s: overlaps schedule %s", entry.model_dump(), clash)
                    report.skipped.append((entry, clash))
                    continue
                interval = entry.interval
                booking = await store.insert_base(
                    course_id=entry.course_id,
                    professor_id=entry.professor_id,
                    batch_id=entry.batch_id,
                    classroom_id=entry.classroom_id,
                    day_of_week=entry.day_of_week,
                    start_time=interval.start,
                    end_time=interval.end,
                )
                report.inserted.append(booking)
    logger.info("Seeded %d base classes, skipped %d", len(report.inserted), len(report.skipped))
    return report
