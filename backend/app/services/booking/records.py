from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum

from app.models.schedule import ClassSchedule, ClassType, DayOfWeek
from app.services.booking.intervals import TimeInterval


class ResourceKind(str, Enum):
    classroom = "classroom"
    professor = "professor"
    batch = "batch"


@dataclass(frozen=True)
class BookingCandidate:
    """A validated request for a one-off (Extra) class."""

    course_id: int
    professor_id: int
    batch_id: int
    classroom_id: int
    class_date: date
    start_time: time
    end_time: time

    @property
    def day_of_week(self) -> DayOfWeek:
        return DayOfWeek.from_date(self.class_date)

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    def resource_id(self, kind: ResourceKind) -> int:
        return {
            ResourceKind.classroom: self.classroom_id,
            ResourceKind.professor: self.professor_id,
            ResourceKind.batch: self.batch_id,
        }[kind]


@dataclass(frozen=True)
class Booking:
    schedule_id: int
    course_id: int
    professor_id: int
    batch_id: int
    classroom_id: int
    class_type: ClassType
    day_of_week: DayOfWeek
    class_date: date | None
    start_time: time
    end_time: time

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    @property
    def time_label(self) -> str:
        if self.class_type == ClassType.extra and self.class_date is not None:
            return self.class_date.isoformat()
        return self.day_of_week.value

    def resource_id(self, kind: ResourceKind) -> int:
        return {
            ResourceKind.classroom: self.classroom_id,
            ResourceKind.professor: self.professor_id,
            ResourceKind.batch: self.batch_id,
        }[kind]


def booking_from_row(row: ClassSchedule) -> Booking:
    return Booking(
        schedule_id=row.schedule_id,
        course_id=row.course_id,
        professor_id=row.professor_id,
        batch_id=row.batch_id,
        classroom_id=row.classroom_id,
        class_type=ClassType(row.class_type),
        day_of_week=row.effective_day_of_week,
        class_date=row.class_date,
        start_time=row.start_time,
        end_time=row.end_time,
    )
