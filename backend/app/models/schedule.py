from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, Time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


def _enum_values(enum: type[Enum]) -> list[str]:
    return [item.value for item in enum]


class ClassType(str, Enum):
    base = "Base"
    extra = "Extra"


class DayOfWeek(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        # A date is a calendar value with no offset, so weekday() cannot drift across midnight.
        return _WEEKDAY_ORDER[value.weekday()]

    @property
    def ordinal(self) -> int:
        return _WEEKDAY_ORDER.index(self)


_WEEKDAY_ORDER: tuple[DayOfWeek, ...] = tuple(DayOfWeek)


class ClassSchedule(Base):
    __tablename__ = "schedule"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="time_order"),
        CheckConstraint(
            "(class_type = 'Base' AND day_of_week IS NOT NULL AND class_date IS NULL) OR "
            "(class_type = 'Extra' AND class_date IS NOT NULL AND day_of_week IS NULL)",
            name="recurrence_shape",
        ),
        Index("ix_schedule_classroom_window", "classroom_id", "start_time", "end_time"),
        Index("ix_schedule_professor_window", "professor_id", "start_time", "end_time"),
        Index("ix_schedule_batch_window", "batch_id", "start_time", "end_time"),
    )

    schedule_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.course_id", ondelete="RESTRICT"), nullable=False)
    professor_id: Mapped[int] = mapped_column(ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False)
    batch_id: Mapped[int] = mapped_column(ForeignKey("batches.batch_id", ondelete="RESTRICT"), nullable=False)
    classroom_id: Mapped[int] = mapped_column(ForeignKey("classrooms.classroom_id", ondelete="RESTRICT"), nullable=False)
    class_type: Mapped[ClassType] = mapped_column(
        SAEnum(ClassType, name="class_type", values_callable=_enum_values), nullable=False
    )
    # Only Base rows persist a weekday; an Extra row's weekday is derived from class_date.
    day_of_week: Mapped[DayOfWeek | None] = mapped_column(
        SAEnum(DayOfWeek, name="day_of_week", values_callable=_enum_values), nullable=True, index=True
    )
    class_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def effective_day_of_week(self) -> DayOfWeek:
        if self.class_type == ClassType.extra and self.class_date is not None:
            return DayOfWeek.from_date(self.class_date)
        return self.day_of_week
