from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import time

from sqlalchemy import Select, and_, or_, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ReferentialError
from app.models.academic_structure import Batch, Branch, Division
from app.models.classroom import Classroom
from app.models.course import Course
from app.models.schedule import ClassSchedule, ClassType, DayOfWeek
from app.models.user import User
from app.services.booking.intervals import DateWindow
from app.services.booking.records import Booking, BookingCandidate, ResourceKind, booking_from_row

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Details unavailable"

_RESOURCE_COLUMNS = {
    ResourceKind.classroom: ClassSchedule.classroom_id,
    ResourceKind.professor: ClassSchedule.professor_id,
    ResourceKind.batch: ClassSchedule.batch_id,
}


def format_batch_label(branch_code: str, division_name: str, batch_name: str) -> str:
    return f"{branch_code}-{division_name}-{batch_name}"


def _schedule_sort_key(booking: Booking) -> tuple:
    if booking.class_type == ClassType.base:
        return (0, booking.day_of_week.ordinal, booking.start_time)
    return (1, booking.class_date.toordinal(), booking.start_time)


@dataclass(frozen=True)
class ScheduleEntry:
    """A booking joined with the labels schedule views display."""

    booking: Booking
    course_code: str
    course_name: str
    room_number: str
    professor_name: str
    batch_label: str


class ScheduleStore:
    """Reads and writes ``schedule`` rows through one injected session.

    The store never commits; transaction boundaries belong to the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def conflict_statement(self, candidate: BookingCandidate) -> Select:
        shares_resource = or_(
            ClassSchedule.classroom_id == candidate.classroom_id,
            ClassSchedule.professor_id == candidate.professor_id,
            ClassSchedule.batch_id == candidate.batch_id,
        )
        return select(ClassSchedule).where(
            ClassSchedule.start_time < candidate.end_time,
            ClassSchedule.end_time > candidate.start_time,
            or_(
                and_(ClassSchedule.class_type == ClassType.extra, ClassSchedule.class_date == candidate.class_date),
                and_(ClassSchedule.class_type == ClassType.base, ClassSchedule.day_of_week == candidate.day_of_week),
            ),
            shares_resource,
        )

    async def find_conflicting(
        self,
        candidate: BookingCandidate,
        *,
        lock: bool = True,
        limit: int | None = None,
    ) -> list[Booking]:
        statement = self.conflict_statement(candidate).order_by(ClassSchedule.schedule_id)
        if limit is not None:
            statement = statement.limit(limit)
        if lock:
            # Dialects without row locks (SQLite) render no FOR UPDATE clause.
            statement = statement.with_for_update()
        rows = (await self._session.execute(statement)).scalars().all()
        return [booking_from_row(row) for row in rows]

    async def lock_for_bulk_load(self) -> None:
        """Hold off concurrent bookings until the current transaction ends.

        EXCLUSIVE mode also conflicts with the ROW SHARE lock taken by
        ``find_conflicting``, so a booking either finishes before the load reads
        or waits and then sees the loaded rows. Only PostgreSQL has table locks;
        on SQLite the database-wide write lock already serialises writers.
        """
        if self._session.get_bind().dialect.name == "postgresql":
            await self._session.execute(text("LOCK TABLE schedule IN EXCLUSIVE MODE"))

    async def insert(self, candidate: BookingCandidate) -> Booking:
        row = ClassSchedule(
            course_id=candidate.course_id,
            professor_id=candidate.professor_id,
            batch_id=candidate.batch_id,
            classroom_id=candidate.classroom_id,
            class_type=ClassType.extra,
            day_of_week=None,
            class_date=candidate.class_date,
            start_time=candidate.start_time,
            end_time=candidate.end_time,
        )
        return await self._add(row)

    async def insert_base(
        self,
        *,
        course_id: int,
        professor_id: int,
        batch_id: int,
        classroom_id: int,
        day_of_week: DayOfWeek,
        start_time: time,
        end_time: time,
    ) -> Booking:
        row = ClassSchedule(
            course_id=course_id,
            professor_id=professor_id,
            batch_id=batch_id,
            classroom_id=classroom_id,
            class_type=ClassType.base,
            day_of_week=day_of_week,
            class_date=None,
            start_time=start_time,
            end_time=end_time,
        )
        return await self._add(row)

    async def _add(self, row: ClassSchedule) -> Booking:
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            logger.warning("Schedule insert rejected by referential constraints: %s", exc.orig)
            raise ReferentialError() from exc
        return booking_from_row(row)

    def _resource_filters(self, kind: ResourceKind, resource_id: int, window: DateWindow | None) -> list:
        filters = [_RESOURCE_COLUMNS[kind] == resource_id]
        if window is not None:
            filters.append(
                or_(
                    and_(
                        ClassSchedule.class_type == ClassType.extra,
                        ClassSchedule.class_date >= window.start,
                        ClassSchedule.class_date <= window.end,
                    ),
                    and_(
                        ClassSchedule.class_type == ClassType.base,
                        ClassSchedule.day_of_week.in_(sorted(window.weekdays(), key=lambda day: day.ordinal)),
                    ),
                )
            )
        return filters

    async def list_by_resource(
        self,
        kind: ResourceKind,
        resource_id: int,
        window: DateWindow | None = None,
    ) -> list[Booking]:
        statement = select(ClassSchedule).where(*self._resource_filters(kind, resource_id, window))
        rows = (await self._session.execute(statement)).scalars().all()
        return sorted((booking_from_row(row) for row in rows), key=_schedule_sort_key)

    async def list_entries(
        self,
        kind: ResourceKind,
        resource_id: int,
        window: DateWindow | None = None,
    ) -> list[ScheduleEntry]:
        statement = (
            select(
                ClassSchedule,
                Course.course_code,
                Course.course_name,
                Classroom.room_number,
                User.full_name,
                Branch.branch_code,
                Division.division_name,
                Batch.batch_name,
            )
            .join(Course, ClassSchedule.course_id == Course.course_id)
            .join(Classroom, ClassSchedule.classroom_id == Classroom.classroom_id)
            .join(User, ClassSchedule.professor_id == User.user_id)
            .join(Batch, ClassSchedule.batch_id == Batch.batch_id)
            .join(Division, Batch.division_id == Division.division_id)
            .join(Branch, Division.branch_id == Branch.branch_id)
            .where(*self._resource_filters(kind, resource_id, window))
        )
        result = await self._session.execute(statement)
        entries = [
            ScheduleEntry(
                booking=booking_from_row(row),
                course_code=course_code,
                course_name=course_name,
                room_number=room_number,
                professor_name=full_name,
                batch_label=format_batch_label(branch_code, division_name, batch_name),
            )
            for row, course_code, course_name, room_number, full_name, branch_code, division_name, batch_name in result
        ]
        return sorted(entries, key=lambda entry: _schedule_sort_key(entry.booking))

    async def resource_label(self, kind: ResourceKind, resource_id: int) -> str:
        if kind == ResourceKind.classroom:
            label = await self._session.scalar(
                select(Classroom.room_number).where(Classroom.classroom_id == resource_id)
            )
        elif kind == ResourceKind.professor:
            label = await self._session.scalar(select(User.full_name).where(User.user_id == resource_id))
        else:
            row = (
                await self._session.execute(
                    select(Branch.branch_code, Division.division_name, Batch.batch_name)
                    .join(Division, Batch.division_id == Division.division_id)
                    .join(Branch, Division.branch_id == Branch.branch_id)
                    .where(Batch.batch_id == resource_id)
                )
            ).one_or_none()
            label = format_batch_label(*row) if row is not None else None
        return label if label is not None else UNKNOWN_LABEL
