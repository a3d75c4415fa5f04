import logging
from datetime import date

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, require_roles
from app.core.exceptions import ValidationError
from app.models.user import User, UserRole
from app.schemas.schedule import BookingOut, ScheduleEntryOut
from app.services.booking.intervals import DateWindow, format_hhmm
from app.services.booking.records import Booking, ResourceKind
from app.services.booking.store import ScheduleEntry, ScheduleStore
from app.services.booking.validation import MAX_RESOURCE_ID

logger = logging.getLogger(__name__)

router = APIRouter()


def _booking_out(booking: Booking) -> BookingOut:
    return BookingOut(
        schedule_id=booking.schedule_id,
        course_id=booking.course_id,
        professor_id=booking.professor_id,
        batch_id=booking.batch_id,
        classroom_id=booking.classroom_id,
        class_type=booking.class_type,
        day_of_week=booking.day_of_week,
        class_date=booking.class_date,
        start_time=format_hhmm(booking.start_time),
        end_time=format_hhmm(booking.end_time),
    )


def _entry_out(entry: ScheduleEntry) -> ScheduleEntryOut:
    return ScheduleEntryOut(
        **_booking_out(entry.booking).model_dump(),
        course_code=entry.course_code,
        course_name=entry.course_name,
        room_number=entry.room_number,
        professor_name=entry.professor_name,
        batch_details=entry.batch_label,
    )


def _window(start: date | None, end: date | None) -> DateWindow | None:
    if start is None and end is None:
        return None
    if start is None or end is None:
        raise ValidationError("Both start and end are required for a date window.", field="start" if start is None else "end")
    try:
        return DateWindow(start, end)
    except ValueError as exc:
        raise ValidationError("Window start must not be after its end.", field="start") from exc


@router.get("/professor/my-schedule", response_model=list[ScheduleEntryOut])
async def professor_schedule(
    current_user: User = Depends(require_roles(UserRole.professor)),
    db: AsyncSession = Depends(get_db),
) -> list[ScheduleEntryOut]:
    entries = await ScheduleStore(db).list_entries(ResourceKind.professor, current_user.user_id)
    logger.info("Found %d schedule events for professor %s", len(entries), current_user.user_id)
    return [_entry_out(entry) for entry in entries]


@router.get("/student/my-schedule", response_model=list[ScheduleEntryOut])
async def student_schedule(
    current_user: User = Depends(require_roles(UserRole.student)),
    db: AsyncSession = Depends(get_db),
) -> list[ScheduleEntryOut]:
    if current_user.batch_id is None:
        raise ValidationError("User data is missing batch information.", field="batch_id")
    entries = await ScheduleStore(db).list_entries(ResourceKind.batch, current_user.batch_id)
    return [_entry_out(entry) for entry in entries]


@router.get("/schedule/{kind}/{resource_id}", response_model=list[BookingOut])
async def resource_schedule(
    kind: ResourceKind,
    resource_id: int = Path(ge=1, le=MAX_RESOURCE_ID),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[BookingOut]:
    bookings = await ScheduleStore(db).list_by_resource(kind, resource_id, _window(start, end))
    return [_booking_out(booking) for booking in bookings]
