from __future__ import annotations

from datetime import date

from app.core.exceptions import ReferentialError, ValidationError
from app.schemas.booking import ExtraClassBookingRequest
from app.services.booking.intervals import DATE_PATTERN, TIME_PATTERN, parse_date_value, parse_time_value
from app.services.booking.records import BookingCandidate

REQUIRED_FIELDS = ("course_id", "batch_id", "classroom_id", "class_date", "start_time", "end_time")
RESOURCE_ID_FIELDS = ("course_id", "batch_id", "classroom_id")
# Upper bound of the INTEGER key columns; larger ids cannot name a stored row.
MAX_RESOURCE_ID = 2**31 - 1


def validate_booking_request(
    request: ExtraClassBookingRequest,
    *,
    professor_id: int,
    today: date,
) -> BookingCandidate:
    for field in REQUIRED_FIELDS:
        value = getattr(request, field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"Missing required field: {field}.", field=field)

    class_date_raw = request.class_date.strip()
    start_raw = request.start_time.strip()
    end_raw = request.end_time.strip()

    if not DATE_PATTERN.match(class_date_raw):
        raise ValidationError("Invalid date format (YYYY-MM-DD).", field="class_date")
    for field, raw in (("start_time", start_raw), ("end_time", end_raw)):
        if not TIME_PATTERN.match(raw):
            raise ValidationError("Invalid time format (HH:MM or HH:MM:SS).", field=field)

    try:
        class_date = parse_date_value(class_date_raw)
    except ValueError as exc:
        raise ValidationError("Invalid date format (YYYY-MM-DD).", field="class_date") from exc
    try:
        start_time = parse_time_value(start_raw)
    except ValueError as exc:
        raise ValidationError("Invalid start time.", field="start_time") from exc
    try:
        end_time = parse_time_value(end_raw)
    except ValueError as exc:
        raise ValidationError("Invalid end time.", field="end_time") from exc

    if start_time >= end_time:
        raise ValidationError("Start time must be before end time.", field="start_time")
    if class_date < today:
        raise ValidationError("Class date cannot be in the past.", field="class_date")
    if any(not 1 <= getattr(request, field) <= MAX_RESOURCE_ID for field in RESOURCE_ID_FIELDS):
        raise ReferentialError()

    return BookingCandidate(
        course_id=request.course_id,
        professor_id=professor_id,
        batch_id=request.batch_id,
        classroom_id=request.classroom_id,
        class_date=class_date,
        start_time=start_time,
        end_time=end_time,
    )
