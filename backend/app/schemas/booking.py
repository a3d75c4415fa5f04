from pydantic import BaseModel, Field, field_validator


class ExtraClassBookingRequest(BaseModel):
    # Presence and format checks run in the booking validator so each failure names its field.
    course_id: int | None = None
    batch_id: int | None = None
    classroom_id: int | None = None
    class_date: str | None = Field(default=None, max_length=32)
    start_time: str | None = Field(default=None, max_length=16)
    end_time: str | None = Field(default=None, max_length=16)

    @field_validator("class_date", "start_time", "end_time")
    @classmethod
    def strip_value(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()


class ConflictOut(BaseModel):
    entity: str
    entityLabel: str
    conflictingRecurrence: str
    conflictingTimeLabel: str
    existingStart: str
    existingEnd: str
    scheduleId: int


class BookingCreatedOut(BaseModel):
    message: str
    scheduleId: int


class BookingRejectedOut(BaseModel):
    message: str
    field: str | None = None
    conflict: ConflictOut | None = None
