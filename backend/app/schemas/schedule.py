from datetime import date

from pydantic import BaseModel

from app.models.schedule import ClassType, DayOfWeek


class BookingOut(BaseModel):
    schedule_id: int
    course_id: int
    professor_id: int
    batch_id: int
    classroom_id: int
    class_type: ClassType
    day_of_week: DayOfWeek
    class_date: date | None
    start_time: str
    end_time: str


class ScheduleEntryOut(BookingOut):
    course_code: str
    course_name: str
    room_number: str
    professor_name: str
    batch_details: str
