from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterator

from app.models.schedule import DayOfWeek

TIME_PATTERN = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_time_value(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a wall-clock time."""
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM or HH:MM:SS 24-hour format")
    return time.fromisoformat(value)


def parse_date_value(value: str) -> date:
    if not DATE_PATTERN.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return date.fromisoformat(value)


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


@dataclass(frozen=True)
class TimeInterval:
    """Half-open same-day interval ``[start, end)``."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Interval start must be before its end")

    def overlaps(self, other: "TimeInterval") -> bool:
        # Touching endpoints are allowed: back-to-back classes do not clash.
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    return a.overlaps(b)


@dataclass(frozen=True)
class DateWindow:
    """Inclusive range of calendar dates used by schedule reads."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("Window start must not be after its end")

    def __contains__(self, value: date) -> bool:
        return self.start <= value <= self.end

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def weekdays(self) -> set[DayOfWeek]:
        if (self.end - self.start).days >= 6:
            return set(DayOfWeek)
        return {DayOfWeek.from_date(day) for day in self.days()}
