import time as time_module
from datetime import date, time

import pytest

from app.models.schedule import DayOfWeek
from app.services.booking.intervals import DateWindow, TimeInterval, overlaps, parse_date_value, parse_time_value


def interval(start: str, end: str) -> TimeInterval:
    return TimeInterval(parse_time_value(start), parse_time_value(end))


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        (("09:00", "10:00"), ("09:30", "10:30"), True),
        (("09:00", "10:00"), ("09:15", "09:45"), True),
        (("09:00", "10:00"), ("08:00", "12:00"), True),
        (("09:00", "10:00"), ("10:00", "11:00"), False),
        (("10:00", "11:00"), ("09:00", "10:00"), False),
        (("09:00", "10:00"), ("11:00", "12:00"), False),
    ],
)
def test_half_open_overlap(a, b, expected):
    assert overlaps(interval(*a), interval(*b)) is expected
    assert overlaps(interval(*b), interval(*a)) is expected


def test_interval_rejects_empty_or_inverted_range():
    with pytest.raises(ValueError):
        TimeInterval(time(10, 0), time(10, 0))
    with pytest.raises(ValueError):
        TimeInterval(time(11, 0), time(10, 0))


def test_interval_renders_as_clock_range():
    assert str(interval("09:00:00", "10:30")) == "09:00-10:30"


@pytest.mark.parametrize("value", ["9:00", "09-00", "0900", "", "09:00:00:00"])
def test_parse_time_rejects_bad_format(value):
    with pytest.raises(ValueError):
        parse_time_value(value)


def test_parse_time_rejects_impossible_clock_value():
    with pytest.raises(ValueError):
        parse_time_value("25:00")


@pytest.mark.parametrize("value", ["2024/03/04", "04-03-2024", "2024-3-4", "2024-02-30"])
def test_parse_date_rejects_bad_values(value):
    with pytest.raises(ValueError):
        parse_date_value(value)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (date(2024, 3, 4), DayOfWeek.monday),
        (date(2024, 3, 6), DayOfWeek.wednesday),
        (date(2024, 4, 1), DayOfWeek.monday),
        (date(2024, 2, 29), DayOfWeek.thursday),
        (date(2023, 12, 31), DayOfWeek.sunday),
        (date(2024, 1, 6), DayOfWeek.saturday),
    ],
)
def test_weekday_comes_from_calendar_date(value, expected):
    assert DayOfWeek.from_date(value) == expected


@pytest.mark.skipif(not hasattr(time_module, "tzset"), reason="tzset is POSIX only")
@pytest.mark.parametrize("zone", ["UTC", "Pacific/Kiritimati", "Pacific/Pago_Pago", "America/Los_Angeles", "Asia/Kolkata"])
def test_weekday_is_independent_of_process_timezone(monkeypatch, zone):
    monkeypatch.setenv("TZ", zone)
    time_module.tzset()
    try:
        assert DayOfWeek.from_date(parse_date_value("2024-03-04")) == DayOfWeek.monday
        assert DayOfWeek.from_date(parse_date_value("2024-03-10")) == DayOfWeek.sunday
    finally:
        monkeypatch.undo()
        time_module.tzset()


def test_day_ordinals_follow_calendar_order():
    assert [day.ordinal for day in DayOfWeek] == list(range(7))


def test_date_window_weekdays():
    window = DateWindow(date(2024, 3, 4), date(2024, 3, 6))
    assert window.weekdays() == {DayOfWeek.monday, DayOfWeek.tuesday, DayOfWeek.wednesday}
    assert date(2024, 3, 5) in window
    assert date(2024, 3, 7) not in window

    full_week = DateWindow(date(2024, 3, 4), date(2024, 3, 10))
    assert full_week.weekdays() == set(DayOfWeek)


def test_date_window_rejects_inverted_range():
    with pytest.raises(ValueError):
        DateWindow(date(2024, 3, 6), date(2024, 3, 4))
