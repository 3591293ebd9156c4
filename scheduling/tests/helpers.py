# scheduling/tests/helpers.py - Builders shared by the scheduling tests
from datetime import date, time

from scheduling.types import (
    ScheduleExceptionSpec, TimeRangeSpec, WorkDaySpec, WorkPatternSpec,
)

# Monday
MONDAY = date(2030, 1, 7)


def t(value):
    hours, minutes = value.split(':')
    return time(int(hours), int(minutes))


def work_day(day_of_week, *ranges, is_active=True):
    """``work_day(0, '09:00-12:00', '13:00-17:00')``"""
    time_ranges = []
    for text in ranges:
        start, end = text.split('-')
        time_ranges.append(TimeRangeSpec(t(start), t(end)))
    return WorkDaySpec(day_of_week=day_of_week, is_active=is_active, time_ranges=tuple(time_ranges))


def pattern(*work_days, doctor_id=1, **policy):
    policy.setdefault('min_advance_booking_days', 0)
    return WorkPatternSpec(doctor_id=doctor_id, work_days=tuple(work_days), **policy)


def exception(exception_type, start_date, end_date=None, times=None, recurrence_pattern='', reason='Test'):
    start_time = end_time = None
    if times:
        start, end = times.split('-')
        start_time, end_time = t(start), t(end)
    return ScheduleExceptionSpec(
        exception_type=exception_type,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
        is_recurring=bool(recurrence_pattern),
        recurrence_pattern=recurrence_pattern,
        reason=reason,
    )
