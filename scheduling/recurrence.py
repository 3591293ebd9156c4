# scheduling/recurrence.py
"""
Evaluation of recurring schedule exceptions.

A recurring exception is stored once and tested per date, so storage stays
bounded no matter how far ahead slots are generated. The first occurrence is
``start_date``..``end_date``; later occurrences repeat that span every week,
month or year. Month and year steps use ``relativedelta`` so an exception on the
31st or on 29 February lands on the last day of shorter months and common years.
"""
from datetime import timedelta

from dateutil.relativedelta import relativedelta

WEEKLY = 'weekly'
MONTHLY = 'monthly'
YEARLY = 'yearly'

RECURRENCE_CHOICES = [
    (WEEKLY, 'Every week'),
    (MONTHLY, 'Every month on this date'),
    (YEARLY, 'Every year on this date'),
]

# Longest span (in days after the first day) that still leaves a gap between
# two occurrences of the pattern.
MAX_SPAN_DAYS = {
    WEEKLY: 6,
    MONTHLY: 27,
    YEARLY: 364,
}


def normalize_pattern(pattern):
    return (pattern or '').strip().lower()


def is_known_pattern(pattern):
    return normalize_pattern(pattern) in MAX_SPAN_DAYS


def _occurrence_covers(anchor, span_days, day):
    return anchor <= day <= anchor + timedelta(days=span_days)


def matches(exception, day):
    """Whether ``exception`` applies on ``day``.

    Args:
        exception: ScheduleExceptionSpec (or any object with the same attributes)
        day: date to test

    Returns:
        bool
    """
    start = exception.start_date
    if day < start:
        return False

    span = exception.span_days
    if not exception.is_recurring:
        return day <= start + timedelta(days=span)

    pattern = normalize_pattern(exception.recurrence_pattern)
    if pattern == WEEKLY:
        return (day - start).days % 7 <= span

    if pattern == MONTHLY:
        months = (day.year - start.year) * 12 + (day.month - start.month)
        return any(
            _occurrence_covers(start + relativedelta(months=step), span, day)
            for step in (months, months - 1) if step >= 0
        )

    if pattern == YEARLY:
        years = day.year - start.year
        return any(
            _occurrence_covers(start + relativedelta(years=step), span, day)
            for step in (years, years - 1) if step >= 0
        )

    raise ValueError(f'Unknown recurrence pattern: {exception.recurrence_pattern!r}')
