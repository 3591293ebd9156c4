# scheduling/validation.py
"""
Structural validation of work patterns and schedule exceptions.

Each ``*_errors`` function returns every problem it finds so a caller configuring
a schedule gets complete feedback in one round trip; the ``check_*`` wrappers
raise them together as a single ScheduleValidationError.
"""
from . import intervals, recurrence
from .exceptions import ScheduleValidationError
from .types import CLOSURE, EXCEPTION_TYPE_CHOICES, WEEKDAY_CHOICES

# (field, minimum, maximum)
POLICY_LIMITS = [
    ('slot_duration_minutes', 5, 120),
    ('max_appointments_per_day', 1, 200),
    ('min_advance_booking_days', 0, 365),
    ('max_advance_booking_days', 1, 365),
    ('max_walk_in_per_day', 0, 50),
]

WEEKDAY_NAMES = dict(WEEKDAY_CHOICES)


def _fmt(value):
    return value.strftime('%H:%M')


def work_pattern_errors(pattern):
    """List every structural problem of a WorkPatternSpec"""
    errors = []

    for name, minimum, maximum in POLICY_LIMITS:
        value = getattr(pattern, name)
        if value is None or not minimum <= value <= maximum:
            label = name.replace('_', ' ').capitalize()
            errors.append(f'{label} must be between {minimum} and {maximum} (got {value}).')

    if (pattern.min_advance_booking_days is not None and pattern.max_advance_booking_days is not None
            and pattern.min_advance_booking_days > pattern.max_advance_booking_days):
        errors.append('Minimum advance booking days cannot exceed maximum advance booking days.')

    if pattern.allow_walk_in and pattern.max_walk_in_per_day > pattern.max_appointments_per_day:
        errors.append('Walk-in patients per day cannot exceed maximum appointments per day.')

    seen_days = set()
    for work_day in pattern.work_days:
        if work_day.day_of_week not in WEEKDAY_NAMES:
            errors.append(f'Day of week must be between 0 and 6 (got {work_day.day_of_week}).')
            continue
        day_name = WEEKDAY_NAMES[work_day.day_of_week]
        if work_day.day_of_week in seen_days:
            errors.append(f'{day_name} is configured more than once.')
        seen_days.add(work_day.day_of_week)

        for time_range in work_day.time_ranges:
            if time_range.end_time <= time_range.start_time:
                errors.append(
                    f'{day_name}: end time must be after start time '
                    f'({_fmt(time_range.start_time)}-{_fmt(time_range.end_time)}).'
                )

        if not work_day.is_active:
            continue

        active = sorted(
            (r for r in work_day.active_ranges if r.end_time > r.start_time),
            key=lambda r: r.start_time
        )
        for previous, current in zip(active, active[1:]):
            if current.start_time < previous.end_time:
                errors.append(
                    f'{day_name}: time ranges {_fmt(previous.start_time)}-{_fmt(previous.end_time)} '
                    f'and {_fmt(current.start_time)}-{_fmt(current.end_time)} overlap.'
                )

    return errors


def exception_errors(exception):
    """List every structural problem of a ScheduleExceptionSpec"""
    errors = []
    label = exception.reason or exception.start_date

    if exception.exception_type not in dict(EXCEPTION_TYPE_CHOICES):
        errors.append(f'Exception "{label}": unknown type {exception.exception_type!r}.')

    if not (exception.reason or '').strip():
        errors.append(f'Exception on {exception.start_date}: a reason is required.')
    elif len(exception.reason) > 200:
        errors.append(f'Exception "{label}": reason cannot exceed 200 characters.')

    if exception.end_date is not None and exception.end_date < exception.start_date:
        errors.append(f'Exception "{label}": end date must not be before start date.')

    if (exception.start_time is None) != (exception.end_time is None):
        errors.append(f'Exception "{label}": both start time and end time are required for a partial day.')
    elif not exception.is_full_day:
        if exception.end_time <= exception.start_time:
            errors.append(f'Exception "{label}": end time must be after start time.')
    elif exception.exception_type != CLOSURE:
        errors.append(f'Exception "{label}": only a closure can cover the whole day; set start and end time.')

    if exception.is_recurring:
        if not recurrence.is_known_pattern(exception.recurrence_pattern):
            allowed = ', '.join(value for value, _label in recurrence.RECURRENCE_CHOICES)
            errors.append(
                f'Exception "{label}": recurrence pattern must be one of {allowed} '
                f'(got {exception.recurrence_pattern!r}).'
            )
        elif exception.end_date is None or exception.end_date >= exception.start_date:
            pattern = recurrence.normalize_pattern(exception.recurrence_pattern)
            if exception.span_days > recurrence.MAX_SPAN_DAYS[pattern]:
                errors.append(
                    f'Exception "{label}": a {pattern} exception cannot span more than '
                    f'{recurrence.MAX_SPAN_DAYS[pattern] + 1} days.'
                )

    return errors


def check_work_pattern(pattern, exceptions=(), error_class=ScheduleValidationError):
    errors = work_pattern_errors(pattern)
    for exception in exceptions:
        errors.extend(exception_errors(exception))
    if errors:
        raise error_class(errors)


def check_exception(exception):
    errors = exception_errors(exception)
    if errors:
        raise ScheduleValidationError(errors)


def ranges_overlap(ranges):
    """Whether any two ``(start_time, end_time)`` pairs overlap"""
    spans = sorted((intervals.to_minutes(s), intervals.to_minutes(e)) for s, e in ranges)
    return any(intervals.overlaps(a, b) for a, b in zip(spans, spans[1:]))
