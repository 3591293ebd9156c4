# scheduling/types.py
"""
Read-only value tree used by validation and slot generation.

Rows in ``scheduling.models`` are converted into these snapshots (``to_spec()``)
so generation never touches the database and can be run on any worker.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Optional

WEEKDAY_CHOICES = [
    (0, 'Monday'),
    (1, 'Tuesday'),
    (2, 'Wednesday'),
    (3, 'Thursday'),
    (4, 'Friday'),
    (5, 'Saturday'),
    (6, 'Sunday'),
]

CLOSURE = 'closure'
PARTIAL_CLOSURE = 'partial_closure'
EXTRA_AVAILABILITY = 'extra_availability'

EXCEPTION_TYPE_CHOICES = [
    (CLOSURE, 'Closure'),
    (PARTIAL_CLOSURE, 'Partial Closure'),
    (EXTRA_AVAILABILITY, 'Extra Availability'),
]


def format_time(value):
    return value.strftime('%H:%M')


def parse_time(value):
    if isinstance(value, time):
        return value
    return datetime.strptime(value, '%H:%M').time()


@dataclass(frozen=True)
class TimeRangeSpec:
    start_time: time
    end_time: time
    is_active: bool = True

    def to_dict(self):
        return {
            'start_time': format_time(self.start_time),
            'end_time': format_time(self.end_time),
            'is_active': self.is_active,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            start_time=parse_time(data['start_time']),
            end_time=parse_time(data['end_time']),
            is_active=data.get('is_active', True),
        )


@dataclass(frozen=True)
class WorkDaySpec:
    day_of_week: int
    is_active: bool = True
    time_ranges: tuple = ()

    @property
    def active_ranges(self):
        return [r for r in self.time_ranges if r.is_active]

    def to_dict(self):
        return {
            'day_of_week': self.day_of_week,
            'is_active': self.is_active,
            'time_ranges': [r.to_dict() for r in self.time_ranges],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            day_of_week=int(data['day_of_week']),
            is_active=data.get('is_active', True),
            time_ranges=tuple(TimeRangeSpec.from_dict(r) for r in data.get('time_ranges', [])),
        )


@dataclass(frozen=True)
class Policy:
    """Booking policy applied on top of the weekly pattern"""
    slot_duration_minutes: int = 30
    max_appointments_per_day: int = 50
    min_advance_booking_days: int = 1
    max_advance_booking_days: int = 90
    allow_same_day_booking: bool = True


@dataclass(frozen=True)
class WorkPatternSpec:
    doctor_id: Optional[int] = None
    slot_duration_minutes: int = 30
    max_appointments_per_day: int = 50
    min_advance_booking_days: int = 1
    max_advance_booking_days: int = 90
    allow_same_day_booking: bool = True
    allow_walk_in: bool = False
    max_walk_in_per_day: int = 5
    is_active: bool = True
    work_days: tuple = ()

    # Serialized keys, in the order they are written to a template
    POLICY_FIELDS = (
        'slot_duration_minutes',
        'max_appointments_per_day',
        'min_advance_booking_days',
        'max_advance_booking_days',
        'allow_same_day_booking',
        'allow_walk_in',
        'max_walk_in_per_day',
    )

    @property
    def policy(self):
        return Policy(
            slot_duration_minutes=self.slot_duration_minutes,
            max_appointments_per_day=self.max_appointments_per_day,
            min_advance_booking_days=self.min_advance_booking_days,
            max_advance_booking_days=self.max_advance_booking_days,
            allow_same_day_booking=self.allow_same_day_booking,
        )

    def work_day_for(self, weekday):
        """Active work day for a weekday number, or None"""
        for work_day in self.work_days:
            if work_day.day_of_week == weekday and work_day.is_active:
                return work_day
        return None

    def for_doctor(self, doctor_id):
        return replace(self, doctor_id=doctor_id)

    def to_dict(self):
        """Doctor-independent form stored in ``ScheduleTemplate.template_data``"""
        data = {name: getattr(self, name) for name in self.POLICY_FIELDS}
        data['work_days'] = [d.to_dict() for d in self.work_days]
        return data

    @classmethod
    def from_dict(cls, data, doctor_id=None):
        kwargs = {name: data[name] for name in cls.POLICY_FIELDS if name in data}
        return cls(
            doctor_id=doctor_id,
            work_days=tuple(WorkDaySpec.from_dict(d) for d in data.get('work_days', [])),
            **kwargs
        )


@dataclass(frozen=True)
class ScheduleExceptionSpec:
    exception_type: str
    start_date: date
    end_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_recurring: bool = False
    recurrence_pattern: str = ''
    reason: str = ''
    description: str = ''

    @property
    def is_full_day(self):
        return self.start_time is None and self.end_time is None

    @property
    def last_date(self):
        return self.end_date or self.start_date

    @property
    def span_days(self):
        """Number of days after ``start_date`` the exception keeps applying"""
        return (self.last_date - self.start_date).days


@dataclass(frozen=True, order=True)
class CandidateSlot:
    date: date
    start_time: time
    end_time: time

    @property
    def duration_minutes(self):
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return end - start


# Default weekly layout for a newly configured doctor: Monday to Friday with a
# lunch break, a short Saturday that is switched off, Sunday off.
DEFAULT_WORK_DAYS = tuple(
    WorkDaySpec(
        day_of_week=weekday,
        is_active=weekday < 5,
        time_ranges=(
            (TimeRangeSpec(time(10, 0), time(14, 0)),) if weekday == 5 else
            (TimeRangeSpec(time(10, 0), time(12, 0)), TimeRangeSpec(time(13, 0), time(18, 0)))
        ),
    )
    for weekday, _name in WEEKDAY_CHOICES
)
