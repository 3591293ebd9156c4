# scheduling/utils.py - Configuration lookups, clocks and date helpers
from datetime import timedelta

from django.utils import timezone

from core.models import SystemSetting


class SchedulingConfig:
    """Helper class for scheduling configuration stored in SystemSetting"""

    # key: (default, description)
    DEFAULTS = {
        'slot_regeneration_days_ahead': (30, 'Days ahead covered by the nightly slot regeneration'),
        'default_slot_duration_minutes': (30, 'Slot length used for newly configured doctors'),
        'default_max_appointments_per_day': (50, 'Daily appointment cap used for newly configured doctors'),
        'default_min_advance_booking_days': (1, 'Minimum days in advance a slot can be booked (0 = same day)'),
        'default_max_advance_booking_days': (90, 'Maximum days in advance a slot can be booked'),
        'default_allow_same_day_booking': (True, 'Whether newly configured doctors accept same-day bookings'),
    }

    @classmethod
    def _int(cls, key):
        return SystemSetting.get_int_setting(key, cls.DEFAULTS[key][0])

    @classmethod
    def get_regeneration_days_ahead(cls):
        return cls._int('slot_regeneration_days_ahead')

    @classmethod
    def get_default_slot_duration(cls):
        return cls._int('default_slot_duration_minutes')

    @classmethod
    def get_default_max_appointments_per_day(cls):
        return cls._int('default_max_appointments_per_day')

    @classmethod
    def get_default_min_advance_booking_days(cls):
        return cls._int('default_min_advance_booking_days')

    @classmethod
    def get_default_max_advance_booking_days(cls):
        return cls._int('default_max_advance_booking_days')

    @classmethod
    def is_same_day_booking_enabled(cls):
        key = 'default_allow_same_day_booking'
        return SystemSetting.get_bool_setting(key, cls.DEFAULTS[key][0])


class SystemClock:
    """Today's date in the clinic's local time zone"""

    def today(self):
        return timezone.localdate()


class FixedClock:
    """Clock pinned to a given date, for tests and back-fills"""

    def __init__(self, today):
        self._today = today

    def today(self):
        return self._today


def date_range(from_date, to_date):
    """Every date from ``from_date`` to ``to_date`` inclusive"""
    current = from_date
    while current <= to_date:
        yield current
        current += timedelta(days=1)


def first_bookable_date(policy, today):
    """Earliest date the booking window opens, relative to ``today``"""
    earliest = today + timedelta(days=policy.min_advance_booking_days)
    if not policy.allow_same_day_booking:
        earliest = max(earliest, today + timedelta(days=1))
    return earliest


def last_bookable_date(policy, today):
    return today + timedelta(days=policy.max_advance_booking_days)
