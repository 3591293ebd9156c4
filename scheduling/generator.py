# scheduling/generator.py
"""
Slot generation: weekly pattern + exceptions + policy -> candidate slots.

Generation is a pure function of its inputs. It reads value snapshots only
(see ``scheduling.types``), performs no I/O and is safe to re-run; persisting the
result idempotently is ``SlotStore.materialize``'s job.
"""
import logging

from . import intervals, recurrence
from .exceptions import InvalidPatternError, RangeTooFarError, RangeTooSoonError, ScheduleValidationError
from .types import CLOSURE, EXTRA_AVAILABILITY, PARTIAL_CLOSURE, CandidateSlot
from .utils import SystemClock, date_range, first_bookable_date, last_bookable_date
from .validation import exception_errors, work_pattern_errors

logger = logging.getLogger(__name__)


class SlotGenerator:
    """Turns a doctor's work pattern into an ordered list of CandidateSlot"""

    def __init__(self, clock=None):
        self.clock = clock or SystemClock()

    def generate(self, pattern, exceptions, policy, from_date, to_date, today=None):
        """
        Candidate slots for every bookable date in ``[from_date, to_date]``.

        Args:
            pattern: WorkPatternSpec
            exceptions: iterable of ScheduleExceptionSpec
            policy: Policy (slot length, daily cap, booking window)
            from_date, to_date: inclusive date range
            today: reference date, defaults to the clock

        Returns:
            list of CandidateSlot, ordered by date then start time

        Raises:
            ScheduleValidationError: ``from_date`` is after ``to_date``
            InvalidPatternError: pattern inactive or structurally invalid (lists all problems)
            RangeTooFarError: ``to_date`` is past the booking window
            RangeTooSoonError: the whole range is before the booking window opens
        """
        today = today or self.clock.today()
        exceptions = list(exceptions)

        if from_date > to_date:
            raise ScheduleValidationError(
                f'Start date {from_date} must not be after end date {to_date}.'
            )

        errors = []
        if not pattern.is_active:
            errors.append(f'Work pattern for doctor {pattern.doctor_id} is not active.')
        errors.extend(work_pattern_errors(pattern))
        for exception in exceptions:
            errors.extend(exception_errors(exception))
        if policy.slot_duration_minutes <= 0:
            errors.append('Slot duration must be positive.')
        if policy.max_appointments_per_day < 1:
            errors.append('Maximum appointments per day must be at least 1.')
        if errors:
            raise InvalidPatternError(errors)

        last_date = last_bookable_date(policy, today)
        if to_date > last_date:
            raise RangeTooFarError(to_date, last_date)
        first_date = first_bookable_date(policy, today)
        if to_date < first_date:
            raise RangeTooSoonError(to_date, first_date)

        slots = []
        for day in date_range(max(from_date, first_date), to_date):
            slots.extend(self._slots_for_day(pattern, exceptions, policy, day))

        logger.debug(
            'Generated %d candidate slots for doctor %s from %s to %s',
            len(slots), pattern.doctor_id, from_date, to_date
        )
        return slots

    def available_ranges(self, pattern, exceptions, day):
        """
        Merged ``[start, end)`` minute ranges open on ``day`` after exceptions.

        Precedence, highest first: closure, partial closure, extra availability,
        base pattern. A whole-day closure empties the day outright.
        """
        work_day = pattern.work_day_for(day.weekday())
        base = []
        if work_day is not None:
            base = [
                (intervals.to_minutes(r.start_time), intervals.to_minutes(r.end_time))
                for r in work_day.active_ranges
            ]

        extra = []
        removed = []
        for exception in exceptions:
            if not recurrence.matches(exception, day):
                continue
            if exception.exception_type == CLOSURE and exception.is_full_day:
                return []
            if exception.is_full_day:
                continue
            span = (intervals.to_minutes(exception.start_time), intervals.to_minutes(exception.end_time))
            if exception.exception_type == EXTRA_AVAILABILITY:
                extra.append(span)
            elif exception.exception_type in (CLOSURE, PARTIAL_CLOSURE):
                removed.append(span)

        return intervals.subtract(intervals.merge(base + extra), removed)

    def _slots_for_day(self, pattern, exceptions, policy, day):
        pieces = intervals.tile(
            self.available_ranges(pattern, exceptions, day),
            policy.slot_duration_minutes
        )
        # Earliest slots win when the daily cap cuts the list short
        pieces = pieces[:policy.max_appointments_per_day]
        return [
            CandidateSlot(day, intervals.to_time(start), intervals.to_time(end))
            for start, end in pieces
        ]
