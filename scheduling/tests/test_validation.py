# scheduling/tests/test_validation.py
from datetime import date

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from scheduling.exceptions import ScheduleValidationError
from scheduling.types import CLOSURE, EXTRA_AVAILABILITY, PARTIAL_CLOSURE, TimeRangeSpec, WorkDaySpec
from scheduling.validation import (
    check_exception, check_work_pattern, exception_errors, ranges_overlap, work_pattern_errors,
)

from .helpers import exception, pattern, t, work_day


class WorkPatternValidationTestCase(SimpleTestCase):

    def test_valid_pattern_has_no_errors(self):
        spec = pattern(work_day(0, '09:00-12:00', '13:00-17:00'), work_day(1, '09:00-12:00'))
        self.assertEqual(work_pattern_errors(spec), [])

    def test_overlapping_ranges_rejected(self):
        spec = pattern(work_day(0, '09:00-12:00', '11:00-13:00'))
        errors = work_pattern_errors(spec)
        self.assertEqual(len(errors), 1)
        self.assertIn('overlap', errors[0])

    def test_overlap_ignored_on_inactive_day(self):
        spec = pattern(work_day(5, '09:00-12:00', '11:00-13:00', is_active=False))
        self.assertEqual(work_pattern_errors(spec), [])

    def test_inactive_range_does_not_overlap(self):
        day = WorkDaySpec(0, True, (
            TimeRangeSpec(t('09:00'), t('12:00')),
            TimeRangeSpec(t('10:00'), t('11:00'), is_active=False),
        ))
        self.assertEqual(work_pattern_errors(pattern(day)), [])

    def test_end_before_start_rejected(self):
        spec = pattern(work_day(2, '12:00-09:00'))
        self.assertIn('end time must be after start time', work_pattern_errors(spec)[0])

    def test_duplicate_and_out_of_range_weekdays(self):
        spec = pattern(work_day(0, '09:00-10:00'), work_day(0, '11:00-12:00'), work_day(7, '09:00-10:00'))
        errors = work_pattern_errors(spec)
        self.assertEqual(len(errors), 2)

    def test_policy_bounds(self):
        spec = pattern(
            slot_duration_minutes=3,
            max_appointments_per_day=0,
            min_advance_booking_days=30,
            max_advance_booking_days=10,
        )
        errors = work_pattern_errors(spec)
        self.assertEqual(len(errors), 3)
        self.assertTrue(any('Slot duration' in e for e in errors))
        self.assertTrue(any('cannot exceed maximum advance' in e for e in errors))

    def test_walk_ins_cannot_exceed_daily_cap(self):
        spec = pattern(allow_walk_in=True, max_walk_in_per_day=10, max_appointments_per_day=5)
        self.assertEqual(len(work_pattern_errors(spec)), 1)

    def test_check_raises_all_errors_at_once(self):
        spec = pattern(work_day(0, '12:00-09:00'), slot_duration_minutes=500)
        with self.assertRaises(ScheduleValidationError) as ctx:
            check_work_pattern(spec)
        self.assertEqual(len(ctx.exception.messages), 2)
        self.assertIsInstance(ctx.exception, ValidationError)


class ExceptionValidationTestCase(SimpleTestCase):

    def test_full_day_closure_is_valid(self):
        self.assertEqual(exception_errors(exception(CLOSURE, date(2030, 1, 7))), [])

    def test_partial_closure_requires_times(self):
        errors = exception_errors(exception(PARTIAL_CLOSURE, date(2030, 1, 7)))
        self.assertEqual(len(errors), 1)

    def test_extra_availability_requires_times(self):
        self.assertEqual(len(exception_errors(exception(EXTRA_AVAILABILITY, date(2030, 1, 7)))), 1)
        self.assertEqual(exception_errors(exception(EXTRA_AVAILABILITY, date(2030, 1, 7), times='18:00-20:00')), [])

    def test_reason_required_and_limited(self):
        self.assertEqual(len(exception_errors(exception(CLOSURE, date(2030, 1, 7), reason=''))), 1)
        self.assertEqual(len(exception_errors(exception(CLOSURE, date(2030, 1, 7), reason='x' * 201))), 1)

    def test_end_date_before_start_date(self):
        errors = exception_errors(exception(CLOSURE, date(2030, 1, 7), end_date=date(2030, 1, 6)))
        self.assertEqual(len(errors), 1)

    def test_unknown_type_and_pattern(self):
        spec = exception('holiday', date(2030, 1, 7), recurrence_pattern='daily')
        self.assertEqual(len(exception_errors(spec)), 3)

    def test_recurring_span_must_leave_a_gap(self):
        spec = exception(CLOSURE, date(2030, 1, 7), end_date=date(2030, 1, 14), recurrence_pattern='weekly')
        errors = exception_errors(spec)
        self.assertEqual(len(errors), 1)
        self.assertIn('weekly', errors[0])

    def test_check_exception_raises(self):
        with self.assertRaises(ScheduleValidationError):
            check_exception(exception(PARTIAL_CLOSURE, date(2030, 1, 7), times='13:00-12:00'))


class RangesOverlapTestCase(SimpleTestCase):

    def test_touching_ranges_do_not_overlap(self):
        self.assertFalse(ranges_overlap([(t('09:00'), t('12:00')), (t('12:00'), t('13:00'))]))

    def test_overlap_detected_regardless_of_order(self):
        self.assertTrue(ranges_overlap([(t('13:00'), t('15:00')), (t('09:00'), t('13:30'))]))
