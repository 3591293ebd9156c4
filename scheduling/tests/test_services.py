# scheduling/tests/test_services.py
from datetime import timedelta

from django.test import TestCase

from core.models import SystemSetting
from scheduling.exceptions import (
    ExceptionNotFoundError, RangeTooFarError, ScheduleNotFoundError,
    ScheduleValidationError, SlotNotAvailableError, TemplateNotFoundError,
)
from scheduling.models import AppointmentSlot, ScheduleException, ScheduleTemplate, WorkPattern
from scheduling.services import ScheduleService
from scheduling.types import CLOSURE, PARTIAL_CLOSURE
from scheduling.utils import FixedClock

from .helpers import MONDAY, exception, pattern, t, work_day

DOCTOR = 7


def weekday_mornings(**policy):
    policy.setdefault('slot_duration_minutes', 60)
    return pattern(*(work_day(day, '09:00-12:00') for day in range(5)), **policy)


class ScheduleConfigurationTestCase(TestCase):

    def setUp(self):
        self.service = ScheduleService(clock=FixedClock(MONDAY))

    def test_configure_creates_active_pattern(self):
        created = self.service.configure_schedule(DOCTOR, weekday_mornings())
        self.assertTrue(created.is_active)
        spec = self.service.get_active_pattern(DOCTOR).to_spec()
        self.assertEqual(spec.doctor_id, DOCTOR)
        self.assertEqual(len(spec.work_days), 5)
        self.assertEqual(spec.work_day_for(0).time_ranges[0].start_time, t('09:00'))

    def test_invalid_pattern_writes_nothing(self):
        bad = pattern(work_day(0, '09:00-12:00', '10:00-11:00'), slot_duration_minutes=1)
        with self.assertRaises(ScheduleValidationError) as ctx:
            self.service.configure_schedule(DOCTOR, bad)
        self.assertEqual(len(ctx.exception.messages), 2)
        self.assertFalse(WorkPattern.objects.exists())

    def test_reconfigure_updates_in_place_and_keeps_exceptions(self):
        first = self.service.configure_schedule(DOCTOR, weekday_mornings())
        self.service.add_exception(DOCTOR, exception(CLOSURE, MONDAY + timedelta(days=2)))

        second = self.service.configure_schedule(
            DOCTOR, pattern(work_day(0, '14:00-16:00'), slot_duration_minutes=30)
        )
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(WorkPattern.objects.filter(doctor_id=DOCTOR, is_active=True).count(), 1)
        spec = second.to_spec()
        self.assertEqual(spec.slot_duration_minutes, 30)
        self.assertEqual(len(spec.work_days), 1)
        self.assertEqual(second.exceptions.count(), 1)

    def test_missing_schedule(self):
        with self.assertRaises(ScheduleNotFoundError):
            self.service.get_active_pattern(DOCTOR)

    def test_deactivate_keeps_row(self):
        self.service.configure_schedule(DOCTOR, weekday_mornings())
        self.service.deactivate_schedule(DOCTOR)
        self.assertTrue(WorkPattern.objects.filter(doctor_id=DOCTOR, is_active=False).exists())
        with self.assertRaises(ScheduleNotFoundError):
            self.service.get_active_pattern(DOCTOR)

    def test_activate_restores_earlier_pattern(self):
        first = self.service.configure_schedule(DOCTOR, weekday_mornings())
        self.service.deactivate_schedule(DOCTOR)
        second = self.service.configure_schedule(DOCTOR, pattern(work_day(0, '14:00-16:00')))
        self.assertNotEqual(first.pk, second.pk)

        restored = self.service.activate_schedule(DOCTOR, first.pk)
        self.assertEqual(self.service.get_active_pattern(DOCTOR).pk, first.pk)
        self.assertEqual(restored.to_spec().slot_duration_minutes, 60)
        second.refresh_from_db()
        self.assertFalse(second.is_active)

    def test_activate_pattern_of_other_doctor(self):
        first = self.service.configure_schedule(DOCTOR, weekday_mornings())
        with self.assertRaises(ScheduleNotFoundError):
            self.service.activate_schedule(99, first.pk)

    def test_default_schedule_uses_settings(self):
        SystemSetting.set_setting('default_slot_duration_minutes', 20)
        pattern_row, created = self.service.create_default_schedule(DOCTOR)
        self.assertTrue(created)
        spec = pattern_row.to_spec()
        self.assertEqual(spec.slot_duration_minutes, 20)
        self.assertEqual([d.day_of_week for d in spec.work_days if d.is_active], [0, 1, 2, 3, 4])
        monday = spec.work_day_for(0)
        self.assertEqual(
            [(r.start_time, r.end_time) for r in monday.time_ranges],
            [(t('10:00'), t('12:00')), (t('13:00'), t('18:00'))]
        )
        self.assertIsNone(spec.work_day_for(5))

    def test_default_schedule_respects_existing(self):
        existing = self.service.configure_schedule(DOCTOR, weekday_mornings())
        pattern_row, created = self.service.create_default_schedule(DOCTOR)
        self.assertFalse(created)
        self.assertEqual(pattern_row.pk, existing.pk)
        self.assertEqual(pattern_row.to_spec().slot_duration_minutes, 60)

        _row, created = self.service.create_default_schedule(DOCTOR, force=True)
        self.assertTrue(created)
        self.assertEqual(self.service.get_active_pattern(DOCTOR).to_spec().slot_duration_minutes, 30)


class ScheduleTemplateTestCase(TestCase):

    def setUp(self):
        self.service = ScheduleService(clock=FixedClock(MONDAY))
        self.service.configure_schedule(DOCTOR, weekday_mornings())

    def test_template_round_trip(self):
        template = self.service.save_as_template(DOCTOR, 'Mornings', template_type='seasonal')
        self.assertEqual(template.source_pattern.doctor_id, DOCTOR)
        self.assertEqual(template.template_data['work_days'][0]['time_ranges'][0]['start_time'], '09:00')

        applied = self.service.apply_template(8, template.pk)
        self.assertEqual(applied.to_spec().work_days, self.service.get_active_pattern(DOCTOR).to_spec().work_days)

    def test_apply_is_a_copy(self):
        """Test that editing a template later leaves applied schedules alone"""
        template = self.service.save_as_template(DOCTOR, 'Mornings')
        self.service.apply_template(8, template.pk)

        template.template_data['slot_duration_minutes'] = 15
        template.save()
        self.assertEqual(self.service.get_active_pattern(8).slot_duration_minutes, 60)

    def test_apply_keeps_exceptions(self):
        self.service.add_exception(DOCTOR, exception(CLOSURE, MONDAY))
        template = ScheduleTemplate.objects.create(
            name='Afternoons',
            template_data=pattern(work_day(0, '14:00-18:00')).to_dict()
        )
        self.service.apply_template(DOCTOR, template.pk)
        active = self.service.get_active_pattern(DOCTOR)
        self.assertEqual(active.exceptions.count(), 1)
        self.assertEqual(active.to_spec().work_day_for(0).time_ranges[0].start_time, t('14:00'))

    def test_single_default_template(self):
        first = self.service.save_as_template(DOCTOR, 'First', is_default=True)
        second = self.service.save_as_template(DOCTOR, 'Second', is_default=True)
        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertEqual(self.service.get_default_template(), second)

    def test_template_name_required(self):
        with self.assertRaises(ScheduleValidationError):
            self.service.save_as_template(DOCTOR, '  ')

    def test_inactive_template_not_found(self):
        template = self.service.save_as_template(DOCTOR, 'Old')
        ScheduleTemplate.objects.filter(pk=template.pk).update(is_active=False)
        with self.assertRaises(TemplateNotFoundError):
            self.service.apply_template(8, template.pk)


class ScheduleExceptionServiceTestCase(TestCase):

    def setUp(self):
        self.service = ScheduleService(clock=FixedClock(MONDAY))
        self.service.configure_schedule(DOCTOR, weekday_mornings())

    def test_invalid_exception_rejected(self):
        with self.assertRaises(ScheduleValidationError):
            self.service.add_exception(DOCTOR, exception(PARTIAL_CLOSURE, MONDAY))
        self.assertFalse(ScheduleException.objects.exists())

    def test_remove_exception(self):
        row = self.service.add_exception(DOCTOR, exception(CLOSURE, MONDAY))
        self.service.remove_exception(row.pk)
        self.assertFalse(ScheduleException.objects.exists())
        with self.assertRaises(ExceptionNotFoundError):
            self.service.remove_exception(row.pk)

    def test_exception_without_schedule(self):
        with self.assertRaises(ScheduleNotFoundError):
            self.service.add_exception(99, exception(CLOSURE, MONDAY))


class SlotGenerationServiceTestCase(TestCase):

    def setUp(self):
        self.service = ScheduleService(clock=FixedClock(MONDAY))
        self.service.configure_schedule(DOCTOR, weekday_mornings(max_advance_booking_days=60))

    def test_preview_writes_nothing(self):
        slots = self.service.preview_slots(DOCTOR, MONDAY, MONDAY + timedelta(days=6))
        self.assertEqual(len(slots), 15)
        self.assertFalse(AppointmentSlot.objects.exists())

    def test_regenerate_is_idempotent(self):
        end = MONDAY + timedelta(days=6)
        self.assertEqual(self.service.regenerate_slots(DOCTOR, MONDAY, end), (15, 0))
        self.assertEqual(self.service.regenerate_slots(DOCTOR, MONDAY, end), (0, 15))

    def test_regenerate_after_booking_leaves_booking(self):
        self.service.regenerate_slots(DOCTOR, MONDAY, MONDAY)
        slot = self.service.list_available(DOCTOR, MONDAY)[0]
        self.service.book(slot.pk, 500)

        self.service.regenerate_slots(DOCTOR, MONDAY, MONDAY)
        slot.refresh_from_db()
        self.assertEqual(slot.status, AppointmentSlot.BOOKED)
        self.assertEqual(slot.appointment_id, 500)
        self.assertEqual(len(self.service.list_available(DOCTOR, MONDAY)), 2)

    def test_closure_added_later_does_not_remove_slots(self):
        self.service.regenerate_slots(DOCTOR, MONDAY, MONDAY)
        self.service.add_exception(DOCTOR, exception(CLOSURE, MONDAY))
        self.assertEqual(self.service.regenerate_slots(DOCTOR, MONDAY, MONDAY), (0, 0))
        self.assertEqual(AppointmentSlot.objects.count(), 3)

    def test_rolling_window_uses_setting(self):
        SystemSetting.set_setting('slot_regeneration_days_ahead', 6)
        self.assertEqual(self.service.regenerate_rolling_window(DOCTOR), (15, 0))

    def test_rolling_window_clipped_to_booking_window(self):
        self.service.configure_schedule(DOCTOR, weekday_mornings(max_advance_booking_days=2))
        created, _skipped = self.service.regenerate_rolling_window(DOCTOR, days_ahead=30)
        self.assertEqual(created, 9)

    def test_weekly_generation(self):
        created, skipped = self.service.generate_weekly_slots(DOCTOR, MONDAY + timedelta(days=7))
        self.assertEqual((created, skipped), (15, 0))
        dates = {s.date for s in AppointmentSlot.objects.all()}
        self.assertEqual(min(dates), MONDAY + timedelta(days=7))
        self.assertEqual(max(dates), MONDAY + timedelta(days=11))

    def test_weekly_generation_cut_at_window_end(self):
        self.service.configure_schedule(DOCTOR, weekday_mornings(max_advance_booking_days=10))
        created, _skipped = self.service.generate_weekly_slots(DOCTOR, MONDAY + timedelta(days=7))
        self.assertEqual(created, 12)

    def test_weekly_generation_beyond_window(self):
        with self.assertRaises(RangeTooFarError):
            self.service.generate_weekly_slots(DOCTOR, MONDAY + timedelta(days=70))

    def test_monthly_generation(self):
        created, _skipped = self.service.generate_monthly_slots(DOCTOR, MONDAY)
        self.assertEqual(created, 23 * 3)
        last = AppointmentSlot.objects.order_by('-date').first()
        self.assertEqual(last.date, MONDAY.replace(month=2, day=6))

    def test_available_dates_skip_closures_and_weekends(self):
        self.service.add_exception(DOCTOR, exception(CLOSURE, MONDAY + timedelta(days=2)))
        dates = self.service.get_available_dates(DOCTOR, MONDAY, MONDAY + timedelta(days=6))
        self.assertEqual(dates, [MONDAY + timedelta(days=n) for n in (0, 1, 3, 4)])

    def test_available_dates_outside_window_are_empty(self):
        far = MONDAY + timedelta(days=100)
        self.assertEqual(self.service.get_available_dates(DOCTOR, far, far + timedelta(days=5)), [])

    def test_booking_through_service(self):
        self.service.regenerate_slots(DOCTOR, MONDAY, MONDAY)
        slot = self.service.list_available(DOCTOR, MONDAY)[0]
        self.service.book(slot.pk, 1)
        with self.assertRaises(SlotNotAvailableError):
            self.service.book(slot.pk, 2)

        self.service.complete(slot.pk)
        booked = self.service.list_by_range(DOCTOR, MONDAY, MONDAY, statuses=[AppointmentSlot.COMPLETED])
        self.assertEqual([s.pk for s in booked], [slot.pk])

    def test_retile_after_reconfiguration(self):
        self.service.regenerate_slots(DOCTOR, MONDAY, MONDAY)
        booked = self.service.list_available(DOCTOR, MONDAY)[0]
        self.service.book(booked.pk, 11)

        self.service.configure_schedule(DOCTOR, weekday_mornings(slot_duration_minutes=30, max_advance_booking_days=60))
        self.assertEqual(self.service.retile_slots(DOCTOR, MONDAY, MONDAY), (2, 4, 2))
        starts = [s.start_time for s in self.service.list_by_range(DOCTOR, MONDAY, MONDAY)]
        self.assertEqual(starts, [t('09:00'), t('10:00'), t('10:30'), t('11:00'), t('11:30')])

    def test_cancelled_slot_reopened_only_on_request(self):
        self.service.regenerate_slots(DOCTOR, MONDAY, MONDAY)
        slot = self.service.list_available(DOCTOR, MONDAY)[0]
        self.service.cancel(slot.pk)

        self.assertEqual(self.service.retile_slots(DOCTOR, MONDAY, MONDAY), (2, 2, 1))
        self.assertEqual(len(self.service.list_available(DOCTOR, MONDAY)), 2)

        self.assertEqual(self.service.retile_slots(DOCTOR, MONDAY, MONDAY, include_cancelled=True), (3, 3, 0))
        self.assertEqual(len(self.service.list_available(DOCTOR, MONDAY)), 3)

    def test_retile_keeps_slots_before_booking_window(self):
        self.service.configure_schedule(DOCTOR, weekday_mornings(min_advance_booking_days=1, max_advance_booking_days=60))
        day_before = ScheduleService(clock=FixedClock(MONDAY - timedelta(days=1)))
        self.assertEqual(day_before.regenerate_slots(DOCTOR, MONDAY, MONDAY + timedelta(days=1)), (6, 0))

        self.assertEqual(self.service.retile_slots(DOCTOR, MONDAY, MONDAY + timedelta(days=1)), (3, 3, 0))
        self.assertEqual(len(self.service.list_available(DOCTOR, MONDAY)), 3)
        self.assertEqual(len(self.service.list_available(DOCTOR, MONDAY + timedelta(days=1))), 3)
