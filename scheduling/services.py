# scheduling/services.py
"""
ScheduleService: the one entry point the rest of the clinic uses.

Configuration writes (patterns, templates, exceptions) go through Django
models inside a transaction. Slot generation reads a snapshot, runs the pure
SlotGenerator and hands the result to SlotStore. Booking transitions are
delegated to BookingStateMachine.
"""
import logging
from datetime import timedelta

from dateutil.relativedelta import relativedelta
from django.db import DatabaseError, transaction

from .exceptions import (
    ExceptionNotFoundError, RangeTooFarError, ScheduleNotFoundError,
    ScheduleValidationError, StorageError, TemplateNotFoundError,
)
from .generator import SlotGenerator
from .models import ScheduleException, ScheduleTemplate, TimeRange, WorkDay, WorkPattern
from .state_machine import BookingStateMachine
from .store import SlotStore
from .types import DEFAULT_WORK_DAYS, WorkPatternSpec
from .utils import SchedulingConfig, SystemClock, first_bookable_date, last_bookable_date
from .validation import check_exception, check_work_pattern

logger = logging.getLogger(__name__)


class ScheduleService:
    """Schedule configuration, slot generation and booking for doctors"""

    def __init__(self, clock=None, store=None, state_machine=None, generator=None):
        self.clock = clock or SystemClock()
        self.store = store or SlotStore()
        self.state_machine = state_machine or BookingStateMachine(self.store)
        self.generator = generator or SlotGenerator(self.clock)

    # ------------------------------------------------------------------
    # Work patterns
    # ------------------------------------------------------------------

    def get_active_pattern(self, doctor_id):
        pattern = WorkPattern.get_active_for_doctor(doctor_id)
        if pattern is None:
            raise ScheduleNotFoundError(doctor_id)
        return pattern

    def configure_schedule(self, doctor_id, pattern_spec):
        """
        Replace a doctor's weekly pattern and booking policy.

        The active pattern row is updated in place so its exceptions survive;
        a new row is created when the doctor has no active pattern yet.
        Existing slots are left alone; regenerate to pick up the change.

        Args:
            doctor_id: doctor the schedule belongs to
            pattern_spec: WorkPatternSpec (its doctor_id is ignored)

        Returns:
            WorkPattern

        Raises:
            ScheduleValidationError: lists every problem; nothing is written
            StorageError: the database rejected the write
        """
        spec = pattern_spec.for_doctor(doctor_id)
        check_work_pattern(spec)

        try:
            with transaction.atomic():
                pattern = WorkPattern.get_active_for_doctor(doctor_id)
                created = pattern is None
                if created:
                    pattern = WorkPattern(doctor_id=doctor_id)
                for name in WorkPatternSpec.POLICY_FIELDS:
                    setattr(pattern, name, getattr(spec, name))
                pattern.is_active = True
                pattern.save()

                pattern.work_days.all().delete()
                for day_spec in spec.work_days:
                    work_day = WorkDay.objects.create(
                        pattern=pattern,
                        day_of_week=day_spec.day_of_week,
                        is_active=day_spec.is_active
                    )
                    TimeRange.objects.bulk_create([
                        TimeRange(
                            work_day=work_day,
                            start_time=r.start_time,
                            end_time=r.end_time,
                            is_active=r.is_active
                        )
                        for r in day_spec.time_ranges
                    ])
        except DatabaseError as exc:
            logger.error('Saving the schedule of doctor %s failed: %s', doctor_id, exc)
            raise StorageError(f'Could not save the schedule of doctor {doctor_id}.') from exc

        logger.info(
            '%s schedule for doctor %s (%d work days, %d min slots)',
            'Created' if created else 'Updated', doctor_id, len(spec.work_days), spec.slot_duration_minutes
        )
        return pattern

    def deactivate_schedule(self, doctor_id):
        """Soft-deactivate the doctor's pattern; history and slots are kept"""
        pattern = self.get_active_pattern(doctor_id)
        pattern.is_active = False
        pattern.save(update_fields=['is_active', 'updated_at'])
        logger.info('Deactivated schedule %s of doctor %s', pattern.pk, doctor_id)
        return pattern

    def activate_schedule(self, doctor_id, pattern_id):
        """
        Bring back one of the doctor's earlier patterns.

        The currently active pattern, if any, is deactivated in the same
        transaction. The restored pattern is validated first.

        Raises:
            ScheduleNotFoundError: no such pattern for this doctor
            ScheduleValidationError: the stored pattern is no longer valid
        """
        pattern = WorkPattern.objects.filter(pk=pattern_id, doctor_id=doctor_id).first()
        if pattern is None:
            raise ScheduleNotFoundError(doctor_id, pattern_id)
        if pattern.is_active:
            return pattern
        check_work_pattern(pattern.to_spec(), pattern.exception_specs())

        try:
            with transaction.atomic():
                WorkPattern.objects.filter(doctor_id=doctor_id, is_active=True).update(is_active=False)
                pattern.is_active = True
                pattern.save(update_fields=['is_active', 'updated_at'])
        except DatabaseError as exc:
            logger.error('Activating schedule %s of doctor %s failed: %s', pattern_id, doctor_id, exc)
            raise StorageError(f'Could not activate schedule {pattern_id} of doctor {doctor_id}.') from exc

        logger.info('Activated schedule %s of doctor %s', pattern.pk, doctor_id)
        return pattern

    def default_pattern_spec(self, doctor_id=None):
        """Default week and the clinic-wide policy defaults from SystemSetting"""
        return WorkPatternSpec(
            doctor_id=doctor_id,
            slot_duration_minutes=SchedulingConfig.get_default_slot_duration(),
            max_appointments_per_day=SchedulingConfig.get_default_max_appointments_per_day(),
            min_advance_booking_days=SchedulingConfig.get_default_min_advance_booking_days(),
            max_advance_booking_days=SchedulingConfig.get_default_max_advance_booking_days(),
            allow_same_day_booking=SchedulingConfig.is_same_day_booking_enabled(),
            work_days=DEFAULT_WORK_DAYS,
        )

    def create_default_schedule(self, doctor_id, force=False):
        """
        Give a doctor the default schedule.

        Returns:
            tuple: (pattern, created); an existing pattern is only overwritten with ``force``
        """
        existing = WorkPattern.get_active_for_doctor(doctor_id)
        if existing is not None and not force:
            return existing, False
        return self.configure_schedule(doctor_id, self.default_pattern_spec(doctor_id)), True

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def save_as_template(self, doctor_id, name, description='', template_type='standard', is_default=False):
        """Snapshot the doctor's active pattern as a reusable template"""
        name = (name or '').strip()
        errors = []
        if not name:
            errors.append('Template name is required.')
        elif len(name) > 100:
            errors.append('Template name cannot exceed 100 characters.')
        if template_type not in dict(ScheduleTemplate.TEMPLATE_TYPE_CHOICES):
            errors.append(f'Unknown template type {template_type!r}.')
        if errors:
            raise ScheduleValidationError(errors)

        pattern = self.get_active_pattern(doctor_id)
        try:
            with transaction.atomic():
                if is_default:
                    ScheduleTemplate.objects.filter(is_default=True).update(is_default=False)
                template = ScheduleTemplate.objects.create(
                    name=name,
                    description=description,
                    template_type=template_type,
                    source_pattern=pattern,
                    template_data=pattern.to_spec().to_dict(),
                    is_default=is_default
                )
        except DatabaseError as exc:
            raise StorageError(f'Could not save template "{name}".') from exc

        logger.info('Saved schedule of doctor %s as template %s (%s)', doctor_id, template.pk, name)
        return template

    def get_template(self, template_id):
        template = ScheduleTemplate.objects.filter(pk=template_id, is_active=True).first()
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def get_default_template(self):
        """The active default template, or None"""
        return ScheduleTemplate.objects.filter(is_default=True, is_active=True).first()

    def apply_template(self, doctor_id, template_id):
        """
        Copy a template onto a doctor's schedule.

        The template is copied, not linked: editing it later does not change
        schedules it was applied to. The doctor's exceptions are kept.
        """
        template = self.get_template(template_id)
        pattern = self.configure_schedule(doctor_id, template.to_spec(doctor_id))
        logger.info('Applied template %s to doctor %s', template.pk, doctor_id)
        return pattern

    # ------------------------------------------------------------------
    # Exceptions
    # ------------------------------------------------------------------

    def add_exception(self, doctor_id, exception_spec):
        check_exception(exception_spec)
        pattern = self.get_active_pattern(doctor_id)
        exception = ScheduleException.from_spec(pattern, exception_spec)
        try:
            exception.save()
        except DatabaseError as exc:
            raise StorageError(f'Could not save exception for doctor {doctor_id}.') from exc
        logger.info(
            'Added %s exception for doctor %s from %s (%s)',
            exception.exception_type, doctor_id, exception.start_date, exception.reason
        )
        return exception

    def remove_exception(self, exception_id):
        """Delete an exception; slots already materialized are not touched"""
        exception = ScheduleException.objects.filter(pk=exception_id).first()
        if exception is None:
            raise ExceptionNotFoundError(exception_id)
        exception.delete()
        logger.info('Removed schedule exception %s', exception_id)

    # ------------------------------------------------------------------
    # Slot generation
    # ------------------------------------------------------------------

    def _snapshot(self, doctor_id):
        pattern = self.get_active_pattern(doctor_id)
        return pattern.to_spec(), pattern.exception_specs()

    def preview_slots(self, doctor_id, from_date, to_date):
        """Candidate slots for a date range, without writing anything"""
        spec, exceptions = self._snapshot(doctor_id)
        return self.generator.generate(spec, exceptions, spec.policy, from_date, to_date, today=self.clock.today())

    def regenerate_slots(self, doctor_id, from_date, to_date):
        """
        Generate and store slots for a date range.

        Safe to re-run: slots that already exist, including booked ones, are
        skipped and never modified.

        Returns:
            tuple: (created, skipped)
        """
        candidates = self.preview_slots(doctor_id, from_date, to_date)
        return self.store.materialize(doctor_id, candidates)

    def _clip_to_window(self, doctor_id, from_date, to_date):
        """``[from_date, to_date]`` cut to the doctor's booking window, or None when they don't meet"""
        policy = self.get_active_pattern(doctor_id).to_spec().policy
        today = self.clock.today()
        start = max(from_date, first_bookable_date(policy, today))
        end = min(to_date, last_bookable_date(policy, today))
        if start > end:
            return None
        return start, end

    def retile_slots(self, doctor_id, from_date, to_date, include_cancelled=False):
        """
        Replace the open slots of a date range with freshly generated ones.

        Run after reconfiguring a schedule or adding an exception. Booked and
        finished slots stay, and new slots never overlap them. Cancelled slots
        only become bookable again through ``include_cancelled``. Dates before
        the booking window opens are not regenerated, so their slots are kept.

        Returns:
            tuple: (withdrawn, created, skipped)
        """
        candidates = self.preview_slots(doctor_id, from_date, to_date)
        start, end = self._clip_to_window(doctor_id, from_date, to_date)
        with transaction.atomic():
            withdrawn = self.store.withdraw_available(doctor_id, start, end, include_cancelled)
            created, skipped = self.store.materialize(doctor_id, candidates)
        return withdrawn, created, skipped

    def rolling_window(self, doctor_id, days_ahead=None):
        """
        ``(from_date, to_date)`` covered by the nightly regeneration, or None.

        ``days_ahead`` defaults to the ``slot_regeneration_days_ahead`` setting
        and is cut to the doctor's booking window.
        """
        if days_ahead is None:
            days_ahead = SchedulingConfig.get_regeneration_days_ahead()
        today = self.clock.today()
        return self._clip_to_window(doctor_id, today, today + timedelta(days=days_ahead))

    def regenerate_rolling_window(self, doctor_id, days_ahead=None):
        """Nightly job body: fill the rolling window with slots"""
        window = self.rolling_window(doctor_id, days_ahead)
        if window is None:
            logger.info('Nothing to regenerate for doctor %s: rolling window lies outside the booking window', doctor_id)
            return 0, 0
        return self.regenerate_slots(doctor_id, *window)

    def _regenerate_period(self, doctor_id, period_start, period_end):
        policy = self.get_active_pattern(doctor_id).to_spec().policy
        last_date = last_bookable_date(policy, self.clock.today())
        if period_start > last_date:
            raise RangeTooFarError(period_end, last_date)
        return self.regenerate_slots(doctor_id, period_start, min(period_end, last_date))

    def generate_weekly_slots(self, doctor_id, week_start):
        """Slots for the seven days starting at ``week_start``; a week straddling the window end is cut short"""
        return self._regenerate_period(doctor_id, week_start, week_start + timedelta(days=6))

    def generate_monthly_slots(self, doctor_id, month_start):
        """Slots from ``month_start`` up to the day before the same date next month"""
        month_end = month_start + relativedelta(months=1) - timedelta(days=1)
        return self._regenerate_period(doctor_id, month_start, month_end)

    def get_available_dates(self, doctor_id, from_date, to_date):
        """Dates within the booking window on which at least one slot would be generated"""
        if from_date > to_date:
            raise ScheduleValidationError(f'Start date {from_date} must not be after end date {to_date}.')
        window = self._clip_to_window(doctor_id, from_date, to_date)
        if window is None:
            return []
        return sorted({slot.date for slot in self.preview_slots(doctor_id, *window)})

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book(self, slot_id, appointment_id):
        return self.state_machine.book(slot_id, appointment_id)

    def cancel(self, slot_id):
        return self.state_machine.cancel(slot_id)

    def complete(self, slot_id):
        return self.state_machine.complete(slot_id)

    def mark_no_show(self, slot_id):
        return self.state_machine.mark_no_show(slot_id)

    def list_available(self, doctor_id, date):
        return self.store.find_available(doctor_id, date)

    def list_by_range(self, doctor_id, from_date, to_date, statuses=None):
        return self.store.find_by_range(doctor_id, from_date, to_date, statuses=statuses)
