# scheduling/models.py
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from .recurrence import RECURRENCE_CHOICES
from .types import (
    CLOSURE, EXCEPTION_TYPE_CHOICES, WEEKDAY_CHOICES,
    ScheduleExceptionSpec, TimeRangeSpec, WorkDaySpec, WorkPatternSpec,
)
from .validation import check_exception


class WorkPattern(models.Model):
    """
    A doctor's recurring weekly availability plus the booking policy applied to it.
    Only one pattern per doctor is active; old ones are deactivated, never deleted.
    """
    doctor_id = models.PositiveIntegerField(db_index=True)
    slot_duration_minutes = models.PositiveIntegerField(
        default=30,
        validators=[MinValueValidator(5), MaxValueValidator(120)],
        help_text="Length of each bookable slot"
    )
    max_appointments_per_day = models.PositiveIntegerField(
        default=50,
        validators=[MinValueValidator(1), MaxValueValidator(200)]
    )
    min_advance_booking_days = models.PositiveIntegerField(
        default=1,
        validators=[MaxValueValidator(365)],
        help_text="0 = bookable from today"
    )
    max_advance_booking_days = models.PositiveIntegerField(
        default=90,
        validators=[MinValueValidator(1), MaxValueValidator(365)]
    )
    allow_same_day_booking = models.BooleanField(default=True)
    allow_walk_in = models.BooleanField(default=False)
    max_walk_in_per_day = models.PositiveIntegerField(default=5, validators=[MaxValueValidator(50)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['doctor_id', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['doctor_id'],
                condition=models.Q(is_active=True),
                name='unique_active_pattern_per_doctor'
            ),
            models.CheckConstraint(
                condition=models.Q(min_advance_booking_days__lte=models.F('max_advance_booking_days')),
                name='workpattern_min_advance_not_after_max'
            ),
        ]

    def __str__(self):
        state = 'active' if self.is_active else 'inactive'
        return f"Doctor {self.doctor_id} - {self.slot_duration_minutes} min slots ({state})"

    def to_spec(self):
        """Read-only snapshot of this pattern and its days/ranges"""
        work_days = tuple(
            WorkDaySpec(
                day_of_week=day.day_of_week,
                is_active=day.is_active,
                time_ranges=tuple(
                    TimeRangeSpec(r.start_time, r.end_time, r.is_active)
                    for r in day.time_ranges.all()
                ),
            )
            for day in self.work_days.prefetch_related('time_ranges')
        )
        return WorkPatternSpec(
            doctor_id=self.doctor_id,
            slot_duration_minutes=self.slot_duration_minutes,
            max_appointments_per_day=self.max_appointments_per_day,
            min_advance_booking_days=self.min_advance_booking_days,
            max_advance_booking_days=self.max_advance_booking_days,
            allow_same_day_booking=self.allow_same_day_booking,
            allow_walk_in=self.allow_walk_in,
            max_walk_in_per_day=self.max_walk_in_per_day,
            is_active=self.is_active,
            work_days=work_days,
        )

    def exception_specs(self):
        return [exception.to_spec() for exception in self.exceptions.all()]

    @classmethod
    def get_active_for_doctor(cls, doctor_id):
        """Active pattern of a doctor, or None"""
        return cls.objects.filter(doctor_id=doctor_id, is_active=True).first()


class WorkDay(models.Model):
    pattern = models.ForeignKey(WorkPattern, on_delete=models.CASCADE, related_name='work_days')
    day_of_week = models.IntegerField(choices=WEEKDAY_CHOICES)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['pattern', 'day_of_week']
        constraints = [
            models.UniqueConstraint(fields=['pattern', 'day_of_week'], name='unique_workday_per_pattern'),
        ]

    def __str__(self):
        state = '' if self.is_active else ' (Not Working)'
        return f"{self.get_day_of_week_display()}{state}"


class TimeRange(models.Model):
    work_day = models.ForeignKey(WorkDay, on_delete=models.CASCADE, related_name='time_ranges')
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['work_day', 'start_time']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F('start_time')),
                name='timerange_end_after_start'
            ),
        ]

    def __str__(self):
        return f"{self.work_day} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def clean(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError('End time must be after start time.')


class ScheduleException(models.Model):
    """
    Date-scoped override of a work pattern: closures, partial closures
    and extra availability, optionally repeating weekly/monthly/yearly
    """
    pattern = models.ForeignKey(WorkPattern, on_delete=models.CASCADE, related_name='exceptions')
    exception_type = models.CharField(max_length=20, choices=EXCEPTION_TYPE_CHOICES, default=CLOSURE)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True, help_text="Leave empty for a single day")
    start_time = models.TimeField(null=True, blank=True, help_text="Leave empty to cover the entire day")
    end_time = models.TimeField(null=True, blank=True, help_text="Leave empty to cover the entire day")
    is_recurring = models.BooleanField(default=False)
    recurrence_pattern = models.CharField(max_length=20, choices=RECURRENCE_CHOICES, blank=True)
    reason = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['start_date', 'start_time']
        indexes = [
            models.Index(fields=['pattern', 'start_date', 'end_date'], name='sched_exc_pattern_dates_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F('start_time')) |
                          (models.Q(start_time__isnull=True) & models.Q(end_time__isnull=True)),
                name='scheduleexception_valid_times'
            ),
        ]

    def __str__(self):
        if self.is_full_day:
            return f"{self.get_exception_type_display()} {self.start_date} (Full Day) - {self.reason}"
        return (
            f"{self.get_exception_type_display()} {self.start_date} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M} - {self.reason}"
        )

    @property
    def is_full_day(self):
        return self.start_time is None and self.end_time is None

    def to_spec(self):
        return ScheduleExceptionSpec(
            exception_type=self.exception_type,
            start_date=self.start_date,
            end_date=self.end_date,
            start_time=self.start_time,
            end_time=self.end_time,
            is_recurring=self.is_recurring,
            recurrence_pattern=self.recurrence_pattern,
            reason=self.reason,
            description=self.description,
        )

    @classmethod
    def from_spec(cls, pattern, spec):
        return cls(
            pattern=pattern,
            exception_type=spec.exception_type,
            start_date=spec.start_date,
            end_date=spec.end_date,
            start_time=spec.start_time,
            end_time=spec.end_time,
            is_recurring=spec.is_recurring,
            recurrence_pattern=spec.recurrence_pattern,
            reason=spec.reason,
            description=spec.description,
        )

    def clean(self):
        check_exception(self.to_spec())


class ScheduleTemplate(models.Model):
    """Named, reusable copy of a work pattern and its policy"""
    TEMPLATE_TYPE_CHOICES = [
        ('standard', 'Standard'),
        ('seasonal', 'Seasonal'),
        ('custom', 'Custom'),
    ]

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    template_type = models.CharField(max_length=20, choices=TEMPLATE_TYPE_CHOICES, default='standard')
    source_pattern = models.ForeignKey(
        WorkPattern, on_delete=models.SET_NULL, null=True, blank=True, related_name='templates'
    )
    template_data = models.JSONField(default=dict, help_text="Serialized work pattern (days, ranges, policy)")
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['is_default'],
                condition=models.Q(is_default=True),
                name='single_default_schedule_template'
            ),
        ]

    def __str__(self):
        suffix = ' (default)' if self.is_default else ''
        return f"{self.name}{suffix}"

    def to_spec(self, doctor_id=None):
        return WorkPatternSpec.from_dict(self.template_data, doctor_id=doctor_id)


class AppointmentSlot(models.Model):
    """
    Materialized, bookable time unit for one doctor on one date
    """
    AVAILABLE = 'available'
    BOOKED = 'booked'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'

    STATUS_CHOICES = [
        (AVAILABLE, 'Available'),
        (BOOKED, 'Booked'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
        (NO_SHOW, 'No Show'),
    ]

    # Statuses that carry an appointment reference
    LINKED_STATUSES = [BOOKED, COMPLETED]
    TERMINAL_STATUSES = [COMPLETED, CANCELLED, NO_SHOW]

    doctor_id = models.PositiveIntegerField()
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=AVAILABLE)
    appointment_id = models.PositiveIntegerField(null=True, blank=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date', 'start_time']
        indexes = [
            models.Index(fields=['doctor_id', 'date', 'status'], name='appt_slot_doctor_date_idx'),
            models.Index(fields=['date', 'start_time'], name='appt_slot_date_time_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['doctor_id', 'date', 'start_time', 'end_time'],
                condition=models.Q(is_deleted=False),
                name='unique_live_slot_per_doctor_time'
            ),
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F('start_time')),
                name='appointmentslot_end_after_start'
            ),
            models.CheckConstraint(
                condition=models.Q(appointment_id__isnull=True) | models.Q(status__in=['booked', 'completed']),
                name='appointmentslot_appointment_only_when_linked'
            ),
        ]

    def __str__(self):
        return f"Doctor {self.doctor_id} - {self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M} ({self.status})"

    @property
    def is_available(self):
        return self.status == self.AVAILABLE and not self.is_deleted

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES
