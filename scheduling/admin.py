# scheduling/admin.py
from django.contrib import admin
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet
from django.utils.html import format_html

from .exceptions import SchedulingError
from .models import AppointmentSlot, ScheduleException, ScheduleTemplate, TimeRange, WorkDay, WorkPattern
from .services import ScheduleService
from .validation import ranges_overlap


class WorkDayInline(admin.TabularInline):
    model = WorkDay
    extra = 0
    show_change_link = True


class ScheduleExceptionInline(admin.TabularInline):
    model = ScheduleException
    extra = 0
    fields = ['exception_type', 'start_date', 'end_date', 'start_time', 'end_time',
              'is_recurring', 'recurrence_pattern', 'reason']


@admin.register(WorkPattern)
class WorkPatternAdmin(admin.ModelAdmin):
    list_display = ['doctor_id', 'slot_duration_minutes', 'max_appointments_per_day',
                    'booking_window', 'is_active', 'updated_at']
    list_filter = ['is_active', 'allow_same_day_booking', 'allow_walk_in']
    search_fields = ['doctor_id']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [WorkDayInline, ScheduleExceptionInline]

    fieldsets = (
        ('Doctor', {
            'fields': ('doctor_id', 'is_active')
        }),
        ('Slots', {
            'fields': ('slot_duration_minutes', 'max_appointments_per_day')
        }),
        ('Booking Window', {
            'fields': ('min_advance_booking_days', 'max_advance_booking_days', 'allow_same_day_booking')
        }),
        ('Walk-ins', {
            'fields': ('allow_walk_in', 'max_walk_in_per_day')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ['collapse']
        }),
    )

    actions = ['regenerate_selected_schedules']

    def booking_window(self, obj):
        return f"{obj.min_advance_booking_days}-{obj.max_advance_booking_days} days"
    booking_window.short_description = 'Booking Window'

    def regenerate_selected_schedules(self, request, queryset):
        """Fill the rolling window with slots for each selected active pattern"""
        service = ScheduleService()
        created_total = 0
        errors = []

        for pattern in queryset.filter(is_active=True):
            try:
                created, _skipped = service.regenerate_rolling_window(pattern.doctor_id)
                created_total += created
            except SchedulingError as e:
                errors.append(f"Doctor {pattern.doctor_id}: {e}")

        self.message_user(request, f"Created {created_total} slot(s).")
        if errors:
            self.message_user(request, f"Errors: {'; '.join(errors)}", level='ERROR')

    regenerate_selected_schedules.short_description = "Regenerate slots for selected schedules"


class TimeRangeFormSet(BaseInlineFormSet):
    """Rejects overlapping active ranges on an active work day, including rows added in the same submit"""

    def clean(self):
        super().clean()
        if not self.instance.is_active:
            return
        ranges = []
        for form in self.forms:
            data = getattr(form, 'cleaned_data', None)
            if not data or data.get('DELETE') or not data.get('is_active'):
                continue
            if data.get('start_time') and data.get('end_time') and data['end_time'] > data['start_time']:
                ranges.append((data['start_time'], data['end_time']))
        if ranges_overlap(ranges):
            raise ValidationError(
                f"{self.instance.get_day_of_week_display()} has overlapping time ranges."
            )


class TimeRangeInline(admin.TabularInline):
    model = TimeRange
    formset = TimeRangeFormSet
    extra = 1


@admin.register(WorkDay)
class WorkDayAdmin(admin.ModelAdmin):
    list_display = ['pattern', 'day_of_week', 'is_active']
    list_filter = ['day_of_week', 'is_active']
    inlines = [TimeRangeInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('pattern')


@admin.register(ScheduleException)
class ScheduleExceptionAdmin(admin.ModelAdmin):
    list_display = ['pattern', 'exception_type', 'start_date', 'end_date', 'time_display',
                    'is_recurring', 'reason']
    list_filter = ['exception_type', 'is_recurring', 'recurrence_pattern']
    search_fields = ['reason', 'description']
    date_hierarchy = 'start_date'
    readonly_fields = ['created_at']

    def time_display(self, obj):
        if obj.is_full_day:
            return "Full Day"
        return f"{obj.start_time:%H:%M}-{obj.end_time:%H:%M}"
    time_display.short_description = 'Time'

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('pattern')


@admin.register(ScheduleTemplate)
class ScheduleTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'template_type', 'is_default', 'is_active', 'updated_at']
    list_filter = ['template_type', 'is_default', 'is_active']
    search_fields = ['name', 'description']
    readonly_fields = ['source_pattern', 'created_at', 'updated_at']


@admin.register(AppointmentSlot)
class AppointmentSlotAdmin(admin.ModelAdmin):
    list_display = ['doctor_id', 'date', 'start_time', 'end_time', 'status_display', 'appointment_id']
    list_filter = ['status', 'is_deleted', 'date']
    search_fields = ['doctor_id', 'appointment_id']
    date_hierarchy = 'date'
    readonly_fields = ['status', 'appointment_id', 'created_at', 'updated_at']

    actions = ['cancel_selected_slots']

    STATUS_COLORS = {
        AppointmentSlot.AVAILABLE: 'green',
        AppointmentSlot.BOOKED: 'orange',
        AppointmentSlot.COMPLETED: 'gray',
        AppointmentSlot.CANCELLED: 'red',
        AppointmentSlot.NO_SHOW: 'red',
    }

    def status_display(self, obj):
        return format_html(
            '<span style="color: {};">{}</span>',
            self.STATUS_COLORS.get(obj.status, 'black'),
            obj.get_status_display()
        )
    status_display.short_description = 'Status'

    def cancel_selected_slots(self, request, queryset):
        """Cancel open or booked slots through the booking state machine"""
        service = ScheduleService()
        cancelled_count = 0
        errors = []

        for slot in queryset.filter(is_deleted=False):
            try:
                service.cancel(slot.pk)
                cancelled_count += 1
            except SchedulingError as e:
                errors.append(f"Slot {slot.pk}: {e}")

        self.message_user(request, f"Successfully cancelled {cancelled_count} slot(s).")
        if errors:
            self.message_user(request, f"Errors: {'; '.join(errors)}", level='ERROR')

    cancel_selected_slots.short_description = "Cancel selected slots"


admin.site.site_header = "Clinic Scheduling Administration"
admin.site.site_title = "Clinic Scheduling Admin"
