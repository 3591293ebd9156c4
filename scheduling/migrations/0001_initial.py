# scheduling/migrations/0001_initial.py
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


WEEKDAY_CHOICES = [
    (0, 'Monday'), (1, 'Tuesday'), (2, 'Wednesday'), (3, 'Thursday'),
    (4, 'Friday'), (5, 'Saturday'), (6, 'Sunday'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='WorkPattern',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doctor_id', models.PositiveIntegerField(db_index=True)),
                ('slot_duration_minutes', models.PositiveIntegerField(
                    default=30, help_text='Length of each bookable slot',
                    validators=[django.core.validators.MinValueValidator(5), django.core.validators.MaxValueValidator(120)])),
                ('max_appointments_per_day', models.PositiveIntegerField(
                    default=50,
                    validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(200)])),
                ('min_advance_booking_days', models.PositiveIntegerField(
                    default=1, help_text='0 = bookable from today',
                    validators=[django.core.validators.MaxValueValidator(365)])),
                ('max_advance_booking_days', models.PositiveIntegerField(
                    default=90,
                    validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(365)])),
                ('allow_same_day_booking', models.BooleanField(default=True)),
                ('allow_walk_in', models.BooleanField(default=False)),
                ('max_walk_in_per_day', models.PositiveIntegerField(
                    default=5, validators=[django.core.validators.MaxValueValidator(50)])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['doctor_id', '-created_at'],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(is_active=True), fields=('doctor_id',),
                        name='unique_active_pattern_per_doctor'),
                    models.CheckConstraint(
                        condition=models.Q(min_advance_booking_days__lte=models.F('max_advance_booking_days')),
                        name='workpattern_min_advance_not_after_max'),
                ],
            },
        ),
        migrations.CreateModel(
            name='WorkDay',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('day_of_week', models.IntegerField(choices=WEEKDAY_CHOICES)),
                ('is_active', models.BooleanField(default=True)),
                ('pattern', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='work_days',
                    to='scheduling.workpattern')),
            ],
            options={
                'ordering': ['pattern', 'day_of_week'],
                'constraints': [
                    models.UniqueConstraint(fields=('pattern', 'day_of_week'), name='unique_workday_per_pattern'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TimeRange',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('is_active', models.BooleanField(default=True)),
                ('work_day', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='time_ranges',
                    to='scheduling.workday')),
            ],
            options={
                'ordering': ['work_day', 'start_time'],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(end_time__gt=models.F('start_time')),
                        name='timerange_end_after_start'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ScheduleException',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('exception_type', models.CharField(
                    choices=[('closure', 'Closure'), ('partial_closure', 'Partial Closure'),
                             ('extra_availability', 'Extra Availability')],
                    default='closure', max_length=20)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField(blank=True, help_text='Leave empty for a single day', null=True)),
                ('start_time', models.TimeField(blank=True, help_text='Leave empty to cover the entire day', null=True)),
                ('end_time', models.TimeField(blank=True, help_text='Leave empty to cover the entire day', null=True)),
                ('is_recurring', models.BooleanField(default=False)),
                ('recurrence_pattern', models.CharField(
                    blank=True,
                    choices=[('weekly', 'Every week'), ('monthly', 'Every month on this date'),
                             ('yearly', 'Every year on this date')],
                    max_length=20)),
                ('reason', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('pattern', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='exceptions',
                    to='scheduling.workpattern')),
            ],
            options={
                'ordering': ['start_date', 'start_time'],
                'indexes': [
                    models.Index(fields=['pattern', 'start_date', 'end_date'], name='sched_exc_pattern_dates_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(end_time__gt=models.F('start_time')) |
                        (models.Q(start_time__isnull=True) & models.Q(end_time__isnull=True)),
                        name='scheduleexception_valid_times'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ScheduleTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True)),
                ('template_type', models.CharField(
                    choices=[('standard', 'Standard'), ('seasonal', 'Seasonal'), ('custom', 'Custom')],
                    default='standard', max_length=20)),
                ('template_data', models.JSONField(
                    default=dict, help_text='Serialized work pattern (days, ranges, policy)')),
                ('is_default', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('source_pattern', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='templates', to='scheduling.workpattern')),
            ],
            options={
                'ordering': ['name'],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(is_default=True), fields=('is_default',),
                        name='single_default_schedule_template'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AppointmentSlot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('doctor_id', models.PositiveIntegerField()),
                ('date', models.DateField()),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('duration_minutes', models.PositiveIntegerField()),
                ('status', models.CharField(
                    choices=[('available', 'Available'), ('booked', 'Booked'), ('completed', 'Completed'),
                             ('cancelled', 'Cancelled'), ('no_show', 'No Show')],
                    default='available', max_length=20)),
                ('appointment_id', models.PositiveIntegerField(blank=True, null=True)),
                ('is_deleted', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['date', 'start_time'],
                'indexes': [
                    models.Index(fields=['doctor_id', 'date', 'status'], name='appt_slot_doctor_date_idx'),
                    models.Index(fields=['date', 'start_time'], name='appt_slot_date_time_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(is_deleted=False),
                        fields=('doctor_id', 'date', 'start_time', 'end_time'),
                        name='unique_live_slot_per_doctor_time'),
                    models.CheckConstraint(
                        condition=models.Q(end_time__gt=models.F('start_time')),
                        name='appointmentslot_end_after_start'),
                    models.CheckConstraint(
                        condition=models.Q(appointment_id__isnull=True) | models.Q(status__in=['booked', 'completed']),
                        name='appointmentslot_appointment_only_when_linked'),
                ],
            },
        ),
    ]
