# scheduling/management/commands/regenerate_slots.py
"""
Nightly slot regeneration over the rolling booking window
Usage: python manage.py regenerate_slots [--doctor ID ...] [--days-ahead N] [--dry-run]
"""
import logging

from django.core.management.base import BaseCommand

from scheduling.exceptions import SchedulingError
from scheduling.models import WorkPattern
from scheduling.services import ScheduleService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Generate appointment slots for the rolling booking window of every active schedule'

    def add_arguments(self, parser):
        parser.add_argument(
            '--doctor',
            type=int,
            action='append',
            dest='doctors',
            help='Only regenerate for this doctor ID (repeatable)'
        )
        parser.add_argument(
            '--days-ahead',
            type=int,
            help='Days ahead to cover (default: slot_regeneration_days_ahead setting)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many slots would be generated without saving them'
        )

    def handle(self, *args, **options):
        doctor_ids = options.get('doctors')
        days_ahead = options.get('days_ahead')
        dry_run = options['dry_run']

        if days_ahead is not None and days_ahead < 0:
            self.stdout.write(self.style.ERROR('--days-ahead cannot be negative'))
            return

        patterns = WorkPattern.objects.filter(is_active=True).order_by('doctor_id')
        if doctor_ids:
            patterns = patterns.filter(doctor_id__in=doctor_ids)

        if not patterns.exists():
            self.stdout.write(self.style.WARNING('No active schedules found.'))
            return

        service = ScheduleService()
        total_created = 0
        total_skipped = 0
        failed = 0

        for pattern in patterns:
            doctor_id = pattern.doctor_id
            try:
                if dry_run:
                    window = service.rolling_window(doctor_id, days_ahead)
                    count = len(service.preview_slots(doctor_id, *window)) if window else 0
                    self.stdout.write(f'DRY RUN: Doctor {doctor_id}: would generate up to {count} slots')
                    continue
                created, skipped = service.regenerate_rolling_window(doctor_id, days_ahead)
            except SchedulingError as e:
                failed += 1
                logger.warning('Slot regeneration failed for doctor %s: %s', doctor_id, e)
                self.stdout.write(self.style.ERROR(f'Doctor {doctor_id}: {e}'))
                continue

            total_created += created
            total_skipped += skipped
            self.stdout.write(f'Doctor {doctor_id}: {created} created, {skipped} skipped')

        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN: no slots were saved.'))
            return

        self.stdout.write(
            self.style.SUCCESS(
                f'\nSlot regeneration completed:'
                f'\n- Created: {total_created} slots'
                f'\n- Skipped: {total_skipped} existing slots'
                f'\n- Failed: {failed} schedules'
            )
        )
