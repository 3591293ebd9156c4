# scheduling/management/commands/create_default_schedules.py

from django.core.management.base import BaseCommand

from scheduling.exceptions import SchedulingError
from scheduling.services import ScheduleService


class Command(BaseCommand):
    help = 'Create the default working schedule (Mon-Fri 10:00-18:00, lunch 12:00-13:00) for doctors'

    def add_arguments(self, parser):
        parser.add_argument(
            'doctor_ids',
            nargs='+',
            type=int,
            help='Doctor IDs to set up'
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Overwrite existing schedules with the default one',
        )

    def handle(self, *args, **options):
        force = options.get('force', False)
        service = ScheduleService()

        created_count = 0
        kept_count = 0

        for doctor_id in options['doctor_ids']:
            try:
                pattern, created = service.create_default_schedule(doctor_id, force=force)
            except SchedulingError as e:
                self.stdout.write(self.style.ERROR(f'Doctor {doctor_id}: {e}'))
                continue

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'Doctor {doctor_id}: default schedule applied'))
            else:
                kept_count += 1
                self.stdout.write(f'Doctor {doctor_id}: schedule already exists (use --force to overwrite)')

        self.stdout.write(
            self.style.SUCCESS(
                f'\nDefault schedules setup completed:'
                f'\n- Applied: {created_count}'
                f'\n- Kept existing: {kept_count}'
            )
        )
