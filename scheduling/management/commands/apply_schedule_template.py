# scheduling/management/commands/apply_schedule_template.py

from django.core.management.base import BaseCommand, CommandError

from scheduling.exceptions import SchedulingError, TemplateNotFoundError
from scheduling.services import ScheduleService


class Command(BaseCommand):
    help = 'Copy a schedule template onto one or more doctors'

    def add_arguments(self, parser):
        parser.add_argument('template_id', type=int, help='Schedule template ID')
        parser.add_argument('doctor_ids', nargs='+', type=int, help='Doctor IDs to apply it to')
        parser.add_argument(
            '--regenerate',
            action='store_true',
            help='Regenerate the rolling slot window after applying'
        )

    def handle(self, *args, **options):
        service = ScheduleService()
        try:
            template = service.get_template(options['template_id'])
        except TemplateNotFoundError as e:
            raise CommandError(str(e))

        applied = 0
        for doctor_id in options['doctor_ids']:
            try:
                service.apply_template(doctor_id, template.pk)
                applied += 1
                message = f'Doctor {doctor_id}: applied "{template.name}"'
                if options['regenerate']:
                    created, skipped = service.regenerate_rolling_window(doctor_id)
                    message += f' ({created} slots created, {skipped} skipped)'
                self.stdout.write(self.style.SUCCESS(message))
            except SchedulingError as e:
                self.stdout.write(self.style.ERROR(f'Doctor {doctor_id}: {e}'))

        self.stdout.write(f'\nApplied template to {applied} of {len(options["doctor_ids"])} doctors.')
