# scheduling/management/commands/create_default_scheduling_settings.py

from django.core.management.base import BaseCommand

from core.models import SystemSetting
from scheduling.utils import SchedulingConfig


class Command(BaseCommand):
    help = 'Create the default scheduling settings in SystemSetting'

    def handle(self, *args, **options):
        created_count = 0
        updated_count = 0

        for key, (default, description) in SchedulingConfig.DEFAULTS.items():
            value = str(default).lower() if isinstance(default, bool) else str(default)
            setting, created = SystemSetting.objects.get_or_create(
                key=key,
                defaults={
                    'value': value,
                    'description': description,
                    'is_active': True
                }
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f'Created setting: {setting.key} = {setting.value}'))
            elif not setting.description:
                setting.description = description
                setting.save()
                updated_count += 1
                self.stdout.write(self.style.WARNING(f'Updated description for: {setting.key}'))
            else:
                self.stdout.write(f'Setting already exists: {setting.key}')

        self.stdout.write(
            self.style.SUCCESS(
                f'\nScheduling settings setup completed:'
                f'\n- Created: {created_count} new settings'
                f'\n- Updated: {updated_count} existing settings'
                f'\n- Total: {len(SchedulingConfig.DEFAULTS)} settings processed'
            )
        )
