from django.apps import AppConfig


class SchedulingAppConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'scheduling'
    verbose_name = 'Doctor Scheduling'
