# core/models.py - Clinic-wide configuration stored as key/value rows
from django.db import models


class SystemSetting(models.Model):
    """Runtime-editable configuration value, looked up by key"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'System Setting'
        verbose_name_plural = 'System Settings'
        ordering = ['key']

    def __str__(self):
        return f"{self.key}: {self.value}"

    @classmethod
    def get_setting(cls, key, default=None):
        """Raw string value of an active setting, or ``default``"""
        setting = cls.objects.filter(key=key, is_active=True).first()
        if setting is None:
            return default
        return setting.value

    @classmethod
    def get_int_setting(cls, key, default=0):
        """Integer value of a setting; unparsable values fall back to ``default``"""
        value = cls.get_setting(key)
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            return default

    @classmethod
    def get_bool_setting(cls, key, default=False):
        value = cls.get_setting(key)
        if value is None:
            return default
        return value.strip().lower() in ('true', '1', 'yes', 'on')

    @classmethod
    def set_setting(cls, key, value, description=''):
        """Create or update a setting and (re)activate it"""
        setting, created = cls.objects.get_or_create(
            key=key,
            defaults={
                'value': str(value),
                'description': description,
                'is_active': True
            }
        )
        if not created:
            setting.value = str(value)
            if description:
                setting.description = description
            setting.is_active = True
            setting.save()
        return setting
