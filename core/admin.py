# core/admin.py
from django.contrib import admin

from .models import SystemSetting


@admin.register(SystemSetting)
class SystemSettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'short_value', 'short_description', 'is_active', 'updated_at']
    list_editable = ['is_active']
    list_filter = ['is_active']
    search_fields = ['key', 'value', 'description']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['key']

    fieldsets = (
        ('Setting', {
            'fields': ('key', 'value', 'is_active')
        }),
        ('Help', {
            'fields': ('description',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ['collapse']
        }),
    )

    def short_value(self, obj):
        if len(obj.value) <= 40:
            return obj.value
        return f"{obj.value[:40]}..."
    short_value.short_description = 'Value'

    def short_description(self, obj):
        return obj.description.split('.')[0] if obj.description else '-'
    short_description.short_description = 'Description'
