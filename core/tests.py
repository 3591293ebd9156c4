# core/tests.py
from django.test import TestCase

from core.models import SystemSetting


class SystemSettingTestCase(TestCase):

    def test_missing_setting_returns_default(self):
        self.assertEqual(SystemSetting.get_setting('missing', 'fallback'), 'fallback')
        self.assertEqual(SystemSetting.get_int_setting('missing', 12), 12)
        self.assertTrue(SystemSetting.get_bool_setting('missing', True))

    def test_typed_getters(self):
        SystemSetting.set_setting('days', ' 45 ')
        SystemSetting.set_setting('enabled', 'Yes')
        self.assertEqual(SystemSetting.get_int_setting('days'), 45)
        self.assertTrue(SystemSetting.get_bool_setting('enabled'))

    def test_unparsable_int_falls_back(self):
        SystemSetting.set_setting('days', 'soon')
        self.assertEqual(SystemSetting.get_int_setting('days', 30), 30)

    def test_inactive_setting_ignored(self):
        SystemSetting.objects.create(key='days', value='10', is_active=False)
        self.assertEqual(SystemSetting.get_int_setting('days', 30), 30)

    def test_set_setting_updates_and_reactivates(self):
        SystemSetting.objects.create(key='days', value='10', description='Old', is_active=False)
        SystemSetting.set_setting('days', 20)
        setting = SystemSetting.objects.get(key='days')
        self.assertEqual(setting.value, '20')
        self.assertEqual(setting.description, 'Old')
        self.assertTrue(setting.is_active)
