import unittest
from types import SimpleNamespace

from flask import Flask

from cashboard.extensions import db
from cashboard.models import SystemSetting
from cashboard.services import settings_service
from cashboard.services.settings_service import (
    DEFAULT_SETTINGS,
    SettingsAuthorizationError,
    SettingsNotFoundError,
    SettingsValidationError,
)


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from cashboard import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(SystemSetting).delete()
        db.session.commit()

        self.director = SimpleNamespace(id=None, role="director", assigned_store_id=None, extra_permissions=[])
        self.contable = SimpleNamespace(id=None, role="admin_contable", assigned_store_id=None, extra_permissions=[])

    def test_defaults_when_nothing_stored(self):
        settings = settings_service.load_settings()
        self.assertEqual(settings, DEFAULT_SETTINGS)
        self.assertEqual(settings["security"]["max_login_attempts"], 5)
        self.assertEqual(settings["system"]["session_timeout"], 30)

    def test_load_returns_a_copy(self):
        settings = settings_service.load_settings()
        settings["financial"]["decimal_places"] = 4
        self.assertEqual(DEFAULT_SETTINGS["financial"]["decimal_places"], 2)

    def test_save_section_merges_over_defaults(self):
        settings = settings_service.save_section(self.director, "financial", {"decimal_places": 3})

        self.assertEqual(settings["financial"]["decimal_places"], 3)
        self.assertEqual(settings["financial"]["currency"], "USD")
        self.assertEqual(settings_service.get_section("financial")["decimal_places"], 3)

    def test_save_keeps_previous_keys(self):
        settings_service.save_section(self.director, "security", {"max_login_attempts": 3})
        settings_service.save_section(self.director, "security", {"lockout_duration": 30})

        security = settings_service.get_section("security")
        self.assertEqual(security["max_login_attempts"], 3)
        self.assertEqual(security["lockout_duration"], 30)

    def test_explicit_settings_value_is_used(self):
        settings = settings_service.load_settings()
        settings["system"]["session_timeout"] = 5

        self.assertEqual(settings_service.get_section("system", settings)["session_timeout"], 5)

    def test_only_director_can_edit(self):
        with self.assertRaises(SettingsAuthorizationError):
            settings_service.save_section(self.contable, "general", {"company_name": "X"})
        with self.assertRaises(SettingsAuthorizationError):
            settings_service.reset_section(self.contable, "general")

    def test_extra_permission_cannot_unlock_edit(self):
        self.contable.extra_permissions = ["settings:edit"]
        with self.assertRaises(SettingsAuthorizationError):
            settings_service.save_section(self.contable, "general", {"company_name": "X"})

    def test_unknown_section(self):
        with self.assertRaises(SettingsNotFoundError):
            settings_service.save_section(self.director, "theme", {})
        with self.assertRaises(SettingsNotFoundError):
            settings_service.get_section("theme")

    def test_unknown_key_rejected(self):
        with self.assertRaises(SettingsValidationError):
            settings_service.save_section(self.director, "general", {"color": "red"})

    def test_type_checks(self):
        bad = [
            ("financial", {"decimal_places": "2"}),
            ("financial", {"decimal_places": True}),
            ("financial", {"tax_rate": "8"}),
            ("reports", {"show_taxes": "yes"}),
            ("general", {"company_name": 12}),
        ]
        for section, data in bad:
            with self.subTest(section=section, data=data):
                with self.assertRaises(SettingsValidationError):
                    settings_service.save_section(self.director, section, data)

    def test_ranges_and_choices(self):
        bad = [
            ("financial", {"decimal_places": 9}),
            ("security", {"min_password_length": 2}),
            ("system", {"session_timeout": 0}),
            ("reports", {"default_date_range": "2w"}),
            ("reports", {"time_format": "am/pm"}),
        ]
        for section, data in bad:
            with self.subTest(section=section, data=data):
                with self.assertRaises(SettingsValidationError):
                    settings_service.save_section(self.director, section, data)

    def test_int_accepted_for_float(self):
        settings = settings_service.save_section(self.director, "financial", {"tax_rate": 16})
        self.assertEqual(settings["financial"]["tax_rate"], 16.0)

    def test_reset_section(self):
        settings_service.save_section(self.director, "reports", {"default_date_range": "7d"})
        settings = settings_service.reset_section(self.director, "reports")

        self.assertEqual(settings["reports"], DEFAULT_SETTINGS["reports"])
        self.assertIsNone(db.session.get(SystemSetting, "reports"))


if __name__ == "__main__":
    unittest.main()
