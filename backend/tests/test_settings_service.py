import unittest
from flask import Flask

from posledger.extensions import db
from posledger.models import StoreSettings
from posledger.services import settings_service
from posledger.validation import ValidationError, enforce_rules_settings


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
            DEFAULT_INVOICE_PREFIX="POS",
            DEFAULT_STORE_TIMEZONE="Asia/Baghdad",
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from posledger import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(StoreSettings).delete()
        db.session.commit()

    def test_missing_row_without_create(self):
        self.assertIsNone(settings_service.get_store_settings(create=False))

    def test_lazy_creation_uses_config_defaults(self):
        settings = settings_service.get_store_settings()
        db.session.commit()

        self.assertEqual(settings.invoice_prefix, "POS")
        self.assertEqual(settings.timezone, "Asia/Baghdad")
        self.assertEqual(settings.currency, "IQD")
        self.assertEqual(settings.language, "ar")
        self.assertEqual(settings.tax_rate_bps, 0)

    def test_single_row(self):
        first = settings_service.get_store_settings()
        db.session.commit()
        second = settings_service.get_store_settings()

        self.assertEqual(first.id, second.id)
        self.assertEqual(db.session.query(StoreSettings).count(), 1)

    def test_update_persists(self):
        settings_service.update_store_settings({"tax_rate_bps": 1500, "store_name": "Corner Shop"})
        db.session.expire_all()

        settings = settings_service.get_store_settings(create=False)
        self.assertEqual(settings.tax_rate_bps, 1500)
        self.assertEqual(settings.store_name, "Corner Shop")

    def test_tax_rate_bounds(self):
        enforce_rules_settings({"tax_rate_bps": 0})
        enforce_rules_settings({"tax_rate_bps": 10000})
        with self.assertRaises(ValidationError):
            enforce_rules_settings({"tax_rate_bps": 10001})
        with self.assertRaises(ValidationError):
            enforce_rules_settings({"tax_rate_bps": -1})

    def test_language_and_timezone(self):
        enforce_rules_settings({"language": "en", "timezone": "UTC"})
        with self.assertRaises(ValidationError):
            enforce_rules_settings({"language": "fr"})
        with self.assertRaises(ValidationError):
            enforce_rules_settings({"timezone": "Mars/Olympus"})


if __name__ == "__main__":
    unittest.main()
