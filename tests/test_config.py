"""Unit tests for grievance_tracker.core.config validators."""

import unittest

from pydantic import ValidationError

from grievance_tracker.core.config import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettingsDefaults(unittest.TestCase):
    def test_token_expiry_defaults_to_seven_days(self) -> None:
        self.assertEqual(_settings().JWT_EXPIRE_MINUTES, 7 * 24 * 60)

    def test_upload_defaults(self) -> None:
        s = _settings()
        self.assertEqual(s.UPLOAD_MAX_FILES, 5)
        self.assertIn(".pdf", s.UPLOAD_ALLOWED_EXTENSIONS)


class TestSettingsValidation(unittest.TestCase):
    def test_rejects_non_sql_database_url(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mongodb://localhost:27017/grievances")

    def test_accepts_sqlite_and_postgres(self) -> None:
        self.assertEqual(_settings(DATABASE_URL="sqlite:///./g.db").DATABASE_URL, "sqlite:///./g.db")
        self.assertTrue(_settings(DATABASE_URL=" postgresql://u:p@h/db ").DATABASE_URL.startswith("postgresql://"))

    def test_database_url_whitespace_stripped_on_both_sides(self) -> None:
        for raw in ("  sqlite:///./g.db", "sqlite:///./g.db  ", "\tsqlite:///./g.db\n"):
            with self.subTest(raw=raw):
                self.assertEqual(_settings(DATABASE_URL=raw).DATABASE_URL, "sqlite:///./g.db")

    def test_blank_database_url_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="   ")

    def test_jwt_expiry_bounds(self) -> None:
        for value in (0, 10081):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    _settings(JWT_EXPIRE_MINUTES=value)

    def test_empty_jwt_secret_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_SECRET="   ")

    def test_api_prefix_normalized(self) -> None:
        self.assertEqual(_settings(API_PREFIX="/api/").API_PREFIX, "/api")
        with self.assertRaises(ValidationError):
            _settings(API_PREFIX="api")

    def test_extensions_normalized(self) -> None:
        s = _settings(UPLOAD_ALLOWED_EXTENSIONS=("PDF", ".Png", " "))
        self.assertEqual(s.UPLOAD_ALLOWED_EXTENSIONS, (".pdf", ".png"))

    def test_blank_bootstrap_email_is_none(self) -> None:
        self.assertIsNone(_settings(BOOTSTRAP_ADMIN_EMAIL="  ").BOOTSTRAP_ADMIN_EMAIL)


if __name__ == "__main__":
    unittest.main()
