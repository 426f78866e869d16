import os
import unittest
from unittest import mock

from market_breadth.config import DEFAULT_UNIVERSE_IDS, get_settings


class TestSettings(unittest.TestCase):
    def test_defaults_with_memory_source(self):
        with mock.patch.dict(os.environ, {"RECORD_SOURCE": "memory"}, clear=True):
            settings = get_settings()

        self.assertEqual(settings.record_source, "MEMORY")
        self.assertEqual(settings.window_minutes, 60)
        self.assertEqual(settings.bucket_minutes, 1)
        self.assertEqual(settings.universe_ids, DEFAULT_UNIVERSE_IDS)
        self.assertEqual(len(settings.universe_ids), 49)
        self.assertEqual(settings.allowed_origins, ["http://localhost:5173"])
        self.assertTrue(settings.rate_limit_enabled)
        self.assertEqual(settings.rate_limit_max_requests, 100)
        self.assertEqual(settings.rate_limit_window_seconds, 900)
        self.assertEqual(settings.port, 8000)

    def test_mongo_requires_uri_and_db(self):
        with mock.patch.dict(os.environ, {"MONGO_URI": "mongodb://localhost"}, clear=True):
            with self.assertRaises(RuntimeError):
                get_settings()

    def test_overrides(self):
        env = {
            "MONGO_URI": "mongodb://db:27017",
            "MONGO_DB_NAME": "market",
            "WINDOW_MINUTES": "30",
            "BUCKET_MINUTES": "5",
            "UNIVERSE_SECURITY_IDS": "25, 157,,3456",
            "CLIENT_URL": "https://app.example.com",
            "ALLOWED_ORIGINS": "https://a.example.com, https://app.example.com",
            "RATE_LIMIT_ENABLED": "off",
            "FETCH_TIMEOUT_SECONDS": "2.5",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = get_settings()

        self.assertEqual(settings.record_source, "MONGO")
        self.assertEqual(settings.window_minutes, 30)
        self.assertEqual(settings.bucket_minutes, 5)
        self.assertEqual(settings.universe_ids, (25, 157, 3456))
        self.assertEqual(settings.allowed_origins, ["https://app.example.com", "https://a.example.com"])
        self.assertFalse(settings.rate_limit_enabled)
        self.assertEqual(settings.fetch_timeout_seconds, 2.5)

    def test_invalid_values(self):
        cases = [
            {"WINDOW_MINUTES": "0"},
            {"BUCKET_MINUTES": "one"},
            {"UNIVERSE_SECURITY_IDS": "25,abc"},
            {"FETCH_TIMEOUT_SECONDS": "soon"},
        ]
        for extra in cases:
            env = {"RECORD_SOURCE": "MEMORY", **extra}
            with self.subTest(env=extra), mock.patch.dict(os.environ, env, clear=True):
                with self.assertRaises(RuntimeError):
                    get_settings()

    def test_window_must_stay_under_a_day(self):
        for window, width in (("1440", "1"), ("1500", "1"), ("1436", "5")):
            env = {"RECORD_SOURCE": "MEMORY", "WINDOW_MINUTES": window, "BUCKET_MINUTES": width}
            with self.subTest(env=env), mock.patch.dict(os.environ, env, clear=True):
                with self.assertRaises(RuntimeError):
                    get_settings()

        env = {"RECORD_SOURCE": "MEMORY", "WINDOW_MINUTES": "1435", "BUCKET_MINUTES": "5"}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertEqual(get_settings().window_minutes, 1435)

    def test_forwarded_for_is_untrusted_by_default(self):
        with mock.patch.dict(os.environ, {"RECORD_SOURCE": "MEMORY"}, clear=True):
            self.assertFalse(get_settings().trust_forwarded_for)

        env = {"RECORD_SOURCE": "MEMORY", "TRUST_FORWARDED_FOR": "true"}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertTrue(get_settings().trust_forwarded_for)
