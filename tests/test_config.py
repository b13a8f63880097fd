"""
tests/test_config.py
=====================
Configuration Tests — environment → Settings → PollPolicy.
"""

import os
import sys
import unittest
from unittest.mock import patch

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from hindivoice.config import ASSEMBLYAI_API_URL, Settings, load_settings
from hindivoice.errors import ConfigurationError
from hindivoice.retry import PollPolicy


class TestLoadSettings(unittest.TestCase):

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        settings = load_settings()

        self.assertIsNone(settings.assemblyai_api_key)
        self.assertEqual(settings.assemblyai_api_url, ASSEMBLYAI_API_URL)
        self.assertEqual(settings.poll_interval_seconds, 3.0)
        self.assertEqual(settings.max_upload_bytes, 50 * 1024 * 1024)
        self.assertEqual(settings.speech_rate, 0.8)
        self.assertEqual(settings.log_level, "INFO")

    @patch.dict(os.environ, {
        "ASSEMBLYAI_API_KEY": "abc123",
        "ASSEMBLYAI_API_URL": "https://example.test/v2/",
        "POLL_MAX_ATTEMPTS": "10",
        "SPEECH_VOICE": "Lekha",
        "LOG_LEVEL": "debug",
    }, clear=True)
    def test_overrides(self):
        settings = load_settings()

        self.assertEqual(settings.require_api_key(), "abc123")
        self.assertEqual(settings.assemblyai_api_url, "https://example.test/v2")
        self.assertEqual(settings.poll_max_attempts, 10)
        self.assertEqual(settings.speech_voice, "Lekha")
        self.assertEqual(settings.log_level, "DEBUG")

    @patch.dict(os.environ, {"POLL_INTERVAL_SECONDS": "soon"}, clear=True)
    def test_malformed_number(self):
        with self.assertRaises(ConfigurationError) as ctx:
            load_settings()
        self.assertIn("POLL_INTERVAL_SECONDS", ctx.exception.message)

    def test_missing_api_key(self):
        with self.assertRaises(ConfigurationError):
            Settings().require_api_key()


class TestPollPolicyFromSettings(unittest.TestCase):

    def test_from_settings(self):
        settings = Settings(poll_interval_seconds=1.5, poll_max_attempts=7, poll_timeout_seconds=60)
        with self.assertLogs("hindivoice.retry", level="INFO") as logs:
            policy = PollPolicy.from_settings(settings)

        self.assertEqual(policy.interval, 1.5)
        self.assertEqual(policy.max_attempts, 7)
        self.assertEqual(policy.timeout, 60)
        self.assertIn("7 attempts", logs.output[0])

    def test_exhausted_budget_is_logged(self):
        policy = PollPolicy(interval=0.0, max_attempts=3)
        with self.assertLogs("hindivoice.retry", level="WARNING") as logs:
            self.assertEqual(len(list(policy.delays())), 3)
        self.assertIn("Poll budget exhausted after 3 attempts.", logs.output[-1])


if __name__ == "__main__":
    unittest.main()
