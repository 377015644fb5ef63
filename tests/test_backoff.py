"""Tests for the download backoff policy"""

import sys
import unittest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from assist_ranker.loader.backoff import BackoffPolicy


class TestBackoffDelays(unittest.TestCase):
    """Test delay growth and ceiling."""

    def setUp(self):
        self.policy = BackoffPolicy(max_attempts=5, initial_delay=60.0, multiplier=2.0, max_delay=300.0)

    def test_delay_grows_exponentially(self):
        self.assertEqual(self.policy.delay(1), 60.0)
        self.assertEqual(self.policy.delay(2), 120.0)
        self.assertEqual(self.policy.delay(3), 240.0)

    def test_delay_is_capped(self):
        self.assertEqual(self.policy.delay(4), 300.0)
        self.assertEqual(self.policy.delay(1000), 300.0)

    def test_next_download_time_is_deterministic(self):
        self.assertEqual(self.policy.next_download_time(2, now=1000.0), 1120.0)
        self.assertEqual(
            self.policy.next_download_time(2, now=1000.0),
            self.policy.next_download_time(2, now=1000.0),
        )

    def test_invalid_attempt_number(self):
        with self.assertRaises(ValueError):
            self.policy.delay(0)


class TestAttemptCap(unittest.TestCase):
    """Test attempt accounting."""

    def test_attempts_remaining_and_exhausted(self):
        policy = BackoffPolicy(max_attempts=3)

        self.assertEqual(policy.attempts_remaining(0), 3)
        self.assertEqual(policy.attempts_remaining(2), 1)
        self.assertEqual(policy.attempts_remaining(7), 0)
        self.assertFalse(policy.exhausted(2))
        self.assertTrue(policy.exhausted(3))

    def test_defaults(self):
        policy = BackoffPolicy()

        self.assertEqual(policy.max_attempts, BackoffPolicy.DEFAULT_MAX_ATTEMPTS)
        self.assertEqual(policy.delay(1), BackoffPolicy.DEFAULT_INITIAL_DELAY)


class TestPolicyValidation(unittest.TestCase):
    """Test constructor validation."""

    def test_rejects_bad_values(self):
        with self.assertRaises(ValueError):
            BackoffPolicy(max_attempts=0)
        with self.assertRaises(ValueError):
            BackoffPolicy(initial_delay=-1.0)
        with self.assertRaises(ValueError):
            BackoffPolicy(multiplier=0.5)
        with self.assertRaises(ValueError):
            BackoffPolicy(initial_delay=100.0, max_delay=10.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
