"""
Download Backoff Policy

Bounds network traffic for model downloads: each failed attempt pushes the
next permitted download time further out, and a hard cap on attempts ends
the retry loop regardless of further activity.

Pure and deterministic given (attempt_number, now).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff with a ceiling and an attempt cap.

    Attributes:
        max_attempts: Total network attempts permitted (>= 1)
        initial_delay: Delay in seconds after the first failure
        multiplier: Growth factor applied per further failure (>= 1.0)
        max_delay: Ceiling on any single delay in seconds
    """

    DEFAULT_MAX_ATTEMPTS = 3
    DEFAULT_INITIAL_DELAY = 180.0  # seconds (3 minutes)
    DEFAULT_MULTIPLIER = 2.0
    DEFAULT_MAX_DELAY = 3600.0  # seconds (1 hour)

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    initial_delay: float = DEFAULT_INITIAL_DELAY
    multiplier: float = DEFAULT_MULTIPLIER
    max_delay: float = DEFAULT_MAX_DELAY

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")

    def delay(self, attempt_number: int) -> float:
        """Delay enforced after the given (1-based) failed attempt.

        Args:
            attempt_number: Number of the attempt that just failed

        Returns:
            Delay in seconds, capped at max_delay
        """
        if attempt_number < 1:
            raise ValueError("attempt_number must be >= 1")
        # Clamp the exponent so large attempt numbers cannot overflow
        exponent = min(attempt_number - 1, 64)
        return min(self.initial_delay * (self.multiplier ** exponent), self.max_delay)

    def next_download_time(self, attempt_number: int, now: float) -> float:
        """Earliest time another download may start after a failure."""
        return now + self.delay(attempt_number)

    def attempts_remaining(self, attempts_made: int) -> int:
        return max(self.max_attempts - attempts_made, 0)

    def exhausted(self, attempts_made: int) -> bool:
        return attempts_made >= self.max_attempts
