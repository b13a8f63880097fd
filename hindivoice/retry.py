"""
hindivoice/retry.py
====================
Bounded Polling Policy — HindiVoice

Provides the wait schedule used while a remote transcription job is queued
or processing. The schedule is bounded twice: by a maximum number of status
checks and by an overall deadline, so a stalled remote job surfaces as a
JobTimeoutError instead of an endless loop.

Usage::

    policy = PollPolicy(interval=3.0, max_attempts=200, timeout=900.0)
    for delay in policy.delays():
        ...check status...
        await asyncio.sleep(delay)

This module does NOT:
    - Perform any HTTP calls
    - Decide which statuses are terminal (handled by stt.job)
"""

import logging
from dataclasses import dataclass
from typing import Iterator

from hindivoice.config import Settings

logger = logging.getLogger("hindivoice.retry")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_INTERVAL: float = 3.0       # seconds between status checks
DEFAULT_BACKOFF_FACTOR: float = 1.0 # 1.0 keeps the interval fixed
DEFAULT_MAX_INTERVAL: float = 30.0  # cap for exponential schedules
DEFAULT_MAX_ATTEMPTS: int = 200
DEFAULT_TIMEOUT: float = 900.0      # 15 minutes overall


@dataclass(frozen=True)
class PollPolicy:
    interval: float = DEFAULT_INTERVAL
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    max_interval: float = DEFAULT_MAX_INTERVAL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError("interval must be >= 0")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.timeout < 0:
            raise ValueError("timeout must be >= 0")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollPolicy":
        policy = cls(
            interval=settings.poll_interval_seconds,
            backoff_factor=settings.poll_backoff_factor,
            max_interval=settings.poll_max_interval_seconds,
            max_attempts=settings.poll_max_attempts,
            timeout=settings.poll_timeout_seconds,
        )
        logger.info(
            "Poll policy: every %.1fs (x%.1f, cap %.1fs), %d attempts, %.0fs deadline",
            policy.interval, policy.backoff_factor, policy.max_interval,
            policy.max_attempts, policy.timeout,
        )
        return policy

    def delays(self) -> Iterator[float]:
        """
        Yield the wait that follows each status check.

        Yields exactly ``max_attempts`` values; the caller polls once per
        value and gives up when the iterator is exhausted.
        """
        delay = self.interval
        for _ in range(self.max_attempts):
            yield min(delay, self.max_interval)
            delay = delay * self.backoff_factor
        logger.warning("Poll budget exhausted after %d attempts.", self.max_attempts)
