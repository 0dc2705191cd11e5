"""
Rate Limiting

Two independent limiters live here:

- ``limiter``: slowapi per-IP request limits for the public JSON API.
  Redirects are deliberately left unlimited.
- ``AdminAuthRateLimiter``: counts failed admin logins per client IP over a
  fixed window that starts at the first failure. Counters are kept in an
  ``AttemptStore`` so the in-memory default can be replaced by a shared
  store when the service runs as several processes.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from slowapi import Limiter
from slowapi.util import get_remote_address

from qrlink.core.setting import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "generate": "10/minute",
    "list": "30/minute",
    "analytics": "30/minute",
}


@dataclass
class AttemptRecord:
    """Failed attempts for one key and when the first of them happened."""
    attempts: int
    first_attempt: float


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    remaining_attempts: int
    reset_time: datetime


class AttemptStore(ABC):
    """
    Storage contract for failed-attempt counters.

    Implementations only store and expire records; window arithmetic
    belongs to AdminAuthRateLimiter.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[AttemptRecord]:
        pass

    @abstractmethod
    def increment(self, key: str, now: float) -> AttemptRecord:
        """Add one attempt, creating the record (first_attempt=now) if missing."""
        pass

    @abstractmethod
    def clear(self, key: str) -> None:
        pass

    @abstractmethod
    def expire(self, now: float, window: float) -> None:
        """Drop every record whose window has elapsed at ``now``."""
        pass


class InMemoryAttemptStore(AttemptStore):
    """
    Process-local attempt store.

    Not shared between workers and reset on restart. Entries are purged by
    expire(); there is no background sweep.
    """

    def __init__(self):
        self._records: Dict[str, AttemptRecord] = {}

    def get(self, key: str) -> Optional[AttemptRecord]:
        return self._records.get(key)

    def increment(self, key: str, now: float) -> AttemptRecord:
        record = self._records.get(key)
        if record is None:
            record = AttemptRecord(attempts=0, first_attempt=now)
            self._records[key] = record
        record.attempts += 1
        return record

    def clear(self, key: str) -> None:
        self._records.pop(key, None)

    def expire(self, now: float, window: float) -> None:
        expired = [
            key for key, record in self._records.items()
            if now - record.first_attempt > window
        ]
        for key in expired:
            del self._records[key]

    def __len__(self) -> int:
        return len(self._records)


class AdminAuthRateLimiter:
    """
    Limits failed admin password attempts per client IP.

    A client may fail ``max_attempts`` times inside ``window_seconds``
    (counted from its first failure). After that, check() reports
    allowed=False until the window elapses or clear_attempts() is called.
    """

    def __init__(
        self,
        store: AttemptStore,
        max_attempts: int = 5,
        window_seconds: float = 60 * 60,
        clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.clock = clock

    def _reset_time(self, start: float) -> datetime:
        return datetime.fromtimestamp(start + self.window_seconds, tz=timezone.utc)

    def check(self, ip: str) -> RateLimitStatus:
        """Report whether ``ip`` may attempt a login now."""
        now = self.clock()
        self.store.expire(now, self.window_seconds)

        record = self.store.get(ip)
        if record is None:
            return RateLimitStatus(
                allowed=True,
                remaining_attempts=self.max_attempts,
                reset_time=self._reset_time(now)
            )

        remaining = max(0, self.max_attempts - record.attempts)
        return RateLimitStatus(
            allowed=remaining > 0,
            remaining_attempts=remaining,
            reset_time=self._reset_time(record.first_attempt)
        )

    def record_failed_attempt(self, ip: str) -> None:
        now = self.clock()
        self.store.expire(now, self.window_seconds)
        self.store.increment(ip, now)

    def clear_attempts(self, ip: str) -> None:
        """Forget failures for ``ip`` (called after a successful login)."""
        self.store.clear(ip)


admin_rate_limiter = AdminAuthRateLimiter(
    InMemoryAttemptStore(),
    max_attempts=settings.ADMIN_MAX_ATTEMPTS,
    window_seconds=settings.ADMIN_ATTEMPT_WINDOW
)


def get_admin_rate_limiter() -> AdminAuthRateLimiter:
    """FastAPI dependency returning the process-wide admin limiter."""
    return admin_rate_limiter
