"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Single source of time for submissions, reviews and published
statistics.

- Creation, review and publish timestamps MUST use this clock
- Ranking tie-breaks depend on these timestamps, so tests
  replace the clock with MockClock for deterministic order
- UTC only

============================================================
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Generator, Optional
import threading


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the system clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass

    def format_iso(self, dt: Optional[datetime] = None) -> str:
        """Format datetime as ISO 8601."""
        dt = dt or self.now()
        return dt.isoformat()


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """Production clock using actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


# ============================================================
# MOCK CLOCK (TESTING)
# ============================================================

class MockClock(ClockProtocol):
    """
    Mock clock for testing.

    Time only moves when the test moves it, unless ``step`` is
    given, in which case every ``now()`` call advances the clock
    by that amount after returning.
    """

    def __init__(
        self,
        initial_time: Optional[datetime] = None,
        step: Optional[timedelta] = None,
    ):
        initial_time = initial_time or datetime(2024, 1, 1, tzinfo=timezone.utc)
        if initial_time.tzinfo is None:
            initial_time = initial_time.replace(tzinfo=timezone.utc)
        self._time = initial_time
        self._step = step
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._time
            if self._step is not None:
                self._time = self._time + self._step
            return current

    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            if new_time.tzinfo is None:
                new_time = new_time.replace(tzinfo=timezone.utc)
            self._time = new_time

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)


# ============================================================
# CLOCK FACTORY
# ============================================================

class ClockFactory:
    """Holder for the process-wide clock instance."""

    _instance: Optional[ClockProtocol] = None
    _lock = threading.Lock()

    @classmethod
    def get_clock(cls) -> ClockProtocol:
        with cls._lock:
            if cls._instance is None:
                cls._instance = SystemClock()
            return cls._instance

    @classmethod
    def set_clock(cls, clock: ClockProtocol) -> None:
        with cls._lock:
            cls._instance = clock

    @classmethod
    def reset(cls) -> None:
        """Reset to default system clock."""
        with cls._lock:
            cls._instance = SystemClock()

    @classmethod
    @contextmanager
    def use_mock(
        cls,
        initial_time: Optional[datetime] = None,
        step: Optional[timedelta] = None,
    ) -> Generator[MockClock, None, None]:
        """Temporarily install a MockClock as the global clock."""
        original = cls._instance
        mock = MockClock(initial_time, step=step)
        cls.set_clock(mock)
        try:
            yield mock
        finally:
            cls._instance = original


def now_utc() -> datetime:
    """Get current UTC time using global clock."""
    return ClockFactory.get_clock().now()


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ClockFactory",
    "now_utc",
]
