"""
Clock -- where record timestamps come from.

Every write stamps ``createdOrUpdatedAt`` (and every ledger version its
``timestamp``) from the Clock carried by the LedgerContext, never from
``datetime.now()`` directly.  Tests swap in DeterministicClock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of timezone-aware UTC datetimes."""

    @abstractmethod
    def now_utc(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen time that only moves when told to.

    Starts at 2024-01-01 12:00 UTC unless given another start.  Repeated
    ``now_utc()`` calls return the same value until ``advance()``.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._current = (start or self.DEFAULT_START).astimezone(timezone.utc)

    def now_utc(self) -> datetime:
        return self._current

    def advance(self, seconds: float = 1) -> datetime:
        """Move forward and return the new time."""
        self._current += timedelta(seconds=seconds)
        return self._current
