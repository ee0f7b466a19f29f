"""Injectable time source.

Timestamps are naive UTC throughout the engine so they compare cleanly with
values read back from SQLite and Postgres alike. Local calendar questions
("what day is it", "which day does this event fall on") go through
``local_today`` with the configured timezone.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

import pytz


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant as a naive UTC datetime."""

    def local_today(self, tz_name: str) -> date:
        tz = pytz.timezone(tz_name)
        return pytz.utc.localize(self.now()).astimezone(tz).date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock(Clock):
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, fixed: datetime):
        if fixed.tzinfo is not None:
            fixed = fixed.astimezone(timezone.utc).replace(tzinfo=None)
        self._now = fixed

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now
