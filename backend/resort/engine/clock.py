"""Clock collaborator.

Used to timestamp records and to default the capacity snapshot date.
Business decisions always compare caller-supplied dates.
"""

from datetime import date, datetime, timezone


class Clock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """Clock pinned to one instant, for tests and replays."""

    def __init__(self, instant: datetime) -> None:
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
