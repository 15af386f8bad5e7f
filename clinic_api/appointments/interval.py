"""
Half-open time intervals and the single overlap predicate used for scheduling.
"""
from datetime import datetime, timezone
from sqlalchemy import and_

from .exceptions import InvalidInterval


def as_utc(moment: datetime) -> datetime:
    """
    Normalise a timestamp to aware UTC.

    Naive values are taken to already be UTC; this is how SQLite hands back
    timestamps that were written as aware UTC.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class TimeInterval:
    """
    A half-open time range [start, end).

    Two intervals overlap when `a.start < b.end and a.end > b.start`. Intervals
    that only touch (`a.end == b.start`) do not overlap, so back-to-back
    appointments are allowed.

    Raises:
        InvalidInterval: if end <= start
    """
    __slots__ = ("start", "end")

    def __init__(self, start: datetime, end: datetime):
        if start is None or end is None:
            raise InvalidInterval("Appointment start and end times are required")
        start = as_utc(start)
        end = as_utc(end)
        if end <= start:
            raise InvalidInterval()
        self.start = start
        self.end = end

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and self.end > other.start

    def duration(self) -> float:
        """Length in minutes"""
        return (self.end - self.start).total_seconds() / 60

    def is_future(self, now: datetime) -> bool:
        """True when the interval has not started yet at `now`"""
        return self.start > as_utc(now)

    def __eq__(self, other):
        if not isinstance(other, TimeInterval):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __hash__(self):
        return hash((self.start, self.end))

    def __repr__(self):
        return f"TimeInterval({self.start.isoformat()}, {self.end.isoformat()})"


def overlap_filter(start_column, end_column, interval: TimeInterval):
    """
    SQL form of `TimeInterval.overlaps` for prefiltering rows in the database.

    Args:
        start_column: column holding the row's interval start
        end_column: column holding the row's interval end
        interval: candidate interval

    Returns:
        SQLAlchemy boolean clause
    """
    return and_(start_column < interval.end, end_column > interval.start)
