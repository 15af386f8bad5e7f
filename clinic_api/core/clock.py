"""
Clock capability used for future-date validation and past/future classification.

Scheduling operations receive `now` explicitly; endpoints obtain it through the
`get_clock` dependency so tests can pin time by overriding it.
"""
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """
    Clock dependency.

    Returns:
        Clock: callable returning the current aware UTC time
    """
    return utc_now


def fixed_clock(moment: datetime) -> Clock:
    """Clock that always returns `moment`"""
    return lambda: moment
