"""
Tests for half-open time intervals.
"""
from datetime import datetime, timedelta, timezone
import pytest

from clinic_api.appointments.exceptions import InvalidInterval
from clinic_api.appointments.interval import TimeInterval, as_utc
from conftest import NOW, slot


def test_end_before_start_is_rejected():
    with pytest.raises(InvalidInterval):
        TimeInterval(NOW, NOW - timedelta(minutes=1))


def test_zero_length_interval_is_rejected():
    with pytest.raises(InvalidInterval):
        TimeInterval(NOW, NOW)


def test_missing_bound_is_rejected():
    with pytest.raises(InvalidInterval):
        TimeInterval(NOW, None)


def test_duration_in_minutes():
    assert slot("10:00", "10:30").duration() == 30
    assert slot("09:00", "10:15").duration() == 75


def test_naive_timestamps_are_treated_as_utc():
    naive = TimeInterval(datetime(2026, 10, 20, 10, 0), datetime(2026, 10, 20, 10, 30))
    assert naive == slot("10:00", "10:30")
    assert naive.start.tzinfo == timezone.utc


def test_other_timezones_are_converted():
    bogota = timezone(timedelta(hours=-5))
    local = TimeInterval(datetime(2026, 10, 20, 5, 0, tzinfo=bogota), datetime(2026, 10, 20, 5, 30, tzinfo=bogota))
    assert local == slot("10:00", "10:30")
    assert as_utc(datetime(2026, 10, 20, 5, 0, tzinfo=bogota)).hour == 10


@pytest.mark.parametrize("first, second, expected", [
    (("10:00", "10:30"), ("10:15", "10:45"), True),   # partial overlap
    (("10:00", "11:00"), ("10:15", "10:45"), True),   # containment
    (("10:00", "10:30"), ("10:00", "10:30"), True),   # identical
    (("10:00", "10:30"), ("10:29", "11:00"), True),   # one minute shared
    (("10:00", "10:30"), ("10:30", "11:00"), False),  # touching at end
    (("10:30", "11:00"), ("10:00", "10:30"), False),  # touching at start
    (("10:00", "10:30"), ("11:00", "11:30"), False),  # disjoint
])
def test_overlaps(first, second, expected):
    a = slot(*first)
    b = slot(*second)
    assert a.overlaps(b) is expected
    # Overlap is commutative
    assert b.overlaps(a) is expected


def test_is_future_compares_start_with_now():
    assert slot("10:00", "10:30").is_future(NOW)
    assert not slot("08:00", "08:30").is_future(NOW)
    assert not slot("07:00", "09:00").is_future(NOW)
