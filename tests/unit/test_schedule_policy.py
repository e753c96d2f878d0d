from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from app.core.exceptions import MalformedDate
from app.services.schedule_policy import (
    Temporal,
    classify,
    drop_malformed,
    filter_past,
    filter_upcoming,
    session_date_of,
    sort_chronologically,
    sort_key,
)


def _session(id, session_date, session_time=None):
    return SimpleNamespace(id=id, session_date=session_date, session_time=session_time)


def _booking(id, session_date, session_time=None):
    return SimpleNamespace(id=id, session=_session(100 + id, session_date, session_time))


NOW = datetime(2024, 1, 8, 9, 30)


def test_classify_is_strictly_before_now():
    assert classify(_session(1, date(2024, 1, 8), time(9, 29)), NOW) == Temporal.PAST
    assert classify(_session(2, date(2024, 1, 8), time(9, 30)), NOW) == Temporal.FUTURE
    assert classify(_session(3, date(2024, 1, 9), time(0, 0)), NOW) == Temporal.FUTURE


def test_classify_missing_time_is_midnight():
    assert classify(_session(1, date(2024, 1, 8)), NOW) == Temporal.PAST
    assert classify(_session(1, date(2024, 1, 8)), datetime(2024, 1, 8)) == Temporal.FUTURE


def test_booking_dates_come_from_its_session():
    booking = _booking(1, "2024-01-03", "18:15")
    assert session_date_of(booking) == date(2024, 1, 3)
    assert sort_key(booking) == (date(2024, 1, 3), time(18, 15))
    assert classify(booking, NOW) == Temporal.PAST


@pytest.mark.parametrize("bad_date", [None, "", "2024-13-40", "yesterday"])
def test_malformed_dates_raise(bad_date):
    with pytest.raises(MalformedDate):
        classify(_session(1, bad_date), NOW)


def test_malformed_time_raises():
    with pytest.raises(MalformedDate):
        sort_key(_session(1, date(2024, 1, 1), "25:99"))


def test_drop_malformed_keeps_valid_records():
    records = [_session(1, date(2024, 1, 1)), _session(2, None), _session(3, "2024-01-02", "bad")]
    assert [r.id for r in drop_malformed(records)] == [1]


def test_filter_past_excludes_future_and_malformed():
    records = [
        _booking(1, date(2024, 1, 3)),
        _booking(2, date(2024, 1, 10)),
        _booking(3, None),
    ]
    assert [r.id for r in filter_past(records, datetime(2024, 1, 8))] == [1]


def test_filter_upcoming_is_date_only():
    records = [
        _session(1, date(2024, 2, 5), time(23, 0)),
        _session(2, date(2024, 2, 6), time(0, 1)),
        _session(3, date(2024, 2, 7)),
    ]
    assert [r.id for r in filter_upcoming(records, date(2024, 2, 6))] == [2, 3]


def test_sort_chronologically_by_date_then_time_and_stable():
    records = [
        _booking(1, date(2024, 1, 10), time(9, 0)),
        _booking(2, date(2024, 1, 3), time(18, 0)),
        _booking(3, date(2024, 1, 3), time(7, 0)),
        _booking(4, date(2024, 1, 3), time(18, 0)),
    ]
    ordered = sort_chronologically(records)
    assert [r.id for r in ordered] == [3, 2, 4, 1]
    keys = [sort_key(r) for r in ordered]
    assert all(a <= b for a, b in zip(keys, keys[1:]))
