from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from app.services.schedule_policy import session_date_of
from app.services.week_partition import WeekBucket, partition, week_label, week_range


def _session(id, day):
    return SimpleNamespace(id=id, session_date=day, session_time=None)


@pytest.mark.parametrize("offset", range(0, 21))
def test_week_range_contains_day_and_starts_on_monday(offset):
    day = date(2023, 12, 25) + timedelta(days=offset)
    start, end = week_range(day)
    assert start.weekday() == 0
    assert end == start + timedelta(days=6)
    assert start <= day <= end


def test_week_range_sunday_belongs_to_previous_monday():
    assert week_range(date(2024, 1, 7)) == (date(2024, 1, 1), date(2024, 1, 7))
    assert week_range(date(2024, 1, 8)) == (date(2024, 1, 8), date(2024, 1, 14))


def test_week_label_same_and_crossing_year():
    assert week_label(date(2024, 1, 1), date(2024, 1, 7)) == "01 Jan – 07 Jan, 2024"
    assert week_label(date(2024, 12, 30), date(2025, 1, 5)) == "30 Dec, 2024 – 05 Jan, 2025"


def test_partition_is_disjoint_and_exhaustive():
    records = [_session(i, date(2024, 2, 1) + timedelta(days=i * 2)) for i in range(12)]
    buckets = partition(records, session_date_of)

    flattened = [r for bucket in buckets for r in bucket.items]
    assert sorted(r.id for r in flattened) == [r.id for r in records]
    assert len({b.week_start for b in buckets}) == len(buckets)
    for bucket in buckets:
        for record in bucket.items:
            assert bucket.week_start <= record.session_date <= bucket.week_end


def test_partition_keeps_first_seen_order():
    # Las semanas no se reordenan: salen en el orden de llegada
    records = [
        _session(1, date(2024, 3, 20)),
        _session(2, date(2024, 3, 5)),
        _session(3, date(2024, 3, 21)),
    ]
    buckets = partition(records, session_date_of)
    assert [b.week_start for b in buckets] == [date(2024, 3, 18), date(2024, 3, 4)]
    assert [r.id for r in buckets[0].items] == [1, 3]
    assert isinstance(buckets[0], WeekBucket)
    assert buckets[0].label == "18 Mar – 24 Mar, 2024"


def test_partition_excludes_malformed_dates():
    records = [_session(1, date(2024, 1, 3)), _session(2, None), _session(3, "not-a-date")]
    buckets = partition(records, session_date_of)
    assert [r.id for b in buckets for r in b.items] == [1]


def test_partition_empty():
    assert partition([], session_date_of) == []
