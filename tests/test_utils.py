from __future__ import annotations

import pytest

from datetime import datetime, timedelta
from decimal import Decimal
from courtbook.db.models.timespan import Timespan
from courtbook.modules.utils import calculate_cost
from courtbook.modules.utils import duration_in_minutes
from courtbook.modules.utils import overlaps
from courtbook.modules.utils import standardize_range
from pytz import utc


def test_overlaps() -> None:
    ten = datetime(2026, 3, 5, 10, 0)
    eleven = datetime(2026, 3, 5, 11, 0)
    twelve = datetime(2026, 3, 5, 12, 0)

    assert overlaps(ten, twelve, eleven, twelve)
    assert overlaps(eleven, twelve, ten, twelve)
    assert overlaps(ten, twelve, ten, twelve)
    assert overlaps(ten, twelve, ten + timedelta(minutes=1), eleven)

    # touching intervals do not overlap
    assert not overlaps(ten, eleven, eleven, twelve)
    assert not overlaps(eleven, twelve, ten, eleven)

    assert Timespan(ten, twelve).overlaps(Timespan(eleven, twelve))
    assert not Timespan(ten, eleven).overlaps(Timespan(eleven, twelve))


def test_duration_in_minutes() -> None:
    start = datetime(2026, 3, 5, 10, 0)

    assert duration_in_minutes(start, start + timedelta(hours=1)) == 60
    assert duration_in_minutes(start, start + timedelta(minutes=90)) == 90
    assert duration_in_minutes(
        start, start + timedelta(minutes=59, seconds=59)
    ) == 59
    assert duration_in_minutes(start, start) == 0


@pytest.mark.parametrize('rate,minutes,cost', [
    ('80.00', 90, '120.00'),
    ('80.00', 60, '80.00'),
    ('25.00', 100, '41.67'),
    ('10.00', 61, '10.17'),
    ('0.03', 90, '0.05'),
    ('150.00', 480, '1200.00'),
])
def test_calculate_cost(rate: str, minutes: int, cost: str) -> None:
    start = datetime(2026, 3, 5, 10, 0)
    end = start + timedelta(minutes=minutes)

    result = calculate_cost(Decimal(rate), start, end)

    assert result == Decimal(cost)
    assert result.as_tuple().exponent == -2


def test_standardize_range() -> None:
    start, end = standardize_range(
        datetime(2026, 7, 1, 10, 0),
        datetime(2026, 7, 1, 12, 0),
        'Europe/Zurich'
    )

    # summer time, two hours ahead of UTC
    assert start == datetime(2026, 7, 1, 8, 0, tzinfo=utc)
    assert end == datetime(2026, 7, 1, 10, 0, tzinfo=utc)

    aware = datetime(2026, 7, 1, 10, 0, tzinfo=utc)
    start, end = standardize_range(aware, aware, 'Europe/Zurich')

    assert start == aware
    assert start.utcoffset() == timedelta(0)
