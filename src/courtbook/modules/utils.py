from __future__ import annotations

import sedate

from decimal import Decimal, ROUND_HALF_UP


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime
    from sedate.types import TzInfoOrName


CENTS = Decimal('0.01')


def overlaps(
    start: datetime,
    end: datetime,
    other_start: datetime,
    other_end: datetime
) -> bool:
    """ True if the half-open intervals [start, end) and
    [other_start, other_end) overlap. Touching intervals do not.

    Note that :func:`sedate.overlaps` treats the end as inclusive, which is
    why it isn't used here.

    """
    return start < other_end and other_start < end


def duration_in_minutes(start: datetime, end: datetime) -> int:
    """ The number of whole minutes between start and end. Seconds are
    truncated, so 59 minutes and 59 seconds count as 59 minutes.

    """
    return int((end - start).total_seconds() // 60)


def calculate_cost(
    hourly_rate: Decimal,
    start: datetime,
    end: datetime
) -> Decimal:
    """ Returns the rate multiplied by the duration in (fractional) hours,
    rounded to cents.

    """
    minutes = duration_in_minutes(start, end)
    cost = Decimal(hourly_rate) * Decimal(minutes) / Decimal(60)
    return cost.quantize(CENTS, rounding=ROUND_HALF_UP)


def standardize_range(
    start: datetime,
    end: datetime,
    timezone: TzInfoOrName
) -> tuple[datetime, datetime]:
    """ Makes sure both dates are timezone aware. Naive dates are assumed
    to be in the given timezone.

    """
    return (
        sedate.standardize_date(start, timezone),
        sedate.standardize_date(end, timezone)
    )
