from __future__ import annotations

import pytest

from datetime import datetime
from courtbook.db.models.types import UTCDateTime
from courtbook.modules import errors
from pytz import timezone, utc
from sqlalchemy.dialects import sqlite


def test_utcdatetime_bind() -> None:
    column = UTCDateTime(timezone=False)
    dialect = sqlite.dialect()

    zurich = timezone('Europe/Zurich')
    date = zurich.localize(datetime(2026, 3, 5, 18, 0))

    value = column.process_bind_param(date, dialect)
    assert value == datetime(2026, 3, 5, 17, 0)
    assert value is not None and value.tzinfo is None

    assert column.process_bind_param(None, dialect) is None


def test_utcdatetime_refuses_naive_dates() -> None:
    column = UTCDateTime(timezone=False)

    with pytest.raises(errors.NotTimezoneAware):
        column.process_bind_param(datetime(2026, 3, 5, 18, 0), sqlite.dialect())


def test_utcdatetime_result() -> None:
    column = UTCDateTime(timezone=False)
    dialect = sqlite.dialect()

    value = column.process_result_value(datetime(2026, 3, 5, 17, 0), dialect)
    assert value == datetime(2026, 3, 5, 17, 0, tzinfo=utc)
    assert value is not None and value.utcoffset() is not None

    assert column.process_result_value(None, dialect) is None
