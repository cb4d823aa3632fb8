from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from sqlalchemy import types
from sqlalchemy.orm import registry
from sqlalchemy.orm import DeclarativeBase

from .types import UTCDateTime


class ORMBase(DeclarativeBase):

    registry = registry(type_annotation_map={
        datetime: UTCDateTime(timezone=False),
        Decimal: types.Numeric(10, 2),
    })
