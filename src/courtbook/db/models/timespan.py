from __future__ import annotations

from courtbook.modules.utils import overlaps


from typing import NamedTuple
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime


class Timespan(NamedTuple):
    start: datetime
    end: datetime

    def overlaps(self, other: Timespan) -> bool:
        return overlaps(self.start, self.end, other.start, other.end)
