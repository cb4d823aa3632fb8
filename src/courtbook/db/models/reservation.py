from __future__ import annotations

import sedate

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import types
from sqlalchemy.orm import Mapped
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import relationship
from sqlalchemy.schema import ForeignKey
from sqlalchemy.schema import Index

from courtbook.db.models import ORMBase
from courtbook.db.models.resource import Resource
from courtbook.db.models.timespan import Timespan
from courtbook.db.models.timestamp import TimestampMixin
from courtbook.db.models.types import UTCDateTime
from courtbook.modules import lifecycle
from courtbook.modules import utils
from courtbook.modules.lifecycle import ReservationStatus


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from sedate.types import TzInfoOrName


class Reservation(TimestampMixin, ORMBase):
    """Describes the reservation of a resource for the half-open timespan
    [start, end).

    Reservations are never deleted. Cancelled and completed reservations
    stay around as history, they just don't block their timespan anymore.

    """

    __tablename__ = 'reservations'

    id: Mapped[int] = mapped_column(
        types.Integer(),
        primary_key=True,
        autoincrement=True
    )

    resource_id: Mapped[int] = mapped_column(
        types.Integer(),
        ForeignKey(Resource.id),
        nullable=False
    )

    resource: Mapped[Resource] = relationship(Resource, lazy='joined')

    #: whoever made the reservation, an identifier from the host application
    owner: Mapped[str] = mapped_column(types.Unicode(254), nullable=False)

    owner_name: Mapped[str | None] = mapped_column(
        types.Unicode(100),
        nullable=True
    )

    start: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=False),
        nullable=False
    )

    #: the end is exclusive, a reservation ending at 10:00 does not conflict
    #: with one starting at 10:00
    end: Mapped[datetime] = mapped_column(
        UTCDateTime(timezone=False),
        nullable=False
    )

    status: Mapped[ReservationStatus] = mapped_column(
        types.Enum(ReservationStatus, name='reservation_status'),
        default=ReservationStatus.pending,
        nullable=False
    )

    total_cost: Mapped[Decimal] = mapped_column(
        types.Numeric(10, 2),
        nullable=False
    )

    purpose: Mapped[str | None] = mapped_column(
        types.Unicode(200),
        nullable=True
    )

    __table_args__ = (
        Index('resource_status_start_ix', 'resource_id', 'status', 'start'),
        Index('owner_start_ix', 'owner', 'start'),
    )

    def __repr__(self) -> str:
        return (
            f'<Reservation {self.id} of resource {self.resource_id} '
            f'{self.start} - {self.end} ({self.status})>'
        )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_in_minutes(self) -> int:
        return utils.duration_in_minutes(self.start, self.end)

    @property
    def duration_in_hours(self) -> float:
        """ The duration in hours, 90 minutes are 1.5 hours. """
        return self.duration_in_minutes / 60

    @property
    def is_active(self) -> bool:
        return lifecycle.is_active(self)

    def is_cancellable(
        self,
        now: datetime,
        cutoff: timedelta = lifecycle.CANCELLATION_CUTOFF
    ) -> bool:
        return lifecycle.is_cancellable(self, now, cutoff)

    def is_completable(self, now: datetime) -> bool:
        return lifecycle.is_completable(self, now)

    def timespan(self) -> Timespan:
        return Timespan(self.start, self.end)

    def display_start(self, timezone: TzInfoOrName) -> datetime:
        return sedate.to_timezone(self.start, timezone)

    def display_end(self, timezone: TzInfoOrName) -> datetime:
        return sedate.to_timezone(self.end, timezone)
