from __future__ import annotations

from datetime import time
from decimal import Decimal

from sqlalchemy import types
from sqlalchemy.orm import Mapped
from sqlalchemy.orm import mapped_column

from courtbook.db.models import ORMBase
from courtbook.db.models.timestamp import TimestampMixin


class Resource(TimestampMixin, ORMBase):
    """ Describes a bookable resource, like a futsal pitch or a badminton
    court.

    Courtbook only cares about the rate and the availability flags of a
    resource. Everything else is kept for the convenience of the host
    application and may change at any time, without affecting existing
    reservations.

    """

    __tablename__ = 'resources'

    #: the id of the resource, autoincremented
    id: Mapped[int] = mapped_column(
        types.Integer(),
        primary_key=True,
        autoincrement=True
    )

    name: Mapped[str] = mapped_column(types.Unicode(100), nullable=False)

    #: the kind of resource, e.g. 'futsal' or 'badminton'
    type: Mapped[str | None] = mapped_column(types.Unicode(50), nullable=True)

    #: the price of one hour, must be positive for the resource to be
    #: bookable
    hourly_rate: Mapped[Decimal] = mapped_column(
        types.Numeric(10, 2),
        nullable=False
    )

    capacity: Mapped[int] = mapped_column(
        types.Integer(),
        default=1,
        nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        types.Boolean(),
        default=True,
        nullable=False
    )

    is_under_maintenance: Mapped[bool] = mapped_column(
        types.Boolean(),
        default=False,
        nullable=False
    )

    maintenance_note: Mapped[str | None] = mapped_column(
        types.Unicode(500),
        nullable=True
    )

    # FIXME: The opening hours are informational only, reservations outside
    #        of them are accepted (as they always have been)
    opening_time: Mapped[time] = mapped_column(
        types.Time(),
        default=time(6, 0),
        nullable=False
    )

    closing_time: Mapped[time] = mapped_column(
        types.Time(),
        default=time(23, 0),
        nullable=False
    )

    def __repr__(self) -> str:
        return f'<Resource {self.id} {self.name!r}>'

    @property
    def display_name(self) -> str:
        if not self.type:
            return self.name
        return f'{self.name} ({self.type.capitalize()})'

    @property
    def status_display(self) -> str:
        if self.is_under_maintenance:
            return 'Under Maintenance'
        elif self.is_active:
            return 'Active'
        else:
            return 'Inactive'
