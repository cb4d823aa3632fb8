from __future__ import annotations

from courtbook.context.core import ContextServicesMixin
from courtbook.db.models import Reservation
from courtbook.modules.lifecycle import ACTIVE_STATES, CANCELLATION_CUTOFF
from courtbook.modules.lifecycle import ReservationStatus


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime, timedelta
    from sqlalchemy.orm import Query

    from courtbook.context.core import Context


class Queries(ContextServicesMixin):
    """ Read-only views on the reservations, used for listings.

    None of these methods lock anything, the results may be outdated by
    the time they are used.

    """

    def __init__(self, context: Context):
        self.context = context

    def reservations(self) -> Query[Reservation]:
        return self.session.query(Reservation)

    def reservations_by_resource(self, resource_id: int) -> Query[Reservation]:
        query = self.reservations()
        query = query.filter(Reservation.resource_id == resource_id)
        query = query.order_by(Reservation.start)

        return query

    def reservations_by_owner(self, owner: str) -> Query[Reservation]:
        query = self.reservations()
        query = query.filter(Reservation.owner == owner)
        query = query.order_by(Reservation.start.desc())

        return query

    def reservations_by_status(
        self,
        status: ReservationStatus | str
    ) -> Query[Reservation]:

        query = self.reservations()
        query = query.filter(Reservation.status == ReservationStatus(status))
        query = query.order_by(Reservation.start.desc())

        return query

    def active_reservations(self) -> Query[Reservation]:
        query = self.reservations()
        query = query.filter(Reservation.status.in_(ACTIVE_STATES))
        query = query.order_by(Reservation.start)

        return query

    def reservations_in_range(
        self,
        start: datetime,
        end: datetime
    ) -> Query[Reservation]:
        """ Returns the reservations which lie completely within start and
        end, regardless of their status.

        """
        query = self.reservations()
        query = query.filter(start <= Reservation.start)
        query = query.filter(Reservation.end <= end)
        query = query.order_by(Reservation.start)

        return query

    def upcoming_reservations_by_owner(
        self,
        owner: str,
        now: datetime
    ) -> Query[Reservation]:

        query = self.reservations()
        query = query.filter(Reservation.owner == owner)
        query = query.filter(Reservation.start > now)
        query = query.filter(Reservation.status.in_(ACTIVE_STATES))
        query = query.order_by(Reservation.start)

        return query

    def past_reservations_by_owner(
        self,
        owner: str,
        now: datetime
    ) -> Query[Reservation]:

        query = self.reservations()
        query = query.filter(Reservation.owner == owner)
        query = query.filter(Reservation.end < now)
        query = query.order_by(Reservation.start.desc())

        return query

    def cancellable_reservations_by_owner(
        self,
        owner: str,
        now: datetime,
        cutoff: timedelta = CANCELLATION_CUTOFF
    ) -> Query[Reservation]:

        query = self.reservations()
        query = query.filter(Reservation.owner == owner)
        query = query.filter(Reservation.status.in_(ACTIVE_STATES))
        query = query.filter(Reservation.start > now + cutoff)
        query = query.order_by(Reservation.start)

        return query
