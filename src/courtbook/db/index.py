from __future__ import annotations

import logging

from courtbook.context.core import ContextServicesMixin
from courtbook.db.models import Reservation
from courtbook.modules.lifecycle import ACTIVE_STATES
from sqlalchemy.sql import and_


from typing import TypeVar
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime
    from sqlalchemy.orm import Query

    from courtbook.context.core import Context

_T = TypeVar('_T')


log = logging.getLogger('courtbook')


class IntervalIndex(ContextServicesMixin):
    """ The active (pending or confirmed) reservations of each resource,
    ordered by start.

    The index lives in the database, it is the subset of the reservations
    table whose status is active. Inserting a reservation makes it part of
    the index, moving it to a terminal status removes it.

    :meth:`insert` and :meth:`remove_from_active` are only meant to be called
    by the :class:`~courtbook.db.scheduler.Scheduler`, inside the unit of
    work that just checked for conflicts.

    """

    def __init__(self, context: Context):
        self.context = context

    def active(self, resource_id: int) -> Query[Reservation]:
        query = self.session.query(Reservation)
        query = query.filter(Reservation.resource_id == resource_id)
        query = query.filter(Reservation.status.in_(ACTIVE_STATES))
        query = query.order_by(Reservation.start)

        return query

    @staticmethod
    def overlapping(
        query: Query[_T],
        start: datetime,
        end: datetime
    ) -> Query[_T]:
        """ Takes a reservation query and limits it to the reservations
        overlapping the half-open interval [start, end).

        """
        return query.filter(
            and_(
                Reservation.start < end,
                Reservation.end > start
            )
        )

    def find_conflicts(
        self,
        resource_id: int,
        start: datetime,
        end: datetime,
        exclude_id: int | None = None
    ) -> list[Reservation]:

        query = self.overlapping(self.active(resource_id), start, end)

        if exclude_id is not None:
            query = query.filter(Reservation.id != exclude_id)

        conflicts = query.all()

        log.debug(
            'found %d conflicts for resource %s between %s and %s',
            len(conflicts), resource_id, start, end
        )

        return conflicts

    def insert(self, reservation: Reservation) -> None:
        assert reservation.is_active, 'Only active reservations are indexed'

        self.session.add(reservation)
        self.session.flush()

    def remove_from_active(self, reservation: Reservation) -> None:
        assert not reservation.is_active, """
            The reservation must be moved to a terminal status before it
            can leave the index.
        """

        self.session.flush()
