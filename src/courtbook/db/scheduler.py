from __future__ import annotations

import logging
import sedate

from contextlib import contextmanager
from sqlalchemy.exc import DBAPIError

from courtbook.context.core import ContextServicesMixin
from courtbook.context.session import is_serialization_failure
from courtbook.db.index import IntervalIndex
from courtbook.db.models import ORMBase, Reservation, Resource
from courtbook.db.queries import Queries
from courtbook.db.resources import ResourceRegistry
from courtbook.modules import errors
from courtbook.modules import events
from courtbook.modules import lifecycle
from courtbook.modules import utils
from courtbook.modules.lifecycle import ReservationStatus


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from collections.abc import Iterator
    from datetime import datetime, timedelta
    from typing_extensions import Self

    from courtbook.context.core import Context
    from courtbook.modules.events import Event


log = logging.getLogger('courtbook')


class Scheduler(ContextServicesMixin):
    """ The Scheduler is responsible for talking to the backend of the given
    context to create and manage reservations. It is the main part of the
    API.

    Every method that changes a reservation is a unit of work of its own: it
    acquires the lock of the resource, re-reads what it needs, checks the
    rules, writes and commits. If anything fails, everything is rolled back
    and a :class:`~courtbook.modules.errors.CourtbookError` is raised.

    Every method that depends on the current time takes a ``now`` argument.
    If it is omitted, the ``clock`` service of the context is consulted.

    The reservations returned by the scheduler are bound to the session of
    the current thread. They are expired by every unit of work, including
    failed ones, so after :meth:`close` they have to be fetched again using
    their id. Changes that were not committed before a unit of work starts
    are rolled back.

    """

    def __init__(
        self,
        context: Context,
        timezone: str = 'UTC',
        reservation_cls: type[Reservation] = Reservation
    ):
        """ Initializes a new Scheduler instance.

        :context:
            The :class:`courtbook.context.core.Context` this scheduler should
            operate on. Acquire a context by using
            :func:`courtbook.context.registry.Registry.register_context`.

        :timezone:
            Dates passed to the scheduler that are not timezone-aware are
            assumed to be of this timezone. Dates are always stored in UTC.

        """

        assert isinstance(timezone, str)

        self.context = context
        self.timezone = timezone
        self.reservation_cls = reservation_cls

        self.resources = ResourceRegistry(context)
        self.index = IntervalIndex(context)
        self.queries = Queries(context)

    def clone(self) -> Self:
        """ Clones the scheduler. The result will be a new scheduler using the
        same context, timezone and reservation class.

        """

        return self.__class__(
            self.context,
            self.timezone,
            self.reservation_cls
        )

    def setup_database(self) -> None:
        """ Creates the tables and indices required for courtbook. This needs
        to be called once per database. Multiple invocations won't hurt but
        they are unnecessary.

        """
        ORMBase.metadata.create_all(self.session.bind)

    def extinguish_managed_records(self) -> None:
        """ WARNING:
        Completely removes all reservations and resources. Reservations are
        otherwise never deleted, this is meant for tests only.

        """
        self.session.query(Reservation).delete('fetch')
        self.session.query(Resource).delete('fetch')

    @property
    def min_duration(self) -> timedelta:
        return self.context.get_setting('min_duration')  # type: ignore[no-any-return]

    @property
    def max_duration(self) -> timedelta:
        return self.context.get_setting('max_duration')  # type: ignore[no-any-return]

    @property
    def booking_horizon(self) -> timedelta:
        return self.context.get_setting('booking_horizon')  # type: ignore[no-any-return]

    @property
    def cancellation_cutoff(self) -> timedelta:
        return self.context.get_setting('cancellation_cutoff')  # type: ignore[no-any-return]

    def _prepare_date(self, date: datetime) -> datetime:
        return sedate.standardize_date(date, self.timezone)

    def _prepare_range(
        self,
        start: datetime,
        end: datetime
    ) -> tuple[datetime, datetime]:
        return utils.standardize_range(start, end, self.timezone)

    def _prepare_now(self, now: datetime | None) -> datetime:
        return self._prepare_date(now if now is not None else self.clock())

    @contextmanager
    def atomic(self, resource_id: int) -> Iterator[None]:
        """ Runs the enclosed block as a single unit of work on the given
        resource and commits it.

        Within a process the unit is serialized through the resource lock.
        Between processes the database does it, a serialization failure
        means someone else got there first and is reported as a conflict.

        """
        with self.resource_locks.locked(resource_id):
            try:
                yield
                self.session.commit()
            except DBAPIError as e:
                self.session.rollback()

                if is_serialization_failure(e):
                    log.warning(
                        'concurrent write on resource %s, rejecting',
                        resource_id
                    )
                    raise errors.ConflictError(
                        'The resource was reserved concurrently, '
                        'please choose a different time'
                    ) from e

                raise
            except Exception:
                self.session.rollback()
                raise

    def _end_read(self) -> None:
        # the unit of work has to see what was committed while waiting for
        # the resource lock, not the snapshot of an earlier read
        self.session.rollback()

    def validate_interval(
        self,
        start: datetime,
        end: datetime,
        now: datetime
    ) -> None:
        """ Raises an :class:`~courtbook.modules.errors.InvalidInterval` if
        the given timespan may not be reserved at the given time. The rules
        are checked in order, the first violation wins.

        """

        if start <= now:
            raise errors.StartNotInFuture('Start time must be in the future')

        if end <= start:
            raise errors.EndBeforeStart('End time must be after start time')

        minutes = utils.duration_in_minutes(start, end)

        if minutes < self.min_duration.total_seconds() // 60:
            raise errors.ReservationTooShort(
                f'Minimum reservation duration is {self.min_duration}'
            )

        if minutes > self.max_duration.total_seconds() // 60:
            raise errors.ReservationTooLong(
                f'Maximum reservation duration is {self.max_duration}'
            )

        if start > now + self.booking_horizon:
            raise errors.BeyondBookingHorizon(
                f'Cannot reserve more than {self.booking_horizon.days} '
                f'days in advance'
            )

    def reservation_by_id(self, id: int) -> Reservation:
        reservation = self.session.get(self.reservation_cls, id)

        if reservation is None:
            raise errors.UnknownReservation(f'No reservation with id {id}')

        return reservation

    def check_availability(
        self,
        resource_id: int,
        start: datetime,
        end: datetime,
        exclude_id: int | None = None
    ) -> bool:
        """ Returns True if no active reservation overlaps the given timespan
        on the given resource.

        This is merely a probe, nothing is reserved. :meth:`reserve` checks
        again, the result of this method may be outdated by then.

        """

        start, end = self._prepare_range(start, end)
        resource = self.resources.get_resource(resource_id)

        return not self.index.find_conflicts(
            resource.id, start, end, exclude_id=exclude_id
        )

    def reserve(
        self,
        resource_id: int,
        owner: str,
        start: datetime,
        end: datetime,
        purpose: str | None = None,
        owner_name: str | None = None,
        now: datetime | None = None
    ) -> Reservation:
        """ Reserves the resource for the half-open timespan [start, end)
        and returns the new, pending reservation.

        The request is checked in this order, the first failure is raised:

        * the resource exists (:class:`~.errors.UnknownResource`)
        * the resource is bookable (:class:`~.errors.NotBookable`)
        * the timespan is valid (:class:`~.errors.InvalidInterval`), see
          :meth:`validate_interval`
        * no active reservation overlaps (:class:`~.errors.ConflictError`)

        :owner:
            An identifier of whoever makes the reservation.

        :purpose:
            An optional free text.

        :now:
            The time of the request, defaults to the context's clock.

        """

        assert owner and owner.strip(), 'A reservation requires an owner'

        now = self._prepare_now(now)
        start, end = self._prepare_range(start, end)

        # unknown resources never get a lock
        self.resources.get_resource(resource_id)
        self._end_read()

        with self.atomic(resource_id):
            resource = self.resources.get_resource(resource_id)

            if not self.resources.is_bookable(resource):
                raise errors.NotBookable(
                    f'{resource.display_name} is not available for booking'
                )

            self.validate_interval(start, end, now)

            conflicts = self.index.find_conflicts(resource.id, start, end)

            if conflicts:
                raise errors.ConflictError(
                    'Time slot conflicts with an existing reservation, '
                    'please choose a different time',
                    conflicts
                )

            reservation = self.reservation_cls()
            reservation.resource = resource
            reservation.owner = owner.strip()
            reservation.owner_name = owner_name
            reservation.start = start
            reservation.end = end
            reservation.purpose = purpose
            reservation.status = ReservationStatus.pending
            reservation.total_cost = utils.calculate_cost(
                resource.hourly_rate, start, end
            )

            self.index.insert(reservation)

        log.info(
            'reserved resource %s from %s to %s for %s (reservation %s)',
            resource_id, start, end, reservation.owner, reservation.id
        )

        events.on_reservation_made(self.context, reservation)

        return reservation

    create_reservation = reserve

    def update_reservation(
        self,
        id: int,
        start: datetime | None = None,
        end: datetime | None = None,
        purpose: str | None = None,
        now: datetime | None = None
    ) -> Reservation:
        """ Changes the timespan and/or the purpose of a pending reservation.

        Omitted values are left as they are. If the timespan changes, the
        new timespan is validated just like a new one (except for the
        bookability of the resource) and checked for conflicts, ignoring the
        reservation itself. The cost is recalculated.

        """

        now = self._prepare_now(now)
        resource_id = self.reservation_by_id(id).resource_id
        self._end_read()

        with self.atomic(resource_id):
            reservation = self.reservation_by_id(id)
            self.session.refresh(reservation)

            if reservation.status is not ReservationStatus.pending:
                raise errors.InvalidStateError(
                    f'Only pending reservations may be changed, '
                    f'this one is {reservation.status}',
                    reservation
                )

            old_time = (reservation.start, reservation.end)

            if start is not None:
                start = self._prepare_date(start)
            if end is not None:
                end = self._prepare_date(end)

            new_time = (start or reservation.start, end or reservation.end)
            time_changed = new_time != old_time

            if time_changed:
                self.validate_interval(*new_time, now)

                conflicts = self.index.find_conflicts(
                    reservation.resource_id, *new_time, exclude_id=id
                )

                if conflicts:
                    raise errors.ConflictError(
                        'New time slot conflicts with an existing '
                        'reservation, please choose a different time',
                        conflicts
                    )

                reservation.start, reservation.end = new_time
                reservation.total_cost = utils.calculate_cost(
                    reservation.resource.hourly_rate, *new_time
                )

            if purpose is not None:
                reservation.purpose = purpose

            self.session.flush()

        log.info('updated reservation %s', id)

        if time_changed:
            events.on_reservation_time_changed(
                self.context,
                reservation,
                old_time=old_time,
                new_time=new_time
            )

        return reservation

    def _transition(
        self,
        id: int,
        change: Callable[[Reservation, datetime], None],
        event: Event[Context, Reservation],
        now: datetime | None
    ) -> Reservation:

        now = self._prepare_now(now)
        resource_id = self.reservation_by_id(id).resource_id
        self._end_read()

        with self.atomic(resource_id):
            reservation = self.reservation_by_id(id)
            self.session.refresh(reservation)

            change(reservation, now)

            if reservation.is_active:
                self.session.flush()
            else:
                self.index.remove_from_active(reservation)

        log.info('reservation %s is now %s', id, reservation.status)

        event(self.context, reservation)

        return reservation

    def confirm_reservation(
        self,
        id: int,
        now: datetime | None = None
    ) -> Reservation:
        """ Confirms a pending reservation. It keeps blocking its timespan.
        """
        return self._transition(
            id, lifecycle.confirm, events.on_reservation_confirmed, now
        )

    def cancel_reservation(
        self,
        id: int,
        now: datetime | None = None
    ) -> Reservation:
        """ Cancels a pending or confirmed reservation, freeing its timespan.

        Fails with :class:`~courtbook.modules.errors.InvalidStateError` if
        the reservation is already cancelled/completed or if it starts
        within the cancellation cutoff (see
        :ref:`settings.cancellation_cutoff`).

        """
        cutoff = self.cancellation_cutoff

        def cancel(reservation: Reservation, now: datetime) -> None:
            lifecycle.cancel(reservation, now, cutoff)

        return self._transition(
            id, cancel, events.on_reservation_cancelled, now
        )

    def complete_reservation(
        self,
        id: int,
        now: datetime | None = None
    ) -> Reservation:
        """ Completes a confirmed reservation whose end has passed. """
        return self._transition(
            id, lifecycle.complete, events.on_reservation_completed, now
        )

    def is_cancellable(
        self,
        reservation: Reservation,
        now: datetime | None = None
    ) -> bool:
        return lifecycle.is_cancellable(
            reservation, self._prepare_now(now), self.cancellation_cutoff
        )

    def list_by_resource(self, resource_id: int) -> list[Reservation]:
        return self.queries.reservations_by_resource(resource_id).all()

    def list_by_owner(self, owner: str) -> list[Reservation]:
        return self.queries.reservations_by_owner(owner).all()

    def list_by_status(
        self,
        status: ReservationStatus | str
    ) -> list[Reservation]:
        return self.queries.reservations_by_status(status).all()

    def list_active(self) -> list[Reservation]:
        return self.queries.active_reservations().all()

    def list_in_range(
        self,
        start: datetime,
        end: datetime
    ) -> list[Reservation]:
        start, end = self._prepare_range(start, end)
        return self.queries.reservations_in_range(start, end).all()

    def upcoming_by_owner(
        self,
        owner: str,
        now: datetime | None = None
    ) -> list[Reservation]:
        now = self._prepare_now(now)
        return self.queries.upcoming_reservations_by_owner(owner, now).all()

    def past_by_owner(
        self,
        owner: str,
        now: datetime | None = None
    ) -> list[Reservation]:
        now = self._prepare_now(now)
        return self.queries.past_reservations_by_owner(owner, now).all()

    def cancellable_by_owner(
        self,
        owner: str,
        now: datetime | None = None
    ) -> list[Reservation]:
        now = self._prepare_now(now)
        return self.queries.cancellable_reservations_by_owner(
            owner, now, self.cancellation_cutoff
        ).all()
