""" The reservation state machine.

A reservation starts out as ``pending``. From there it may be confirmed or
cancelled. A confirmed reservation may be completed once it is over, or
cancelled as long as it does not start too soon. Cancelled and completed
reservations are terminal::

    pending ---> confirmed ---> completed
       |             |
       +-----------> cancelled <-+

Only pending and confirmed reservations are active, that is, only they block
their timespan on the resource.

The functions in this module never touch the database, they only check the
transition table and the timing rules and set the new status on success.
Persisting the change is up to the :class:`courtbook.db.scheduler.Scheduler`.

"""
from __future__ import annotations

import enum

from datetime import timedelta

from courtbook.modules import errors


from typing import Protocol
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime


class ReservationStatus(enum.Enum):
    pending = 'pending'
    confirmed = 'confirmed'
    cancelled = 'cancelled'
    completed = 'completed'

    def __str__(self) -> str:
        return self.value


class _Stateful(Protocol):
    status: ReservationStatus
    start: datetime
    end: datetime


CANCELLATION_CUTOFF = timedelta(hours=2)

ACTIVE_STATES = (
    ReservationStatus.pending,
    ReservationStatus.confirmed,
)

TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.pending: frozenset((
        ReservationStatus.confirmed,
        ReservationStatus.cancelled,
    )),
    ReservationStatus.confirmed: frozenset((
        ReservationStatus.completed,
        ReservationStatus.cancelled,
    )),
    ReservationStatus.cancelled: frozenset(),
    ReservationStatus.completed: frozenset(),
}


def is_active(reservation: _Stateful) -> bool:
    return reservation.status in ACTIVE_STATES


def is_terminal(reservation: _Stateful) -> bool:
    return not TRANSITIONS[reservation.status]


def can_transition(
    reservation: _Stateful,
    target: ReservationStatus
) -> bool:
    return target in TRANSITIONS[reservation.status]


def is_cancellable(
    reservation: _Stateful,
    now: datetime,
    cutoff: timedelta = CANCELLATION_CUTOFF
) -> bool:
    """ True if the reservation is active and starts later than ``cutoff``
    from ``now``. A reservation starting exactly at the cutoff may no longer
    be cancelled.

    """
    return is_active(reservation) and now + cutoff < reservation.start


def is_completable(reservation: _Stateful, now: datetime) -> bool:
    return (
        reservation.status is ReservationStatus.confirmed
        and now >= reservation.end
    )


def assert_transition(
    reservation: _Stateful,
    target: ReservationStatus
) -> None:
    if not can_transition(reservation, target):
        raise errors.InvalidStateError(
            f'Cannot change reservation from {reservation.status} '
            f'to {target}',
            reservation  # type:ignore[arg-type]
        )


def confirm(reservation: _Stateful, now: datetime) -> None:
    assert_transition(reservation, ReservationStatus.confirmed)
    reservation.status = ReservationStatus.confirmed


def cancel(
    reservation: _Stateful,
    now: datetime,
    cutoff: timedelta = CANCELLATION_CUTOFF
) -> None:
    assert_transition(reservation, ReservationStatus.cancelled)

    if not is_cancellable(reservation, now, cutoff):
        raise errors.InvalidStateError(
            'Reservation is too close to its start to be cancelled',
            reservation  # type:ignore[arg-type]
        )

    reservation.status = ReservationStatus.cancelled


def complete(reservation: _Stateful, now: datetime) -> None:
    assert_transition(reservation, ReservationStatus.completed)

    if not is_completable(reservation, now):
        raise errors.InvalidStateError(
            'Reservation cannot be completed before its end',
            reservation  # type:ignore[arg-type]
        )

    reservation.status = ReservationStatus.completed
