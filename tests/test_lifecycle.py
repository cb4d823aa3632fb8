from __future__ import annotations

import pytest

from datetime import datetime, timedelta
from courtbook.modules import errors
from courtbook.modules import lifecycle
from courtbook.modules.lifecycle import ReservationStatus
from pytz import utc
from types import SimpleNamespace


from typing import Any
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from courtbook.db.models import Resource
    from courtbook.db.scheduler import Scheduler


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=utc)


def reservation(
    status: ReservationStatus = ReservationStatus.pending,
    starts_in: timedelta = timedelta(days=1),
    duration: timedelta = timedelta(hours=1)
) -> Any:
    return SimpleNamespace(
        status=status,
        start=NOW + starts_in,
        end=NOW + starts_in + duration
    )


def test_active_states() -> None:
    assert lifecycle.is_active(reservation(ReservationStatus.pending))
    assert lifecycle.is_active(reservation(ReservationStatus.confirmed))
    assert not lifecycle.is_active(reservation(ReservationStatus.cancelled))
    assert not lifecycle.is_active(reservation(ReservationStatus.completed))


def test_terminal_states() -> None:
    assert not lifecycle.is_terminal(reservation(ReservationStatus.pending))
    assert not lifecycle.is_terminal(reservation(ReservationStatus.confirmed))
    assert lifecycle.is_terminal(reservation(ReservationStatus.cancelled))
    assert lifecycle.is_terminal(reservation(ReservationStatus.completed))

    for status in (ReservationStatus.cancelled, ReservationStatus.completed):
        for target in ReservationStatus:
            assert not lifecycle.can_transition(reservation(status), target)


def test_status_str() -> None:
    assert str(ReservationStatus.pending) == 'pending'
    assert ReservationStatus('confirmed') is ReservationStatus.confirmed


def test_confirm() -> None:
    r = reservation()
    lifecycle.confirm(r, NOW)
    assert r.status is ReservationStatus.confirmed

    # confirming is not bound to any time
    r = reservation(starts_in=timedelta(minutes=1))
    lifecycle.confirm(r, NOW)
    assert r.status is ReservationStatus.confirmed

    with pytest.raises(errors.InvalidStateError) as info:
        lifecycle.confirm(r, NOW)

    assert info.value.reservation is r
    assert r.status is ReservationStatus.confirmed


def test_cancel_cutoff() -> None:
    r = reservation(starts_in=timedelta(minutes=121))
    lifecycle.cancel(r, NOW)
    assert r.status is ReservationStatus.cancelled

    r = reservation(starts_in=timedelta(minutes=119))
    with pytest.raises(errors.InvalidStateError):
        lifecycle.cancel(r, NOW)
    assert r.status is ReservationStatus.pending

    # exactly at the cutoff is too late
    r = reservation(starts_in=timedelta(hours=2))
    assert not lifecycle.is_cancellable(r, NOW)

    r = reservation(ReservationStatus.confirmed, timedelta(hours=3))
    lifecycle.cancel(r, NOW)
    assert r.status is ReservationStatus.cancelled


def test_cancel_custom_cutoff() -> None:
    r = reservation(starts_in=timedelta(minutes=90))

    assert not lifecycle.is_cancellable(r, NOW)
    assert lifecycle.is_cancellable(r, NOW, timedelta(hours=1))

    lifecycle.cancel(r, NOW, timedelta(hours=1))
    assert r.status is ReservationStatus.cancelled


def test_cancel_terminal() -> None:
    for status in (ReservationStatus.cancelled, ReservationStatus.completed):
        r = reservation(status, timedelta(days=2))

        assert not lifecycle.is_cancellable(r, NOW)

        with pytest.raises(errors.InvalidStateError):
            lifecycle.cancel(r, NOW)

        assert r.status is status


def test_complete() -> None:
    r = reservation(ReservationStatus.confirmed, timedelta(hours=-2))

    # ended an hour ago
    assert lifecycle.is_completable(r, NOW)
    lifecycle.complete(r, NOW)
    assert r.status is ReservationStatus.completed

    # ends right now
    r = reservation(ReservationStatus.confirmed, timedelta(hours=-1))
    lifecycle.complete(r, NOW)
    assert r.status is ReservationStatus.completed


def test_complete_before_end() -> None:
    r = reservation(ReservationStatus.confirmed, timedelta(minutes=-30))

    assert not lifecycle.is_completable(r, NOW)

    with pytest.raises(errors.InvalidStateError):
        lifecycle.complete(r, NOW)

    assert r.status is ReservationStatus.confirmed


def test_complete_pending() -> None:
    r = reservation(ReservationStatus.pending, timedelta(hours=-2))

    assert not lifecycle.is_completable(r, NOW)

    with pytest.raises(errors.InvalidStateError):
        lifecycle.complete(r, NOW)

    assert r.status is ReservationStatus.pending


def test_scheduler_lifecycle(
    scheduler: Scheduler,
    court: Resource,
    now: datetime
) -> None:
    start = now + timedelta(days=1)
    end = start + timedelta(hours=1)

    reservation = scheduler.reserve(
        court.id, 'jane@example.org', start, end, now=now
    )

    reservation = scheduler.confirm_reservation(reservation.id, now=now)
    assert reservation.status is ReservationStatus.confirmed
    assert reservation.is_active

    # confirmed reservations still block their timespan
    assert not scheduler.check_availability(court.id, start, end)

    with pytest.raises(errors.InvalidStateError):
        scheduler.complete_reservation(reservation.id, now=now)

    reservation = scheduler.complete_reservation(reservation.id, now=end)
    assert reservation.status is ReservationStatus.completed
    assert not reservation.is_active

    # completed reservations no longer do
    assert scheduler.check_availability(court.id, start, end)

    with pytest.raises(errors.InvalidStateError):
        scheduler.cancel_reservation(reservation.id, now=now)

    with pytest.raises(errors.InvalidStateError):
        scheduler.confirm_reservation(reservation.id, now=now)

    # the failed units of work expired the reservation, it can't be used
    # once it is detached from the session
    reservation_id = reservation.id
    scheduler.close()

    reservation = scheduler.reservation_by_id(reservation_id)
    assert reservation.status is ReservationStatus.completed


def test_scheduler_cancel_cutoff(
    scheduler: Scheduler,
    court: Resource,
    now: datetime
) -> None:
    start = now + timedelta(days=1)

    reservation = scheduler.reserve(
        court.id, 'jane@example.org', start, start + timedelta(hours=1),
        now=now
    )
    scheduler.confirm_reservation(reservation.id, now=now)

    assert scheduler.is_cancellable(reservation, now=now)
    assert not scheduler.is_cancellable(
        reservation, now=start - timedelta(minutes=119)
    )

    with pytest.raises(errors.InvalidStateError):
        scheduler.cancel_reservation(
            reservation.id, now=start - timedelta(minutes=119)
        )

    assert scheduler.reservation_by_id(reservation.id).status \
        is ReservationStatus.confirmed

    reservation = scheduler.cancel_reservation(
        reservation.id, now=start - timedelta(minutes=121)
    )
    assert reservation.status is ReservationStatus.cancelled
    assert not scheduler.is_cancellable(reservation, now=now)


def test_scheduler_cancellation_cutoff_setting(
    scheduler: Scheduler,
    court: Resource,
    now: datetime
) -> None:
    scheduler.context.set_setting('cancellation_cutoff', timedelta(hours=24))
    start = now + timedelta(hours=12)

    reservation = scheduler.reserve(
        court.id, 'jane@example.org', start, start + timedelta(hours=1),
        now=now
    )

    with pytest.raises(errors.InvalidStateError):
        scheduler.cancel_reservation(reservation.id, now=now)
