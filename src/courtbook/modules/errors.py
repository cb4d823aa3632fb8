from __future__ import annotations

from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Sequence
    from courtbook.db.models import Reservation


class CourtbookError(Exception):
    """ Base class of all errors raised by courtbook. Every error carries a
    human readable reason as its first argument.

    """


class ContextAlreadyExists(CourtbookError):
    pass


class UnknownContext(CourtbookError):
    pass


class ContextIsLocked(CourtbookError):
    pass


class UnknownService(CourtbookError):
    pass


class NotTimezoneAware(CourtbookError):
    pass


class NotFound(CourtbookError):
    pass


class UnknownResource(NotFound):
    pass


class UnknownReservation(NotFound):
    pass


class NotBookable(CourtbookError):
    pass


class InvalidInterval(CourtbookError):
    pass


class StartNotInFuture(InvalidInterval):
    pass


class EndBeforeStart(InvalidInterval):
    pass


class ReservationTooShort(InvalidInterval):
    pass


class ReservationTooLong(InvalidInterval):
    pass


class BeyondBookingHorizon(InvalidInterval):
    pass


class ConflictError(CourtbookError):

    __slots__ = ('conflicts',)

    def __init__(
        self,
        message: str,
        conflicts: Sequence[Reservation] = ()
    ):
        super().__init__(message)
        self.conflicts = tuple(conflicts)


class InvalidStateError(CourtbookError):

    __slots__ = ('reservation',)

    def __init__(
        self,
        message: str,
        reservation: Reservation | None = None
    ):
        super().__init__(message)
        self.reservation = reservation
