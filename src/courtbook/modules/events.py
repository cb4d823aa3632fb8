""" Events are called by the :class:`courtbook.db.scheduler.Scheduler`
whenever a unit of work touching a reservation has been committed.

The implementation is very simple:

To add an event::

    from courtbook.modules import events

    def on_reservation_made(context, reservation):
        pass

    events.on_reservation_made.append(on_reservation_made)

To remove the same event::

    events.on_reservation_made.remove(on_reservation_made)

Events are called in the order they were added.
"""
from __future__ import annotations


from typing import overload
from typing import Protocol
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from typing_extensions import ParamSpec

    from courtbook.context.core import Context
    from courtbook.db.models import Reservation

    _P = ParamSpec('_P')


class Event(list['Callable[_P, object]']):
    """Event subscription. By http://stackoverflow.com/a/2022629

    A list of callable objects. Calling an instance of this will cause a
    call to each item in the list in ascending order by index.

    """
    # NOTE: This is only used for binding the correct `ParamSpec` for callback
    #       protocols, otherwise we have to define a pseudo-type, that doesn't
    #       look like an instance of `Event`...
    @overload
    def __init__(self, f: type[Callable[_P, object]]) -> None: ...
    @overload
    def __init__(self) -> None: ...

    def __init__(self, f: object = None) -> None:
        return

    def __call__(self, *args: _P.args, **kwargs: _P.kwargs) -> None:
        for f in self:
            f(*args, **kwargs)


on_reservation_made: Event[Context, Reservation] = Event()
""" Called when a new pending reservation was committed, with the following
arguments:

    :context:
        The :class:`courtbook.context.core.Context` used when making the
        reservation.

    :reservation:
        The :class:`courtbook.db.models.Reservation` that was made.

"""

on_reservation_confirmed: Event[Context, Reservation] = Event()
""" Called when a pending reservation is confirmed, with the context and
the confirmed reservation.

"""

on_reservation_cancelled: Event[Context, Reservation] = Event()
""" Called when a reservation is cancelled, with the context and the
cancelled reservation. The reservation no longer blocks its timespan.

"""

on_reservation_completed: Event[Context, Reservation] = Event()
""" Called when a confirmed reservation is completed, with the context and
the completed reservation.

"""


class _OnReservationTimeChangedCallback(Protocol):
    def __call__(
        self,
        context: Context,
        reservation: Reservation,
        /,
        old_time: tuple[datetime, datetime],
        new_time: tuple[datetime, datetime]
    ) -> None: ...


on_reservation_time_changed = Event(_OnReservationTimeChangedCallback)
""" Called when a pending reservation's time changes, with the following
arguments:

    :context:
        The :class:`courtbook.context.core.Context` used when changing the
        reservation time.

    :reservation:
        The :class:`courtbook.db.models.Reservation` whose time changed.

    :old_time:
        A tuple of datetimes containing the old start and the old end.

    :new_time:
        A tuple of datetimes containing the new start and the new end.

"""
