from __future__ import annotations

import threading

from contextlib import contextmanager


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Iterator


class ResourceLocks:
    """ Holds one re-entrant lock per resource id.

    The scheduler acquires the lock of a resource for the whole unit of work
    that checks for conflicts and writes the reservation, including the
    commit. Two threads of the same process can therefore never both pass
    the conflict check for the same resource.

    Processes don't share these locks. Across processes the SERIALIZABLE
    isolation of the sessions takes over, see
    :class:`courtbook.context.session.SessionProvider`.

    """

    def __init__(self) -> None:
        self.thread_lock = threading.Lock()
        self.locks: dict[int, threading.RLock] = {}

    def lock_for(self, resource_id: int) -> threading.RLock:
        with self.thread_lock:
            if resource_id not in self.locks:
                self.locks[resource_id] = threading.RLock()

            return self.locks[resource_id]

    @contextmanager
    def locked(self, resource_id: int) -> Iterator[None]:
        with self.lock_for(resource_id):
            yield
