from __future__ import annotations

from courtbook.db.scheduler import Scheduler


from typing import Any
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from courtbook.context.core import Context


def new_scheduler(
    context: Context | str,
    timezone: str = 'UTC',
    settings: dict[str, Any] | None = None,
    **kwargs: Any
) -> Scheduler:
    """ Creates a new :class:`~courtbook.db.scheduler.Scheduler`.

    :context:
        A context or the name of a context. Unknown names are registered
        on the global registry.

    :settings:
        Settings to set on the context (without the 'settings.' prefix),
        for example ``{'dsn': 'postgresql://...'}``.

    """

    if isinstance(context, str):
        import courtbook
        context = courtbook.registry.get_context(context, autocreate=True)

    for name, value in (settings or {}).items():
        context.set_setting(name, value)

    return Scheduler(context, timezone, **kwargs)


__all__ = ('new_scheduler', 'Scheduler')
