from __future__ import annotations

from datetime import time
from decimal import Decimal

from courtbook.context.core import ContextServicesMixin
from courtbook.db.models import Resource
from courtbook.modules import errors


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from sqlalchemy.orm import Query

    from courtbook.context.core import Context


class ResourceRegistry(ContextServicesMixin):
    """ Gives the scheduler read access to the resources.

    The scheduler looks at a resource once per request and does not hold on
    to it. A resource that goes into maintenance after a reservation was made
    does not affect that reservation.

    """

    def __init__(self, context: Context):
        self.context = context

    def get_resource(self, id: int) -> Resource:
        resource = self.session.get(Resource, id)

        if resource is None:
            raise errors.UnknownResource(f'No resource with id {id}')

        return resource

    @staticmethod
    def is_bookable(resource: Resource) -> bool:
        return bool(
            resource.is_active
            and not resource.is_under_maintenance
            and resource.hourly_rate is not None
            and resource.hourly_rate > 0
        )

    def bookable_resources(self) -> Query[Resource]:
        query = self.session.query(Resource)
        query = query.filter(Resource.is_active == True)
        query = query.filter(Resource.is_under_maintenance == False)
        query = query.filter(Resource.hourly_rate > 0)
        query = query.order_by(Resource.name)

        return query

    def add_resource(
        self,
        name: str,
        hourly_rate: Decimal | str | int,
        capacity: int = 1,
        type: str | None = None,
        is_active: bool = True,
        is_under_maintenance: bool = False,
        opening_time: time = time(6, 0),
        closing_time: time = time(23, 0)
    ) -> Resource:
        """ Adds a resource and flushes it, so it has an id. Committing is
        up to the caller.

        """

        resource = Resource()
        resource.name = name
        resource.hourly_rate = Decimal(hourly_rate)
        resource.capacity = capacity
        resource.type = type
        resource.is_active = is_active
        resource.is_under_maintenance = is_under_maintenance
        resource.opening_time = opening_time
        resource.closing_time = closing_time

        self.session.add(resource)
        self.session.flush()

        return resource

    def set_maintenance(
        self,
        id: int,
        under_maintenance: bool,
        note: str | None = None
    ) -> Resource:

        resource = self.get_resource(id)
        resource.is_under_maintenance = under_maintenance
        resource.maintenance_note = note if under_maintenance else None

        return resource
