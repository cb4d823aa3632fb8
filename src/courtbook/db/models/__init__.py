from courtbook.db.models.base import ORMBase
from courtbook.db.models.resource import Resource
from courtbook.db.models.reservation import Reservation


__all__ = ['ORMBase', 'Resource', 'Reservation']
