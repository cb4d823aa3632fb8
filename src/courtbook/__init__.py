from __future__ import annotations

from courtbook.context.registry import create_default_registry
from courtbook.db import new_scheduler

registry = create_default_registry()

__version__ = '0.1.0'
__all__ = (
    'new_scheduler',
    'registry'
)
