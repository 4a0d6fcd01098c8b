from __future__ import annotations

from easyflow.context.registry import create_default_registry
from easyflow.db import new_workflow

registry = create_default_registry()

__version__ = '0.1.0'
__all__ = (
    'new_workflow',
    'registry'
)
