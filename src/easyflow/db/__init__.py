from __future__ import annotations

from easyflow.db.queries import Queries
from easyflow.db.workflow import Workflow


from typing import Any
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from easyflow.context.core import Context


def new_workflow(
    context: Context | str | None = None,
    **kwargs: Any
) -> Workflow:
    """ Returns a workflow operating on the given context, the name of a
    registered context or, if neither is given, the current context of the
    thread (see :class:`easyflow.context.registry.Registry`).

    Additional arguments are passed to :class:`easyflow.db.workflow.Workflow`.

    """
    if context is None or isinstance(context, str):
        from easyflow import registry

        if context is None:
            context = registry.current_context
        else:
            context = registry.get_context(context)

    return Workflow(context, **kwargs)


__all__ = ('new_workflow', 'Queries', 'Workflow')
