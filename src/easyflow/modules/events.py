""" Events are called by the :class:`easyflow.db.workflow.Workflow` whenever
a schedule changes its state.

The implementation is very simple:

To add an event::

    from easyflow.modules import events

    def on_schedule_approved(context, schedule, reserved_table):
        pass

    events.on_schedule_approved.append(on_schedule_approved)

To remove the same event::

    events.on_schedule_approved.remove(on_schedule_approved)

Events are called in the order they were added, after the changes were
flushed but before they are committed.
"""
from __future__ import annotations


from typing import overload
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Callable
    from typing_extensions import ParamSpec

    from easyflow.context.core import Context
    from easyflow.db.models import ReservedTable, Schedule

    _P = ParamSpec('_P')


class Event(list['Callable[_P, object]']):
    """Event subscription. By http://stackoverflow.com/a/2022629

    A list of callable objects. Calling an instance of this will cause a
    call to each item in the list in ascending order by index.

    """
    @overload
    def __init__(self, f: type[Callable[_P, object]]) -> None: ...
    @overload
    def __init__(self) -> None: ...

    def __init__(self, f: object = None) -> None:
        return

    def __call__(self, *args: _P.args, **kwargs: _P.kwargs) -> None:
        for f in self:
            f(*args, **kwargs)


on_schedule_created: Event[Context, Schedule] = Event()
""" Called when a schedule request is created, with the following arguments:

    :context:
        The :class:`easyflow.context.core.Context` used when creating the
        schedule.

    :schedule:
        The pending :class:`easyflow.db.models.Schedule`.

"""

on_schedule_updated: Event[Context, Schedule] = Event()
""" Called when the day or shift of a pending schedule is changed, with the
following arguments:

    :context:
        The :class:`easyflow.context.core.Context` used.

    :schedule:
        The changed :class:`easyflow.db.models.Schedule`.

"""

on_schedule_approved: Event[Context, Schedule, ReservedTable] = Event()
""" Called when a schedule is approved, with the following arguments:

    :context:
        The :class:`easyflow.context.core.Context` used when approving.

    :schedule:
        The approved :class:`easyflow.db.models.Schedule`.

    :reserved_table:
        The :class:`easyflow.db.models.ReservedTable` ledger entry written
        for the approval.

"""

on_schedule_denied: Event[Context, Schedule] = Event()
""" Called when a schedule is denied, with the following arguments:

    :context:
        The :class:`easyflow.context.core.Context` used when denying.

    :schedule:
        The denied :class:`easyflow.db.models.Schedule`.

"""

on_schedule_removed: Event[Context, Schedule] = Event()
""" Called when a schedule is removed, with the following arguments:

    :context:
        The :class:`easyflow.context.core.Context` used when removing.

    :schedule:
        The removed :class:`easyflow.db.models.Schedule`. If it was approved,
        its ledger entry is gone as well.

"""
