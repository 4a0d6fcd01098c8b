from __future__ import annotations


from typing import ClassVar
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Mapping
    from easyflow.db.models import Schedule


class EasyflowError(Exception):
    __slots__ = ('schedule',)
    schedule: Schedule
    """
    This attribute is not guaranteed to exist
    """

    status: ClassVar[int] = 500
    default_message: ClassVar[str] = 'An unexpected error occurred.'

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0])


class ContextAlreadyExists(EasyflowError):
    pass


class UnknownContext(EasyflowError):
    pass


class ContextIsLocked(EasyflowError):
    pass


class UnknownService(EasyflowError):
    pass


class NotFound(EasyflowError):
    status = 404
    default_message = 'The requested resource was not found.'


class BadRequest(EasyflowError):
    status = 400
    default_message = 'The request could not be processed.'


class Conflict(EasyflowError):
    status = 409
    default_message = 'The request conflicts with an existing resource.'


class ScheduleNotFound(NotFound):
    default_message = 'No time was found with the given id.'


class PersonNotFound(NotFound):
    default_message = 'No person was found with the given id.'


class TableNotFound(NotFound):
    default_message = (
        'No table was found with the provided id, '
        'check the registered tables.'
    )


class NoSchedulesForPerson(NotFound):
    default_message = 'The user has no registered schedules.'


class UnknownScheduleStatus(BadRequest):
    default_message = (
        'The status provided does not exist or was not properly written. '
        'Please check the documentation.'
    )


class ScheduleNotPending(BadRequest):
    default_message = 'The schedule request has a status other than pending.'


class InvalidFields(BadRequest):

    __slots__ = ('fields',)

    default_message = 'Invalid field(s), check the documentation.'

    def __init__(self, fields: Mapping[str, str]):
        super().__init__()
        self.fields = dict(fields)


class TableAlreadyReserved(Conflict):

    __slots__ = ('table_id', 'day', 'shift')

    default_message = 'This table is already booked for this time.'

    def __init__(self, table_id: int, day: str, shift: str):
        super().__init__()
        self.table_id = table_id
        self.day = day
        self.shift = shift
