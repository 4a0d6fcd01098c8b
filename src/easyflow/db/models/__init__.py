from easyflow.db.models.base import ORMBase
from easyflow.db.models.person import Person
from easyflow.db.models.lab_table import LabTable
from easyflow.db.models.reserved_table import ReservedTable, Slot
from easyflow.db.models.schedule import Schedule, ScheduleStatus


__all__ = [
    'ORMBase',
    'LabTable',
    'Person',
    'ReservedTable',
    'Schedule',
    'ScheduleStatus',
    'Slot',
]
