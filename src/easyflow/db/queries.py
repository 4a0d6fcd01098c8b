from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import OperationalError

from easyflow.context.core import ContextServicesMixin
from easyflow.db.models import LabTable, Person, ReservedTable, Schedule
from easyflow.db.models import ScheduleStatus
from easyflow.db.models.reserved_table import SLOT_CONSTRAINT


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from sqlalchemy.exc import DBAPIError
    from sqlalchemy.orm import Query

    from easyflow.context.core import Context


log = logging.getLogger('easyflow')

# postgres error codes
UNIQUE_VIOLATION = '23505'
SERIALIZATION_FAILURE = '40001'


def is_slot_conflict(error: DBAPIError) -> bool:
    """ Returns True if the given database error means the table was booked
    for the same day and shift by someone else.

    That is a unique violation of the ledger or, on PostgreSQL, a
    serialization failure. The latter is raised instead of the unique
    violation if the transaction read the slot before a concurrent one
    booked it. PostgreSQL expects the whole transaction to be rolled back
    and retried in this case.

    """
    pgcode = getattr(error.orig, 'pgcode', None)

    if isinstance(error, OperationalError):
        return pgcode == SERIALIZATION_FAILURE

    if not isinstance(error, IntegrityError):
        return False

    if pgcode is not None:
        diag = getattr(error.orig, 'diag', None)
        constraint = getattr(diag, 'constraint_name', None)
        return pgcode == UNIQUE_VIOLATION and constraint == SLOT_CONSTRAINT

    # sqlite names the columns of the constraint instead
    return str(error.orig).startswith(
        'UNIQUE constraint failed: reserved_tables.table_id'
    )


class Queries(ContextServicesMixin):
    """ Contains the lookups against the reservation ledger, the schedules
    and the records referenced by them (people and lab tables).

    None of these methods change the state of a schedule, that is left to
    :class:`.workflow.Workflow`.

    """

    def __init__(
        self,
        context: Context,
        person_cls: type[Person] = Person,
        table_cls: type[LabTable] = LabTable
    ):
        self.context = context
        self.person_cls = person_cls
        self.table_cls = table_cls

    def schedules(self) -> Query[Schedule]:
        return self.session.query(Schedule).order_by(Schedule.id)

    def schedule_by_id(self, id: int) -> Schedule | None:
        return self.session.get(Schedule, id)

    def schedules_by_person(self, person_id: int) -> Query[Schedule]:
        return self.schedules().filter(Schedule.person_id == person_id)

    def schedules_by_shift(self, shift: str) -> Query[Schedule]:
        return self.schedules().filter(Schedule.shift == shift)

    def schedules_by_day(self, day: str) -> Query[Schedule]:
        return self.schedules().filter(Schedule.day == day)

    def schedules_by_status(self, status: ScheduleStatus) -> Query[Schedule]:
        return self.schedules().filter(Schedule.status == status)

    def schedules_by_table(self, table_id: int) -> Query[Schedule]:
        return self.schedules().filter(Schedule.table_id == table_id)

    def person_by_id(self, id: int) -> Person | None:
        return self.session.get(self.person_cls, id)

    def person_exists(self, id: int) -> bool:
        query = self.session.query(self.person_cls.id)
        query = query.filter(self.person_cls.id == id)

        return self.session.query(query.exists()).scalar()  # type: ignore[no-any-return]

    def table_by_id(self, id: int) -> LabTable | None:
        return self.session.get(self.table_cls, id)

    def table_exists(self, id: int) -> bool:
        query = self.session.query(self.table_cls.id)
        query = query.filter(self.table_cls.id == id)

        return self.session.query(query.exists()).scalar()  # type: ignore[no-any-return]

    def reserved_tables(self) -> Query[ReservedTable]:
        """ The whole ledger, ordered by table. """

        query = self.session.query(ReservedTable)
        query = query.order_by(ReservedTable.table_id, ReservedTable.id)

        return query

    def reserved_tables_by_slot(
        self,
        table_id: int,
        day: str,
        shift: str
    ) -> Query[ReservedTable]:

        query = self.session.query(ReservedTable)
        query = query.filter(ReservedTable.table_id == table_id)
        query = query.filter(ReservedTable.day == day)
        query = query.filter(ReservedTable.shift == shift)

        return query

    def is_reserved(self, table_id: int, day: str, shift: str) -> bool:
        """ Returns True if the table is booked for the given day and shift.

        """
        query = self.reserved_tables_by_slot(table_id, day, shift)
        return self.session.query(query.exists()).scalar()  # type: ignore[no-any-return]

    def reserve_table(
        self,
        table: LabTable,
        day: str,
        shift: str
    ) -> ReservedTable:
        """ Writes a ledger entry for the given table, day and shift. The
        entry is flushed right away, so a taken slot results in an
        IntegrityError here and not during some later flush.

        """
        reserved = ReservedTable(table=table, day=day, shift=shift)

        self.session.add(reserved)
        self.session.flush()

        return reserved

    def release_table(self, table_id: int, day: str, shift: str) -> int:
        """ Removes the ledger entry of the given table, day and shift.

        Returns the number of removed entries, which is at most one.

        """
        count = self.reserved_tables_by_slot(table_id, day, shift).delete(
            synchronize_session='fetch'
        )

        if not count:
            log.warning(
                f'No reservation of table {table_id} on {day} ({shift}) '
                f'found to release'
            )

        return count
