from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import OperationalError

from easyflow.context.core import ContextServicesMixin
from easyflow.db.models import ORMBase, LabTable, Person, Schedule
from easyflow.db.models import ScheduleStatus
from easyflow.db.queries import Queries
from easyflow.db.queries import is_slot_conflict
from easyflow.modules import errors
from easyflow.modules import events
from easyflow.modules import utils


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from typing_extensions import Self

    from easyflow.context.core import Context
    from easyflow.db.models import ReservedTable


log = logging.getLogger('easyflow')


class Workflow(ContextServicesMixin):
    """ The Workflow takes schedule requests through their lifecycle and keeps
    the reservation ledger in line with them. It is the main part of the API.

    None of the methods commit. Each state-changing method flushes its
    changes as one unit, committing or rolling back is up to the caller::

        schedule = workflow.create(person_id=1, day='monday', shift='morning')
        workflow.approve(schedule.id, table_id=7)
        workflow.commit()

    """

    def __init__(
        self,
        context: Context,
        person_cls: type[Person] = Person,
        table_cls: type[LabTable] = LabTable
    ):
        """ Initializes a new Workflow instance.

        :context:
            The :class:`easyflow.context.core.Context` this workflow should
            operate on. Acquire a context by using
            :func:`easyflow.context.registry.Registry.register_context`.

        :person_cls:
            The model of the people owning schedules.

        :table_cls:
            The model of the lab tables assigned to approved schedules.

        """

        self.context = context
        self.person_cls = person_cls
        self.table_cls = table_cls
        self.queries = Queries(context, person_cls, table_cls)

    def clone(self) -> Self:
        """ Clones the workflow. The result will be a new workflow using the
        same context and models.

        """

        return self.__class__(self.context, self.person_cls, self.table_cls)

    def setup_database(self) -> None:
        """ Creates the tables and indices required for easyflow. This needs
        to be called once per database. Multiple invocations won't hurt but
        they are unnecessary.

        """
        ORMBase.metadata.create_all(self.session.bind)

    def _validate(self, day: str | None, shift: str | None) -> tuple[str, str]:
        invalid = utils.blank_fields(day=day, shift=shift)

        if invalid:
            raise errors.InvalidFields(invalid)

        assert day is not None and shift is not None
        return self.normalize_identifier(day), self.normalize_identifier(shift)

    def list_all(
        self,
        page: int = 0,
        size: int | None = None
    ) -> utils.Page:
        """ Returns the given (zero-based) page of all schedules. """

        size = size or self.context.get_setting('page_size')
        return utils.paginate(self.queries.schedules(), page, size)

    def schedule_by_id(self, id: int) -> Schedule:
        schedule = self.queries.schedule_by_id(id)

        if schedule is None:
            raise errors.ScheduleNotFound()

        return schedule

    def schedules_by_person(self, person_id: int) -> list[Schedule]:
        """ Returns the schedules of the given person. A person without any
        schedules is an error, just like an unknown person.

        """
        if not self.queries.person_exists(person_id):
            raise errors.PersonNotFound()

        schedules = self.queries.schedules_by_person(person_id).all()

        if not schedules:
            raise errors.NoSchedulesForPerson()

        return schedules

    def schedules_by_shift(self, shift: str) -> list[Schedule]:
        shift = self.normalize_identifier(shift)
        return self.queries.schedules_by_shift(shift).all()

    def schedules_by_day(self, day: str) -> list[Schedule]:
        day = self.normalize_identifier(day)
        return self.queries.schedules_by_day(day).all()

    def schedules_by_status(self, status: str) -> list[Schedule]:
        """ Returns the schedules with the given status. The status is
        matched case-insensitively against the names of
        :class:`easyflow.db.models.ScheduleStatus`.

        """
        return self.queries.schedules_by_status(
            ScheduleStatus.parse(status)
        ).all()

    def schedules_by_table(self, table_id: int) -> list[Schedule]:
        if not self.queries.table_exists(table_id):
            raise errors.TableNotFound()

        return self.queries.schedules_by_table(table_id).all()

    def reserved_tables(self) -> list[ReservedTable]:
        return self.queries.reserved_tables().all()

    def is_reserved(self, table_id: int, day: str, shift: str) -> bool:
        return self.queries.is_reserved(
            table_id,
            self.normalize_identifier(day),
            self.normalize_identifier(shift)
        )

    def create(self, person_id: int, day: str, shift: str) -> Schedule:
        """ Creates a pending schedule request for the given person. """

        day, shift = self._validate(day, shift)

        person = self.queries.person_by_id(person_id)

        if person is None:
            raise errors.PersonNotFound()

        schedule = Schedule(
            day=day,
            shift=shift,
            status=ScheduleStatus.PENDING,
            person=person
        )

        self.session.add(schedule)
        self.session.flush()

        log.info(f'Schedule {schedule.id} requested by person {person.id}')
        events.on_schedule_created(self.context, schedule)

        return schedule

    def update(self, id: int, day: str, shift: str) -> Schedule:
        """ Changes the day and shift of a pending schedule. """

        day, shift = self._validate(day, shift)

        schedule = self.schedule_by_id(id)
        schedule.edit(day, shift)

        self.session.flush()

        log.info(f'Schedule {schedule.id} moved to {day} ({shift})')
        events.on_schedule_updated(self.context, schedule)

        return schedule

    def approve(self, id: int, table_id: int) -> Schedule:
        """ Approves a pending schedule, booking the given table for the
        day and shift of the schedule.

        The ledger entry and the new state of the schedule are written in
        a single savepoint. If the table is taken (even by a concurrent
        approval which got in first) nothing is written and
        :class:`easyflow.modules.errors.TableAlreadyReserved` is raised.

        On PostgreSQL a concurrent approval may surface as a serialization
        failure, which is reported the same way. The transaction has to be
        rolled back afterwards.

        """

        schedule = self.schedule_by_id(id)
        schedule.assert_pending()

        table = self.queries.table_by_id(table_id)

        if table is None:
            raise errors.TableNotFound()

        if self.queries.is_reserved(table.id, schedule.day, schedule.shift):
            log.debug(
                f'Refusing schedule {schedule.id}, table {table.id} is '
                f'taken on {schedule.day} ({schedule.shift})'
            )
            error = errors.TableAlreadyReserved(
                table.id, schedule.day, schedule.shift
            )
            error.schedule = schedule
            raise error

        try:
            with self.begin_nested():
                reserved = self.queries.reserve_table(
                    table, schedule.day, schedule.shift
                )
                schedule.approve(table)
                self.session.flush()
        except (IntegrityError, OperationalError) as e:
            if not is_slot_conflict(e):
                raise

            error = errors.TableAlreadyReserved(
                table.id, schedule.day, schedule.shift
            )
            error.schedule = schedule
            raise error from None

        log.info(
            f'Schedule {schedule.id} approved, table {table.id} booked on '
            f'{schedule.day} ({schedule.shift})'
        )
        events.on_schedule_approved(self.context, schedule, reserved)

        return schedule

    def deny(self, id: int) -> None:
        """ Denies a pending schedule. Denied schedules are kept around. """

        schedule = self.schedule_by_id(id)
        schedule.deny()

        self.session.flush()

        log.info(f'Schedule {schedule.id} denied')
        events.on_schedule_denied(self.context, schedule)

    def delete(self, id: int) -> None:
        """ Removes the schedule in any state. Approved schedules release
        their table in the same go.

        """

        schedule = self.schedule_by_id(id)
        slot = schedule.slot

        with self.begin_nested():
            if slot is not None:
                self.queries.release_table(*slot)

            self.session.delete(schedule)

        log.info(f'Schedule {id} removed')
        events.on_schedule_removed(self.context, schedule)
