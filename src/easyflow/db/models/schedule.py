from __future__ import annotations

import enum

from sqlalchemy import ForeignKey
from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import relationship
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import CheckConstraint
from sqlalchemy.schema import Index

from easyflow.db.models.base import ORMBase
from easyflow.db.models.lab_table import LabTable
from easyflow.db.models.person import Person
from easyflow.db.models.reserved_table import Slot
from easyflow.db.models.timestamp import TimestampMixin
from easyflow.modules import errors


class ScheduleStatus(enum.Enum):
    """ The lifecycle of a schedule request. Only pending requests may be
    approved or denied, approved and denied requests stay that way until
    they are removed.

    """

    PENDING = 'PENDING'
    APPROVED = 'APPROVED'
    DENIED = 'DENIED'

    @classmethod
    def parse(cls, value: str) -> ScheduleStatus:
        """ Returns the status with the given name, ignoring the case. """

        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise errors.UnknownScheduleStatus() from None


class Schedule(TimestampMixin, ORMBase):
    """ Describes the request of a person to use a lab table on a day
    during a shift.

    """

    __tablename__ = 'schedules'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    day: Mapped[str] = mapped_column(types.String(32), nullable=False)

    shift: Mapped[str] = mapped_column(types.String(32), nullable=False)

    status: Mapped[ScheduleStatus] = mapped_column(
        types.Enum(ScheduleStatus, name='schedule_status'),
        nullable=False,
        default=ScheduleStatus.PENDING
    )

    person_id: Mapped[int] = mapped_column(
        ForeignKey('people.id'),
        nullable=False
    )

    person: Mapped[Person] = relationship(Person, lazy='joined')

    # only set once the schedule is approved
    table_id: Mapped[int | None] = mapped_column(
        ForeignKey('lab_tables.id'),
        nullable=True
    )

    table: Mapped[LabTable | None] = relationship(LabTable, lazy='joined')

    __table_args__ = (
        CheckConstraint(
            "(status = 'APPROVED' AND table_id IS NOT NULL) OR "
            "(status != 'APPROVED' AND table_id IS NULL)",
            name='schedules_table_if_approved_ck'
        ),
        Index('schedules_status_ix', 'status', 'id'),
        Index('schedules_person_ix', 'person_id', 'id'),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == ScheduleStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.status == ScheduleStatus.APPROVED

    @property
    def slot(self) -> Slot | None:
        """ The ledger slot held by this schedule, if it is approved. """

        if not self.is_approved:
            return None

        assert self.table is not None
        return Slot(self.table.id, self.day, self.shift)

    def assert_pending(self, message: str | None = None) -> None:
        if not self.is_pending:
            error = errors.ScheduleNotPending(message)
            error.schedule = self
            raise error

    def edit(self, day: str, shift: str) -> None:
        self.assert_pending(
            'The time request can only be edited if it is pending.'
        )

        self.day = day
        self.shift = shift

    def approve(self, table: LabTable) -> None:
        """ Assigns the table and marks the schedule as approved. The ledger
        entry has to be written alongside, see
        :meth:`easyflow.db.workflow.Workflow.approve`.

        """
        self.assert_pending()

        self.table = table
        self.status = ScheduleStatus.APPROVED

    def deny(self) -> None:
        self.assert_pending()

        self.status = ScheduleStatus.DENIED

    def __repr__(self) -> str:
        return (
            f'<Schedule id={self.id} day={self.day!r} shift={self.shift!r} '
            f'status={self.status.name if self.status else None}>'
        )
