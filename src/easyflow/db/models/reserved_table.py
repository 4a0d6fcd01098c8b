from __future__ import annotations

from sqlalchemy import ForeignKey
from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import relationship
from sqlalchemy.orm import Mapped
from sqlalchemy.schema import UniqueConstraint

from easyflow.db.models.base import ORMBase
from easyflow.db.models.lab_table import LabTable
from easyflow.db.models.timestamp import TimestampMixin


from typing import NamedTuple


SLOT_CONSTRAINT = 'reserved_tables_slot_uq'


class Slot(NamedTuple):
    table_id: int
    day: str
    shift: str


class ReservedTable(TimestampMixin, ORMBase):
    """ Describes a table booked for a day and shift. This is the ledger
    written when schedules are approved.

    A table may only be reserved once per day and shift, which is enforced
    by the database.

    """

    __tablename__ = 'reserved_tables'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    table_id: Mapped[int] = mapped_column(
        ForeignKey('lab_tables.id'),
        nullable=False
    )

    table: Mapped[LabTable] = relationship(LabTable, lazy='joined')

    day: Mapped[str] = mapped_column(types.String(32), nullable=False)

    shift: Mapped[str] = mapped_column(types.String(32), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            'table_id', 'day', 'shift',
            name=SLOT_CONSTRAINT
        ),
    )

    @property
    def slot(self) -> Slot:
        return Slot(self.table_id, self.day, self.shift)

    def __repr__(self) -> str:
        return '<ReservedTable table_id={} day={!r} shift={!r}>'.format(
            *self.slot
        )
