from __future__ import annotations

from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import Mapped

from easyflow.db.models.base import ORMBase
from easyflow.db.models.timestamp import TimestampMixin


class LabTable(TimestampMixin, ORMBase):
    """ A physical table in the laboratory, the one resource that can be
    booked. Managed elsewhere.

    """

    __tablename__ = 'lab_tables'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(types.Unicode(254))

    def __repr__(self) -> str:
        return f'<LabTable id={self.id} name={self.name!r}>'
