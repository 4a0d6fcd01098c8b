from __future__ import annotations

from sqlalchemy import types
from sqlalchemy.orm import mapped_column
from sqlalchemy.orm import Mapped

from easyflow.db.models.base import ORMBase
from easyflow.db.models.timestamp import TimestampMixin


class Person(TimestampMixin, ORMBase):
    """ The people requesting lab tables. They are managed elsewhere,
    schedules only ever reference them.

    """

    __tablename__ = 'people'

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(types.Unicode(254))

    email: Mapped[str] = mapped_column(types.Unicode(254), unique=True)

    def __repr__(self) -> str:
        return f'<Person id={self.id} email={self.email!r}>'
