from __future__ import annotations

import sedate

from sqlalchemy import types


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime
    from sqlalchemy.engine import Dialect

    _Base = types.TypeDecorator[datetime]
else:
    _Base = types.TypeDecorator


class UTCDateTime(_Base):
    """ Stores dates as UTC.

    Internally, they are stored as timezone naive, because Postgres takes
    the local timezone into account when working with timezones and SQLite
    has no notion of timezones at all. On the Python end the dates are
    always timezone aware and in UTC.

    """

    impl = types.DateTime
    cache_ok = True

    def process_bind_param(  # type:ignore[override]
        self,
        value: datetime | None,
        dialect: Dialect
    ) -> datetime | None:

        if value is not None:
            return sedate.to_timezone(value, 'UTC').replace(tzinfo=None)
        return None

    def process_result_value(
        self,
        value: datetime | None,
        dialect: Dialect
    ) -> datetime | None:

        if value is not None:
            return sedate.replace_timezone(value, 'UTC')
        return None
