from __future__ import annotations

from math import ceil


from typing import Any
from typing import NamedTuple
from typing import TypeVar
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Mapping
    from sqlalchemy.orm import Query

_T = TypeVar('_T')


class Page(NamedTuple):
    items: list[Any]
    number: int
    size: int
    total: int

    @property
    def pages(self) -> int:
        return ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.number + 1 < self.pages


def paginate(query: Query[_T], number: int, size: int) -> Page:
    """ Returns the zero-based page `number` of the given query, with at most
    `size` items on it. The query is expected to be ordered already.

    """
    assert number >= 0
    assert size > 0

    total = query.order_by(None).count()
    items = query.offset(number * size).limit(size).all()

    return Page(items, number, size, total)


def normalize_identifier(identifier: str) -> str:
    """ Day and shift identifiers are compared case-insensitively, so
    'monday ' and 'MONDAY' address the same slot.

    """
    return identifier.strip().upper()


def blank_fields(**values: str | None) -> Mapping[str, str]:
    """ Returns a message for each of the given values which is missing or
    consists of whitespace only.

    """
    return {
        name: 'must not be blank'
        for name, value in values.items()
        if value is None or not value.strip()
    }
