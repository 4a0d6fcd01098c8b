""" Translates :mod:`easyflow.modules.errors` into the structured problem
responses handed out by the web layer.

Each problem carries a title, a detail message, a status code and the
UTC timestamp of its creation. Validation problems additionally list the
offending fields and their messages::

    from easyflow.modules.problems import problem_for

    try:
        workflow.approve(schedule_id, table_id)
    except errors.EasyflowError as e:
        problem = problem_for(e, workflow.context)
        return problem.as_dict(), problem.status

"""
from __future__ import annotations

import sedate

from easyflow.modules import errors


from typing import Any
from typing import NamedTuple
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from datetime import datetime
    from easyflow.context.core import Context


TITLES = {
    400: 'Bad Request Exception, check the Documentation',
    404: 'Not Found Exception, check the Documentation',
    409: 'Conflict Exception, check the Documentation',
}

VALIDATION_TITLE = (
    'Bad Request Exception, Invalid Field(s), check the Documentation'
)


class ProblemDetails(NamedTuple):
    title: str
    detail: str
    status: int
    timestamp: datetime
    fields: str | None = None
    fields_message: str | None = None

    def as_dict(self) -> dict[str, Any]:
        result = {
            'title': self.title,
            'detail': self.detail,
            'status': self.status,
            'timestamp': self.timestamp.isoformat(),
        }

        if self.fields is not None:
            result['fields'] = self.fields
            result['fieldsMessage'] = self.fields_message

        return result


def status_for(error: errors.EasyflowError, context: Context | None) -> int:
    """ Conflicts are reported with the status configured in
    the ``conflict_status`` setting, all other errors use their own.

    """
    if isinstance(error, errors.Conflict) and context is not None:
        return int(context.get_setting('conflict_status'))

    return error.status


def problem_for(
    error: errors.EasyflowError,
    context: Context | None = None
) -> ProblemDetails:

    timestamp = sedate.utcnow()

    if isinstance(error, errors.InvalidFields):
        return ProblemDetails(
            title=VALIDATION_TITLE,
            detail='**',
            status=error.status,
            timestamp=timestamp,
            fields=', '.join(error.fields.keys()),
            fields_message=', '.join(error.fields.values()),
        )

    status = status_for(error, context)

    return ProblemDetails(
        title=TITLES.get(status, 'Internal Exception'),
        detail=error.message,
        status=status,
        timestamp=timestamp,
    )
