from __future__ import annotations

import pytest
from _pytest.fixtures import FixtureLookupError

from easyflow import new_workflow, registry
from easyflow.db.models import LabTable, Person
from uuid import uuid4 as new_uuid


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from collections.abc import Generator
    from easyflow.db.workflow import Workflow


def new_test_workflow(dsn: str, context_name: str | None = None) -> Workflow:

    context_name = context_name or new_uuid().hex

    context = registry.register_context(context_name, replace=True)
    context.set_setting('dsn', dsn)

    return new_workflow(context)


@pytest.fixture
def dsn() -> str:
    # every workflow gets its own in-memory database
    return 'sqlite://'


@pytest.fixture
def workflow(
    request: pytest.FixtureRequest,
    dsn: str
) -> Generator[Workflow, None, None]:

    # clear the events before each test
    from easyflow.modules import events
    for event in (e for e in dir(events) if e.startswith('on_')):
        del getattr(events, event)[:]

    try:
        context = request.getfixturevalue('workflow_context')
    except FixtureLookupError:
        context = None

    workflow = new_test_workflow(dsn, context)
    workflow.setup_database()
    workflow.commit()

    yield workflow

    workflow.rollback()
    workflow.close()
    workflow.context.discard_service('session_provider')


@pytest.fixture
def person(workflow: Workflow) -> Person:
    person = Person(name='Ada', email='ada@example.org')
    workflow.session.add(person)
    workflow.commit()

    return person


@pytest.fixture
def table(workflow: Workflow) -> LabTable:
    table = LabTable(name='Bench 7')
    workflow.session.add(table)
    workflow.commit()

    return table
