from __future__ import annotations

import pytest

from easyflow.db.models import Person, Schedule


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from easyflow.db.workflow import Workflow


@pytest.mark.parametrize('execution_number', range(2))
@pytest.mark.parametrize('workflow_context', ['test'])
def test_independence(
    workflow: Workflow,
    execution_number: int,
    workflow_context: str
) -> None:
    """ Test the independence of tests. This test is run twice with the exact
    same records written. If any records remain after a single test run, the
    second run of this test fails.

    This ensures proper separation between tests.

    """
    assert workflow.context.name == workflow_context

    person = Person(name='Ada', email='ada@example.org')
    workflow.session.add(person)
    workflow.session.flush()

    workflow.create(person.id, day='MONDAY', shift='MORNING')
    workflow.commit()

    assert workflow.session.query(Person).count() == 1
    assert workflow.session.query(Schedule).count() == 1
