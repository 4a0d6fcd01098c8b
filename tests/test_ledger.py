from __future__ import annotations

import pytest
import sqlite3

from easyflow.db.models import LabTable, Person, ReservedTable, Schedule
from easyflow.db.models import ScheduleStatus
from easyflow.db.queries import is_slot_conflict
from easyflow.modules import errors
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import OperationalError
from types import SimpleNamespace


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from easyflow.db.workflow import Workflow


def test_reserve_table_once(workflow: Workflow, table: LabTable) -> None:
    workflow.queries.reserve_table(table, 'MONDAY', 'MORNING')
    workflow.commit()

    with pytest.raises(IntegrityError) as e:
        workflow.queries.reserve_table(table, 'MONDAY', 'MORNING')

    assert is_slot_conflict(e.value)

    workflow.rollback()

    assert workflow.session.query(ReservedTable).count() == 1


def test_release_table(workflow: Workflow, table: LabTable) -> None:
    workflow.queries.reserve_table(table, 'MONDAY', 'MORNING')
    workflow.queries.reserve_table(table, 'MONDAY', 'NIGHT')
    workflow.commit()

    assert workflow.queries.release_table(table.id, 'MONDAY', 'MORNING') == 1
    assert workflow.queries.release_table(table.id, 'MONDAY', 'MORNING') == 0
    workflow.commit()

    assert not workflow.queries.is_reserved(table.id, 'MONDAY', 'MORNING')
    assert workflow.queries.is_reserved(table.id, 'MONDAY', 'NIGHT')


def test_collaborator_lookups(
    workflow: Workflow,
    person: Person,
    table: LabTable
) -> None:

    assert workflow.queries.person_exists(person.id)
    assert not workflow.queries.person_exists(404)
    assert workflow.queries.person_by_id(person.id) is person
    assert workflow.queries.person_by_id(404) is None

    assert workflow.queries.table_exists(table.id)
    assert not workflow.queries.table_exists(404)
    assert workflow.queries.table_by_id(table.id) is table
    assert workflow.queries.table_by_id(404) is None


def test_concurrent_approval(
    workflow: Workflow,
    person: Person,
    table: LabTable,
    monkeypatch: pytest.MonkeyPatch
) -> None:

    first = workflow.create(person.id, day='MONDAY', shift='MORNING')
    second = workflow.create(person.id, day='MONDAY', shift='MORNING')
    workflow.approve(first.id, table.id)
    workflow.commit()

    # the second approval does not see the first one, as if both were
    # checking the ledger at the same time
    monkeypatch.setattr(workflow.queries, 'is_reserved', lambda *a: False)

    with pytest.raises(errors.TableAlreadyReserved) as e:
        workflow.approve(second.id, table.id)

    assert e.value.schedule is second

    # only the savepoint was rolled back, the transaction lives on
    workflow.commit()
    monkeypatch.undo()

    second = workflow.schedule_by_id(second.id)
    assert second.status is ScheduleStatus.PENDING
    assert second.table is None

    assert workflow.session.query(ReservedTable).count() == 1
    assert workflow.schedules_by_status('approved') == [first]


def test_approved_schedules_have_a_table(
    workflow: Workflow,
    person: Person
) -> None:

    schedule = workflow.create(person.id, day='MONDAY', shift='MORNING')
    workflow.commit()

    schedule.status = ScheduleStatus.APPROVED

    with pytest.raises(IntegrityError):
        workflow.session.flush()

    workflow.rollback()

    assert workflow.session.get(Schedule, schedule.id).is_pending


class PostgresError(Exception):
    """ Carries the attributes psycopg2 sets on its errors. """

    def __init__(self, pgcode: str, constraint: str | None = None) -> None:
        super().__init__(pgcode)
        self.pgcode = pgcode
        self.diag = SimpleNamespace(constraint_name=constraint)


@pytest.mark.parametrize('error,conflict', [
    (IntegrityError('', {}, PostgresError(
        '23505', 'reserved_tables_slot_uq')), True),
    (IntegrityError('', {}, PostgresError(
        '23505', 'people_email_key')), False),
    (IntegrityError('', {}, PostgresError(
        '23503', 'reserved_tables_table_id_fkey')), False),
    (OperationalError('', {}, PostgresError('40001')), True),
    (OperationalError('', {}, PostgresError('08006')), False),
    (IntegrityError('', {}, sqlite3.IntegrityError(
        'UNIQUE constraint failed: reserved_tables.table_id, '
        'reserved_tables.day, reserved_tables.shift')), True),
    (IntegrityError('', {}, sqlite3.IntegrityError(
        'UNIQUE constraint failed: people.email')), False),
    (IntegrityError('', {}, sqlite3.IntegrityError(
        'FOREIGN KEY constraint failed')), False),
])
def test_is_slot_conflict(error: IntegrityError, conflict: bool) -> None:
    assert is_slot_conflict(error) is conflict


def test_approve_with_broken_reference(
    workflow: Workflow,
    person: Person,
    table: LabTable,
    monkeypatch: pytest.MonkeyPatch
) -> None:

    schedule = workflow.create(person.id, day='MONDAY', shift='MORNING')
    workflow.commit()

    def reserve_missing_table(
        table: LabTable,
        day: str,
        shift: str
    ) -> ReservedTable:
        reserved = ReservedTable(table_id=9999, day=day, shift=shift)
        workflow.session.add(reserved)
        workflow.session.flush()
        return reserved

    monkeypatch.setattr(
        workflow.queries, 'reserve_table', reserve_missing_table
    )

    # a foreign key violation is not a booking conflict
    with pytest.raises(IntegrityError) as e:
        workflow.approve(schedule.id, table.id)

    assert not isinstance(e.value, errors.TableAlreadyReserved)
    assert 'FOREIGN KEY' in str(e.value.orig)

    workflow.rollback()
    monkeypatch.undo()

    assert workflow.schedule_by_id(schedule.id).is_pending
    assert workflow.session.query(ReservedTable).count() == 0


@pytest.mark.parametrize('pgcode,conflict', [
    ('40001', True),
    ('57014', False),
])
def test_approve_with_operational_error(
    workflow: Workflow,
    person: Person,
    table: LabTable,
    monkeypatch: pytest.MonkeyPatch,
    pgcode: str,
    conflict: bool
) -> None:

    schedule = workflow.create(person.id, day='MONDAY', shift='MORNING')
    workflow.commit()

    def reserve_table(*args: object) -> ReservedTable:
        raise OperationalError('INSERT', {}, PostgresError(pgcode))

    monkeypatch.setattr(workflow.queries, 'reserve_table', reserve_table)

    expected = errors.TableAlreadyReserved if conflict else OperationalError

    with pytest.raises(expected):
        workflow.approve(schedule.id, table.id)

    workflow.rollback()

    assert workflow.schedule_by_id(schedule.id).is_pending
