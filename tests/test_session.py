from __future__ import annotations

import pytest

from easyflow.context.session import SessionProvider
from sqlalchemy import text


from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from easyflow.context.core import Context


def test_stop_unused_session(dsn: str) -> None:
    provider = SessionProvider(dsn)
    provider.stop_service()  # should not throw any exceptions


def test_missing_dsn() -> None:
    with pytest.raises(AssertionError):
        SessionProvider(None)  # type: ignore[arg-type]


def test_foreign_keys_enforced(dsn: str) -> None:
    provider = SessionProvider(dsn)
    session = provider.session()

    try:
        assert session.execute(text('PRAGMA foreign_keys')).scalar() == 1
    finally:
        provider.stop_service()


def test_savepoints(dsn: str) -> None:
    provider = SessionProvider(dsn)
    session = provider.session()

    try:
        session.execute(text('CREATE TABLE numbers (n INTEGER)'))
        session.execute(text('INSERT INTO numbers VALUES (1)'))

        with pytest.raises(RuntimeError):
            with session.begin_nested():
                session.execute(text('INSERT INTO numbers VALUES (2)'))
                raise RuntimeError

        session.commit()

        numbers = session.execute(text('SELECT n FROM numbers')).scalars()
        assert numbers.all() == [1]
    finally:
        provider.stop_service()


def test_replaced_provider_is_stopped(dsn: str) -> None:
    from easyflow import registry

    context = registry.register_context('replaced', replace=True)
    context.set_setting('dsn', dsn)

    stopped = []

    class Provider(SessionProvider):
        def stop_service(self) -> None:
            stopped.append(self)
            super().stop_service()

    def provider(context: Context) -> Provider:
        return Provider(context.get_setting('dsn'))

    context.set_service('session_provider', provider, cache=True)

    first = context.get_service('session_provider')
    assert context.get_service('session_provider') is first
    assert stopped == []

    context.set_service('session_provider', provider, cache=True)
    assert stopped == [first]

    second = context.get_service('session_provider')
    assert second is not first

    # replacing the whole context stops its services as well
    registry.register_context('replaced', replace=True)
    assert stopped == [first, second]
