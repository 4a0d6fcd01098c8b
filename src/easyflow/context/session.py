from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy import event
from sqlalchemy import text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import scoped_session, sessionmaker

from easyflow.context.core import StoppableService


from typing import Any
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine


SERIALIZABLE = 'SERIALIZABLE'


class SessionProvider(StoppableService):
    """Global session utility. It provides a SERIALIZABLE session to easyflow.
    If you want to override this provider, be sure to set the isolation_level
    to SERIALIZABLE as well.

    The approval of a schedule checks the reservation ledger and writes to
    it in the same transaction, which is only safe on SERIALIZABLE
    connections (the unique constraint on the ledger catches the rest).

    """

    def __init__(
        self,
        dsn: str,
        engine_config: dict[str, Any] | None = None,
        session_config: dict[str, Any] | None = None
    ):
        assert dsn, 'No dsn configured, set the dsn setting of your context'

        if dsn.startswith('postgres'):
            self.assert_valid_postgres_version(dsn)

        self.dsn = dsn
        self.engine = self.create_engine(dsn, **(engine_config or {}))

        self.session = scoped_session(sessionmaker(
            bind=self.engine, **(session_config or {})
        ))

    def create_engine(self, dsn: str, **engine_config: Any) -> Engine:
        if not dsn.startswith('sqlite'):
            return create_engine(
                dsn, poolclass=QueuePool, pool_size=5, max_overflow=5,
                isolation_level=SERIALIZABLE,
                **engine_config
            )

        # in-memory databases only live as long as their single connection
        if dsn in ('sqlite://', 'sqlite:///:memory:'):
            engine_config.setdefault('poolclass', StaticPool)
            engine_config.setdefault(
                'connect_args', {'check_same_thread': False}
            )

        # sqlite transactions are serializable to begin with
        engine = create_engine(dsn, **engine_config)

        # pysqlite does not emit BEGIN by itself which breaks savepoints,
        # we take over the transaction handling and enforce foreign keys
        @event.listens_for(engine, 'connect')
        def on_connect(dbapi_connection: Any, record: Any) -> None:
            dbapi_connection.isolation_level = None

            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

        @event.listens_for(engine, 'begin')
        def on_begin(connection: Connection) -> None:
            connection.exec_driver_sql('BEGIN')

        return engine

    def stop_service(self) -> None:
        """ Called by the easyflow context when the session provider is being
        discarded (only in testing).

        This makes sure that replacing the session provider on the context
        doesn't leave behind any idle connections.

        """

        self.session.remove()
        self.engine.dispose()

    def get_postgres_version(self, dsn: str) -> tuple[str, int]:
        """ Returns the postgres version as a tuple (string, integer).

        Uses it's own connection to be independent from any session.

        """
        assert 'postgres' in dsn, 'Not a postgres database'

        query = text("""
            SELECT current_setting('server_version'),
                   current_setting('server_version_num')
        """)

        engine = create_engine(dsn)

        try:
            with engine.connect() as connection:
                result = connection.execute(query).first()

            assert result is not None
            version, number = result
            return version, int(number)
        finally:
            engine.dispose()

    def assert_valid_postgres_version(self, dsn: str) -> str:
        v, n = self.get_postgres_version(dsn)

        if n < 90100:
            raise RuntimeError(f'PostgreSQL 9.1+ is required, got {v}')

        return dsn
