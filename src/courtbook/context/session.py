from __future__ import annotations

from psycopg2.extensions import TransactionRollbackError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.pool import QueuePool
from sqlalchemy.orm import scoped_session, sessionmaker

from courtbook.context.core import StoppableService


from typing import Any


SERIALIZABLE = 'SERIALIZABLE'


def is_serialization_failure(exception: BaseException) -> bool:
    """ True if the given (SQLAlchemy wrapped) exception was raised because
    PostgreSQL could not serialize two concurrent transactions.

    """
    return isinstance(getattr(exception, 'orig', None), TransactionRollbackError)


class SessionProvider(StoppableService):
    """Global session utility. It provides a SERIALIZABLE session to
    courtbook. If you want to override this provider, be sure to set the
    isolation_level to SERIALIZABLE as well.

    If you don't do that, two processes may both pass the conflict check for
    the same timespan, as the in-process resource locks do not reach across
    processes!

    PostgreSQL is the supported production database. File based SQLite
    databases work too, but only within a single process.

    """

    def __init__(
        self,
        dsn: str,
        engine_config: dict[str, Any] | None = None,
        session_config: dict[str, Any] | None = None
    ):
        self.dsn = dsn
        self.url = make_url(dsn)

        engine_config = dict(engine_config or {})

        if self.is_postgres:
            self.assert_valid_postgres_version(dsn)
        elif self.url.get_backend_name() == 'sqlite':
            # the pool hands connections to whichever thread asks next
            connect_args = engine_config.setdefault('connect_args', {})
            connect_args.setdefault('check_same_thread', False)

        self.engine = create_engine(
            dsn, poolclass=QueuePool, pool_size=5, max_overflow=5,
            isolation_level=SERIALIZABLE,
            **engine_config
        )

        self.session = scoped_session(sessionmaker(
            bind=self.engine, **(session_config or {})
        ))

    @property
    def is_postgres(self) -> bool:
        return self.url.get_backend_name() == 'postgresql'

    def stop_service(self) -> None:
        """ Called by the courtbook context when the session provider is
        being discarded (only in testing).

        This makes sure that replacing the session provider on the context
        doesn't leave behind any idle connections.

        """

        self.session().close()
        self.session.remove()
        self.engine.dispose()

    def get_postgres_version(self, dsn: str) -> tuple[str, int]:
        """ Returns the postgres version as a tuple (string, integer).

        Uses it's own connection to be independent from any session.

        """
        assert 'postgres' in dsn, 'Not a postgres database'

        query = """
            SELECT current_setting('server_version'),
                   current_setting('server_version_num')
        """

        engine = create_engine(dsn)

        try:
            with engine.connect() as connection:
                result = connection.execute(text(query)).first()
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
