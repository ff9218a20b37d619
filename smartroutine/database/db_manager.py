import logging
import os
from functools import wraps
from typing import Any, Callable, Iterable, List, Optional, TypeVar

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from smartroutine.errors import StorageError

T = TypeVar('T')

logger = logging.getLogger(__name__)


def require_connection(func: Callable) -> Callable:
    '''Decorator to ensure DBManager is used within a context manager.'''

    @wraps(func)
    def wrapper(self: 'DBManager', *args, **kwargs) -> Any:
        if not self._connected:
            raise RuntimeError(
                'DBManager is not in a context. Use "with DBManager() as db:"'
            )
        return func(self, *args, **kwargs)

    return wrapper


def _database_url(db_url: Optional[str] = None) -> str:
    conninfo = db_url or os.getenv('DATABASE_URL')
    if not conninfo:
        raise RuntimeError('DATABASE_URL is not set.')
    return conninfo


class DBManager:
    '''Postgres DB manager.

    Commits when the ``with`` block exits cleanly and rolls back otherwise.
    Driver errors are logged and re-raised as StorageError.
    '''

    # Shared pool across the process
    _pool: ConnectionPool | None = None

    def __init__(self) -> None:
        self._connected: bool = False
        self._pg_conn: psycopg.Connection | None = None
        self._from_pool: bool = False

    @classmethod
    def init_pool(
        cls,
        db_url: Optional[str] = None,
        min_size: int = 1,
        max_size: int = 10,
    ) -> None:
        '''Initialize a global connection pool for reuse across commands.'''
        if cls._pool is not None:
            return
        cls._pool = ConnectionPool(
            conninfo=_database_url(db_url),
            min_size=min_size,
            max_size=max_size,
            kwargs={'row_factory': dict_row},
        )
        logger.info('Initialized Postgres connection pool')

    @classmethod
    def close_pool(cls) -> None:
        if cls._pool is not None:
            try:
                cls._pool.close()
            finally:
                cls._pool = None

    def _acquire(self) -> None:
        try:
            if self.__class__._pool is not None:
                self._pg_conn = self.__class__._pool.getconn()
                self._from_pool = True
            else:
                self._pg_conn = psycopg.connect(_database_url(), row_factory=dict_row)
                self._from_pool = False
        except psycopg.Error as e:
            logger.error(f'Could not connect to Postgres: {e}')
            raise StorageError('The database is unreachable right now.') from e

    def _release(self) -> None:
        conn, self._pg_conn = self._pg_conn, None
        if conn is None:
            return
        if self._from_pool and self.__class__._pool is not None:
            # A broken connection is discarded by the pool on put
            self.__class__._pool.putconn(conn)
        else:
            conn.close()
        self._from_pool = False

    def __enter__(self) -> 'DBManager':
        self._acquire()
        self._connected = True
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self._connected:
            return
        try:
            assert self._pg_conn is not None
            if exc_type is None:
                self._pg_conn.commit()
            else:
                self._pg_conn.rollback()
        except psycopg.Error as e:
            logger.error(f'Postgres commit/rollback failed: {e}')
            if exc_type is None:
                raise StorageError('Could not save changes.') from e
        finally:
            self._release()
            self._connected = False

    def _reconnect(self) -> None:
        try:
            self._release()
        except psycopg.Error as e:
            logger.warning(f'Error while dropping a broken connection: {e}')
        self._acquire()

    def _run_with_retry(self, fn: Callable[[], T]) -> T:
        '''A dropped connection gets one reconnect and one retry.'''
        try:
            return fn()
        except (psycopg.OperationalError, psycopg.InterfaceError) as e:
            logger.warning(f'Lost the Postgres connection ({e}); retrying once')
            self._reconnect()
            return fn()

    def _run(self, query: str, params: Iterable[Any] | None) -> List[dict[str, Any]]:
        assert self._pg_conn is not None
        with self._pg_conn.cursor() as cur:
            cur.execute(query, tuple(params or ()))
            # DDL and plain UPDATE/DELETE have no result set
            return cur.fetchall() if cur.description else []

    def _query(self, query: str, params: Iterable[Any] | None) -> List[dict[str, Any]]:
        try:
            return self._run_with_retry(lambda: self._run(query, params))
        except psycopg.Error as e:
            logger.error(f'Postgres error: {e}\nQuery: {query}\nParams: {params}')
            reading = query.lstrip().upper().startswith('SELECT')
            raise StorageError(
                'Could not load data.' if reading else 'Could not save changes.'
            ) from e

    @require_connection
    def execute(self, query: str, params: Iterable[Any] | None = None) -> None:
        self._query(query, params)

    @require_connection
    def fetchall(
        self, query: str, params: Iterable[Any] | None = None
    ) -> List[dict[str, Any]]:
        '''Rows as dicts; also used for INSERT/UPDATE ... RETURNING.'''
        return self._query(query, params)

    @require_connection
    def fetchone(
        self, query: str, params: Iterable[Any] | None = None
    ) -> Optional[dict[str, Any]]:
        rows = self._query(query, params)
        return rows[0] if rows else None
