"""
Database Module for playerdata - Base Components
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Connection pool, error types and the base class shared by all data sources.

:copyright: (c) 2026-present the playerdata authors
"""

import asyncio
import functools
import itertools
import mariadb
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from playerdata.database.config import SourceDatabaseConfig
from playerdata.database.models import Player, PlayerRecord
from playerdata.logging_config import DatabaseLogger, get_logger, log_async_function_call

R = TypeVar('R', bound=PlayerRecord)
T = TypeVar('T')

logger = get_logger('playerdata.data_sources')


class DatabaseError(Exception):
    """Base exception for database operations."""
    pass


class DatabaseConnectionError(DatabaseError):
    """The store is unreachable, rejected our credentials, or a connection broke."""
    pass


class QueryError(DatabaseError):
    """The store refused to run a query."""
    pass


class DecodingError(DatabaseError):
    """A row could not be turned into a record."""

    def __init__(self, message: str, column: Optional[str] = None, row_index: Optional[int] = None):
        self.message = message
        self.column = column
        self.row_index = row_index
        super().__init__(str(self))

    def __str__(self):
        location = []
        if self.row_index is not None:
            location.append(f"row {self.row_index}")
        if self.column is not None:
            location.append(f"column '{self.column}'")
        if location:
            return f"{self.message} ({', '.join(location)})"
        return self.message


def translate_driver_error(error: mariadb.Error) -> DatabaseError:
    """Map a connector exception onto our error taxonomy."""
    if isinstance(error, (mariadb.OperationalError, mariadb.InterfaceError, mariadb.PoolError)):
        return DatabaseConnectionError(f"Database connection failed: {error}")
    return QueryError(f"Query execution failed: {error}")


class DatabaseConnection:
    """
    Manages the connection pool to the player database.

    The pool holds at most ``MAX_CONNECTIONS`` connections. Blocking driver
    calls are pushed to the event loop's default executor, and a semaphore
    makes extra callers wait for a free connection instead of failing.
    """

    MAX_CONNECTIONS = 5
    _pool_ids = itertools.count(1)

    def __init__(self, config: SourceDatabaseConfig, pool_name: Optional[str] = None):
        self.config = config
        self.db_logger = DatabaseLogger()
        self.logger = self.db_logger.logger
        # mariadb refuses two pools with the same name in one process
        self.pool_name = pool_name or f"playerdata_{next(self._pool_ids)}"
        self.pool = None
        self._slots = asyncio.Semaphore(self.MAX_CONNECTIONS)

    @classmethod
    async def create(cls, config: SourceDatabaseConfig, pool_name: Optional[str] = None) -> 'DatabaseConnection':
        """
        Open a pool to the configured database.

        Raises:
            DatabaseConnectionError: the host is unreachable, the credentials
                are rejected or the database does not exist
        """
        connection = cls(config, pool_name)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, connection.open)
        return connection

    def open(self) -> None:
        """Create the underlying pool. Blocks until all connections are up."""
        if self.pool is not None:
            return

        self.db_logger.log_connection(f"opening pool '{self.pool_name}' to {self.config.uri}")
        try:
            self.pool = mariadb.ConnectionPool(
                pool_name=self.pool_name,
                pool_size=self.MAX_CONNECTIONS,
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password,
                database=self.config.database_name,
            )
        except mariadb.Error as e:
            self.db_logger.log_error("open", e)
            raise DatabaseConnectionError(f"Could not connect to {self.config.uri}: {e}") from e

        self.logger.info(f"Connected to {self.config.uri} (pool size {self.MAX_CONNECTIONS})")

    def close(self) -> None:
        """Close every pooled connection. Safe to call more than once."""
        if self.pool is None:
            return

        pool, self.pool = self.pool, None
        try:
            pool.close()
            self.db_logger.log_connection(f"closed pool '{self.pool_name}'")
        except mariadb.Error as e:
            self.db_logger.log_error("close", e)
            raise translate_driver_error(e) from e

    @property
    def is_open(self) -> bool:
        return self.pool is not None

    @contextmanager
    def get_connection(self):
        """Context manager for a pooled connection."""
        if self.pool is None:
            self.logger.error("Database error in get_connection: connection pool is not open")
            raise DatabaseConnectionError("Connection pool is not open")

        conn = None
        try:
            conn = self.pool.get_connection()
            if conn is None:
                raise mariadb.PoolError("No connection available in pool")
            yield conn
        except mariadb.Error as e:
            self.db_logger.log_error("get_connection", e)
            raise translate_driver_error(e) from e
        finally:
            if conn:
                # returns the connection to the pool
                conn.close()

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking database call without stalling the event loop."""
        async with self._slots:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, functools.partial(func, *args))

    def _ping(self) -> bool:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("SELECT 1")
                cursor.fetchall()
            finally:
                cursor.close()
        return True

    async def health_check(self) -> bool:
        """Check database connection health."""
        try:
            return await self.run(self._ping)
        except DatabaseError:
            return False


class BaseDataSource(ABC, Generic[R]):
    """
    Base class for all player statistics data sources.

    Each subclass reads one metric column from the ``playerdata`` table and
    turns every row into one typed record. A fetch is all-or-nothing: if
    any row fails to decode, no records are returned.
    """

    table = 'playerdata'
    column: str = ''

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = db_connection.logger

    @property
    def query(self) -> str:
        return f"SELECT name, uuid, {self.column} FROM {self.table}"

    @abstractmethod
    def to_record(self, player: Player, value: Any) -> R:
        """Coerce the raw metric value and build the record."""
        pass

    @log_async_function_call(logger)
    async def fetch(self) -> List[R]:
        """Fetch one record per row of the ``playerdata`` table, in store order."""
        rows = await self.db.run(self._fetch_all, self.query)
        records = [self._project(index, row) for index, row in enumerate(rows)]
        self.logger.debug(f"{type(self).__name__} produced {len(records)} records")
        return records

    def _fetch_all(self, query: str) -> List[Dict[str, Any]]:
        """Execute the query on a pooled connection and return every row."""
        self.db.db_logger.log_query(query)
        with self.db.get_connection() as conn:
            cursor = conn.cursor(dictionary=True)
            try:
                cursor.execute(query)
                results = cursor.fetchall()
            finally:
                cursor.close()
        self.logger.debug(f"Fetch all query executed, returned {len(results)} rows")
        return results

    def _project(self, index: int, row: Dict[str, Any]) -> R:
        try:
            player = Player(
                uuid=self._text(row, 'uuid', index),
                last_known_name=self._text(row, 'name', index),
            )
            return self.to_record(player, self._value(row, self.column, index))
        except DecodingError as e:
            if e.column is None:
                e.column = self.column
            e.row_index = index
            self.db.db_logger.log_error(f"{type(self).__name__}.fetch", e)
            raise

    def _value(self, row: Dict[str, Any], column: str, index: int) -> Any:
        if column not in row:
            raise DecodingError("column missing from result set", column, index)
        value = row[column]
        if value is None:
            raise DecodingError("unexpected NULL", column, index)
        return value

    def _text(self, row: Dict[str, Any], column: str, index: int) -> str:
        value = self._value(row, column, index)
        if not isinstance(value, str):
            raise DecodingError(f"expected text, got {type(value).__name__}", column, index)
        return value
