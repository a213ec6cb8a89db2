"""
Pytest configuration for playerdata tests.

The mariadb driver is replaced by in-memory fakes, so no database server
is needed.
"""

import os
import tempfile
import threading
import time

# Must be set before playerdata.logging_config configures the file handlers
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='playerdata-logs-'))

import mariadb  # noqa: E402
import pytest  # noqa: E402

from playerdata.database import DatabaseConnection, SourceDatabaseConfig  # noqa: E402


class FakeCursor:
    def __init__(self, pool, dictionary):
        self.pool = pool
        self.dictionary = dictionary
        self.closed = False
        self._rows = []

    def execute(self, query, params=()):
        self.pool.queries.append(query)
        if self.pool.execute_error is not None:
            raise self.pool.execute_error
        delay = self.pool.delay_for(query)
        if delay:
            time.sleep(delay)
        if query == 'SELECT 1':
            self._rows = [(1,)]
        else:
            self._rows = [dict(row) for row in self.pool.rows]

    def fetchall(self):
        return self._rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, pool):
        self.pool = pool
        self.cursors = []

    def cursor(self, dictionary=False):
        cursor = FakeCursor(self.pool, dictionary)
        self.cursors.append(cursor)
        return cursor

    def close(self):
        self.pool.release()


class FakePool:
    """Stands in for mariadb.ConnectionPool; fails like it does when exhausted."""

    def __init__(self, rows=(), pool_size=5, delay=0.0, execute_error=None, **kwargs):
        self.rows = list(rows)
        self.pool_size = pool_size
        self.delay = delay
        self.execute_error = execute_error
        self.kwargs = kwargs
        self.queries = []
        self.in_use = 0
        self.peak = 0
        self.closed = False
        self.in_use_at_close = None
        self._lock = threading.Lock()

    def get_connection(self):
        with self._lock:
            if self.in_use >= self.pool_size:
                raise mariadb.PoolError('No connection available')
            self.in_use += 1
            self.peak = max(self.peak, self.in_use)
        return FakeConnection(self)

    def delay_for(self, query):
        return self.delay(query) if callable(self.delay) else self.delay

    def release(self):
        with self._lock:
            self.in_use -= 1

    def close(self):
        self.in_use_at_close = self.in_use
        self.closed = True


def make_row(uuid='069a79f4-44e9-4726-a5be-fca90e38aaf5', name='Notch', **metrics):
    return {'uuid': uuid, 'name': name, **metrics}


@pytest.fixture
def config():
    return SourceDatabaseConfig(
        host='db.example.internal',
        port=3306,
        user='seichi',
        password='hunter2',
        database_name='seichiassist',
    )


@pytest.fixture
def fake_pool():
    return FakePool()


@pytest.fixture
def connection(config, fake_pool):
    """A DatabaseConnection already bound to a fake pool."""
    conn = DatabaseConnection(config)
    conn.pool = fake_pool
    return conn
