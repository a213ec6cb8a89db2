"""
Tests for the player statistics data sources.
"""

import asyncio
from datetime import datetime

import mariadb
import pytest

from conftest import FakePool, make_row
from playerdata.database import (
    BreakCountDataSource, BuildCountDataSource, DatabaseConnectionError,
    DecodingError, LastQuitDataSource, Player, PlayerBreakCount,
    PlayerBuildCount, PlayerLastQuit, PlayerPlayTicks, PlayerVoteCount,
    PlayTicksDataSource, QueryError, VoteCountDataSource,
    break_count_data_source, build_count_data_source, last_quit_data_source,
    play_ticks_data_source, vote_count_data_source
)

pytestmark = pytest.mark.asyncio

NOTCH = Player(uuid='069a79f4-44e9-4726-a5be-fca90e38aaf5', last_known_name='Notch')
JEB = Player(uuid='853c80ef-3c37-49fd-aa49-938b674adae6', last_known_name='jeb_')


def rows_for(column, *values):
    players = [NOTCH, JEB]
    return [
        make_row(uuid=players[i].uuid, name=players[i].last_known_name, **{column: value})
        for i, value in enumerate(values)
    ]


class TestQueries:

    @pytest.mark.parametrize('source_cls,column', [
        (LastQuitDataSource, 'lastquit'),
        (BreakCountDataSource, 'totalbreaknum'),
        (BuildCountDataSource, 'build_count'),
        (PlayTicksDataSource, 'playtick'),
        (VoteCountDataSource, 'p_vote'),
    ])
    async def test_selects_name_uuid_and_metric(self, connection, fake_pool, source_cls, column):
        await source_cls(connection).fetch()
        assert fake_pool.queries == [f'SELECT name, uuid, {column} FROM playerdata']

    async def test_uses_dictionary_cursor_and_releases_it(self, connection, fake_pool):
        seen = []
        original = fake_pool.get_connection

        def tracking_get_connection():
            conn = original()
            seen.append(conn)
            return conn

        fake_pool.get_connection = tracking_get_connection
        await VoteCountDataSource(connection).fetch()

        cursor = seen[0].cursors[0]
        assert cursor.dictionary is True
        assert cursor.closed
        assert fake_pool.in_use == 0

    async def test_empty_table_gives_empty_list(self, connection):
        assert await BreakCountDataSource(connection).fetch() == []


class TestRecords:

    async def test_last_quit(self, connection, fake_pool):
        fake_pool.rows = rows_for('lastquit', datetime(2023, 4, 1, 12, 30, 5), datetime(2020, 1, 1))
        records = await LastQuitDataSource(connection).fetch()
        assert records == [
            PlayerLastQuit(player=NOTCH, rfc_3339_date_time='2023-04-01T12:30:05+00:00'),
            PlayerLastQuit(player=JEB, rfc_3339_date_time='2020-01-01T00:00:00+00:00'),
        ]

    async def test_break_count(self, connection, fake_pool):
        fake_pool.rows = rows_for('totalbreaknum', 9876543210, 0)
        records = await BreakCountDataSource(connection).fetch()
        assert records == [
            PlayerBreakCount(player=NOTCH, break_count=9876543210),
            PlayerBreakCount(player=JEB, break_count=0),
        ]

    async def test_build_count_is_rounded(self, connection, fake_pool):
        fake_pool.rows = rows_for('build_count', 41.4, 41.5)
        records = await BuildCountDataSource(connection).fetch()
        assert records == [
            PlayerBuildCount(player=NOTCH, build_count=41),
            PlayerBuildCount(player=JEB, build_count=42),
        ]

    async def test_play_ticks(self, connection, fake_pool):
        fake_pool.rows = rows_for('playtick', 12345, 2**31 - 1)
        records = await PlayTicksDataSource(connection).fetch()
        assert records == [
            PlayerPlayTicks(player=NOTCH, play_ticks=12345),
            PlayerPlayTicks(player=JEB, play_ticks=2**31 - 1),
        ]

    async def test_vote_count_negative_wraps(self, connection, fake_pool):
        fake_pool.rows = rows_for('p_vote', 12345, -1)
        records = await VoteCountDataSource(connection).fetch()
        assert records == [
            PlayerVoteCount(player=NOTCH, vote_count=12345),
            PlayerVoteCount(player=JEB, vote_count=18446744073709551615),
        ]

    async def test_keeps_store_order_and_length(self, connection, fake_pool):
        fake_pool.rows = [
            make_row(uuid=f'uuid-{i}', name=f'player{i}', p_vote=i) for i in range(50)
        ]
        records = await VoteCountDataSource(connection).fetch()
        assert [(r.player.uuid, r.player.last_known_name) for r in records] == [
            (f'uuid-{i}', f'player{i}') for i in range(50)
        ]

    async def test_uuid_format_is_not_validated(self, connection, fake_pool):
        fake_pool.rows = [make_row(uuid='not-a-uuid', name='Steve', p_vote=1)]
        records = await VoteCountDataSource(connection).fetch()
        assert records[0].player.uuid == 'not-a-uuid'

    async def test_repeated_fetches_give_fresh_equal_records(self, connection, fake_pool):
        fake_pool.rows = rows_for('p_vote', 3)
        source = VoteCountDataSource(connection)
        first = await source.fetch()
        second = await source.fetch()
        assert first == second
        assert first is not second


class TestFailures:

    async def test_missing_uuid_column_fails_whole_fetch(self, connection, fake_pool):
        fake_pool.rows = rows_for('p_vote', 1, 2)
        del fake_pool.rows[1]['uuid']

        with pytest.raises(DecodingError) as excinfo:
            await VoteCountDataSource(connection).fetch()
        assert excinfo.value.column == 'uuid'
        assert excinfo.value.row_index == 1

    async def test_missing_metric_column(self, connection, fake_pool):
        fake_pool.rows = [make_row()]
        with pytest.raises(DecodingError, match="column 'playtick'"):
            await PlayTicksDataSource(connection).fetch()

    async def test_null_name(self, connection, fake_pool):
        fake_pool.rows = [make_row(name=None, totalbreaknum=1)]
        with pytest.raises(DecodingError, match='unexpected NULL'):
            await BreakCountDataSource(connection).fetch()

    async def test_null_metric(self, connection, fake_pool):
        fake_pool.rows = [make_row(lastquit=None)]
        with pytest.raises(DecodingError, match="unexpected NULL.*column 'lastquit'"):
            await LastQuitDataSource(connection).fetch()

    async def test_non_numeric_metric_reports_row_and_column(self, connection, fake_pool):
        fake_pool.rows = rows_for('build_count', 1.0, 'lots')
        with pytest.raises(DecodingError) as excinfo:
            await BuildCountDataSource(connection).fetch()
        assert excinfo.value.column == 'build_count'
        assert excinfo.value.row_index == 1
        assert 'expected DOUBLE' in str(excinfo.value)

    async def test_query_error(self, connection, fake_pool):
        fake_pool.execute_error = mariadb.ProgrammingError("Unknown column 'p_vote'")
        with pytest.raises(QueryError):
            await VoteCountDataSource(connection).fetch()

    async def test_connection_error(self, connection, fake_pool):
        fake_pool.execute_error = mariadb.OperationalError('Server has gone away')
        with pytest.raises(DatabaseConnectionError):
            await BreakCountDataSource(connection).fetch()


class TestConcurrency:

    async def test_fetches_beyond_pool_size_are_queued(self, connection):
        pool = FakePool(rows=rows_for('p_vote', 1, 2), delay=0.05)
        connection.pool = pool
        source = VoteCountDataSource(connection)

        results = await asyncio.gather(*(source.fetch() for _ in range(12)))

        assert len(results) == 12
        assert all(len(records) == 2 for records in results)
        assert 1 < pool.peak <= 5
        assert pool.in_use == 0

    async def test_event_loop_keeps_running_during_fetch(self, connection):
        connection.pool = FakePool(rows=rows_for('p_vote', 1), delay=0.2)
        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                ticks += 1
                await asyncio.sleep(0.01)

        task = asyncio.create_task(ticker())
        try:
            await VoteCountDataSource(connection).fetch()
        finally:
            task.cancel()
        assert ticks > 1


class TestFactories:

    @pytest.mark.parametrize('factory,source_cls', [
        (last_quit_data_source, LastQuitDataSource),
        (break_count_data_source, BreakCountDataSource),
        (build_count_data_source, BuildCountDataSource),
        (play_ticks_data_source, PlayTicksDataSource),
        (vote_count_data_source, VoteCountDataSource),
    ])
    async def test_factory_opens_own_pool(self, config, monkeypatch, factory, source_cls):
        pools = []

        def make_pool(**kwargs):
            pools.append(FakePool(**kwargs))
            return pools[-1]

        monkeypatch.setattr(mariadb, 'ConnectionPool', make_pool)

        source = await factory(config)

        assert isinstance(source, source_cls)
        assert source.db.pool is pools[0]
        assert pools[0].pool_size == 5

    async def test_factory_propagates_connection_error(self, config, monkeypatch):
        def make_pool(**kwargs):
            raise mariadb.OperationalError("Can't connect")

        monkeypatch.setattr(mariadb, 'ConnectionPool', make_pool)

        with pytest.raises(DatabaseConnectionError):
            await vote_count_data_source(config)
