"""
Database Repositories for playerdata
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

One data source per player statistic stored in the ``playerdata`` table.

The table layout is defined by SeichiAssist's migration
``V1.0.0__Create_static_tables_and_columns.sql``.

:copyright: (c) 2026-present the playerdata authors
"""

from typing import Any
from playerdata.database import coercion
from playerdata.database.base import BaseDataSource, DatabaseConnection
from playerdata.database.config import SourceDatabaseConfig
from playerdata.database.models import (
    Player, PlayerLastQuit, PlayerBreakCount, PlayerBuildCount,
    PlayerPlayTicks, PlayerVoteCount
)


class LastQuitDataSource(BaseDataSource[PlayerLastQuit]):
    """When each player last left the server."""

    column = 'lastquit'

    def to_record(self, player: Player, value: Any) -> PlayerLastQuit:
        # datetime -> str
        return PlayerLastQuit(player=player, rfc_3339_date_time=coercion.datetime_to_rfc3339(value))


class BreakCountDataSource(BaseDataSource[PlayerBreakCount]):
    """Total blocks broken per player."""

    column = 'totalbreaknum'

    def to_record(self, player: Player, value: Any) -> PlayerBreakCount:
        # bigint -> u64
        return PlayerBreakCount(player=player, break_count=coercion.bigint_to_u64(value))


class BuildCountDataSource(BaseDataSource[PlayerBuildCount]):
    """Build count per player. Fractional progress is rounded away."""

    column = 'build_count'

    def to_record(self, player: Player, value: Any) -> PlayerBuildCount:
        # double -> u64
        return PlayerBuildCount(player=player, build_count=coercion.double_to_u64(value))


class PlayTicksDataSource(BaseDataSource[PlayerPlayTicks]):
    """Ticks each player has spent online."""

    column = 'playtick'

    def to_record(self, player: Player, value: Any) -> PlayerPlayTicks:
        # int -> u64
        return PlayerPlayTicks(player=player, play_ticks=coercion.int_to_u64(value))


class VoteCountDataSource(BaseDataSource[PlayerVoteCount]):
    """Number of server-list votes per player."""

    column = 'p_vote'

    def to_record(self, player: Player, value: Any) -> PlayerVoteCount:
        # int -> u64
        return PlayerVoteCount(player=player, vote_count=coercion.int_to_u64(value))


# Standalone constructors, each with a pool of its own

async def last_quit_data_source(config: SourceDatabaseConfig) -> LastQuitDataSource:
    return LastQuitDataSource(await DatabaseConnection.create(config))


async def break_count_data_source(config: SourceDatabaseConfig) -> BreakCountDataSource:
    return BreakCountDataSource(await DatabaseConnection.create(config))


async def build_count_data_source(config: SourceDatabaseConfig) -> BuildCountDataSource:
    return BuildCountDataSource(await DatabaseConnection.create(config))


async def play_ticks_data_source(config: SourceDatabaseConfig) -> PlayTicksDataSource:
    return PlayTicksDataSource(await DatabaseConnection.create(config))


async def vote_count_data_source(config: SourceDatabaseConfig) -> VoteCountDataSource:
    return VoteCountDataSource(await DatabaseConnection.create(config))
