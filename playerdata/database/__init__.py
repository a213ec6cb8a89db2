"""
Database Module for playerdata
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Read-only access to the game server's player statistics.

:copyright: (c) 2026-present the playerdata authors
"""

__title__ = 'playerdata database'
__version__ = '0.1.0'
__copyright__ = 'Copyright 2026-present the playerdata authors'

from .database import SourceDatabase
from .base import (
    DatabaseError, DatabaseConnectionError, QueryError, DecodingError,
    DatabaseConnection, BaseDataSource
)
from .config import SourceDatabaseConfig
from .data_sources import (
    LastQuitDataSource, BreakCountDataSource, BuildCountDataSource,
    PlayTicksDataSource, VoteCountDataSource,
    last_quit_data_source, break_count_data_source, build_count_data_source,
    play_ticks_data_source, vote_count_data_source
)
from .models import (
    Player, PlayerRecord, PlayerLastQuit, PlayerBreakCount, PlayerBuildCount,
    PlayerPlayTicks, PlayerVoteCount
)

__all__ = [
    'SourceDatabase',
    'SourceDatabaseConfig',
    'DatabaseError',
    'DatabaseConnectionError',
    'QueryError',
    'DecodingError',
    'DatabaseConnection',
    'BaseDataSource',
    'LastQuitDataSource',
    'BreakCountDataSource',
    'BuildCountDataSource',
    'PlayTicksDataSource',
    'VoteCountDataSource',
    'last_quit_data_source',
    'break_count_data_source',
    'build_count_data_source',
    'play_ticks_data_source',
    'vote_count_data_source',
    'Player',
    'PlayerRecord',
    'PlayerLastQuit',
    'PlayerBreakCount',
    'PlayerBuildCount',
    'PlayerPlayTicks',
    'PlayerVoteCount',
]
