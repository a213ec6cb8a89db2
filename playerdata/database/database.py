"""
Database Module for playerdata - Main Database Class
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Main database interface that provides access to all data sources.

:copyright: (c) 2026-present the playerdata authors
"""

import asyncio
from typing import Dict, Iterable, List, Optional
from playerdata.database.base import BaseDataSource, DatabaseConnection, DatabaseError
from playerdata.database.config import SourceDatabaseConfig
from playerdata.database.data_sources import (
    LastQuitDataSource, BreakCountDataSource, BuildCountDataSource,
    PlayTicksDataSource, VoteCountDataSource
)
from playerdata.database.models import PlayerRecord


class SourceDatabase:
    """
    Main database interface for the player statistics source.

    All data sources share one connection pool.

    Example:
        config = SourceDatabaseConfig.from_env()
        db = await SourceDatabase.connect(config)

        quits = await db.last_quit.fetch()
        snapshot = await db.fetch_snapshot()

        db.close()
    """

    def __init__(self, connection: DatabaseConnection):
        """
        Bind every data source to an already opened connection pool.

        Args:
            connection: Pool shared by all data sources
        """
        self.connection = connection
        self.logger = connection.logger

        self.last_quit = LastQuitDataSource(connection)
        self.break_count = BreakCountDataSource(connection)
        self.build_count = BuildCountDataSource(connection)
        self.play_ticks = PlayTicksDataSource(connection)
        self.vote_count = VoteCountDataSource(connection)

    @classmethod
    async def connect(cls, config: SourceDatabaseConfig) -> 'SourceDatabase':
        """Open the pool and return a ready database."""
        return cls(await DatabaseConnection.create(config))

    @property
    def data_sources(self) -> Dict[str, BaseDataSource]:
        """Data sources keyed by record kind."""
        return {
            'last_quit': self.last_quit,
            'break_count': self.break_count,
            'build_count': self.build_count,
            'play_ticks': self.play_ticks,
            'vote_count': self.vote_count,
        }

    async def health_check(self) -> bool:
        """Check if database connection is healthy."""
        return await self.connection.health_check()

    async def fetch_snapshot(self, kinds: Optional[Iterable[str]] = None) -> Dict[str, List[PlayerRecord]]:
        """
        Fetch several record kinds concurrently.

        Args:
            kinds: Record kinds to fetch, defaults to all of them

        Returns:
            Records keyed by kind, in the order the kinds were given

        Raises:
            KeyError: an unknown kind was requested
            DatabaseError: any of the fetches failed
        """
        sources = self.data_sources
        kinds = list(sources) if kinds is None else list(kinds)
        for kind in kinds:
            if kind not in sources:
                raise KeyError(f"Unknown record kind: {kind}")

        # Let every fetch settle so no query is still holding a connection
        results = await asyncio.gather(
            *(sources[kind].fetch() for kind in kinds), return_exceptions=True
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            raise next((e for e in failures if isinstance(e, DatabaseError)), failures[0])
        snapshot = dict(zip(kinds, results))

        for kind, records in snapshot.items():
            self.logger.info(f"Fetched {len(records)} {kind} records")
        return snapshot

    def close(self) -> None:
        """Close the shared connection pool."""
        self.connection.close()

    async def __aenter__(self) -> 'SourceDatabase':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
