"""
Database Module for playerdata - Records
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Typed records produced by the player statistics data sources.

:copyright: (c) 2026-present the playerdata authors
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass(frozen=True)
class Player:
    """A player as last observed by the game server."""
    uuid: str
    last_known_name: str


@dataclass(frozen=True)
class PlayerRecord:
    """Base for all per-player statistics records."""
    player: Player

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready nested dict of this record."""
        return asdict(self)


@dataclass(frozen=True)
class PlayerLastQuit(PlayerRecord):
    rfc_3339_date_time: str


@dataclass(frozen=True)
class PlayerBreakCount(PlayerRecord):
    break_count: int


@dataclass(frozen=True)
class PlayerBuildCount(PlayerRecord):
    build_count: int


@dataclass(frozen=True)
class PlayerPlayTicks(PlayerRecord):
    play_ticks: int


@dataclass(frozen=True)
class PlayerVoteCount(PlayerRecord):
    vote_count: int
