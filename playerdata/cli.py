"""
Snapshot command for playerdata.

Fetches player statistics from the game server's database and writes them
out as JSON.
"""

import argparse
import asyncio
import json
import sys
from typing import Dict, List, Optional, Sequence
from dotenv import find_dotenv, load_dotenv

# LOG_LEVEL and LOG_DIR are read when logging is first configured
load_dotenv(find_dotenv(usecwd=True))

from playerdata.database import DatabaseError, SourceDatabase, SourceDatabaseConfig  # noqa: E402
from playerdata.database.models import PlayerRecord  # noqa: E402
from playerdata.logging_config import get_logger  # noqa: E402

logger = get_logger('playerdata.main')

RECORD_KINDS = ['last_quit', 'break_count', 'build_count', 'play_ticks', 'vote_count']


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='playerdata',
        description='Dump player statistics from the game server database as JSON.',
    )
    parser.add_argument(
        '-o', '--output',
        help='File to write the JSON snapshot to (default: stdout)',
    )
    parser.add_argument(
        '-k', '--kind',
        action='append',
        choices=RECORD_KINDS,
        dest='kinds',
        help='Record kind to fetch; repeat for several (default: all)',
    )
    parser.add_argument(
        '--indent',
        type=int,
        default=None,
        help='Indent the JSON output by this many spaces',
    )
    return parser


def serialize_snapshot(snapshot: Dict[str, List[PlayerRecord]], indent: Optional[int] = None) -> str:
    """Render fetched records as a JSON document keyed by record kind."""
    return json.dumps(
        {kind: [record.to_dict() for record in records] for kind, records in snapshot.items()},
        indent=indent,
        ensure_ascii=False,
    )


async def run(config: SourceDatabaseConfig, kinds: Optional[Sequence[str]] = None) -> Dict[str, List[PlayerRecord]]:
    """Connect, fetch the requested kinds and always close the pool."""
    db = await SourceDatabase.connect(config)
    async with db:
        if not await db.health_check():
            logger.warning('Database health check failed, fetching anyway')
        return await db.fetch_snapshot(kinds)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = SourceDatabaseConfig.from_env()
    except (KeyError, ValueError) as e:
        logger.error(f'Configuration error: {e}')
        return 1

    logger.info(f'Fetching player statistics from {config.uri}')

    try:
        snapshot = asyncio.run(run(config, args.kinds))
    except DatabaseError as e:
        # already logged by the database layer
        logger.debug(f'Snapshot failed: {e}')
        return 1

    document = serialize_snapshot(snapshot, args.indent)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(document)
        logger.info(f'Snapshot written to {args.output}')
    else:
        sys.stdout.write(document + '\n')

    return 0
