"""
Database Module for playerdata - Configuration
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Connection settings for the game server's player database.

:copyright: (c) 2026-present the playerdata authors
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_PORT = 3306

# config field -> environment variable
ENV_KEYS = {
    'host': 'DB_HOST',
    'port': 'DB_PORT',
    'user': 'DB_USER',
    'password': 'DB_PASS',
    'database_name': 'DB_DATABASE',
}


@dataclass(frozen=True)
class SourceDatabaseConfig:
    """Where the player database lives and how to log in to it."""
    host: str
    port: int
    user: str
    password: str
    database_name: str

    def __post_init__(self):
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f'Port must be an integer, got {self.port!r}')
        if not 0 < self.port < 65536:
            raise ValueError(f'Port out of range: {self.port}')

    @property
    def uri(self) -> str:
        """Connection URI with the password masked, safe to log."""
        return f"mysql://{self.user}:***@{self.host}:{self.port}/{self.database_name}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'SourceDatabaseConfig':
        """
        Build the configuration from environment variables.

        Call ``load_dotenv()`` first if the values live in a ``.env`` file.

        Raises:
            KeyError: a required variable is missing
            ValueError: DB_PORT is not a valid port number
        """
        environ = os.environ if environ is None else environ

        for field in ('host', 'user', 'password', 'database_name'):
            if ENV_KEYS[field] not in environ:
                raise KeyError(f"No {field.replace('_', ' ').title()} provided for DB connection")

        raw_port = environ.get(ENV_KEYS['port']) or DEFAULT_PORT
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"Invalid DB_PORT: {raw_port!r}") from None

        return cls(
            host=environ[ENV_KEYS['host']],
            port=port,
            user=environ[ENV_KEYS['user']],
            password=environ[ENV_KEYS['password']],
            database_name=environ[ENV_KEYS['database_name']],
        )
