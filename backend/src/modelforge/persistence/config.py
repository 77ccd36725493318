"""Source selection: database URL resolution and source construction.

    source = open_source()              # DATABASE_URL / MODELFORGE_DB_PATH
    ModelRegistry.configure(source=source)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modelforge.persistence.source import Source

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite:///"
DEFAULT_DB_NAME = "modelforge.db"

_POSTGRESQL_SCHEMES = ("postgresql", "postgres")


@dataclass
class DatabaseConfig:
    """Connection URL of the source models persist to.

    ``sqlite:///path`` (an empty path is an in-memory database) or
    ``postgresql://...`` (an optional ``+psycopg`` driver suffix is accepted).
    """

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """``DATABASE_URL``, else ``MODELFORGE_DB_PATH`` as a SQLite file.

        Without either, the SQLite file is ``base_path/data/modelforge.db``,
        or ``modelforge.db`` in the working directory.
        """
        url = os.environ.get("DATABASE_URL")
        if url:
            return cls(url=url)

        db_path = os.environ.get("MODELFORGE_DB_PATH")
        if not db_path:
            db_path = str(base_path / "data" / DEFAULT_DB_NAME) if base_path else DEFAULT_DB_NAME
        return cls(url=SQLITE_PREFIX + db_path)

    @property
    def scheme(self) -> str:
        return self.url.split(":", 1)[0].split("+", 1)[0].lower()

    @property
    def is_sqlite(self) -> bool:
        return self.scheme == "sqlite"

    @property
    def is_postgresql(self) -> bool:
        return self.scheme in _POSTGRESQL_SCHEMES

    @property
    def sqlite_path(self) -> str:
        return self.url.removeprefix(SQLITE_PREFIX) or ":memory:"


def create_source(config: DatabaseConfig, connect: bool = False) -> Source:
    """Build the source for ``config``'s URL scheme.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_sqlite:
        from modelforge.persistence.sqlite import SQLiteSource

        source: Source = SQLiteSource(config.sqlite_path)
    elif config.is_postgresql:
        from modelforge.persistence.postgresql import PostgreSQLSource

        source = PostgreSQLSource(config.url)
    else:
        raise ValueError(f"Unsupported database URL scheme: {config.url}")

    logger.info("Using %s source", config.scheme)
    if connect:
        source.connect()
    return source


def open_source(base_path: Path | None = None) -> Source:
    """Connected source for the environment's database configuration."""
    return create_source(DatabaseConfig.from_env(base_path), connect=True)
