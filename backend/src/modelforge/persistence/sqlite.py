"""SQLite persistence source."""

import logging
import sqlite3
from pathlib import Path
from typing import Any

from modelforge.persistence.source import Join
from modelforge.persistence.statements import StatementBuilder
from modelforge.schema.fields import Field
from modelforge.schema.filters import FilterNode

logger = logging.getLogger(__name__)


class SQLiteSource:
    """Simple SQLite persistence source."""

    def __init__(self, db_path: Path | str = ":memory:"):
        self.db_path = str(db_path)
        self.conn: sqlite3.Connection | None = None
        self.statements = StatementBuilder(
            placeholder="?",
            serial="INTEGER PRIMARY KEY AUTOINCREMENT",
            unbounded="-1",
        )

    def connect(self) -> None:
        """Establish database connection."""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def initialize(self, model: Any) -> None:
        """Create the model's table (and its parents' tables) if missing."""
        for parent in model.get_parents().values():
            self.initialize(parent)

        sql = self.statements.create_table(
            model.get_collection(),
            model.get_fields(None, strict=True),
            model.get_primary_key(),
        )
        self._execute(sql, [])
        self._connection().commit()

    def register(
        self,
        collection: str,
        fields: list[Field],
        values: list[Any],
        primary_key: str | None = None,
    ) -> Any:
        """Insert a row and return the generated rowid."""
        sql = self.statements.insert(collection, fields)
        cursor = self._execute(sql, values)
        self._connection().commit()
        return cursor.lastrowid

    def recover(
        self,
        collection: str,
        fields: list[Field],
        joins: list[Join],
        filters: list[FilterNode],
        values: list[Any],
        order: Any = (),
        limit: int | None = None,
        offset: int = 0,
        group: Any = (),
    ) -> list[dict[str, Any]]:
        sql = self.statements.select(
            collection, fields, joins, filters, order, limit, offset, group
        )
        cursor = self._execute(sql, values)
        return [dict(row) for row in cursor.fetchall()]

    def change(
        self,
        collection: str,
        fields: list[Field],
        values: list[Any],
        filters: list[FilterNode],
        filter_values: list[Any],
    ) -> bool:
        sql = self.statements.update(collection, fields, filters)
        cursor = self._execute(sql, [*values, *filter_values])
        self._connection().commit()
        return cursor.rowcount > 0

    def remove(
        self,
        collection: str,
        filters: list[FilterNode],
        filter_values: list[Any],
    ) -> bool:
        sql = self.statements.delete(collection, filters)
        cursor = self._execute(sql, filter_values)
        self._connection().commit()
        return cursor.rowcount > 0

    def _connection(self) -> sqlite3.Connection:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    def _execute(self, sql: str, values: list[Any]) -> sqlite3.Cursor:
        logger.debug("SQL: %s %s", sql, values)
        return self._connection().execute(sql, values)
