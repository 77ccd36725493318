"""PostgreSQL persistence source.

Uses psycopg v3 (psycopg[binary]>=3.1.0) for database access.
Mirrors SQLiteSource method-for-method with PostgreSQL-specific SQL:
  - %s placeholders instead of ?
  - SERIAL primary keys and INSERT ... RETURNING for generated ids
  - dict_row cursor factory for dict-based row access

Identifier quoting strategy
----------------------------
PostgreSQL folds unquoted identifiers to lowercase. Field names such as
``_createdAt`` or ``firstName`` and reserved words such as ``user``,
``order`` and ``group`` are therefore always double-quoted, and every
selected column is aliased back to its field name so dict_row yields the
original keys.
"""

from __future__ import annotations

import logging
from typing import Any

from modelforge.persistence.source import Join
from modelforge.persistence.statements import StatementBuilder
from modelforge.schema.fields import Field
from modelforge.schema.filters import FilterNode

logger = logging.getLogger(__name__)

# SQLite storage types -> PostgreSQL equivalents
PG_TYPES: dict[str, str] = {
    "TEXT": "TEXT",
    "INTEGER": "INTEGER",
    "REAL": "DOUBLE PRECISION",
    "NUMERIC": "NUMERIC",
    "BLOB": "BYTEA",
}


class PostgreSQLSource:
    """PostgreSQL persistence source using psycopg v3."""

    def __init__(self, url: str):
        # psycopg.connect() wants a plain libpq DSN or postgres:// URL,
        # so strip the +psycopg driver suffix when present.
        self.url = url.replace("postgresql+psycopg://", "postgresql://")
        self.conn: Any = None
        self.statements = StatementBuilder(
            placeholder="%s",
            serial="SERIAL PRIMARY KEY",
            unbounded="ALL",
            types=PG_TYPES,
        )

    def connect(self) -> None:
        """Establish database connection."""
        import psycopg
        from psycopg.rows import dict_row

        self.conn = psycopg.connect(self.url, row_factory=dict_row)
        self.conn.autocommit = False

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
        """Insert a row and return the generated primary key (if any)."""
        sql = self.statements.insert(collection, fields, returning=primary_key)
        cursor = self._execute(sql, values)
        row = cursor.fetchone() if primary_key else None
        self._connection().commit()
        if row is None:
            return None
        return row[primary_key]

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

    def rollback(self) -> None:
        """Roll back the current transaction."""
        self._connection().rollback()

    def _connection(self) -> Any:
        if not self.conn:
            raise RuntimeError("Database not connected")
        return self.conn

    def _execute(self, sql: str, values: list[Any]) -> Any:
        logger.debug("SQL: %s %s", sql, values)
        conn = self._connection()
        try:
            return conn.execute(sql, values)
        except Exception:
            # A failed statement aborts the transaction for every later one.
            logger.warning("SQL failed, rolling back: %s", sql)
            conn.rollback()
            raise
