"""SQL statement rendering shared by the SQL sources.

Identifiers are always double-quoted so collection and field names keep their
exact case and never clash with reserved words (``order``, ``group``,
``user``). Read columns are qualified with their owning collection and
aliased back to the field's output name, e.g.::

    "people"."name" AS "name"
"""

from typing import Any

from modelforge.core.types import Aggregator, get_storage_type
from modelforge.persistence.source import JOIN_LEFT, ORDER_DESC, Join
from modelforge.schema.fields import Field
from modelforge.schema.filters import Filter, FilterGroup, FilterNode, FilterRule


def quote(name: str) -> str:
    """Return a double-quoted identifier.

    Example: quote("firstName") → '"firstName"'
    """
    return '"' + name.replace('"', '""') + '"'


_AGGREGATE_SQL = {
    Aggregator.COUNT: "COUNT",
    Aggregator.SUM: "SUM",
    Aggregator.MIN: "MIN",
    Aggregator.MAX: "MAX",
}


class StatementBuilder:
    """Renders parameterized SQL for one dialect.

    Args:
        placeholder: Bound parameter marker ("?" for SQLite, "%s" for psycopg)
        serial: Column definition for a generated integer primary key
        unbounded: LIMIT keyword value meaning "no limit" (needed when only
            an OFFSET is given)
        types: Optional storage type translation (SQLite type -> dialect type)
    """

    def __init__(
        self,
        placeholder: str = "?",
        serial: str = "INTEGER PRIMARY KEY AUTOINCREMENT",
        unbounded: str = "-1",
        types: dict[str, str] | None = None,
    ):
        self.placeholder = placeholder
        self.serial = serial
        self.unbounded = unbounded
        self.types = types or {}

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def column(self, field: Field) -> str:
        if field.collection:
            return f"{quote(field.collection)}.{quote(field.name)}"
        return quote(field.name)

    def select_column(self, field: Field) -> str:
        expression = self.column(field)
        if field.aggregator is not None:
            expression = f"{_AGGREGATE_SQL[Aggregator(field.aggregator)]}({expression})"
        return f"{expression} AS {quote(field.output_name)}"

    # ------------------------------------------------------------------
    # Conditions
    # ------------------------------------------------------------------

    def condition(self, node: FilterNode) -> str:
        """Render one filter or group; empty string when it binds nothing."""
        if isinstance(node, FilterGroup):
            parts = [self.condition(child) for child in node.filters]
            parts = [part for part in parts if part]
            if not parts:
                return ""
            operator = f" {node.operator.upper()} "
            return f"({operator.join(parts)})"
        return self._filter_condition(node)

    def _filter_condition(self, node: Filter) -> str:
        if node.unconstrained:
            return ""

        column = self.column(node.field)
        p = self.placeholder
        rule = FilterRule(node.rule)

        if rule == FilterRule.EQUAL:
            return f"{column} = {p}"
        if rule == FilterRule.NOT_EQUAL:
            return f"{column} <> {p}"
        if rule == FilterRule.BLANK:
            return f"{column} IS NULL"
        if rule == FilterRule.IN:
            if not node.value:
                return "1 = 0"
            placeholders = ", ".join(p for _ in node.value)
            return f"{column} IN ({placeholders})"
        if rule == FilterRule.LIKE:
            return f"{column} LIKE {p}"
        if rule == FilterRule.BETWEEN:
            return f"{column} BETWEEN {p} AND {p}"
        if rule == FilterRule.GREATER:
            return f"{column} > {p}"
        if rule == FilterRule.LESS:
            return f"{column} < {p}"

        raise ValueError(f"Unsupported filter rule: {rule}")

    def where(self, filters: list[FilterNode]) -> str:
        conditions = [self.condition(node) for node in filters]
        conditions = [c for c in conditions if c]
        if not conditions:
            return ""
        return f" WHERE {' AND '.join(conditions)}"

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def insert(
        self, collection: str, fields: list[Field], returning: str | None = None
    ) -> str:
        table = quote(collection)
        if fields:
            columns = ", ".join(quote(f.name) for f in fields)
            placeholders = ", ".join(self.placeholder for _ in fields)
            sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"
        if returning:
            sql += f" RETURNING {quote(returning)}"
        return sql

    def select(
        self,
        collection: str,
        fields: list[Field],
        joins: list[Join],
        filters: list[FilterNode],
        order: Any = (),
        limit: int | None = None,
        offset: int = 0,
        group: Any = (),
    ) -> str:
        if fields:
            columns = ", ".join(self.select_column(f) for f in fields)
        else:
            columns = f"{quote(collection)}.*"

        sql = f"SELECT {columns} FROM {quote(collection)}"
        for join in joins:
            keyword = "LEFT JOIN" if join.kind == JOIN_LEFT else "INNER JOIN"
            sql += (
                f" {keyword} {quote(join.collection)}"
                f" ON {quote(join.collection)}.{quote(join.referenced)}"
                f" = {quote(join.source)}.{quote(join.references)}"
            )

        sql += self.where(filters)

        if group:
            sql += " GROUP BY " + ", ".join(self.column(f) for f in group)

        if order:
            parts = []
            for field, direction in order:
                keyword = "DESC" if direction == ORDER_DESC else "ASC"
                parts.append(f"{self.column(field)} {keyword}")
            sql += " ORDER BY " + ", ".join(parts)

        if limit is not None:
            sql += f" LIMIT {int(limit)}"
            if offset:
                sql += f" OFFSET {int(offset)}"
        elif offset:
            sql += f" LIMIT {self.unbounded} OFFSET {int(offset)}"

        return sql

    def update(
        self, collection: str, fields: list[Field], filters: list[FilterNode]
    ) -> str:
        assignments = ", ".join(f"{quote(f.name)} = {self.placeholder}" for f in fields)
        return f"UPDATE {quote(collection)} SET {assignments}{self.where(filters)}"

    def delete(self, collection: str, filters: list[FilterNode]) -> str:
        return f"DELETE FROM {quote(collection)}{self.where(filters)}"

    def create_table(
        self, collection: str, fields: list[Field], primary_key: str | None
    ) -> str:
        columns = []
        for field in fields:
            if field.name == primary_key:
                columns.append(f"{quote(field.name)} {self.serial}")
                continue
            storage_type = get_storage_type(field.type)
            storage_type = self.types.get(storage_type, storage_type)
            columns.append(f"{quote(field.name)} {storage_type}")
        return f"CREATE TABLE IF NOT EXISTS {quote(collection)} ({', '.join(columns)})"
