"""Tests for SQL rendering, the SQLite source and source configuration."""

import pytest

from modelforge.core.types import Aggregator
from modelforge.persistence import DatabaseConfig, Join, Source, create_source, open_source
from modelforge.persistence.postgresql import PostgreSQLSource
from modelforge.persistence.source import JOIN_LEFT, ORDER_DESC
from modelforge.persistence.sqlite import SQLiteSource
from modelforge.persistence.statements import StatementBuilder, quote
from modelforge.schema.fields import Field
from modelforge.schema.filters import Filter, FilterGroup, FilterRule
from sample_models import Person


@pytest.fixture
def builder():
    return StatementBuilder()


@pytest.fixture
def name():
    return Field(name="name", collection="people")


@pytest.fixture
def age():
    return Field(name="age", collection="people", type="integer")


# =============================================================================
# Statement rendering
# =============================================================================


class TestQuote:
    def test_quote(self):
        assert quote("firstName") == '"firstName"'

    def test_quote_escapes(self):
        assert quote('a"b') == '"a""b"'


class TestConditions:
    @pytest.mark.parametrize(
        "rule, value, expected",
        [
            (FilterRule.EQUAL, "Ann", '"people"."name" = ?'),
            (FilterRule.NOT_EQUAL, "Ann", '"people"."name" <> ?'),
            (FilterRule.BLANK, None, '"people"."name" IS NULL'),
            (FilterRule.IN, ["a", "b"], '"people"."name" IN (?, ?)'),
            (FilterRule.IN, [], "1 = 0"),
            (FilterRule.LIKE, "A%", '"people"."name" LIKE ?'),
            (FilterRule.BETWEEN, ["a", "b"], '"people"."name" BETWEEN ? AND ?'),
            (FilterRule.GREATER, "a", '"people"."name" > ?'),
            (FilterRule.LESS, "a", '"people"."name" < ?'),
        ],
    )
    def test_rules(self, builder, name, rule, value, expected):
        assert builder.condition(Filter.create(name, value, rule)) == expected

    def test_unconstrained_renders_nothing(self, builder, name):
        f = Filter.create(name, None, FilterRule.BLANK, unconstrained=True)
        assert builder.condition(f) == ""
        assert builder.where([f]) == ""

    def test_group(self, builder, name, age):
        group = FilterGroup([Filter.create(name, "Ann"), Filter.create(age, 3)], "or")
        assert builder.condition(group) == '("people"."name" = ? OR "people"."age" = ?)'

    def test_where_joins_with_and(self, builder, name, age):
        where = builder.where([Filter.create(name, "Ann"), Filter.create(age, 3)])
        assert where == ' WHERE "people"."name" = ? AND "people"."age" = ?'


class TestStatements:
    def test_insert(self, builder, name, age):
        assert builder.insert("people", [name, age]) == (
            'INSERT INTO "people" ("name", "age") VALUES (?, ?)'
        )

    def test_insert_default_values_returning(self, builder):
        assert builder.insert("people", [], returning="id") == (
            'INSERT INTO "people" DEFAULT VALUES RETURNING "id"'
        )

    def test_select(self, builder, name):
        join = Join("groups", "id", "people", "group_id", JOIN_LEFT)
        sql = builder.select(
            "people",
            [name],
            [join],
            [Filter.create(name, "Ann")],
            order=[(name, ORDER_DESC)],
            limit=10,
            offset=5,
        )
        assert sql == (
            'SELECT "people"."name" AS "name" FROM "people"'
            ' LEFT JOIN "groups" ON "groups"."id" = "people"."group_id"'
            ' WHERE "people"."name" = ?'
            ' ORDER BY "people"."name" DESC LIMIT 10 OFFSET 5'
        )

    def test_select_aggregate_grouped(self, builder, name, age):
        total = Field(name="age", collection="people", aggregator=Aggregator.SUM, alias="total")
        sql = builder.select("people", [name, total], [], [], group=[name])
        assert sql == (
            'SELECT "people"."name" AS "name", SUM("people"."age") AS "total"'
            ' FROM "people" GROUP BY "people"."name"'
        )

    def test_select_offset_only(self, builder):
        assert builder.select("people", [], [], [], offset=2).endswith("LIMIT -1 OFFSET 2")

    def test_update(self, builder, name, age):
        sql = builder.update("people", [name], [Filter.create(age, 3)])
        assert sql == 'UPDATE "people" SET "name" = ? WHERE "people"."age" = ?'

    def test_delete(self, builder, age):
        assert builder.delete("people", [Filter.create(age, 3)]) == (
            'DELETE FROM "people" WHERE "people"."age" = ?'
        )

    def test_create_table(self, builder, name, age):
        key = Field(name="id", collection="people", type="integer")
        sql = builder.create_table("people", [key, name, age], "id")
        assert sql == (
            'CREATE TABLE IF NOT EXISTS "people" ('
            '"id" INTEGER PRIMARY KEY AUTOINCREMENT, "name" TEXT, "age" INTEGER)'
        )

    def test_postgresql_dialect(self, age):
        pg = PostgreSQLSource("postgresql://localhost/db").statements
        number = Field(name="score", collection="people", type="number")
        key = Field(name="id", collection="people", type="integer")
        assert pg.create_table("people", [key, number], "id") == (
            'CREATE TABLE IF NOT EXISTS "people" ("id" SERIAL PRIMARY KEY, "score" DOUBLE PRECISION)'
        )
        assert pg.condition(Filter.create(age, 3)) == '"people"."age" = %s'
        assert pg.select("people", [], [], [], offset=2).endswith("LIMIT ALL OFFSET 2")


# =============================================================================
# SQLite source
# =============================================================================


class TestSQLiteSource:
    def test_protocol(self, source):
        assert isinstance(source, Source)

    def test_not_connected(self, name):
        with pytest.raises(RuntimeError, match="not connected"):
            SQLiteSource().register("people", [name], ["Ann"])

    def test_close_is_idempotent(self):
        src = SQLiteSource()
        src.connect()
        src.close()
        src.close()
        assert src.conn is None

    def test_crud(self, source, tables, name, age):
        tables(Person)
        first = source.register("people", [name, age], ["Ann", 3])
        source.register("people", [name, age], ["Bob", 4])
        assert first == 1

        rows = source.recover("people", [name], [], [Filter.create(age, 4)], [4])
        assert rows == [{"name": "Bob"}]

        assert source.change("people", [name], ["Anne"], [Filter.create(age, 3)], [3])
        assert not source.change("people", [name], ["X"], [Filter.create(age, 9)], [9])

        assert source.remove("people", [Filter.create(age, 4)], [4])
        assert not source.remove("people", [Filter.create(age, 4)], [4])
        assert source.recover("people", [name, age], [], [], []) == [{"name": "Anne", "age": 3}]

    def test_initialize_creates_parent_tables(self, source, tables):
        from sample_models import Manager

        tables(Manager)
        names = {
            row[0]
            for row in source.conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        assert {"people", "employees", "managers"} <= names

    def test_file_database(self, tmp_path, name):
        db_path = tmp_path / "data.db"
        src = SQLiteSource(db_path)
        src.connect()
        src.conn.execute('CREATE TABLE "people" ("name" TEXT)')
        src.register("people", [name], ["Ann"])
        src.close()

        src.connect()
        assert src.recover("people", [name], [], [], []) == [{"name": "Ann"}]
        src.close()


# =============================================================================
# Configuration
# =============================================================================


class TestDatabaseConfig:
    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("MODELFORGE_DB_PATH", raising=False)

    def test_database_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/db")
        config = DatabaseConfig.from_env()
        assert config.url == "postgresql://u:p@localhost/db"
        assert config.is_postgresql
        assert not config.is_sqlite

    def test_db_path(self, monkeypatch):
        monkeypatch.setenv("MODELFORGE_DB_PATH", "/tmp/x.db")
        assert DatabaseConfig.from_env().url == "sqlite:////tmp/x.db"

    def test_base_path(self, tmp_path):
        config = DatabaseConfig.from_env(tmp_path)
        assert config.url == f"sqlite:///{tmp_path / 'data' / 'modelforge.db'}"

    def test_fallback(self):
        assert DatabaseConfig.from_env().url == "sqlite:///modelforge.db"

    def test_create_sqlite_source(self):
        source = create_source(DatabaseConfig("sqlite:///some.db"))
        assert isinstance(source, SQLiteSource)
        assert source.db_path == "some.db"
        assert source.conn is None

    def test_create_memory_source(self):
        assert create_source(DatabaseConfig("sqlite:///")).db_path == ":memory:"

    def test_create_postgresql_source(self):
        source = create_source(DatabaseConfig("postgresql+psycopg://u@localhost/db"))
        assert isinstance(source, PostgreSQLSource)
        assert source.url == "postgresql://u@localhost/db"

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_source(DatabaseConfig("mysql://localhost/db"))

    @pytest.mark.parametrize(
        "url, scheme",
        [
            ("sqlite:///x.db", "sqlite"),
            ("postgresql://localhost/db", "postgresql"),
            ("postgresql+psycopg://localhost/db", "postgresql"),
            ("postgres://localhost/db", "postgres"),
        ],
    )
    def test_scheme(self, url, scheme):
        assert DatabaseConfig(url).scheme == scheme

    def test_postgres_alias_is_postgresql(self):
        assert DatabaseConfig("postgres://localhost/db").is_postgresql

    def test_sqlite_path(self):
        assert DatabaseConfig("sqlite:////tmp/x.db").sqlite_path == "/tmp/x.db"
        assert DatabaseConfig("sqlite:///").sqlite_path == ":memory:"

    def test_create_source_connects_when_asked(self):
        source = create_source(DatabaseConfig("sqlite:///"), connect=True)
        assert source.conn is not None
        source.close()

    def test_open_source(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MODELFORGE_DB_PATH", str(tmp_path / "engine.db"))
        source = open_source()
        try:
            assert isinstance(source, SQLiteSource)
            assert source.db_path == str(tmp_path / "engine.db")
            assert source.conn is not None
        finally:
            source.close()
