"""Tests for extension chains: parent cascading on writes and joined reads."""

import pytest

from modelforge.core.errors import ConfigurationError, ResourceNotFoundError
from modelforge.model.mapper import Model
from modelforge.model.relationships import read_joins
from modelforge.persistence.source import JOIN_INNER
from sample_models import Employee, Manager, Note, Person


@pytest.fixture
def employees(tables):
    return tables(Employee)


@pytest.fixture
def managers(tables):
    return tables(Manager)


def _stored(source, collection):
    return [dict(row) for row in source.conn.execute(f'SELECT * FROM "{collection}"')]


class TestExtend:
    def test_link_field(self, employees):
        link = employees.get("person_id")
        assert link.type == "integer"
        assert not link.update
        assert link.reference.key == "id"

    def test_parent_fields_imported_read_only(self, employees):
        name = employees.get("name")
        assert name.collection == "people"
        assert not name.create
        assert not name.update
        assert name.source == "person_id"

    def test_own_keys_not_replaced(self, employees):
        assert employees.get("id").collection == "employees"
        assert employees.get("_id").collection == "employees"

    def test_parent_shares_collaborators(self, employees):
        parent = employees.get_parents()["person_id"]
        assert isinstance(parent, Person)
        assert parent.source is employees.source

    def test_requires_relationship(self):
        class Orphan(Model):
            def configure(self):
                self.extend(Person, "")

        with pytest.raises(ConfigurationError):
            Orphan()

    def test_requires_shared_hash_key(self):
        class Scribble(Model):
            def configure(self):
                self.extend(Note, "note_id")

        with pytest.raises(ConfigurationError):
            Scribble()

    def test_read_joins_follow_chain(self, managers):
        joins = read_joins(managers)
        assert [(j.collection, j.referenced, j.source, j.references) for j in joins] == [
            ("employees", "id", "managers", "employee_id"),
            ("people", "id", "employees", "person_id"),
        ]
        assert all(j.kind == JOIN_INNER for j in joins)


class TestParentCreate:
    def test_creates_parent_first(self, employees, source):
        created = employees.create({"name": "Ann", "title": "Engineer"})

        people = _stored(source, "people")
        staff = _stored(source, "employees")
        assert people[0]["name"] == "Ann"
        assert staff[0]["title"] == "Engineer"
        assert staff[0]["person_id"] == people[0]["id"]
        assert created["person_id"] == people[0]["id"]

    def test_shares_hash_key(self, employees, source):
        created = employees.create({"name": "Ann"})
        assert _stored(source, "people")[0]["_id"] == created["_id"]
        assert _stored(source, "employees")[0]["_id"] == created["_id"]

    def test_child_primary_key_wins(self, employees, tables):
        tables(Person).create({"name": "Someone else"})
        created = employees.create({"name": "Ann"})
        assert created["id"] == 1
        assert created["person_id"] == 2

    def test_two_levels(self, managers, source):
        created = managers.create({"name": "Ann", "title": "Lead", "level": 2})

        person = _stored(source, "people")[0]
        employee = _stored(source, "employees")[0]
        manager = _stored(source, "managers")[0]
        assert employee["person_id"] == person["id"]
        assert manager["employee_id"] == employee["id"]
        assert manager["level"] == 2
        assert created["employee_id"] == employee["id"]
        assert len({person["_id"], employee["_id"], manager["_id"]}) == 1


class TestParentRead:
    def test_read_includes_parent_fields(self, employees):
        employees.create({"name": "Ann", "email": "ann@example.com", "title": "Engineer"})
        rows = employees.read()
        assert rows[0]["name"] == "Ann"
        assert rows[0]["email"] == "ann@example.com"
        assert rows[0]["title"] == "Engineer"

    def test_filter_by_parent_field(self, employees):
        employees.create({"name": "Ann"})
        employees.create({"name": "Bob"})
        assert [r["name"] for r in employees.read({"name": "Bob"})] == ["Bob"]

    def test_two_level_read(self, managers):
        managers.create({"name": "Ann", "title": "Lead", "level": 2})
        row = managers.read()[0]
        assert (row["name"], row["title"], row["level"]) == ("Ann", "Lead", 2)


class TestParentUpdate:
    def test_updates_each_collection(self, employees, source):
        created = employees.create({"name": "Ann", "title": "Engineer"})
        updated = employees.update({"_id": created["_id"], "name": "Anne", "title": "Lead"})

        assert _stored(source, "people")[0]["name"] == "Anne"
        assert _stored(source, "employees")[0]["title"] == "Lead"
        assert updated["name"] == "Anne"
        assert updated["id"] == created["id"]

    def test_by_primary_key(self, employees, source):
        created = employees.create({"name": "Ann"})
        employees.update({"id": created["id"], "name": "Anne"})
        assert _stored(source, "people")[0]["name"] == "Anne"

    def test_unknown_row(self, employees):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            employees.update({"_id": "nope", "title": "x"})
        assert exc_info.value.details == {"_id": "nope"}


class TestParentDestroy:
    def test_soft_deletes_chain(self, managers, source):
        created = managers.create({"name": "Ann"})
        managers.destroy({"_id": created["_id"]})

        for collection in ("people", "employees", "managers"):
            assert _stored(source, collection)[0]["_destroyed_at"] is not None
        assert managers.read() == []

    def test_unknown_hash(self, employees):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            employees.destroy({"_id": "abc"})
        assert exc_info.value.details == {"_id": "abc"}

    def test_recycle_chain(self, employees, source):
        created = employees.create({"name": "Ann"})
        employees.destroy({"_id": created["_id"]})
        employees.recycle({"_id": created["_id"]})

        assert _stored(source, "people")[0]["_destroyed_at"] is None
        assert _stored(source, "employees")[0]["_destroyed_at"] is None
        assert [r["name"] for r in employees.read()] == ["Ann"]
