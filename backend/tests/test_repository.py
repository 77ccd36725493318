"""Tests for the validating model repository."""

from unittest.mock import MagicMock

import pytest

from modelforge.core.errors import ValidationError
from modelforge.data.record import Record
from modelforge.model.mapper import Model
from modelforge.repository import ModelRepository
from modelforge.validation.types import RuleViolation
from sample_models import Person


class Account(Model):
    collection = "accounts"

    def configure(self):
        self.add("login", validators={"required": True, "min_length": 3})
        self.add("nickname")
        self.add("status", enum=["active", "blocked"])
        self.map("login", "nickname")

    def configure_fields_create(self, record):
        if record.has("login"):
            record.set("login", record.get("login").strip())

    def get_defaults_create(self, record):
        return {"status": "active", "nickname": "anonymous"}


@pytest.fixture
def people(tables):
    return ModelRepository(tables(Person))


@pytest.fixture
def accounts(tables):
    return ModelRepository(tables(Account))


class TestCreate:
    def test_valid_record(self, people):
        created = people.create({"name": "Ann", "email": "ann@example.com"})
        assert created["id"] == 1

    def test_required(self, people):
        with pytest.raises(ValidationError) as exc_info:
            people.create({"email": "ann@example.com"})
        assert exc_info.value.details == {"name": ["is required"]}

    def test_collects_every_field(self, people):
        with pytest.raises(ValidationError) as exc_info:
            people.create({"name": "", "email": "nope", "age": -1, "status": "gone"})
        details = exc_info.value.details
        assert set(details) == {"name", "email", "age", "status"}
        assert details["status"] == ["must be one of: active, inactive"]

    def test_unique(self, people):
        people.create({"name": "Ann", "email": "ann@example.com"})
        with pytest.raises(ValidationError) as exc_info:
            people.create({"name": "Bob", "email": "ann@example.com"})
        assert exc_info.value.details == {"email": ["must be unique"]}

    def test_error_payload(self, people):
        with pytest.raises(ValidationError) as exc_info:
            people.create({})
        payload = exc_info.value.to_dict()
        assert payload["message"] == "Validation failed for 'Person'"
        assert payload["details"] == {"name": ["is required"]}

    def test_configure_fields_and_defaults(self, accounts):
        created = accounts.create({"login": "  ann  "})
        assert created["login"] == "ann"
        assert created["status"] == "active"

    def test_map_copies_before_defaults(self, accounts):
        created = accounts.create({"login": "ann"})
        assert created["nickname"] == "ann"

    def test_defaults_do_not_override(self, accounts):
        created = accounts.create({"login": "ann", "status": "blocked"})
        assert created["status"] == "blocked"

    def test_custom_validator(self, tables):
        validator = MagicMock()
        validator.parse.return_value = [RuleViolation("name", "custom", "nope")]
        repository = ModelRepository(tables(Person), validator)

        with pytest.raises(ValidationError) as exc_info:
            repository.create({"name": "Ann"})
        assert exc_info.value.details == {"name": ["nope"]}


class TestUpdate:
    def test_partial_validation(self, people):
        created = people.create({"name": "Ann"})
        updated = people.update({"_id": created["_id"], "age": 31})
        assert updated["age"] == 31
        assert updated["name"] == "Ann"

    def test_present_fields_are_validated(self, people):
        created = people.create({"name": "Ann"})
        with pytest.raises(ValidationError) as exc_info:
            people.update({"_id": created["_id"], "name": ""})
        assert "name" in exc_info.value.details

    def test_unique_ignores_same_row(self, people):
        created = people.create({"name": "Ann", "email": "ann@example.com"})
        updated = people.update({"_id": created["_id"], "email": "ann@example.com"})
        assert updated["email"] == "ann@example.com"

    def test_unique_against_other_row(self, people):
        people.create({"name": "Ann", "email": "ann@example.com"})
        bob = people.create({"name": "Bob", "email": "bob@example.com"})
        with pytest.raises(ValidationError):
            people.update({"_id": bob["_id"], "email": "ann@example.com"})


class TestReads:
    def test_search_orders_and_windows(self, people):
        for name in ("Cid", "Ann", "Bob"):
            people.create({"name": name})
        rows = people.search(order=["name"], start=1, end=1)
        assert [r["name"] for r in rows] == ["Bob"]

    def test_search_without_window(self, people):
        for name in ("Cid", "Ann"):
            people.create({"name": name})
        assert [r["name"] for r in people.search(order=["-name"])] == ["Cid", "Ann"]

    def test_search_start_without_end(self, people):
        for name in ("Cid", "Ann", "Bob"):
            people.create({"name": name})
        assert [r["name"] for r in people.search(order=["name"], start=1)] == ["Bob", "Cid"]

    def test_search_end_without_start(self, people):
        for name in ("Cid", "Ann", "Bob"):
            people.create({"name": name})
        assert [r["name"] for r in people.search(order=["name"], end=2)] == ["Ann", "Bob"]

    def test_find_selects_fields(self, people):
        people.create({"name": "Ann", "age": 3})
        rows = people.find({"name": "Ann"}, ["id", "age"])
        assert rows[0].all() == {"id": 1, "age": 3}

    def test_find_by_id(self, people):
        created = people.create({"name": "Ann"})
        assert people.find_by_id(created["id"])["name"] == "Ann"
        assert people.find_by_id(99).is_empty()

    def test_unique_reads_or_creates(self, people):
        first = people.unique({"name": "Ann"})
        second = people.unique({"name": "Ann"})
        assert first["id"] == second["id"]
        assert people.count() == 1

    def test_count_read_destroy_recycle(self, people):
        created = people.create({"name": "Ann"})
        assert people.count() == 1
        people.destroy({"_id": created["_id"]})
        assert people.read() == []
        assert len(people.read(trash=True)) == 1
        people.recycle({"_id": created["_id"]})
        assert people.count() == 1

    def test_transform(self, people):
        record = Record({"first": "Ann", "last": "Lee"})
        assert people.transform(record, {"first": "name", "age": "years"}).all() == {
            "name": "Ann",
            "years": None,
        }


class TestRules:
    def test_recover_fields_only(self, people):
        names = [f.name for f in people.get_fields()]
        assert "_created_at" not in names
        assert "name" in names

    def test_rules_include_enum(self, people):
        rules = people.get_rules(Record({"status": "active"}))
        assert rules["status"] == ("active", {"enum": ["active", "inactive"]})

    def test_unique_options(self, people):
        rules = people.get_rules(Record({"id": 4, "email": "a@b.co"}))
        _, declared = rules["email"]
        assert declared["unique"]["field"] == "email"
        assert declared["unique"]["primary_key"] == 4
        assert declared["unique"]["model"] is people.get_model()

    def test_partial_skips_absent(self, people):
        assert list(people.get_rules(Record({"age": 3}), partial=True)) == ["age"]

    def test_hash_key(self, people):
        assert people.get_hash_key() == "_id"
