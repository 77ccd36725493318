"""Tests for filter construction and translation."""

import pytest

from modelforge.core.errors import FieldNotFoundError
from modelforge.data.record import NULL, Record
from modelforge.schema.fields import FieldRegistry
from modelforge.schema.filters import Filter, FilterGroup, FilterRule, FilterTranslator


@pytest.fixture
def translator():
    fields = FieldRegistry("people")
    fields.add("id", "integer")
    fields.add("name")
    fields.add("status")
    fields.add("_destroyed_at", "datetime")
    return FilterTranslator(fields, "Person")


class TestFilter:
    def test_scalar_is_equal(self, translator):
        f = Filter.create(translator.registry.get("name"), "Ann")
        assert f.rule == FilterRule.EQUAL
        assert f.parsed_value() == "Ann"

    def test_list_is_in(self, translator):
        f = Filter.create(translator.registry.get("id"), [1, 2])
        assert f.rule == FilterRule.IN
        assert f.parsed_value() == [1, 2]

    def test_null_is_blank(self, translator):
        f = Filter.create(translator.registry.get("name"), NULL)
        assert f.rule == FilterRule.BLANK
        assert f.parsed_value() == []

    def test_none_is_blank(self, translator):
        assert Filter.create(translator.registry.get("name"), None).rule == FilterRule.BLANK

    def test_explicit_rule_null_value(self, translator):
        f = Filter.create(translator.registry.get("name"), NULL, FilterRule.NOT_EQUAL)
        assert f.parsed_value() is None

    def test_between_values(self, translator):
        f = Filter.create(translator.registry.get("id"), [1, 5], FilterRule.BETWEEN)
        assert f.parsed_value() == [1, 5]

    def test_unconstrained_binds_nothing(self, translator):
        f = Filter.create(translator.registry.get("id"), 1, unconstrained=True)
        assert f.parsed_value() == []


class TestFilterTranslator:
    def test_unknown_field_raises(self, translator):
        with pytest.raises(FieldNotFoundError) as exc_info:
            translator.parse_filter_fields({"nope": 1})
        assert exc_info.value.field == "nope"
        assert exc_info.value.model == "Person"

    def test_values_follow_filter_order(self, translator):
        filters = translator.parse_filter_fields(
            Record({"status": "active", "id": [3, 4], "name": NULL})
        )
        assert [f.field.name for f in filters] == ["status", "id", "name"]
        assert translator.parse_filter_values(filters) == ["active", 3, 4]

    def test_nested_group(self, translator):
        filters = translator.parse_filter_fields(
            {"status": "active", "_": {"filter": {"name": "Ann", "id": 1}, "operator": "or"}}
        )
        group = filters[1]
        assert isinstance(group, FilterGroup)
        assert group.operator == "or"
        assert translator.parse_filter_values(filters) == ["active", "Ann", 1]

    def test_filter_instance_passed_through(self, translator):
        like = Filter.create(translator.registry.get("name"), "A%", FilterRule.LIKE)
        filters = translator.parse_filter_fields({"name": like})
        assert filters[0] is like
        assert translator.parse_filter_values(filters) == ["A%"]

    def test_private_fields_are_not_filters(self, translator):
        record = Record({"id": 1, "name": "Ann"}).set_private("name")
        assert len(translator.parse_filter_fields(record)) == 1

    def test_destroy_filter(self, translator):
        f = translator.get_destroy_filter("_destroyed_at")
        assert f.rule == FilterRule.BLANK
        assert not f.unconstrained

    def test_destroy_filter_including_trash(self, translator):
        f = translator.get_destroy_filter("_destroyed_at", include_trashed=True)
        assert f.unconstrained
        assert translator.parse_filter_values([f]) == []
