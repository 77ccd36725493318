"""Backend-agnostic filter expressions and the record -> filter translator.

A filter record such as::

    {"status": "active", "group_id": [1, 2], "_": {"filter": {"name": "Ann"}}}

becomes an ordered list of Filter / FilterGroup objects. The positional value
list produced by ``parse_filter_values`` follows exactly the same order so a
source can bind parameters without re-walking the structure.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from modelforge.core.errors import FieldNotFoundError
from modelforge.data.record import NULL, Record
from modelforge.schema.fields import Field, FieldRegistry


class FilterRule(str, Enum):
    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    BLANK = "blank"
    IN = "in"
    LIKE = "like"
    BETWEEN = "between"
    GREATER = "greater"
    LESS = "less"


@dataclass
class Filter:
    """A (field, rule, value) triple.

    Attributes:
        field: The field descriptor being constrained
        rule: Comparison rule
        value: Raw value as given by the caller
        unconstrained: When True the filter matches everything and binds
            nothing (used for "include trashed" visibility)
    """

    field: Field
    value: Any = None
    rule: FilterRule = FilterRule.EQUAL
    unconstrained: bool = False

    @classmethod
    def create(
        cls,
        target: Field,
        value: Any,
        rule: FilterRule | None = None,
        unconstrained: bool = False,
    ) -> "Filter":
        """Build a filter, inferring the rule from the value when not given.

        Lists become IN filters; None and NULL become blank tests.
        """
        if rule is None:
            if value is None or value is NULL:
                rule = FilterRule.BLANK
            elif isinstance(value, (list, tuple, set, frozenset)):
                rule = FilterRule.IN
            else:
                rule = FilterRule.EQUAL
        return cls(field=target, value=value, rule=rule, unconstrained=unconstrained)

    def parsed_value(self) -> Any:
        """Value to bind: a scalar, or a list spliced into the value sequence."""
        if self.unconstrained or self.rule == FilterRule.BLANK:
            return []
        if self.rule in (FilterRule.IN, FilterRule.BETWEEN):
            return [None if v is NULL else v for v in self.value]
        if self.value is NULL:
            return None
        return self.value


@dataclass
class FilterGroup:
    """Nested group of filters joined by one logical operator."""

    filters: list["FilterNode"] = field(default_factory=list)
    operator: str = "and"


FilterNode = Union[Filter, FilterGroup]


class FilterTranslator:
    """Translates filter records against a model's field registry."""

    def __init__(self, registry: FieldRegistry, model_name: str):
        self.registry = registry
        self.model_name = model_name

    def parse_filter_fields(
        self, data: Record | Mapping[str, Any]
    ) -> list[FilterNode]:
        values = data.all() if isinstance(data, Record) else data
        filters: list[FilterNode] = []
        for name, value in values.items():
            if isinstance(value, Filter):
                filters.append(value)
                continue
            if isinstance(value, Mapping) and "filter" in value:
                inner = self.parse_filter_fields(value["filter"])
                filters.append(
                    FilterGroup(filters=inner, operator=value.get("operator", "and"))
                )
                continue
            target = self.registry.get(name)
            if target is None:
                raise FieldNotFoundError(name, self.model_name)
            filters.append(Filter.create(target, value))
        return filters

    def parse_filter_values(self, filters: list[FilterNode]) -> list[Any]:
        values: list[Any] = []
        for node in filters:
            if isinstance(node, FilterGroup):
                values.extend(self.parse_filter_values(node.filters))
                continue
            parsed = node.parsed_value()
            if isinstance(parsed, list):
                values.extend(parsed)
            else:
                values.append(parsed)
        return values

    def get_destroy_filter(self, at_field: str, include_trashed: bool = False) -> Filter:
        """Canonical "is active" filter on the destroy timestamp field."""
        target = self.registry.get(at_field)
        if target is None:
            target = Field(name=at_field, collection=self.registry.collection, type="datetime")
        return Filter.create(
            target, None, FilterRule.BLANK, unconstrained=include_trashed
        )
