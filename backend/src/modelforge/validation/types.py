"""Core types for rule validation."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# Rule signature: (value, options) -> error message, or None when valid
RuleFn = Callable[[Any, Any], "str | None"]

# Rules to check: field name -> (value, {rule name: options})
RuleMap = Mapping[str, tuple[Any, Mapping[str, Any]]]


@dataclass(frozen=True)
class RuleViolation:
    """A single failed rule.

    Attributes:
        field: Field name the rule was declared on
        rule: Rule name (e.g. "required", "unique")
        message: Human-readable message
    """

    field: str
    rule: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "rule": self.rule, "message": self.message}


@runtime_checkable
class Validator(Protocol):
    """Rule engine used by the repository."""

    def parse(self, rules: RuleMap) -> list[RuleViolation]: ...
