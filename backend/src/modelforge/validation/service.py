"""Registry-driven rule validator."""

import logging

from modelforge.validation.registry import RuleRegistry
from modelforge.validation.rules import is_empty, register_builtin_rules
from modelforge.validation.types import RuleMap, RuleViolation

logger = logging.getLogger(__name__)


class RuleValidator:
    """Runs declared rules for each field.

    A failing ``required`` rule stops the remaining rules for that field;
    other rules are skipped for empty values. Rules declared with a false
    or None option are disabled.
    """

    def __init__(self) -> None:
        register_builtin_rules()

    def parse(self, rules: RuleMap) -> list[RuleViolation]:
        violations: list[RuleViolation] = []

        for field, (value, declared) in rules.items():
            for name, options in declared.items():
                if options is False or options is None:
                    continue
                if name != "required" and is_empty(value):
                    continue

                message = RuleRegistry.get(name)(value, options)
                if not message:
                    continue

                violations.append(RuleViolation(field=field, rule=name, message=message))
                if name == "required":
                    break

        if violations:
            logger.debug("Validation failed: %s", [v.to_dict() for v in violations])
        return violations
