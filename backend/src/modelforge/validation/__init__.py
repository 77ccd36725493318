"""ModelForge rule validation.

Usage:
    from modelforge.validation import RuleValidator

    violations = RuleValidator().parse({
        "name": ("", {"required": True}),
        "age": (17, {"min": 18}),
    })
"""

from modelforge.validation.registry import RuleRegistry, rule
from modelforge.validation.rules import register_builtin_rules
from modelforge.validation.service import RuleValidator
from modelforge.validation.types import RuleFn, RuleMap, RuleViolation, Validator

__all__ = [
    "RuleFn",
    "RuleMap",
    "RuleRegistry",
    "RuleValidator",
    "RuleViolation",
    "Validator",
    "register_builtin_rules",
    "rule",
]
