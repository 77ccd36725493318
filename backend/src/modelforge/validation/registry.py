"""Rule registry.

Rules must be registered before schemas can reference them. Built-in rules
are registered by ``register_builtin_rules()``; applications add their own
with the ``@rule`` decorator::

    @rule("even")
    def even(value, options):
        if value % 2:
            return "must be even"
        return None
"""

from collections.abc import Callable

from modelforge.validation.types import RuleFn


class RuleRegistry:
    """Registry of named validation rules."""

    _rules: dict[str, RuleFn] = {}

    @classmethod
    def register(cls, name: str, fn: RuleFn) -> None:
        """Register a rule by name.

        Idempotent - re-registering the same name is a no-op.
        """
        if name in cls._rules:
            return
        cls._rules[name] = fn

    @classmethod
    def get(cls, name: str) -> RuleFn:
        """Get a registered rule.

        Raises:
            ValueError: If the rule is not registered
        """
        if name not in cls._rules:
            raise ValueError(
                f"Rule '{name}' is not registered. "
                "Available rules: " + ", ".join(cls.list_registered())
            )
        return cls._rules[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._rules

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._rules)

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._rules.clear()


def rule(name: str) -> Callable[[RuleFn], RuleFn]:
    """Decorator to register a validation rule."""

    def decorator(fn: RuleFn) -> RuleFn:
        RuleRegistry.register(name, fn)
        return fn

    return decorator
