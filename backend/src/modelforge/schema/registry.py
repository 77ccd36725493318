"""Registry for calculated-field and mutator functions.

Schema files cannot carry Python callables, so calculated and mutated fields
reference functions by name. Functions are registered at application startup
with the decorators below.

Example:
    @calculator("fullName")
    def full_name(record: Record) -> str:
        return f"{record.get('first_name')} {record.get('last_name')}"
"""

from collections.abc import Callable
from typing import Any

from modelforge.data.record import Record

# Calculator signature: (Record) -> value
CalculatorFn = Callable[[Record], Any]
# Mutator signature: (value) -> value
MutatorFn = Callable[[Any], Any]


class CalculatorRegistry:
    """Named calculators and mutators referenced from schema files."""

    _calculators: dict[str, CalculatorFn] = {}
    _mutators: dict[str, MutatorFn] = {}

    @classmethod
    def register_calculator(cls, name: str, fn: CalculatorFn) -> None:
        """Register a calculator by name.

        Idempotent: re-registering the same name is a no-op.
        """
        if name in cls._calculators:
            return
        cls._calculators[name] = fn

    @classmethod
    def register_mutator(cls, name: str, fn: MutatorFn) -> None:
        """Register a mutator by name. Idempotent."""
        if name in cls._mutators:
            return
        cls._mutators[name] = fn

    @classmethod
    def get_calculator(cls, name: str) -> CalculatorFn:
        if name not in cls._calculators:
            raise ValueError(
                f"Calculator '{name}' is not registered. "
                "Calculators must be registered at application startup."
            )
        return cls._calculators[name]

    @classmethod
    def get_mutator(cls, name: str) -> MutatorFn:
        if name not in cls._mutators:
            raise ValueError(
                f"Mutator '{name}' is not registered. "
                "Mutators must be registered at application startup."
            )
        return cls._mutators[name]

    @classmethod
    def list_registered(cls) -> dict[str, list[str]]:
        return {
            "calculators": sorted(cls._calculators),
            "mutators": sorted(cls._mutators),
        }

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._calculators.clear()
        cls._mutators.clear()


def calculator(name: str) -> Callable[[CalculatorFn], CalculatorFn]:
    """Decorator to register a calculated-field function."""

    def decorator(fn: CalculatorFn) -> CalculatorFn:
        CalculatorRegistry.register_calculator(name, fn)
        return fn

    return decorator


def mutator(name: str) -> Callable[[MutatorFn], MutatorFn]:
    """Decorator to register a mutator function."""

    def decorator(fn: MutatorFn) -> MutatorFn:
        CalculatorRegistry.register_mutator(name, fn)
        return fn

    return decorator


def _text(fn: Callable[[str], str]) -> MutatorFn:
    def apply(value: Any) -> Any:
        if isinstance(value, str):
            return fn(value)
        return value

    return apply


def register_builtin_mutators() -> None:
    """Register framework-provided mutators (lower, upper, strip)."""
    CalculatorRegistry.register_mutator("lower", _text(str.lower))
    CalculatorRegistry.register_mutator("upper", _text(str.upper))
    CalculatorRegistry.register_mutator("strip", _text(str.strip))
