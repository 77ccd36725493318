"""Built-in validation rules.

Every rule receives the field value and the options declared for it and
returns an error message, or None when the value passes. Rules other than
``required`` are only run for non-empty values.
"""

import re
from collections.abc import Mapping
from typing import Any

from modelforge.data.record import MISSING, NULL
from modelforge.validation.registry import RuleRegistry

# Email: Basic RFC 5322 compliant pattern
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def is_empty(value: Any) -> bool:
    """Check if a value is considered empty."""
    if value is None or value is MISSING or value is NULL:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    if isinstance(value, (list, tuple, dict)) and len(value) == 0:
        return True
    return False


def required(value: Any, options: Any) -> str | None:
    if options and is_empty(value):
        return "is required"
    return None


def enum(value: Any, options: Any) -> str | None:
    allowed = list(options or [])
    if allowed and value not in allowed:
        return f"must be one of: {', '.join(str(v) for v in allowed)}"
    return None


def minimum(value: Any, options: Any) -> str | None:
    try:
        if float(value) < float(options):
            return f"must be at least {options}"
    except (TypeError, ValueError):
        return "must be a number"
    return None


def maximum(value: Any, options: Any) -> str | None:
    try:
        if float(value) > float(options):
            return f"must be at most {options}"
    except (TypeError, ValueError):
        return "must be a number"
    return None


def min_length(value: Any, options: Any) -> str | None:
    if len(str(value)) < int(options):
        return f"must be at least {options} characters"
    return None


def max_length(value: Any, options: Any) -> str | None:
    if len(str(value)) > int(options):
        return f"must be at most {options} characters"
    return None


def pattern(value: Any, options: Any) -> str | None:
    try:
        if not re.match(str(options), str(value)):
            return "has an invalid format"
    except re.error:
        # Invalid pattern in the schema; don't block the write
        return None
    return None


def email(value: Any, options: Any) -> str | None:
    if options and not EMAIL_PATTERN.match(str(value)):
        return "must be a valid email address"
    return None


def unique(value: Any, options: Any) -> str | None:
    """No other stored row may hold the same value.

    Options carry ``model`` (the Model instance), ``field`` and the current
    ``primary_key`` value (None on create).
    """
    if not isinstance(options, Mapping) or options.get("model") is None:
        return None

    model = options["model"]
    key = model.get_primary_key() or model.get_hash_key()
    current = options.get("primary_key")

    for row in model.read({options["field"]: value}, clean=True):
        if current is None or row.get(key) != current:
            return "must be unique"
    return None


def register_builtin_rules() -> None:
    """Register the framework-provided rules."""
    RuleRegistry.register("required", required)
    RuleRegistry.register("enum", enum)
    RuleRegistry.register("min", minimum)
    RuleRegistry.register("max", maximum)
    RuleRegistry.register("min_length", min_length)
    RuleRegistry.register("max_length", max_length)
    RuleRegistry.register("pattern", pattern)
    RuleRegistry.register("email", email)
    RuleRegistry.register("unique", unique)
