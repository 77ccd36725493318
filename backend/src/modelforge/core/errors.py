"""Error taxonomy for the model lifecycle engine.

Every failure is raised synchronously to the immediate caller. Nothing is
retried and partially applied cascades are not rolled back.
"""

from typing import Any


class ModelForgeError(Exception):
    """Base exception for all engine errors."""

    pass


class ConfigurationError(ModelForgeError):
    """Raised when a model is set up inconsistently."""

    pass


class HookError(ModelForgeError):
    """A before/after hook rejected the operation."""

    def __init__(self, model: str, action: str, hook: str):
        self.model = model
        self.action = action
        self.hook = hook
        super().__init__(f"Can't resolve hook `{action}`.`{hook}` in '{model}'")


class ActionFailedError(ModelForgeError):
    """The source reported that a write or removal affected nothing."""

    def __init__(self, model: str, action: str):
        self.model = model
        self.action = action
        super().__init__(f"Can't resolve '{action}' in '{model}'")


class ResourceNotFoundError(ModelForgeError):
    """The target row of an update/destroy could not be located.

    Attributes:
        details: Lookup key name mapped to the value that was searched for
    """

    def __init__(self, details: dict[str, Any]):
        self.details = details
        keys = ", ".join(f"{k}={v!r}" for k, v in details.items())
        super().__init__(f"Resource not found ({keys})")


class ValidationError(ModelForgeError):
    """Configuration precondition or field rule failure.

    Attributes:
        details: Field name mapped to the reasons it failed
    """

    def __init__(self, details: dict[str, Any], message: str = "Validation failed"):
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": str(self), "details": self.details}


class FieldNotFoundError(ModelForgeError):
    """A filter referenced a field the model does not declare."""

    def __init__(self, field: str, model: str):
        self.field = field
        self.model = model
        super().__init__(f"There is no property `{field}` in `{model}`")
