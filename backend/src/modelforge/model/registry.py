"""Model registry: resolves model classes and caches one instance per class.

Every Model subclass registers itself under its class name when it is
defined. A later class with the same name replaces the earlier one (the
last definition wins), the same way schema-built models are re-registered
when a schema directory is reloaded.

The registry also holds the collaborators used by ``Model.instance()``::

    ModelRegistry.configure(source=source, clock=UTCClock())
    people = ModelRegistry.make("Person")
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from modelforge.core.errors import ConfigurationError

if TYPE_CHECKING:
    from modelforge.model.mapper import Model

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Class-level registry of model classes and their shared instances."""

    _models: dict[str, type] = {}
    _instances: dict[type, Any] = {}
    _defaults: dict[str, Any] = {}

    @classmethod
    def configure(
        cls,
        source: Any = None,
        clock: Any = None,
        principal: Any = None,
        settings: Any = None,
    ) -> None:
        """Set the collaborators injected into registry-built instances.

        Cached instances are dropped so they pick up the new collaborators.
        """
        cls._defaults = {
            "source": source,
            "clock": clock,
            "principal": principal,
            "settings": settings,
        }
        cls._instances.clear()

    @classmethod
    def defaults(cls) -> dict[str, Any]:
        return dict(cls._defaults)

    @classmethod
    def register(cls, model: type, name: str | None = None) -> None:
        key = name or model.__name__
        if key in cls._models and cls._models[key] is not model:
            logger.debug("Replacing registered model %s", key)
            cls._instances.pop(cls._models[key], None)
        cls._models[key] = model

    @classmethod
    def resolve(cls, ref: type | str) -> type:
        """Return the model class for a class, registered name or dotted path."""
        if isinstance(ref, type):
            return ref
        if ref in cls._models:
            return cls._models[ref]
        if "." in ref:
            module_name, _, class_name = ref.rpartition(".")
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise ConfigurationError(f"Can't resolve model '{ref}'") from e
            model = getattr(module, class_name, None)
            if isinstance(model, type):
                return model
        raise ConfigurationError(f"Can't resolve model '{ref}'")

    @classmethod
    def make(cls, ref: type | str) -> Model:
        """Return the shared instance of a model, building it on first use."""
        model = cls.resolve(ref)
        if model not in cls._instances:
            cls._instances[model] = model()
        return cls._instances[model]

    @classmethod
    def has(cls, ref: type | str) -> bool:
        if isinstance(ref, type):
            return ref in cls._models.values()
        return ref in cls._models

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._models)

    @classmethod
    def reset(cls) -> None:
        """Drop cached instances and collaborators, keep class registrations."""
        cls._instances.clear()
        cls._defaults = {}

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._models.clear()
        cls.reset()
