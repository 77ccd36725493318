"""Shared fixtures: an in-memory SQLite source wired into the model registry."""

import pytest

from modelforge.auth.principal import StaticPrincipal
from modelforge.lifecycle.timestamps import FixedClock
from modelforge.model.registry import ModelRegistry
from modelforge.persistence.sqlite import SQLiteSource

NOW = "2024-01-01T00:00:00+00:00"


@pytest.fixture
def source():
    """Connected in-memory SQLite source, closed after the test."""
    src = SQLiteSource(":memory:")
    src.connect()
    yield src
    src.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def principal():
    return StaticPrincipal("U001")


@pytest.fixture(autouse=True)
def registry(source, clock, principal):
    """Configure registry-built models to use the test collaborators."""
    ModelRegistry.configure(source=source, clock=clock, principal=principal)
    yield ModelRegistry
    ModelRegistry.reset()


@pytest.fixture
def tables(source):
    """Create the tables of the given models and return their instances."""

    def initialize(*models):
        instances = []
        for model in models:
            instance = ModelRegistry.make(model)
            source.initialize(instance)
            instances.append(instance)
        return instances[0] if len(instances) == 1 else instances

    return initialize
