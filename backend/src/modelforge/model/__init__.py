"""Models: schema-bearing entities and their CRUD lifecycle."""

from modelforge.model.mapper import Model
from modelforge.model.query import QuerySpec
from modelforge.model.registry import ModelRegistry
from modelforge.model.relationships import (
    PivotChanges,
    PivotSynchronizer,
    RelationshipSpec,
    read_joins,
)

__all__ = [
    "Model",
    "ModelRegistry",
    "PivotChanges",
    "PivotSynchronizer",
    "QuerySpec",
    "RelationshipSpec",
    "read_joins",
]
