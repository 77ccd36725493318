"""Relationship cascade: read joins and pivot (many-to-many) synchronization.

A pivot relationship links a model to another through an association model.
Given::

    RelationshipSpec(local="id", relationship="user_id",
                     source="roles", target="role_id")

a record ``{"id": 7, "roles": [{"role_id": 2}, {"role_id": 3}]}`` is
reconciled against the stored ``user_roles`` rows where ``user_id = 7``:
rows whose ``role_id`` is no longer listed are destroyed and missing ones
are created. Reads of a single row attach the stored association rows under
``roles``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from modelforge.core.errors import ConfigurationError
from modelforge.core.types import Action
from modelforge.data.record import MISSING, Record
from modelforge.persistence.source import JOIN_INNER, JOIN_LEFT, Join

if TYPE_CHECKING:
    from modelforge.model.mapper import Model

logger = logging.getLogger(__name__)

PIVOT = "pivot"
ALL_OPERATIONS = "*"


@dataclass
class RelationshipSpec:
    """One relationship declared on a model.

    Attributes:
        local: Field on the owning model holding the local id
        relationship: Key of the pivot model in ``local``'s reference pivots,
            and the pivot field pointing back at the owner
        source: Record field carrying the desired list of associated items
        target: Key inside each associated item identifying the linked entity
        operations: Actions during which the relationship is synchronized
        type: Relationship kind (only "pivot" is synchronized)
    """

    local: str
    relationship: str
    source: str
    target: str
    operations: list[str] | str = field(default_factory=lambda: [ALL_OPERATIONS])
    type: str = PIVOT

    def __post_init__(self) -> None:
        if isinstance(self.operations, str):
            self.operations = [self.operations]
        self.operations = [str(op) for op in self.operations]

    def applies_to(self, action: str) -> bool:
        return ALL_OPERATIONS in self.operations or str(action) in self.operations


@dataclass
class PivotChanges:
    """Target keys removed from and added to one pivot relationship."""

    removed: list[Any] = field(default_factory=list)
    created: list[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.removed and not self.created


def read_joins(model: Model) -> list[Join]:
    """Joins needed to read a model's fields.

    One inner join per parent (recursively up the extension chain) and one
    left join per fusion reference stored in the model's own collection.
    """
    joins: list[Join] = []
    for relationship, parent in model.get_parents().items():
        joins.append(
            Join(
                collection=parent.get_collection(),
                referenced=parent.get_primary_key(),
                source=model.get_collection(),
                references=relationship,
                kind=JOIN_INNER,
            )
        )
        joins.extend(read_joins(parent))

    for candidate in model.fields.references():
        reference = candidate.reference
        if not reference.fusion or candidate.collection != model.get_collection():
            continue
        target = model.related(reference.model)
        joins.append(
            Join(
                collection=target.get_collection(),
                referenced=reference.key,
                source=reference.collection or candidate.collection,
                references=candidate.name,
                kind=JOIN_LEFT,
            )
        )
    return joins


def _item_key(item: Any, target: str) -> Any:
    if isinstance(item, (Record, Mapping)):
        value = item.get(target)
        return None if value is MISSING else value
    return item


def _keyed(keys: Any) -> dict[str, Any]:
    """Unique keys by string form, first value wins; 2 and "2" are one key."""
    found: dict[str, Any] = {}
    for key in keys:
        if key is None or key is MISSING:
            continue
        found.setdefault(str(key), key)
    return found


class PivotSynchronizer:
    """Applies a model's pivot relationships after writes and reads."""

    def __init__(self, model: Model):
        self.model = model

    def pivot_model(self, spec: RelationshipSpec) -> Model | None:
        local = self.model.get(spec.local)
        if local is None:
            raise ConfigurationError(
                f"Relationship '{spec.relationship}' uses unknown field "
                f"'{spec.local}' in '{self.model.name}'"
            )
        if local.reference is None or spec.relationship not in local.reference.pivots:
            return None
        return self.model.related(local.reference.pivots[spec.relationship])

    def synchronize(self, action: str, record: Record) -> dict[str, PivotChanges]:
        """Reconcile every pivot relationship configured for ``action``."""
        changes: dict[str, PivotChanges] = {}
        for spec in self.model.get_relationships():
            if spec.type != PIVOT or not spec.applies_to(action):
                continue
            result = self.synchronize_one(spec, record)
            if result is not None:
                changes[spec.source] = result
        return changes

    def synchronize_one(
        self, spec: RelationshipSpec, record: Record
    ) -> PivotChanges | None:
        """Reconcile one relationship; None when there is nothing to compare."""
        pivot = self.pivot_model(spec)
        if pivot is None:
            return None

        desired = record.get(spec.source)
        if not isinstance(desired, (list, tuple)):
            return None

        local = record.get(spec.local)
        if local is MISSING or local is None:
            return None

        stored = pivot.read({spec.relationship: local}, clean=True)
        before = _keyed(row.get(spec.target) for row in stored)
        after = _keyed(_item_key(item, spec.target) for item in desired)

        changes = PivotChanges(
            removed=[value for key, value in before.items() if key not in after],
            created=[value for key, value in after.items() if key not in before],
        )
        if changes.is_empty:
            return changes

        logger.debug(
            "Pivot %s.%s local=%s remove=%s create=%s",
            self.model.name,
            spec.source,
            local,
            changes.removed,
            changes.created,
        )

        for key in changes.removed:
            if not key:
                continue
            rows = pivot.read({spec.relationship: local, spec.target: key}, clean=True)
            if rows:
                pivot.destroy(rows[0])

        for key in changes.created:
            pivot.create({spec.relationship: local, spec.target: key})

        return changes

    def recover(self, rows: list[Record]) -> list[Record]:
        """Attach stored association rows to a single-row result set."""
        if len(rows) != 1:
            return rows

        row = rows[0]
        for spec in self.model.get_relationships():
            if spec.type != PIVOT or not spec.applies_to(Action.READ.value):
                continue
            pivot = self.pivot_model(spec)
            if pivot is None:
                continue
            local = row.get(spec.local)
            if local is MISSING or local is None:
                continue
            linked = pivot.read({spec.relationship: local}, clean=True)
            row.set(spec.source, [item.all() for item in linked])
        return rows
