"""Field descriptors and the ordered per-model field registry."""

from dataclasses import dataclass, field, fields as dataclass_fields, replace
from typing import Any, Callable

from modelforge.core.types import Action, Aggregator
from modelforge.data.record import Record


@dataclass
class Reference:
    """Reference metadata attached to a field.

    Attributes:
        model: Target model class or registered model name
        key: Referenced key on the target model
        collection: Collection owning the referencing column
        fusion: Join the target collection on every read
        pivots: Relationship name -> pivot model (class or name)
    """

    model: Any = None
    key: str = "id"
    collection: str = ""
    fusion: bool = False
    pivots: dict[str, Any] = field(default_factory=dict)


@dataclass
class Field:
    """Descriptor for one schema attribute.

    Attributes:
        name: Unique name within the model
        collection: Collection that physically stores the value
        type: Field type name (see core.types.FIELD_TYPES)
        create/read/update/recover: Action applicability flags
        enum: Closed set of allowed values (empty means open)
        validators: Rule name -> options
        calculator: Pure function of a Record producing the stored value
        mutator: Pure function applied to the field's incoming value
        reference: Optional reference/relationship metadata
        aggregator: Aggregate function for synthetic read fields
        alias: Output name when it differs from ``name``
        source: Name of the field this one was imported through
    """

    name: str
    collection: str = ""
    type: str = "string"
    label: str = ""
    create: bool = True
    read: bool = True
    update: bool = True
    recover: bool = True
    enum: list[Any] = field(default_factory=list)
    validators: dict[str, Any] = field(default_factory=dict)
    calculator: Callable[[Record], Any] | None = None
    mutator: Callable[[Any], Any] | None = None
    reference: Reference | None = None
    aggregator: Aggregator | None = None
    alias: str | None = None
    source: str | None = None

    @property
    def is_calculated(self) -> bool:
        return self.calculator is not None

    @property
    def is_mutable(self) -> bool:
        return self.mutator is not None

    @property
    def output_name(self) -> str:
        return self.alias or self.name

    def applies_to(self, action: Action | str | None) -> bool:
        flag = _ACTION_FLAGS.get(_as_action(action))
        if flag is None:
            return True
        return bool(getattr(self, flag))

    def calculate(self, record: Record) -> Any:
        if self.calculator is None:
            raise ValueError(f"Field '{self.name}' is not calculated")
        return self.calculator(record)

    def mutate(self, value: Any) -> Any:
        if self.mutator is None:
            return value
        return self.mutator(value)

    def options(self) -> dict[str, Any]:
        """Descriptor options except identity (name, collection)."""
        return {
            f.name: getattr(self, f.name)
            for f in dataclass_fields(self)
            if f.name not in ("name", "collection")
        }


_ACTION_FLAGS: dict[Action, str] = {
    Action.CREATE: "create",
    Action.READ: "read",
    Action.UPDATE: "update",
    Action.RECOVER: "recover",
}


def _as_action(action: Action | str | None) -> Action | None:
    if action is None or isinstance(action, Action):
        return action
    try:
        return Action(action)
    except ValueError:
        return None


class FieldRegistry:
    """Ordered name -> Field schema owned by one model.

    Registering a name twice replaces the earlier descriptor in place.
    """

    def __init__(self, collection: str = ""):
        self.collection = collection
        self._fields: dict[str, Field] = {}

    def add(self, name: str, type: str = "string", **options: Any) -> Field:
        options.setdefault("collection", self.collection)
        new_field = Field(name=name, type=type, **options)
        self._fields[name] = new_field
        return new_field

    def put(self, new_field: Field) -> Field:
        self._fields[new_field.name] = new_field
        return new_field

    def get(self, name: str) -> Field | None:
        return self._fields.get(name)

    def has(self, name: str) -> bool:
        return name in self._fields

    def names(self) -> list[str]:
        return list(self._fields)

    def get_fields(
        self, action: Action | str | None = None, strict: bool = True
    ) -> list[Field]:
        """Fields applicable to ``action`` (all when None or unknown).

        ``strict`` keeps only fields stored in this registry's collection,
        leaving out values imported from parents or related models.
        """
        result = []
        for candidate in self._fields.values():
            if strict and candidate.collection != self.collection:
                continue
            if not candidate.applies_to(action):
                continue
            result.append(candidate)
        return result

    def import_field(
        self, name: str, through: Field, target: Field, **options: Any
    ) -> Field:
        """Register a read-only projection of a related model's field.

        The projection keeps the related field's collection so reads select
        it from the joined collection and cascaded writes leave it alone.
        """
        merged = {**target.options(), **options}
        merged.update(create=False, update=False, source=through.name)
        imported = replace(target, name=name, **merged)
        self._fields[name] = imported
        return imported

    def references(self) -> list[Field]:
        return [f for f in self._fields.values() if f.reference is not None]

    def to_json(self) -> list[dict[str, Any]]:
        """Describe fields for schema export and UI builders."""
        return [
            {
                "field": f.name,
                "type": f.type,
                "label": f.label or f.name,
                "collection": f.collection,
                "enum": list(f.enum),
                "create": f.create,
                "update": f.update,
                "calculated": f.is_calculated,
            }
            for f in self._fields.values()
        ]

    def __iter__(self):
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields
