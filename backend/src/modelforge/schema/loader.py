"""Load model schemas from YAML files and build Model classes from them."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from modelforge.core.errors import ConfigurationError
from modelforge.model.mapper import Model
from modelforge.model.relationships import ALL_OPERATIONS
from modelforge.schema.fields import Reference
from modelforge.schema.registry import CalculatorRegistry, register_builtin_mutators


@dataclass
class ReferenceSchema:
    model: str
    key: str = "id"
    fusion: bool = False


@dataclass
class FieldSchema:
    name: str
    type: str = "string"
    label: str = ""
    flags: dict[str, bool] = field(default_factory=dict)  # create/read/update/recover
    enum: list[Any] = field(default_factory=list)
    validators: dict[str, Any] = field(default_factory=dict)
    calculated: str | None = None
    mutator: str | None = None
    reference: ReferenceSchema | None = None


@dataclass
class RelationshipSchema:
    local: str
    relationship: str
    model: str
    source: str
    target: str
    operations: list[str] = field(default_factory=lambda: [ALL_OPERATIONS])
    type: str = "pivot"


@dataclass
class ExtendsSchema:
    model: str
    relationship: str


@dataclass
class ModelSchema:
    name: str
    collection: str
    primary_key: str | None = "id"
    hash_key: str | None = None
    soft_delete: bool = True
    timestamps: bool = True
    extends: ExtendsSchema | None = None
    fields: list[FieldSchema] = field(default_factory=list)
    relationships: list[RelationshipSchema] = field(default_factory=list)
    maps: dict[str, str] = field(default_factory=dict)
    path: Path | None = None


_FLAGS = ("create", "read", "update", "recover")


class SchemaLoader:
    """Loads model definitions from ``<path>/models/*.yaml``."""

    def __init__(self, schema_path: Path):
        self.schema_path = Path(schema_path)
        self.models: dict[str, ModelSchema] = {}
        register_builtin_mutators()

    def load_all(self) -> None:
        """Load all model definitions."""
        models_path = self.schema_path / "models"
        if not models_path.exists():
            return

        for yaml_file in sorted(models_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "model" in data:
                    schema = self._resolve_model(data)
                    schema.path = yaml_file
                    self.models[schema.name] = schema

    def _resolve_model(self, data: dict) -> ModelSchema:
        name = data["model"]

        extends = None
        extends_data = data.get("extends")
        if extends_data:
            extends = ExtendsSchema(
                model=extends_data["model"],
                relationship=extends_data.get("relationship", ""),
            )

        return ModelSchema(
            name=name,
            collection=data.get("collection", self._to_collection(name)),
            primary_key=data.get("primaryKey", "id"),
            hash_key=data.get("hashKey"),
            soft_delete=data.get("softDelete", True),
            timestamps=data.get("timestamps", True),
            extends=extends,
            fields=[self._resolve_field(f) for f in data.get("fields", [])],
            relationships=[
                self._resolve_relationship(r) for r in data.get("relationships", [])
            ],
            maps=dict(data.get("maps", {})),
        )

    def _resolve_field(self, data: dict) -> FieldSchema:
        """Convert field dict to FieldSchema."""
        reference = None
        reference_data = data.get("reference")
        if reference_data:
            reference = ReferenceSchema(
                model=reference_data["model"],
                key=reference_data.get("key", "id"),
                fusion=reference_data.get("fusion", False),
            )

        validators = {
            self._to_snake(rule): options
            for rule, options in (data.get("validators") or {}).items()
        }

        return FieldSchema(
            name=data["name"],
            type=data.get("type", "string"),
            label=data.get("label", ""),
            flags={flag: data[flag] for flag in _FLAGS if flag in data},
            enum=list(data.get("enum", [])),
            validators=validators,
            calculated=data.get("calculated"),
            mutator=data.get("mutator"),
            reference=reference,
        )

    def _resolve_relationship(self, data: dict) -> RelationshipSchema:
        return RelationshipSchema(
            type=data.get("type", "pivot"),
            local=data["local"],
            relationship=data["relationship"],
            model=data["model"],
            source=data["source"],
            target=data["target"],
            operations=self._get_operations(data),
        )

    def _get_operations(self, data: dict) -> list[str]:
        """Extract relationship operations.

        ``on:`` is accepted as an alias of ``operations:``. PyYAML parses the
        bare key ``on:`` as boolean True, so both keys are checked.
        """
        operations = data.get("operations") or data.get("on") or data.get(True)
        if not operations:
            operations = [ALL_OPERATIONS]
        if isinstance(operations, str):
            operations = [operations]
        return list(operations)

    def _to_collection(self, name: str) -> str:
        return self._to_snake(name)

    def _to_snake(self, name: str) -> str:
        """Convert CamelCase/camelCase to snake_case."""
        result = []
        for i, char in enumerate(name):
            if char.isupper() and i > 0:
                result.append("_")
            result.append(char.lower())
        return "".join(result)

    def get(self, name: str) -> ModelSchema | None:
        """Get a loaded model schema by name."""
        return self.models.get(name)

    def list_models(self) -> list[str]:
        """List all model names."""
        return list(self.models.keys())

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def build(self, name: str) -> type[Model]:
        """Create a Model subclass for ``name``.

        The class registers itself in the model registry under ``name``;
        parents and pivot models are resolved by name when it is instantiated.

        Raises:
            ConfigurationError: Unknown model, calculator or mutator
        """
        schema = self.get(name)
        if schema is None:
            raise ConfigurationError(f"Model '{name}' is not defined")

        options = {f.name: self._field_options(schema, f) for f in schema.fields}

        def configure(model: Model) -> None:
            if schema.extends:
                model.extend(schema.extends.model, schema.extends.relationship)
            for field_schema in schema.fields:
                model.add(
                    field_schema.name,
                    field_schema.type,
                    **self._fresh(options[field_schema.name]),
                )
            for relationship in schema.relationships:
                model.add_pivot(
                    relationship.local,
                    relationship.relationship,
                    relationship.model,
                    relationship.source,
                    relationship.target,
                    relationship.operations,
                )
            for source, target in schema.maps.items():
                model.map(source, target)

        attributes = {
            "__module__": __name__,
            "__doc__": f"Model built from {schema.path or name}.",
            "collection": schema.collection,
            "primary_key": schema.primary_key,
            "hash_key": schema.hash_key,
            "create_keys": dict(Model.create_keys) if schema.timestamps else {},
            "update_keys": dict(Model.update_keys) if schema.timestamps else {},
            "destroy_keys": dict(Model.destroy_keys) if schema.soft_delete else {},
            "configure": configure,
        }
        return type(schema.name, (Model,), attributes)

    def build_all(self) -> dict[str, type[Model]]:
        return {name: self.build(name) for name in self.models}

    def _field_options(self, schema: ModelSchema, field_schema: FieldSchema) -> dict[str, Any]:
        options: dict[str, Any] = dict(field_schema.flags)
        if field_schema.label:
            options["label"] = field_schema.label
        if field_schema.enum:
            options["enum"] = list(field_schema.enum)
        if field_schema.validators:
            options["validators"] = dict(field_schema.validators)
        try:
            if field_schema.calculated:
                options["calculator"] = CalculatorRegistry.get_calculator(
                    field_schema.calculated
                )
            if field_schema.mutator:
                options["mutator"] = CalculatorRegistry.get_mutator(field_schema.mutator)
        except ValueError as e:
            raise ConfigurationError(f"{schema.name}.{field_schema.name}: {e}") from e
        if field_schema.reference:
            options["reference"] = Reference(
                model=field_schema.reference.model,
                key=field_schema.reference.key,
                collection=schema.collection,
                fusion=field_schema.reference.fusion,
            )
        return options

    def _fresh(self, options: dict[str, Any]) -> dict[str, Any]:
        """Per-instance copy of field options (references are mutated by pivots)."""
        fresh = dict(options)
        reference = fresh.get("reference")
        if reference is not None:
            fresh["reference"] = Reference(
                model=reference.model,
                key=reference.key,
                collection=reference.collection,
                fusion=reference.fusion,
            )
        return fresh
