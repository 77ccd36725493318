"""Model: field schema plus the CRUD lifecycle pipeline.

A model declares its collection and keys as class attributes and its fields
in ``configure()``::

    class Person(Model):
        collection = "people"

        def configure(self):
            self.add("name", validators={"required": True})
            self.add("email", mutator=str.lower)

    people = Person.instance()
    created = people.create({"name": "Ann", "email": "ANN@EXAMPLE.COM"})
    people.update({"_id": created["_id"], "name": "Anne"})

Every write runs the same fixed pipeline: parent cascade, before hook,
field resolution and stamping, one source statement, pivot
synchronization, after hook. Failures propagate to the caller; statements
already issued by the pipeline stay committed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any

from modelforge.config import EngineSettings
from modelforge.core.errors import (
    ActionFailedError,
    ConfigurationError,
    FieldNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from modelforge.core.types import Action, Aggregator
from modelforge.data.record import MISSING, NULL, Record, resolve_value
from modelforge.hooks.service import HookService
from modelforge.hooks.types import ModelHooks
from modelforge.lifecycle.timestamps import TIMESTAMP_AT, TIMESTAMP_BY, TimestampPolicy
from modelforge.model.query import QuerySpec, parse_order
from modelforge.model.registry import ModelRegistry
from modelforge.model.relationships import (
    ALL_OPERATIONS,
    PivotSynchronizer,
    RelationshipSpec,
    read_joins,
)
from modelforge.schema.fields import Field, FieldRegistry, Reference
from modelforge.schema.filters import Filter, FilterTranslator

logger = logging.getLogger(__name__)

_WRITE_ACTIONS = (Action.CREATE.value, Action.UPDATE.value, Action.DESTROY.value)


def _snake_case(name: str) -> str:
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


class Model(ModelHooks):
    """Base class for all models.

    Class attributes:
        collection: Collection (table) name; defaults to the snake_case
            class name
        primary_key: Backend-generated key, or None
        hash_key: Client-visible external key; None uses the engine
            default (``_id``), an empty string disables it
        create_keys/update_keys/destroy_keys: Timestamp kind -> field name;
            an empty mapping disables stamping (and soft delete)
    """

    collection: str = ""
    primary_key: str | None = "id"
    hash_key: str | None = None
    create_keys: dict[str, str] = {TIMESTAMP_AT: "_created_at", TIMESTAMP_BY: "_created_by"}
    update_keys: dict[str, str] = {TIMESTAMP_AT: "_changed_at", TIMESTAMP_BY: "_changed_by"}
    destroy_keys: dict[str, str] = {
        TIMESTAMP_AT: "_destroyed_at",
        TIMESTAMP_BY: "_destroyed_by",
    }

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        ModelRegistry.register(cls)

    def __init__(
        self,
        source: Any = None,
        clock: Any = None,
        principal: Any = None,
        settings: EngineSettings | None = None,
    ):
        defaults = ModelRegistry.defaults()
        self.settings = settings or defaults.get("settings") or EngineSettings()
        self.source = source if source is not None else defaults.get("source")
        self.timestamps = TimestampPolicy(
            clock or defaults.get("clock"),
            principal or defaults.get("principal"),
            self.settings.visitor,
        )

        cls = type(self)
        self.name = cls.__name__
        self.collection = cls.collection or _snake_case(cls.__name__)
        self.primary_key = cls.primary_key or None
        self.hash_key = (
            self.settings.hash_key if cls.hash_key is None else cls.hash_key or None
        )
        self.create_keys = dict(cls.create_keys or {})
        self.update_keys = dict(cls.update_keys or {})
        self.destroy_keys = dict(cls.destroy_keys or {})

        self.fields = FieldRegistry(self.collection)
        self.filters = FilterTranslator(self.fields, self.name)
        self.hook_service = HookService()
        self.pivots = PivotSynchronizer(self)
        self.parents: dict[str, Model] = {}
        self.relationships: list[RelationshipSpec] = []
        self.maps: dict[str, str] = {}
        self._related: dict[type, Model] = {}

        self._add_keys()
        self.configure()

    @classmethod
    def instance(cls) -> Model:
        """Shared instance built with the registry's collaborators."""
        return ModelRegistry.make(cls)

    def configure(self) -> None:
        """Declare fields, parents and relationships. Override in subclasses."""
        pass

    def related(self, model: type[Model] | str) -> Model:
        """Instance of a parent, pivot or referenced model.

        Built once per class and sharing this model's source, clock,
        principal and settings.
        """
        cls = ModelRegistry.resolve(model)
        if cls not in self._related:
            self._related[cls] = cls(
                source=self.source,
                clock=self.timestamps.clock,
                principal=self.timestamps.principal,
                settings=self.settings,
            )
        return self._related[cls]

    def _add_keys(self) -> None:
        if self.primary_key:
            self.fields.add(self.primary_key, "integer", create=False, update=False)
        if self.hash_key:
            self.fields.add(self.hash_key, "hash", create=True, update=False)
        for keys, update in (
            (self.create_keys, False),
            (self.update_keys, False),
            (self.destroy_keys, True),
        ):
            for kind, name in keys.items():
                self.fields.add(
                    name,
                    self.timestamps.get_timestamp_type(kind) or "string",
                    create=False,
                    update=update,
                    recover=False,
                )

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def add(self, name: str, type: str = "string", **options: Any) -> Field:
        return self.fields.add(name, type, **options)

    def get(self, name: str) -> Field | None:
        return self.fields.get(name)

    def has(self, name: str) -> bool:
        return self.fields.has(name)

    def get_fields(
        self, action: Action | str | None = None, strict: bool = True
    ) -> list[Field]:
        return self.fields.get_fields(action, strict)

    def import_field(
        self, name: str, through: str, target: str | None = None, **options: Any
    ) -> Field:
        """Surface a field of a referenced model through a reference field."""
        link = self.fields.get(through)
        if link is None or link.reference is None or link.reference.model is None:
            raise ConfigurationError(
                f"Field '{through}' in '{self.name}' does not reference a model"
            )
        related = self.related(link.reference.model)
        target_field = related.get(target or name)
        if target_field is None:
            raise FieldNotFoundError(target or name, related.name)
        return self.fields.import_field(name, link, target_field, **options)

    def extend(self, parent: type[Model] | str | Model, relationship: str) -> Model:
        """Declare ``parent`` as an ancestor linked through ``relationship``.

        The parent instance is built once, owned by this model and shares its
        collaborators. Parent read fields become read-only projections here.
        """
        if not relationship:
            raise ConfigurationError(
                f"'{self.name}' extends a parent without a relationship field"
            )
        if isinstance(parent, Model):
            instance = parent
        else:
            instance = self.related(parent)
        if not self.hash_key or instance.hash_key != self.hash_key:
            raise ConfigurationError(
                f"'{self.name}' and its parent '{instance.name}' must share a hash key"
            )

        link = self.fields.add(
            relationship,
            "integer",
            update=False,
            reference=Reference(
                model=type(instance),
                key=instance.get_primary_key(),
                collection=self.collection,
            ),
        )
        self.parents[relationship] = instance

        for candidate in instance.get_fields(Action.READ, strict=False):
            if self.fields.has(candidate.name):
                continue
            self.fields.import_field(candidate.name, link, candidate)
        return instance

    def add_pivot(
        self,
        local: str,
        relationship: str,
        model: type[Model] | str,
        source: str,
        target: str,
        operations: list[str] | str = ALL_OPERATIONS,
    ) -> RelationshipSpec:
        """Declare a many-to-many relationship kept through ``model``."""
        local_field = self.fields.get(local)
        if local_field is None:
            raise FieldNotFoundError(local, self.name)
        if local_field.reference is None:
            local_field.reference = Reference(key=local, collection=self.collection)
        local_field.reference.pivots[relationship] = model

        spec = RelationshipSpec(
            local=local,
            relationship=relationship,
            source=source,
            target=target,
            operations=operations,
        )
        self.relationships.append(spec)
        return spec

    def map(self, source: str, target: str) -> None:
        """Copy ``source`` into ``target`` before repository validation."""
        self.maps[source] = target

    def get_maps(self) -> dict[str, str]:
        return dict(self.maps)

    def get_collection(self) -> str:
        return self.collection

    def get_primary_key(self) -> str | None:
        return self.primary_key

    def get_hash_key(self) -> str | None:
        return self.hash_key

    def get_parents(self) -> dict[str, Model]:
        return self.parents

    def get_relationships(self) -> list[RelationshipSpec]:
        return self.relationships

    def to_json(self) -> list[dict[str, Any]]:
        return self.fields.to_json()

    def generate_hash(self) -> str:
        return uuid.uuid4().hex

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, record: Any = None, alias: str | None = None) -> Record:
        record = Record.parse(record)

        for relationship, parent in self.parents.items():
            created = parent.create(record)
            record.import_(created)
            record.set(relationship, created.get(parent.get_primary_key()))

        action = alias or Action.CREATE.value
        logger.debug("model.create collection=%s action=%s", self.collection, action)

        self.hook_service.before(self, self.name, action, record)

        if self.hash_key and not record.get(self.hash_key):
            record.set(self.hash_key, self.generate_hash())

        values = self.configure_record(Action.CREATE, record)
        stamps = self.timestamps.stamp(self.create_keys)
        values.import_(stamps)

        fields, data = self._columns(values)
        created_id = self._source().register(
            self.collection, fields, data, self.primary_key
        )

        record.import_(stamps)
        if self.primary_key:
            record.set(self.primary_key, created_id)

        self._after(action, record)
        return record

    def read(
        self,
        record: Any = None,
        alias: str | None = None,
        trash: bool = False,
        clean: bool = False,
        query: QuerySpec | None = None,
    ) -> list[Record]:
        record = Record.parse(record)
        action = alias or Action.READ.value
        logger.debug("model.read collection=%s action=%s", self.collection, action)

        self.hook_service.before(self, self.name, action, record)

        rows = self._recover(record, trash, query or QuerySpec())

        if not clean and action == Action.READ.value:
            rows = self.pivots.recover(rows)

        return self.hook_service.after_read(self, self.name, action, record, rows)

    def update(
        self, record: Any = None, alias: str | None = None, trash: bool = False
    ) -> Record:
        record = Record.parse(record)

        if self.parents and not record.get(self.hash_key):
            self.previous(record, trash)
        for parent in self.parents.values():
            record.import_(parent.update(record, trash=trash))

        action = alias or Action.UPDATE.value
        logger.debug("model.update collection=%s action=%s", self.collection, action)

        previous = self.previous(record, trash)
        if previous.is_empty():
            raise ResourceNotFoundError(self._lookup_details(record))

        self.hook_service.before(self, self.name, action, record, previous)

        if self.hash_key:
            record.set_private(self.hash_key)
        try:
            values = self.configure_record(
                Action.UPDATE, record, previous, calculate=not trash
            )
            stamps = self.timestamps.stamp(self.update_keys)
            values.import_(stamps)

            fields, data = self._columns(values)
            changed = True
            if fields:
                identity = self._identity_filter(record)
                changed = self._source().change(
                    self.collection, fields, data, [identity], [identity.parsed_value()]
                )
        finally:
            if self.hash_key:
                record.set_public(self.hash_key)

        if not changed:
            raise ActionFailedError(self.name, action)

        record.import_(stamps)
        self._resolve_nulls(record)
        merged = previous.merge(record)

        self._after(action, merged)
        return merged

    def destroy(self, record: Any = None, alias: str | None = None) -> Record:
        record = Record.parse(record)

        if self.parents and not record.get(self.hash_key):
            self.previous(record)
        for parent in self.parents.values():
            record.import_(parent.destroy(record))

        action = alias or Action.DESTROY.value
        logger.debug("model.destroy collection=%s action=%s", self.collection, action)

        previous = self.previous(record)
        if previous.is_empty():
            raise ResourceNotFoundError(self._lookup_details(record))

        self.hook_service.before(self, self.name, action, record, previous)

        identity = self._identity_filter(record)
        filter_values = [identity.parsed_value()]

        if self.destroy_keys:
            stamps = self.timestamps.stamp(self.destroy_keys)
            fields, data = self._columns(Record.make(stamps))
            removed = self._source().change(
                self.collection, fields, data, [identity], filter_values
            )
            record.import_(stamps)
        else:
            removed = self._source().remove(self.collection, [identity], filter_values)

        if not removed:
            raise ActionFailedError(self.name, action)

        merged = previous.merge(record)
        self._after(action, merged)
        return merged

    def recycle(self, record: Any = None) -> Record:
        """Restore a soft-deleted row."""
        if not self.destroy_keys:
            raise ValidationError(
                {"destroy_keys": "required"}, "Recycle needs the `destroy_keys`"
            )
        record = Record.parse(record)
        for name in self.destroy_keys.values():
            record.set(name, NULL)
        return self.update(record, "recycle", trash=True)

    def previous(self, record: Record, trash: bool = False) -> Record:
        """Stored row matching ``record`` by hash key, else by primary key.

        The found primary and hash keys are copied into ``record``. Returns
        an empty Record when nothing matches or no key is available.
        """
        lookup: dict[str, Any] = {}
        if self.hash_key and record.get(self.hash_key):
            lookup = {self.hash_key: record.get(self.hash_key)}
        elif self.primary_key and record.get(self.primary_key, None) not in (None, NULL):
            lookup = {self.primary_key: record.get(self.primary_key)}
        if not lookup:
            return Record()

        rows = self._recover(Record.make(lookup), trash, QuerySpec(limit=1))
        if not rows:
            return Record()

        found = rows[0]
        for key in (self.primary_key, self.hash_key):
            if key and found.has(key):
                record.set(key, found.get(key))
        return found

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def count(self, record: Any = None) -> int:
        alias = "count"
        key = self.primary_key or self.hash_key
        counter = Field(
            name=key,
            collection=self.collection,
            type="integer",
            aggregator=Aggregator.COUNT,
            alias=alias,
        )
        rows = self.read(record, alias, query=QuerySpec(fields=[counter]))
        if not rows or not rows[0].has(alias):
            raise ActionFailedError(self.name, alias)
        return int(rows[0].get(alias))

    def aggregate(
        self,
        filter: Any,
        alias: str,
        aggregator: Aggregator | str,
        field: str | None = None,
        group: list[str] | None = None,
    ) -> Any:
        """Aggregate ``field`` (default: primary key) over the filtered rows.

        Returns the single aggregated value, or one dict per group when
        ``group`` is given.
        """
        target = self._resolve_field(field or self.primary_key or self.hash_key)
        synthetic = replace(target, aggregator=Aggregator(aggregator), alias=alias)
        group_fields = [self._resolve_field(name) for name in group or ()]

        rows = self.read(
            filter,
            alias,
            query=QuerySpec(fields=[*group_fields, synthetic], group=group_fields),
        )
        if not rows or not rows[0].has(alias):
            raise ActionFailedError(self.name, alias)
        if group:
            return [row.all() for row in rows]
        return rows[0].get(alias)

    def sum(self, filter: Any = None, field: str | None = None) -> Any:
        return self.aggregate(filter, "sum", Aggregator.SUM, field)

    def min(self, filter: Any = None, field: str | None = None) -> Any:
        return self.aggregate(filter, "min", Aggregator.MIN, field)

    def max(self, filter: Any = None, field: str | None = None) -> Any:
        return self.aggregate(filter, "max", Aggregator.MAX, field)

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def configure_record(
        self,
        action: Action | str,
        record: Record,
        previous: Record | None = None,
        calculate: bool = True,
    ) -> Record:
        """Values to write for ``action``, taken from the public record.

        Calculated fields are computed from ``previous`` when it holds a
        stored row, otherwise from ``record``, and written back into
        ``record``. Mutators apply only to values the record carries.
        """
        values = Record()
        public = record.all()
        basis = previous if previous is not None and not previous.is_empty() else record

        for candidate in self.fields.get_fields(action, strict=True):
            name = candidate.name
            value = public.get(name, MISSING)

            if calculate and candidate.is_calculated:
                value = candidate.calculate(basis)
                record.set(name, value)
            elif (
                calculate
                and candidate.is_mutable
                and value is not MISSING
                and value is not NULL
                and value is not None
            ):
                value = candidate.mutate(value)
                record.set(name, value)

            if value is not MISSING:
                values.set(name, resolve_value(value))
        return values

    def _recover(self, record: Record, trash: bool, query: QuerySpec) -> list[Record]:
        filters: list[Any] = []
        values: list[Any] = []
        if not record.is_empty():
            filters = self.filters.parse_filter_fields(record)
            values = self.filters.parse_filter_values(filters)

        if self.destroy_keys:
            filters.append(self.filters.get_destroy_filter(self._destroy_at(), trash))

        if query.fields is None:
            fields = self.fields.get_fields(Action.READ, strict=False)
        else:
            fields = [self._resolve_field(name) for name in query.fields]

        order = []
        for item in query.order:
            name, direction = parse_order(item)
            order.append((self._resolve_field(name), direction))
        group = [self._resolve_field(name) for name in query.group]

        rows = self._source().recover(
            self.collection,
            fields,
            read_joins(self),
            filters,
            values,
            order,
            query.limit,
            query.offset,
            group,
        )
        return [Record.make(row) for row in rows]

    def _after(self, action: str, record: Record) -> None:
        if action in _WRITE_ACTIONS:
            self.pivots.synchronize(action, record)
        self.hook_service.after(self, self.name, action, record)

    def _source(self) -> Any:
        if self.source is None:
            raise ConfigurationError(f"No source configured for '{self.name}'")
        return self.source

    def _resolve_field(self, ref: Field | str) -> Field:
        if isinstance(ref, Field):
            return ref
        found = self.fields.get(ref)
        if found is None:
            raise FieldNotFoundError(ref, self.name)
        return found

    def _columns(self, values: Record) -> tuple[list[Field], list[Any]]:
        fields = []
        data = []
        for name, value in values.items():
            fields.append(
                self.fields.get(name) or Field(name=name, collection=self.collection)
            )
            data.append(value)
        return fields, data

    def _identity_filter(self, record: Record) -> Filter:
        key = self.primary_key or self.hash_key
        return Filter.create(self._resolve_field(key), record.get(key))

    def _lookup_details(self, record: Record) -> dict[str, Any]:
        key = self.hash_key or self.primary_key
        value = record.get(key, None)
        return {key: None if value is NULL else value}

    def _destroy_at(self) -> str:
        if TIMESTAMP_AT in self.destroy_keys:
            return self.destroy_keys[TIMESTAMP_AT]
        return next(iter(self.destroy_keys.values()))

    def _resolve_nulls(self, record: Record) -> None:
        for name, value in record.items():
            if value is NULL:
                record.set(name, None)
