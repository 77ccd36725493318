"""Model repository: input preparation and validation in front of a model.

The repository is the entry point for application code writing user input:

1. copy mapped fields (``model.map(source, target)``)
2. run ``configure_fields_<action>`` and merge ``get_defaults_<action>``
3. validate declared field rules and raise ValidationError on failure
4. delegate to the model's lifecycle pipeline
"""

import logging
from typing import Any

from modelforge.core.errors import ValidationError
from modelforge.core.types import Action
from modelforge.data.record import MISSING, Record
from modelforge.model.mapper import Model
from modelforge.model.query import QuerySpec
from modelforge.schema.fields import Field
from modelforge.validation.service import RuleValidator
from modelforge.validation.types import Validator

logger = logging.getLogger(__name__)


class ModelRepository:
    """Validating facade over one model."""

    def __init__(self, model: Model, validator: Validator | None = None):
        self.model = model
        self.validator = validator or RuleValidator()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, record: Any, action: str | None = None) -> Record:
        record = Record.parse(record)
        action = action or Action.CREATE.value

        self._prepare(action, record)
        self._validate(record, partial=False)

        return self.model.create(record, action)

    def update(self, record: Any, action: str | None = None) -> Record:
        record = Record.parse(record)
        action = action or Action.UPDATE.value

        self._prepare(action, record)

        hash_key = self.model.get_hash_key()
        primary_key = self.model.get_primary_key()
        if hash_key and primary_key and record.get(hash_key):
            found = self.find({hash_key: record.get(hash_key)}, [primary_key])
            if found:
                record.set(primary_key, found[0].get(primary_key))

        self._validate(record, partial=True)

        return self.model.update(record, action)

    def destroy(self, record: Any, action: str | None = None) -> Record:
        return self.model.destroy(Record.parse(record), action or Action.DESTROY.value)

    def recycle(self, record: Any) -> Record:
        return self.model.recycle(Record.parse(record))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(
        self,
        record: Any = None,
        action: str | None = None,
        trash: bool = False,
        clean: bool = False,
    ) -> list[Record]:
        return self.model.read(
            Record.parse(record), action or Action.READ.value, trash, clean
        )

    def count(self, record: Any = None) -> int:
        return self.model.count(Record.parse(record))

    def search(
        self,
        filter: Any = None,
        order: list[str] | None = None,
        start: int | None = None,
        end: int | None = None,
        trash: bool = False,
    ) -> list[Record]:
        """Read with ordering and an optional window.

        ``start`` rows are skipped and at most ``end`` rows returned; either
        may be given alone.
        """
        query = QuerySpec(order=tuple(order or ()), offset=start or 0, limit=end)
        return self.model.read(filter, trash=trash, query=query)

    def find(self, filters: Any, fields: list[str]) -> list[Record]:
        return self.model.read(Record.parse(filters), query=QuerySpec(fields=fields))

    def find_by_id(self, id: Any) -> Record:
        rows = self.search({self.model.get_primary_key(): id})
        return rows[0] if rows else Record()

    def unique(self, record: Any = None) -> Record:
        """Return the row matching ``record``, creating it when missing."""
        record = Record.parse(record)
        existing = self.model.read(record.copy())
        if existing:
            return existing[0]
        return self.model.create(record)

    def transform(self, record: Record, binds: dict[str, str]) -> Record:
        """Rename fields: ``binds`` maps source name -> target name."""
        return Record.make({target: record.get(source, None) for source, target in binds.items()})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_model(self) -> Model:
        return self.model

    def get_fields(self) -> list[Field]:
        return self.model.get_fields(Action.RECOVER, strict=False)

    def get_hash_key(self) -> str | None:
        return self.model.get_hash_key()

    def get_rules(self, record: Record, partial: bool = False) -> dict[str, Any]:
        """Rule map for the validator; ``partial`` skips fields not in ``record``."""
        rules: dict[str, Any] = {}
        primary_key = self.model.get_primary_key()

        for field in self.get_fields():
            if partial and not record.has(field.name):
                continue

            declared: dict[str, Any] = {}
            for name, options in field.validators.items():
                if name == "unique" and options:
                    current = record.get(primary_key, None) if primary_key else None
                    options = {
                        "model": self.model,
                        "field": field.name,
                        "primary_key": None if current is MISSING else current,
                    }
                declared[name] = options
            if field.enum:
                declared["enum"] = list(field.enum)

            if declared:
                rules[field.name] = (record.get(field.name, None), declared)
        return rules

    def _prepare(self, action: str, record: Record) -> None:
        for source, target in self.model.get_maps().items():
            if record.has(source):
                record.set(target, record.get(source))

        self.model.hook_service.configure_fields(self.model, action, record)

        defaults = self.model.hook_service.get_defaults(self.model, action, record)
        for name, value in defaults.items():
            if not record.has(name):
                record.set(name, value)

    def _validate(self, record: Record, partial: bool) -> None:
        violations = self.validator.parse(self.get_rules(record, partial))
        if not violations:
            return

        details: dict[str, list[str]] = {}
        for violation in violations:
            details.setdefault(violation.field, []).append(violation.message)
        logger.info("Validation failed for %s: %s", self.model.name, details)
        raise ValidationError(details, f"Validation failed for '{self.model.name}'")
